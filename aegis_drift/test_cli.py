"""
aegis_drift/test_cli.py - CLI Coverage Tests

Tests for cli.py: argument parsing, output and exit codes.
"""
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from aegis_core.yamlio import dump_yaml, read_yaml_file

from .cli import main


def write_log(path: Path) -> Path:
    events = [
        {"id": "d-1", "severity": "low", "timestamp": "2025-01-01T00:00:00Z", "detail": "minor"},
        {"id": "d-2", "severity": "high", "timestamp": "2025-01-02T00:00:00Z", "detail": "major",
         "blueprintId": "feat-public-viewing"},
        {"id": "d-3", "severity": "critical", "timestamp": "2025-01-03T00:00:00Z", "detail": "severe"},
        {"id": "d-4", "severity": "high", "timestamp": "2025-01-04T00:00:00Z", "detail": "major again",
         "blueprintId": "feat-public-viewing"},
    ]
    path.write_text(dump_yaml({"driftEvents": events}), encoding="utf-8")
    return path


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return write_log(tmp_path / "drift-log.yaml")


def run_cli(argv):
    with patch('sys.argv', ['aegis-drift'] + argv):
        with pytest.raises(SystemExit) as exc_info:
            main()
    return exc_info.value.code


class TestDriftList:

    def test_list_all(self, log_path, capsys):
        assert run_cli(["--log", str(log_path), "list"]) == 0
        out = capsys.readouterr().out
        for event_id in ("d-1", "d-2", "d-3", "d-4"):
            assert event_id in out

    def test_list_severity_json(self, log_path, capsys):
        assert run_cli(["--log", str(log_path), "list", "high", "--json"]) == 0
        events = json.loads(capsys.readouterr().out)
        assert [e["id"] for e in events] == ["d-2", "d-4"]

    def test_list_rejects_unknown_severity(self, log_path):
        assert run_cli(["--log", str(log_path), "list", "urgent"]) == 2

    def test_list_empty_log(self, tmp_path, capsys):
        assert run_cli(["--log", str(tmp_path / "none.yaml"), "list"]) == 0
        assert "No drift events." in capsys.readouterr().out


class TestDriftReview:

    def test_review_approve(self, log_path, capsys):
        assert run_cli(["--log", str(log_path), "review", "d-2", "--approve"]) == 0
        assert "Drift event d-2 approved" in capsys.readouterr().out
        document = read_yaml_file(log_path)
        assert document["driftEvents"][1]["resolution"]["action"] == "approved"

    def test_review_without_flag_rejects(self, log_path, capsys):
        assert run_cli(["--log", str(log_path), "review", "d-1"]) == 0
        assert "Drift event d-1 rejected" in capsys.readouterr().out

    def test_review_not_found(self, log_path, capsys):
        before = log_path.read_bytes()
        assert run_cli(["--log", str(log_path), "review", "d-99", "--approve"]) == 1
        assert "not found" in capsys.readouterr().err
        assert log_path.read_bytes() == before

    def test_review_twice_is_rejected(self, log_path, capsys):
        assert run_cli(["--log", str(log_path), "review", "d-3", "--approve"]) == 0
        assert run_cli(["--log", str(log_path), "review", "d-3"]) == 1
        assert "already approved" in capsys.readouterr().err

    def test_malformed_log_exit_2(self, tmp_path, capsys):
        path = tmp_path / "drift-log.yaml"
        path.write_text("driftEvents: {broken", encoding="utf-8")
        assert run_cli(["--log", str(path), "review", "d-1"]) == 2


class TestDriftReplay:

    def test_replay_output_identical_across_invocations(self, log_path, capsys):
        argv = ["--log", str(log_path), "replay", "feat-public-viewing", "--fix-mode=guided"]
        assert run_cli(argv) == 0
        output1 = capsys.readouterr().out
        assert run_cli(argv) == 0
        output2 = capsys.readouterr().out
        assert output1 == output2
        assert json.loads(output1)["fixMode"] == "guided"

    def test_replay_default_fix_mode(self, log_path, capsys):
        assert run_cli(["--log", str(log_path), "replay", "feat-public-viewing"]) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["fixMode"] == "report"
        assert [e["id"] for e in document["events"]] == ["d-2", "d-4"]
