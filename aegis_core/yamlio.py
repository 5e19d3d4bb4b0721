"""
aegis_core/yamlio.py - YAML document I/O

Dates stay text: the implicit timestamp resolver is removed from the loader so
`expiry: 2025-13-01` reaches the validator as the string it was written as,
and drift timestamps round-trip unchanged.
"""
from pathlib import Path
from typing import Any

import yaml


class TextDateLoader(yaml.SafeLoader):
    """SafeLoader without implicit timestamp conversion."""


TextDateLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def load_yaml(text: str) -> Any:
    """Parse YAML text. Raises yaml.YAMLError on malformed input."""
    return yaml.load(text, Loader=TextDateLoader)


def dump_yaml(document: Any) -> str:
    return yaml.safe_dump(
        document,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def read_yaml_file(path: Path) -> Any:
    return load_yaml(Path(path).read_text(encoding="utf-8"))
