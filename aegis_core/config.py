from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AEGIS_",
        env_file=".env",
        extra="allow",  # Allow extra environment variables
    )

    # Project
    PROJECT_ROOT: str = "."
    CLAIMS_CONFIG_PATH: str = ".aegis/claims.yaml"

    # Check execution
    CHECK_TIMEOUT_SECONDS: float = 30.0
    CHECK_MAX_WORKERS: int = 4

    # Drift log
    DRIFT_LOG_PATH: str = "framework/observability/drift-log.yaml"
    DRIFT_REVIEW_THRESHOLD: str = "high"

    # Waivers
    WAIVERS_DIR: str = ".aegis/waivers"
    WAIVER_SCHEMA_PATH: str = ".aegis/schemas/waiver.schema.json"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


settings = Settings()
