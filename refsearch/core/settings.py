from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = Field(default="sqlite+pysqlite:///./dev.db", validation_alias="DATABASE_URL")
    db_auto_create: bool = Field(default=True, validation_alias="DB_AUTO_CREATE")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    # Scoring is pure; >1 fans candidate scoring out over a thread pool.
    scoring_max_workers: int = Field(default=1, ge=1, validation_alias="SCORING_MAX_WORKERS")

    default_min_quality_score: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        validation_alias="DEFAULT_MIN_QUALITY_SCORE",
    )
    default_max_results: int = Field(default=5, ge=1, validation_alias="DEFAULT_MAX_RESULTS")


settings = Settings()
