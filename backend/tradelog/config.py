"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Application
    log_level: str = "INFO"

    # Trade import
    default_date_format: str = "MM/DD/YYYY"
    date_fallback_policy: str = "now"  # 'now', 'epoch' or 'fail'
    csv_fallback_encoding: str = "latin-1"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


settings = Settings()
