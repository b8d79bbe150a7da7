from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from doclens.languages.catalog import find_language


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "doclens"
    db_username: str = "doclens"
    db_password: str = "secret"

    storage_backend: str = "json"
    data_dir: Path = Path("./data")

    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    pipeline_timeout_seconds: float | None = None

    ocr_engine: str = "tesseract"
    tesseract_cmd: str = ""
    render_dpi: int = 150

    translation_provider: str = "argos"
    translation_api_key: str = ""
    translation_model_name: str = "gpt-4o-mini"
    translation_base_url: str = ""
    translation_timeout_seconds: int = 30

    language_identifier: str = "langdetect"
    auto_detect_fallback_language: str = "en"

    @field_validator("auto_detect_fallback_language")
    @classmethod
    def _concrete_catalog_language(cls, value: str) -> str:
        language = find_language(value)
        if language is None or language.is_auto:
            raise ValueError(
                f"auto_detect_fallback_language must be a concrete catalog code, got '{value}'"
            )
        return language.code

    @field_validator("pipeline_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            return None
        return value
