"""
Configuration management for the CV match pipeline.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = ROOT_DIR / "data"


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "job_board"
    username: str | None = None
    password: str | None = None

    # Collections owned by other services, read for ranking and reprocessing
    jobs_collection: str = "jobs"
    users_collection: str = "users"
    cvs_collection: str = "usercvs"
    applications_collection: str = "applications"


class MLSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(env_prefix="ML_")

    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_dimension: int = 384

    # Device settings
    device: Literal["cpu", "cuda", "mps", "auto"] = "auto"

    # Input is cut to this many characters (model token limit is ~512)
    max_text_length: int = 5000

    # Load the model when the worker starts instead of on first task
    preload_model: bool = True

    models_directory: Path = DATA_DIR / "models"

    @field_validator("device")
    @classmethod
    def validate_device(cls, v: str) -> str:
        """Auto-detect device if set to auto."""
        if v == "auto":
            try:
                import torch

                if torch.cuda.is_available():
                    return "cuda"
                elif torch.backends.mps.is_available():
                    return "mps"
            except ImportError:
                pass
            return "cpu"
        return v


class ExtractionSettings(BaseSettings):
    """CV file download and text extraction configuration."""

    model_config = SettingsConfigDict(env_prefix="EXTRACT_")

    download_timeout: float = 30.0
    max_file_size: int = 50 * 1024 * 1024  # 50MB
    min_section_text_length: int = 10


class QueueSettings(BaseSettings):
    """Match task queue and worker configuration."""

    model_config = SettingsConfigDict(env_prefix="QUEUE_")

    name: str = "cv-processing"
    collection_name: str = "match_tasks"

    # Retry policy
    attempts: int = Field(default=3, ge=1)
    backoff_delay: float = Field(default=5.0, ge=0)

    # Worker loop
    poll_interval: float = 1.0
    concurrency: int = Field(default=4, ge=1)
    lock_timeout: float = 300.0


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "cvmatch.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "cvmatch"
    version: str = "0.1.0"
    description: str = "CV to job description matching pipeline"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ml: MLSettings = Field(default_factory=MLSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings
