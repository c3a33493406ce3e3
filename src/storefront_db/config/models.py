"""Pydantic settings models for database and backup configuration."""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class BackupSettings(BaseSettings):
    """Settings for commands that only touch backup files.

    Environment variables:
    - ``BACKUP_DIR``: Directory holding ``db-backup-*.json`` files
    - ``BACKUP_BATCH_SIZE``: Rows per insert call during restore
    - ``LOG_LEVEL``: Logging level name for the CLI
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    backup_dir: Path = Field(
        default=Path("backups"),
        validation_alias=AliasChoices("BACKUP_DIR"),
    )
    batch_size: int = Field(
        default=100,
        ge=1,
        validation_alias=AliasChoices("BACKUP_BATCH_SIZE"),
    )
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL"),
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class Settings(BackupSettings):
    """Application settings read from the environment and ``.env``.

    Adds ``DATABASE_URL`` (required) to ``BackupSettings``.
    """

    database_url: str = Field(validation_alias=AliasChoices("DATABASE_URL"))
