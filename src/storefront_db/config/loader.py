"""Settings loading with configuration errors surfaced as one exception type."""

from functools import lru_cache

from pydantic import ValidationError

from storefront_db.config.models import BackupSettings, Settings


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


def _build(settings_cls: type[BackupSettings], overrides: dict) -> BackupSettings:
    try:
        return settings_cls(**overrides)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            if err["type"] == "missing" and field.lower() == "database_url":
                problems.append("DATABASE_URL is not set (environment or .env)")
            else:
                problems.append(f"{field}: {err['msg']}")
        raise ConfigurationError("; ".join(problems)) from e


def load_settings(**overrides) -> Settings:
    """Load settings from the environment and ``.env``.

    Args:
        **overrides: Field values that take precedence over the environment
            (e.g. ``batch_size=50``).

    Returns:
        Validated Settings.

    Raises:
        ConfigurationError: If ``DATABASE_URL`` is missing or a value is invalid.
    """
    return _build(Settings, overrides)


def load_backup_settings(**overrides) -> BackupSettings:
    """Load the backup-file settings only; ``DATABASE_URL`` is not required.

    Raises:
        ConfigurationError: If a value is invalid.
    """
    return _build(BackupSettings, overrides)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
