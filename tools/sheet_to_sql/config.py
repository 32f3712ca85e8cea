"""Settings for the CLI and the upload server."""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shared.logger import get_logger

logger = get_logger(__name__)

CONFIG_ENVVAR = "SHEET2SQL_CONFIG"


class ConfigError(ValueError):
    """Raised for unreadable or invalid configuration."""


@dataclass(frozen=True)
class Settings:
    """
    Defaults for rendering and uploads.

    Attributes:
        table_name: Default table name
        include_create_table: Emit CREATE TABLE before the INSERTs
        batch_size: Rows per INSERT statement
        preview_rows: Rows shown in previews
        preserve_dates: Keep native spreadsheet dates as DATE cells
        max_upload_bytes: Largest upload the server accepts
    """

    table_name: str = ""
    include_create_table: bool = False
    batch_size: int = 100
    preview_rows: int = 50
    preserve_dates: bool = False
    max_upload_bytes: int = 10 * 1024 * 1024

    def __post_init__(self):
        for name in ("batch_size", "preview_rows", "max_upload_bytes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        for name in ("include_create_table", "preserve_dates"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false")
        if not isinstance(self.table_name, str):
            raise ConfigError("table_name must be a string")

    def merge(self, **overrides: Any) -> "Settings":
        """Copy with the given non-None values replaced."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Config file (defaults only if None)

    Returns:
        Settings

    Raises:
        ConfigError: If the file cannot be read or holds invalid values
    """
    if path is None:
        return Settings()

    logger.info(f"Loading config from {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config: {e}")
        raise ConfigError(f"Failed to load config {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")

    return Settings(**_known_keys(data))


def _known_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(Settings)}
    for key in data:
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
    return {k: v for k, v in data.items() if k in known}
