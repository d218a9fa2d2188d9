"""TOML configuration loader.

Loads storage settings from config/defaults.toml shipped with the
package, then applies overrides with this priority:
  1. Environment variables (highest)
  2. ~/.chrio/config.toml (user file, optional)
  3. Package defaults
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from chrio.schemas.config import AppConfig

logger = logging.getLogger(__name__)

# Default config directory relative to the chrio package
_CONFIG_DIR = Path(__file__).parent / "config"
DEFAULTS_FILE = _CONFIG_DIR / "defaults.toml"

CHRIO_HOME = Path.home() / ".chrio"
USER_CONFIG_FILE = CHRIO_HOME / "config.toml"

# Environment variable -> AppConfig field
ENV_OVERRIDES: dict[str, str] = {
    "CHRIO_DB_PATH": "db_path",
    "CHRIO_PHOTOS_DIR": "photos_dir",
}


def _read_storage_section(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        raw = tomllib.load(f)

    section = raw.get("storage", {})
    if not isinstance(section, dict):
        raise ValueError(f"[storage] in {path} must be a table")
    return section


def load_app_config(
    config_path: Path | None = None,
    user_config_path: Path | None = USER_CONFIG_FILE,
) -> AppConfig:
    """Load the storage configuration.

    Args:
        config_path: Path to the defaults file. Defaults to
            chrio/config/defaults.toml.
        user_config_path: Optional user override file; skipped when it
            does not exist or is None.

    Returns:
        AppConfig with file values and environment overrides applied.

    Raises:
        FileNotFoundError: If the defaults file does not exist.
        ValueError: If a file is not valid TOML or holds invalid values.
    """
    path = config_path or DEFAULTS_FILE
    if not path.exists():
        raise FileNotFoundError(f"Chrio config not found: {path}")

    try:
        values = _read_storage_section(path)
        if user_config_path is not None and user_config_path.is_file():
            values.update(_read_storage_section(user_config_path))
            logger.debug("Applied user config from %s", user_config_path)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML: {e}") from None

    for env_var, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            values[field_name] = value
            logger.debug("Using %s from %s", field_name, env_var)

    try:
        return AppConfig(**values)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid storage configuration: {e}") from None
