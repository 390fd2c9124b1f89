"""
Configuration loader — reads mmsetup.yml into a SetupConfig.

The file is optional: without one, the built-in defaults describe
the pinned open-mmlab stack.  When present, its keys override the
defaults and an explicit ``artifacts`` list replaces the default one.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from mmsetup.core.models.setup_config import SetupConfig

logger = logging.getLogger(__name__)

# Default config filename
SETUP_CONFIG_FILE = "mmsetup.yml"


class ConfigError(Exception):
    """Raised when setup configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Return ``mmsetup.yml`` in ``start_dir`` (default: cwd), if present.

    Unlike a project file search this does not walk up: every path the
    installer manages is relative to the directory it runs in.
    """
    candidate = (start_dir or Path.cwd()).resolve() / SETUP_CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_config(path: Path | None = None) -> SetupConfig:
    """Load and validate setup configuration.

    Args:
        path: Explicit config path.  None means defaults only.

    Raises:
        ConfigError: If the file is missing, not YAML, or invalid.
    """
    if path is None:
        logger.debug("No %s, using built-in defaults", SETUP_CONFIG_FILE)
        return SetupConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading setup config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = SetupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid setup configuration in {path}: {e}") from e

    logger.info("Loaded %d artifact(s) from %s", len(config.artifacts), path)
    return config


def project_root(config_path: Path | None) -> Path:
    """Directory all managed paths are relative to."""
    if config_path is None:
        return Path.cwd().resolve()
    return config_path.parent.resolve()
