"""
Configuration loader — reads hostboot.yml into a BootstrapConfig.

The file is optional. When none is found the built-in defaults apply,
which reproduce the upstream install procedure on a Debian-family host.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from hostboot.core.errors import ConfigError
from hostboot.core.models.config import BootstrapConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "hostboot.yml"
CONFIG_ENV_VAR = "HOSTBOOT_CONFIG"
SYSTEM_CONFIG_PATH = Path("/etc/hostboot") / CONFIG_FILE


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate a config file without reading it.

    Order: ``$HOSTBOOT_CONFIG``, ``/etc/hostboot/hostboot.yml``,
    then ``hostboot.yml`` in ``start_dir`` (default: cwd).
    """
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)

    if SYSTEM_CONFIG_PATH.is_file():
        return SYSTEM_CONFIG_PATH

    candidate = (start_dir or Path.cwd()) / CONFIG_FILE
    if candidate.is_file():
        return candidate

    return None


def load_config(path: Path | None = None) -> BootstrapConfig:
    """Load and validate the orchestrator configuration.

    Args:
        path: Explicit config path. If None, searches the default locations
            and falls back to built-in defaults when nothing is found.

    Raises:
        ConfigError: If an explicit or discovered file is missing or invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using built-in defaults", CONFIG_FILE)
            return BootstrapConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

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
        config = BootstrapConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config from %s", path)
    return config
