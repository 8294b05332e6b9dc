"""
Configuration loader — reads pxp-agent.yml and module config files.

The agent configuration is YAML validated into a Pydantic model. Each
module may additionally have ``<modules_config_dir>/<module>.conf``, a
JSON object handed to the module on every invocation.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Default config filename
AGENT_CONFIG_FILE = "pxp-agent.yml"

# Env var naming an explicit config file
AGENT_CONFIG_ENV = "PXP_AGENT_CONFIG"

MODULE_CONFIG_SUFFIX = ".conf"


class ConfigError(Exception):
    """Raised when agent or module configuration is invalid or missing."""


class AgentConfiguration(BaseModel):
    """Agent settings: broker connection, module and spool locations."""

    broker_ws_uri: str = ""
    client_type: str = "agent"
    ca: str = ""
    crt: str = ""
    key: str = ""
    connection_timeout: int = Field(default=5, ge=0)  # seconds

    modules_dir: str = "modules"
    modules_config_dir: str = "modules.d"
    spool_dir: str = "spool"

    def resolve_paths(self, base_dir: Path) -> AgentConfiguration:
        """Return a copy with relative directories anchored at ``base_dir``."""
        updates = {}
        for key in ("modules_dir", "modules_config_dir", "spool_dir"):
            value = getattr(self, key)
            if value and not Path(value).is_absolute():
                updates[key] = str((base_dir / value).resolve())
        return self.model_copy(update=updates)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate pxp-agent.yml.

    Uses ``PXP_AGENT_CONFIG`` if set, otherwise walks up from
    ``start_dir`` (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    from_env = os.environ.get(AGENT_CONFIG_ENV)
    if from_env:
        return Path(from_env)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / AGENT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_configuration(path: Path | None = None) -> AgentConfiguration:
    """Load and validate the agent configuration.

    Relative directories in the file are resolved against the file's
    own directory.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {AGENT_CONFIG_FILE} found. Set {AGENT_CONFIG_ENV} or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading agent config from %s", path)

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
        config = AgentConfiguration.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid agent configuration: {e}") from e

    config = config.resolve_paths(path.parent.resolve())
    logger.info("Loaded agent config from %s (modules: %s)", path, config.modules_dir)
    return config


def load_module_config(modules_config_dir: str | Path, module_name: str) -> dict[str, Any] | None:
    """Load ``<modules_config_dir>/<module_name>.conf``.

    Returns:
        The configuration object, or None if the file does not exist.

    Raises:
        ConfigError: The file is unreadable, not JSON, or not an object.
    """
    path = Path(modules_config_dir) / f"{module_name}{MODULE_CONFIG_SUFFIX}"
    if not path.is_file():
        logger.debug("No configuration file for module '%s' at %s", module_name, path)
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}, got {type(data).__name__}")

    logger.debug("Loaded configuration of module '%s' from %s", module_name, path)
    return data
