"""
Module registry — the set of modules the agent can dispatch to.

The registry loads every executable in the modules directory, pairs
each with its configuration file, and keeps the ones that load. A
module that fails to load is logged and left out; the others are
unaffected.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pxp_agent.core.config.loader import ConfigError, load_module_config
from pxp_agent.core.modules.base import LoadingError, Module
from pxp_agent.core.modules.external import ExternalModule
from pxp_agent.core.schemas.validator import ValidationError

logger = logging.getLogger(__name__)

# Files in the modules directory that are never modules
_SKIPPED_SUFFIXES = (".conf", ".md", ".txt", ".json")


def _is_module_file(path: Path) -> bool:
    if path.name.startswith(".") or path.suffix in _SKIPPED_SUFFIXES:
        return False
    if not path.is_file():
        return False
    if os.name == "nt":
        return True
    return os.access(path, os.X_OK)


class ModuleRegistry:
    """Registry of loaded modules, keyed by module name."""

    def __init__(self):
        self._modules: dict[str, Module] = {}

    def register(self, module: Module) -> None:
        name = module.module_name
        if name in self._modules:
            logger.warning("Overwriting existing module: %s", name)
        self._modules[name] = module
        logger.debug("Registered module: %s", name)

    def get(self, name: str) -> Module | None:
        return self._modules.get(name)

    def list_modules(self) -> list[str]:
        return list(self._modules.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def module_status(self) -> dict[str, dict[str, Any]]:
        """Summary of every registered module and its actions."""
        status = {}
        for name, module in self._modules.items():
            status[name] = {
                "name": name,
                "type": module.__class__.__name__,
                "actions": list(module.actions),
                "path": getattr(module, "path", None),
            }
        return status

    def load_external_module(
        self,
        path: Path,
        modules_config_dir: Path | None = None,
    ) -> ExternalModule | None:
        """Load and register one external module.

        Returns:
            The module, or None if it could not be loaded.
        """
        module_name = path.stem
        config: dict[str, Any] | None = None

        try:
            if modules_config_dir is not None:
                config = load_module_config(modules_config_dir, module_name)
            module = ExternalModule(path, config)
            module.validate_configuration()
        except LoadingError as e:
            logger.error("Failed to load %s: %s", path, e)
            return None
        except ConfigError as e:
            logger.error("Failed to load the configuration of module '%s': %s", module_name, e)
            return None
        except ValidationError as e:
            logger.error("The configuration of module '%s' is invalid: %s", module_name, e)
            return None

        self.register(module)
        logger.info("Loaded module '%s' with actions: %s",
                    module.module_name, ", ".join(module.actions) or "(none)")
        return module

    def load_from_dir(
        self,
        modules_dir: str | Path,
        modules_config_dir: str | Path | None = None,
    ) -> list[str]:
        """Load every external module found in ``modules_dir``.

        Returns:
            Names of the modules that loaded.
        """
        directory = Path(modules_dir)
        if not directory.is_dir():
            logger.warning("Modules directory %s does not exist", directory)
            return []

        config_dir = Path(modules_config_dir) if modules_config_dir else None
        loaded = []
        for path in sorted(directory.iterdir()):
            if not _is_module_file(path):
                logger.debug("Skipping %s", path)
                continue
            module = self.load_external_module(path, config_dir)
            if module is not None:
                loaded.append(module.module_name)

        return loaded
