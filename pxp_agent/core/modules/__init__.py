"""
Modules — loading external modules and dispatching actions to them.
"""

from pxp_agent.core.modules.base import LoadingError, Module, ModuleError, ProcessingError
from pxp_agent.core.modules.external import EXTERNAL_MODULE_FILE_ERROR_EC, ExternalModule
from pxp_agent.core.modules.registry import ModuleRegistry

__all__ = [
    "EXTERNAL_MODULE_FILE_ERROR_EC",
    "ExternalModule",
    "LoadingError",
    "Module",
    "ModuleError",
    "ModuleRegistry",
    "ProcessingError",
]
