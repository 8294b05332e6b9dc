"""
Module base — the contract between the request processor and modules.

A module exposes named actions. Each action has an input schema and a
results schema registered at load time; ``execute_action`` enforces
both around the module-specific ``call_action``.

Two errors leave a module:
    LoadingError    — the module cannot be registered for use.
    ProcessingError — an invocation failed in a way that cannot be
                      represented as an ActionOutcome.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pxp_agent.core.models.outcome import ActionOutcome
from pxp_agent.core.models.request import ActionRequest
from pxp_agent.core.schemas.validator import ValidationError, Validator

logger = logging.getLogger(__name__)


class ModuleError(Exception):
    """Base class for module errors."""


class LoadingError(ModuleError):
    """Raised when a module cannot be loaded."""


class ProcessingError(ModuleError):
    """Raised when an action invocation cannot produce an outcome."""


class Module(ABC):
    """Abstract base class for modules.

    Subclasses populate ``actions`` and the validators while loading;
    after that a module is only read, so one instance serves
    concurrent requests.
    """

    def __init__(self, module_name: str):
        self.module_name = module_name
        self.actions: list[str] = []
        self.config_validator = Validator()
        self.input_validator = Validator()
        self.results_validator = Validator()

    def has_action(self, action_name: str) -> bool:
        return action_name in self.actions

    @abstractmethod
    def call_action(self, request: ActionRequest) -> ActionOutcome:
        """Run the requested action and return its outcome.

        Raises:
            ProcessingError: The invocation produced no usable outcome.
        """

    def execute_action(self, request: ActionRequest) -> ActionOutcome:
        """Validate input, call the action, validate results.

        Results are only checked when the action exited with code 0.

        Raises:
            ProcessingError: Invalid input, invalid results, or a failed
                invocation.
        """
        label = request.pretty_label()

        if not self.has_action(request.action):
            raise ProcessingError(f"unknown action '{request.action}' for module '{self.module_name}'")

        try:
            self.input_validator.validate(request.params, request.action)
        except ValidationError as e:
            logger.debug("Invalid input for the %s: %s", label, e)
            raise ProcessingError(f"invalid input for the {label}: {e}") from e

        outcome = self.call_action(request)

        if not outcome.ok:
            logger.debug("Skipping results validation for the %s (exit code %d)",
                         label, outcome.exit_code)
            return outcome

        try:
            self.results_validator.validate(outcome.results, request.action)
        except ValidationError as e:
            logger.debug("Invalid results for the %s: %s", label, e)
            raise ProcessingError(
                f"the {label} returned results with an invalid format: {e}"
            ) from e

        return outcome

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.module_name!r}>"
