"""
External module — actions implemented by a standalone executable.

The executable implements a small contract:

    <module> metadata        → JSON self-description on stdout
    <module> <action>        → action arguments as JSON on stdin

Blocking actions write their results to stdout. Non-blocking actions
receive ``output_files`` paths in their arguments and write stdout,
stderr and exit code there; exit code 5 means they could not.

Flow:
    load:   metadata → meta-schema check → config schema → action schemas
    invoke: arguments → spawn → (read output files) → parse outcome
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pxp_agent.adapters.shell.filesystem import atomic_write_to_file, read_file
from pxp_agent.adapters.shell.process import run_process
from pxp_agent.core.models.outcome import ActionOutcome
from pxp_agent.core.models.request import ActionRequest
from pxp_agent.core.modules.base import LoadingError, Module, ProcessingError
from pxp_agent.core.schemas.metadata import (
    METADATA_ACTIONS_ENTRY,
    METADATA_CONFIGURATION_ENTRY,
    METADATA_SCHEMA_NAME,
    METADATA_VALIDATOR,
)
from pxp_agent.core.schemas.validator import Schema, ValidationError, ValidatorError

logger = logging.getLogger(__name__)

# Exit code of a non-blocking module that failed to write its output files
EXTERNAL_MODULE_FILE_ERROR_EC = 5

# Files a non-blocking action leaves in its results directory
STDOUT_FILE = "stdout"
STDERR_FILE = "stderr"
EXITCODE_FILE = "exitcode"
PID_FILE = "pid"


class ExternalModule(Module):
    """A module backed by an executable on disk.

    Args:
        path: Path of the module executable. The module name is its stem.
        config: Module configuration. None means no configuration was
            supplied; the metadata's configuration schema is then not
            registered.

    Raises:
        LoadingError: The metadata could not be obtained or is invalid.
    """

    def __init__(self, path: str | Path, config: dict[str, Any] | None = None):
        super().__init__(Path(path).stem)
        self.path = str(path)
        self.config: dict[str, Any] = dict(config) if config else {}

        metadata = self._get_metadata()
        self.description: str = metadata["description"]

        if METADATA_CONFIGURATION_ENTRY in metadata and config is not None:
            self._register_configuration(metadata[METADATA_CONFIGURATION_ENTRY])
        else:
            logger.debug("Found no configuration schema for module '%s'", self.module_name)

        self._register_actions(metadata)

    # ── Configuration ────────────────────────────────────────────

    def validate_configuration(self) -> None:
        """Validate the module configuration against its schema, if any.

        Raises:
            ValidationError: The configuration violates the schema.
        """
        if self.config_validator.includes_schema(self.module_name):
            self.config_validator.validate(self.config, self.module_name)
        else:
            logger.debug(
                "The '%s' configuration will not be validated; no JSON schema is available",
                self.module_name,
            )

    # ── Invocation ───────────────────────────────────────────────

    def call_action(self, request: ActionRequest) -> ActionOutcome:
        if request.is_blocking:
            return self.call_blocking_action(request)
        assert request.results_dir, "non-blocking request without results_dir"
        return self.call_non_blocking_action(request)

    def call_blocking_action(self, request: ActionRequest) -> ActionOutcome:
        action_args = self.get_action_arguments(request)

        logger.info("Executing the %s", request.pretty_label())
        logger.debug("Input for the %s: %s", request.pretty_label(), action_args)

        result = run_process(self.path, [request.action], stdin=action_args)
        if not result.spawned:
            logger.error("Failed to execute the %s: %s", request.pretty_label(), result.spawn_error)
            raise ProcessingError(f"failed to execute the {request.pretty_label()}")

        return self.process_request_outcome(
            request, result.exit_code, result.stdout, result.stderr
        )

    def call_non_blocking_action(self, request: ActionRequest) -> ActionOutcome:
        results_dir = Path(request.results_dir)
        action_args = self.get_action_arguments(request)

        logger.info(
            "Starting a task for the %s; stdout and stderr will be stored in %s",
            request.pretty_label(),
            results_dir,
        )
        logger.debug("Input for the %s: %s", request.pretty_label(), action_args)

        def write_pid(pid: int) -> None:
            atomic_write_to_file(f"{pid}\n", results_dir / PID_FILE)

        result = run_process(
            self.path,
            [request.action],
            stdin=action_args,
            pid_callback=write_pid,
        )
        if not result.spawned:
            logger.error("Failed to start the %s: %s", request.pretty_label(), result.spawn_error)
            raise ProcessingError(f"failed to execute the {request.pretty_label()}")

        if result.exit_code == EXTERNAL_MODULE_FILE_ERROR_EC:
            logger.warning(
                "The task process failed to write output on file for the %s; "
                "stdout: %s; stderr: %s",
                request.pretty_label(),
                result.stdout or "(empty)",
                result.stderr or "(empty)",
            )
            raise ProcessingError("failed to write output on file")

        out_txt, err_txt = self.read_non_blocking_outcome(
            request,
            results_dir / STDOUT_FILE,
            results_dir / STDERR_FILE,
        )
        return self.process_request_outcome(request, result.exit_code, out_txt, err_txt)

    # ── Helpers ──────────────────────────────────────────────────

    def get_action_arguments(self, request: ActionRequest) -> str:
        """Serialize the JSON document fed to the action on stdin."""
        action_args: dict[str, Any] = {"input": request.params}

        if self.config:
            action_args["configuration"] = self.config

        if not request.is_blocking:
            results_dir = Path(request.results_dir)
            action_args["output_files"] = {
                "stdout": str(results_dir / STDOUT_FILE),
                "stderr": str(results_dir / STDERR_FILE),
                "exitcode": str(results_dir / EXITCODE_FILE),
            }

        return json.dumps(action_args)

    @staticmethod
    def read_non_blocking_outcome(
        request: ActionRequest,
        out_file: Path,
        err_file: Path,
    ) -> tuple[str, str]:
        """Read the stdout and stderr files of a finished task.

        A missing or unreadable stderr file is tolerated, as is a
        missing stdout file.

        Raises:
            ProcessingError: The stdout file exists but cannot be read.
        """
        err_txt = ""
        if err_file.exists():
            content = read_file(err_file)
            if content is None:
                logger.error(
                    "Failed to read error file '%s' of '%s %s'; will continue processing the output",
                    err_file, request.module, request.action,
                )
            else:
                err_txt = content

        out_txt = ""
        if not out_file.exists():
            logger.debug(
                "Output file '%s' of '%s %s' does not exist",
                out_file, request.module, request.action,
            )
        else:
            content = read_file(out_file)
            if content is None:
                logger.error(
                    "Failed to read output file '%s' of '%s %s'",
                    out_file, request.module, request.action,
                )
                raise ProcessingError("failed to read")
            out_txt = content
            if not out_txt:
                logger.debug("Output file '%s' of '%s %s' is empty",
                             out_file, request.module, request.action)

        return out_txt, err_txt

    @staticmethod
    def process_request_outcome(
        request: ActionRequest,
        exit_code: int,
        out_txt: str,
        err_txt: str,
    ) -> ActionOutcome:
        """Turn raw process output into an ActionOutcome.

        Empty stdout counts as a JSON null result.

        Raises:
            ProcessingError: stdout is not valid JSON.
        """
        label = request.pretty_label()

        if exit_code != 0:
            logger.debug("Execution failure (exit code %d) for the %s%s",
                         exit_code, label, f"; stderr:\n{err_txt}" if err_txt else "")
        elif err_txt:
            logger.debug("Output on stderr for the %s:\n%s", label, err_txt)

        try:
            results = json.loads(out_txt or "null")
        except json.JSONDecodeError as e:
            if out_txt:
                logger.debug("Obtained invalid JSON on stdout for the %s (%s); stdout:\n%s",
                             label, e, out_txt)
                problem = "invalid JSON on stdout"
            else:
                problem = "no output on stdout"
            stderr_part = f"\n{err_txt}" if err_txt else " (empty)"
            raise ProcessingError(
                f"The task executed for the {label} returned {problem} - stderr:{stderr_part}"
            ) from e

        return ActionOutcome(exit_code=exit_code, stderr=err_txt, stdout=out_txt, results=results)

    # ── Loading ──────────────────────────────────────────────────

    def _get_metadata(self) -> dict[str, Any]:
        result = run_process(self.path, ["metadata"])

        if not result.spawned:
            logger.error("Failed to load the external module metadata from %s: %s",
                         self.path, result.spawn_error)
            raise LoadingError("failed to load external module metadata")

        try:
            metadata = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise LoadingError(f"metadata is not in a valid JSON format: {e}") from e
        logger.debug("External module %s: metadata is valid JSON", self.module_name)

        try:
            METADATA_VALIDATOR.validate(metadata, METADATA_SCHEMA_NAME)
        except ValidationError as e:
            raise LoadingError(f"metadata validation failure: {e}") from e
        logger.debug("External module %s: metadata validation OK", self.module_name)

        return metadata

    def _register_configuration(self, config_metadata: dict[str, Any]) -> None:
        try:
            schema = Schema(self.module_name, config_metadata)
            logger.debug("Registering module config schema for '%s'", self.module_name)
            self.config_validator.register_schema(schema)
        except ValidatorError as e:
            logger.error("Failed to parse the configuration schema of module '%s': %s",
                         self.module_name, e)
            raise LoadingError(
                f"invalid configuration schema of module {self.module_name}"
            ) from e

    def _register_actions(self, metadata: dict[str, Any]) -> None:
        for action in metadata[METADATA_ACTIONS_ENTRY]:
            self._register_action(action)

    def _register_action(self, action: dict[str, Any]) -> None:
        action_name = action["name"]
        logger.debug("Validating action '%s %s'", self.module_name, action_name)

        try:
            input_schema = Schema(action_name, action["input"])
            results_schema = Schema(action_name, action["results"])
            self.input_validator.register_schema(input_schema)
            self.results_validator.register_schema(results_schema)
        except ValidatorError as e:
            logger.error("Failed to parse metadata schemas of action '%s %s': %s",
                         self.module_name, action_name, e)
            raise LoadingError(
                f"invalid schemas of '{self.module_name} {action_name}'"
            ) from e

        self.actions.append(action_name)
        logger.debug("Action '%s %s' has been validated", self.module_name, action_name)
