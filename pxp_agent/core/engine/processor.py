"""
Request processor — from an incoming message to a PXP response.

Flow:
    message → ActionRequest → resolve module/action → execute → respond

Blocking requests are answered inline. Non-blocking requests get a
results directory under the spool, a provisional response, and a job
thread that sends the final response when the module finishes.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from pxp_agent.adapters.shell.filesystem import ensure_results_dir
from pxp_agent.core.connector.pxp_connector import PXPConnector
from pxp_agent.core.models.outcome import ActionOutcome
from pxp_agent.core.models.request import (
    ActionRequest,
    InvalidRequestError,
    ParsedChunks,
    RequestType,
)
from pxp_agent.core.modules.base import ProcessingError
from pxp_agent.core.modules.registry import ModuleRegistry
from pxp_agent.core.observability.logging_config import JOB_THREAD_PREFIX

logger = logging.getLogger(__name__)


class RequestProcessor:
    """Dispatches action requests to modules and sends the responses."""

    def __init__(
        self,
        connector: PXPConnector,
        registry: ModuleRegistry,
        spool_dir: str | Path,
    ):
        self._connector = connector
        self._registry = registry
        self._spool_dir = Path(spool_dir)
        self._jobs: list[threading.Thread] = []
        self._jobs_lock = threading.Lock()

    def process_request(
        self,
        request_type: RequestType,
        parsed_chunks: ParsedChunks,
    ) -> ActionRequest | None:
        """Handle one incoming action request.

        Returns:
            The parsed request, or None if the message was invalid.
        """
        try:
            request = ActionRequest.from_parsed_chunks(request_type, parsed_chunks)
        except InvalidRequestError as e:
            request_id = str(parsed_chunks.envelope.get("id", ""))
            sender = parsed_chunks.envelope.get("sender")
            logger.warning("Invalid request %s: %s", request_id or "(no id)", e)
            if sender:
                self._connector.send_pcp_error(request_id, f"invalid request: {e}", [sender])
            return None

        logger.info("Processing the %s from %s", request.pretty_label(), request.sender)

        error = self._check_module_and_action(request)
        if error:
            logger.warning("Rejecting the %s: %s", request.pretty_label(), error)
            self._connector.send_pxp_error(request, error)
            return request

        if request.is_blocking:
            self._process_blocking_request(request)
        else:
            self._process_non_blocking_request(request)
        return request

    def wait_for_jobs(self, timeout: float | None = None) -> None:
        """Join outstanding non-blocking jobs."""
        with self._jobs_lock:
            jobs = list(self._jobs)
        for job in jobs:
            job.join(timeout)

    @property
    def active_jobs(self) -> int:
        """Jobs started and not yet finished."""
        with self._jobs_lock:
            return len(self._jobs)

    # ── Internals ────────────────────────────────────────────────

    def _check_module_and_action(self, request: ActionRequest) -> str:
        module = self._registry.get(request.module)
        if module is None:
            return f"unknown module: {request.module}"
        if not module.has_action(request.action):
            return f"unknown action '{request.action}' for module '{request.module}'"
        return ""

    def _execute(self, request: ActionRequest) -> ActionOutcome | None:
        try:
            module = self._registry.get(request.module)
            if module is None:
                raise ProcessingError(f"unknown module: {request.module}")
            outcome = module.execute_action(request)
        except ProcessingError as e:
            logger.error("Failed to process the %s: %s", request.pretty_label(), e)
            self._connector.send_pxp_error(request, str(e))
            return None

        if not outcome.ok:
            logger.warning("The %s finished with exit code %d",
                           request.pretty_label(), outcome.exit_code)
        return outcome

    def _process_blocking_request(self, request: ActionRequest) -> None:
        outcome = self._execute(request)
        if outcome is not None:
            self._connector.send_blocking_response(request, outcome.results)

    def _process_non_blocking_request(self, request: ActionRequest) -> None:
        transaction_id = request.transaction_id
        if Path(transaction_id).name != transaction_id or transaction_id in (".", ".."):
            self._connector.send_pxp_error(request, f"invalid transaction id: {transaction_id}")
            return

        results_dir = self._spool_dir / transaction_id
        try:
            ensure_results_dir(results_dir)
        except FileExistsError:
            self._connector.send_pxp_error(
                request, f"results directory for transaction {request.transaction_id} already exists"
            )
            return
        except OSError as e:
            logger.error("Failed to create results directory %s: %s", results_dir, e)
            self._connector.send_pxp_error(request, "failed to initialize the results directory")
            return

        request.results_dir = str(results_dir)

        # The provisional goes out before the job can touch results_dir
        self._connector.send_provisional_response(request)

        job = threading.Thread(
            target=self._run_non_blocking_job,
            args=(request,),
            name=f"{JOB_THREAD_PREFIX}{request.transaction_id}",
            daemon=True,
        )
        with self._jobs_lock:
            self._jobs.append(job)
        job.start()

    def _run_non_blocking_job(self, request: ActionRequest) -> None:
        try:
            outcome = self._execute(request)
            if outcome is not None:
                self._connector.send_non_blocking_response(
                    request, outcome.results, job_id=request.transaction_id
                )
        finally:
            with self._jobs_lock:
                self._jobs.remove(threading.current_thread())
