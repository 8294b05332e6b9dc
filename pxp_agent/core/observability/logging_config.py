"""
Agent logging — handlers for the ``pxp_agent`` logger namespace.

Only the agent's own loggers are configured; the root logger is left
to the host process. Records emitted from a non-blocking job thread
carry the job's transaction id, so interleaved jobs stay readable:

    12:00:01 [pxp_agent.core.modules.external] (txn-42) Executing the ...

Level precedence: CLI flag > PXP_LOG_LEVEL > WARNING.
The optional file log (PXP_LOG_FILE) has its own level (PXP_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys

AGENT_LOGGER = "pxp_agent"

LOG_LEVEL_ENV = "PXP_LOG_LEVEL"
LOG_FILE_ENV = "PXP_LOG_FILE"
LOG_FILE_LEVEL_ENV = "PXP_LOG_FILE_LEVEL"

# Thread name prefix of non-blocking jobs; the rest is the transaction id
JOB_THREAD_PREFIX = "job-"

_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d%(job)s %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s]%(job)s %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(levelname)s:%(job)s %(message)s", None),
}
_FILE_FORMAT = (
    "%(asctime)s %(levelname)-5s %(threadName)s %(name)s:%(lineno)d %(message)s",
    "%Y-%m-%d %H:%M:%S",
)

# Transport libraries that chatter below WARNING
_NOISY_LOGGERS = ("urllib3", "websocket", "asyncio")


class JobContextFilter(logging.Filter):
    """Sets ``record.job`` to `` (<transaction id>)`` inside job threads."""

    def filter(self, record: logging.LogRecord) -> bool:
        thread_name = record.threadName or ""
        if thread_name.startswith(JOB_THREAD_PREFIX):
            record.job = f" ({thread_name[len(JOB_THREAD_PREFIX):]})"
        else:
            record.job = ""
        return True


def level_from_flags(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str | None:
    """CLI verbosity flags to a level name; None defers to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return None


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> logging.Logger:
    """Attach console (and optional file) handlers to the agent logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Console level name; None reads PXP_LOG_LEVEL.
        log_file: Log file path; None reads PXP_LOG_FILE.
        log_file_level: File level name; None reads PXP_LOG_FILE_LEVEL,
            then falls back to the console level.

    Returns:
        The configured ``pxp_agent`` logger.
    """
    console_level = _parse_level(level or os.environ.get(LOG_LEVEL_ENV))
    log_file = log_file or os.environ.get(LOG_FILE_ENV)
    log_file_level = log_file_level or os.environ.get(LOG_FILE_LEVEL_ENV)

    agent_logger = logging.getLogger(AGENT_LOGGER)
    for handler in list(agent_logger.handlers):
        agent_logger.removeHandler(handler)
        handler.close()

    job_filter = JobContextFilter()
    fmt, datefmt = _console_format(console_level)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    console.addFilter(job_filter)
    agent_logger.addHandler(console)

    effective_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(*_FILE_FORMAT))
        fh.addFilter(job_filter)
        agent_logger.addHandler(fh)

    agent_logger.setLevel(effective_level)

    if console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return agent_logger


def _console_format(level: int) -> tuple[str, str | None]:
    if level <= logging.DEBUG:
        return _CONSOLE_FORMATS[logging.DEBUG]
    if level <= logging.INFO:
        return _CONSOLE_FORMATS[logging.INFO]
    return _CONSOLE_FORMATS[logging.WARNING]


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric constant (WARNING if unknown)."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
