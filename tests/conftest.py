"""
Shared test fixtures and configuration.

External modules are generated per test: a ``/bin/sh`` wrapper named
after the module execs the running interpreter on a script body kept
outside the modules directory.
"""

import json
import logging
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from pxp_agent.core.models.request import ActionRequest, ParsedChunks, RequestType
from pxp_agent.core.observability.logging_config import AGENT_LOGGER

MODULE_TEMPLATE = """\
import json
import logging
import os
import sys

if sys.argv[1] == "metadata":
    sys.stdout.write({metadata_text!r})
    sys.exit(0)

action = sys.argv[1]
args = json.loads(sys.stdin.read())
{action_code}
"""

DEFAULT_METADATA = {
    "description": "test module",
    "actions": [
        {
            "name": "run",
            "description": "runs",
            "input": {"type": "object"},
            "results": {"type": "object"},
        }
    ],
}

# Echoes the action arguments back as results
ECHO_ACTION = """\
print(json.dumps(args))
"""

# Non-blocking: writes results files, reporting the pid in the results
NON_BLOCKING_ACTION = """\
files = args["output_files"]
with open(files["stdout"], "w") as f:
    f.write(json.dumps({"pid": os.getpid(), "input": args["input"]}))
with open(files["stderr"], "w") as f:
    f.write("")
with open(files["exitcode"], "w") as f:
    f.write("0\\n")
"""


@pytest.fixture(autouse=True)
def _restore_agent_logger():
    """Undo setup_logging() calls made by CLI and logging tests."""
    agent_logger = logging.getLogger(AGENT_LOGGER)
    handlers, level = list(agent_logger.handlers), agent_logger.level
    yield
    for handler in agent_logger.handlers:
        if handler not in handlers:
            handler.close()
    agent_logger.handlers[:] = handlers
    agent_logger.setLevel(level)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def modules_dir(tmp_path: Path) -> Path:
    """Directory holding generated module executables."""
    directory = tmp_path / "modules"
    directory.mkdir()
    return directory


@pytest.fixture
def make_module(tmp_path: Path, modules_dir: Path):
    """Factory writing an executable external module.

    Args:
        name: Module name (file name of the executable).
        metadata: Dict (serialized) or raw text printed for ``metadata``.
        action_code: Python source run for any action; ``args`` holds
            the parsed stdin document.
        directory: Where to put the executable (default: modules_dir).
    """
    impl_dir = tmp_path / "impl"
    impl_dir.mkdir(exist_ok=True)

    def _make(
        name: str = "test_module",
        metadata: dict | str | None = None,
        action_code: str = ECHO_ACTION,
        directory: Path | None = None,
    ) -> Path:
        if metadata is None:
            metadata = DEFAULT_METADATA
        metadata_text = metadata if isinstance(metadata, str) else json.dumps(metadata)

        body = impl_dir / f"{name}.py"
        body.write_text(
            MODULE_TEMPLATE.format(
                metadata_text=metadata_text,
                action_code=textwrap.dedent(action_code),
            )
        )

        target = (directory or modules_dir) / name
        target.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{body}" "$@"\n')
        target.chmod(target.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return target

    return _make


@pytest.fixture
def make_request():
    """Factory for ActionRequest with sensible defaults."""

    def _make(**overrides) -> ActionRequest:
        fields = {
            "id": "msg-1",
            "transaction_id": "txn-1",
            "sender": "pcp://controller/server",
            "module": "test_module",
            "action": "run",
            "params": {},
            "type": RequestType.BLOCKING,
        }
        fields.update(overrides)
        return ActionRequest(**fields)

    return _make


@pytest.fixture
def parsed_chunks():
    """Factory for the parsed chunks of a request message."""

    def _make(
        module: str = "test_module",
        action: str = "run",
        params=None,
        transaction_id: str = "txn-1",
        debug: list | None = None,
        num_invalid_debug: int = 0,
    ) -> ParsedChunks:
        return ParsedChunks(
            envelope={"id": "msg-1", "sender": "pcp://controller/server"},
            data={
                "transaction_id": transaction_id,
                "module": module,
                "action": action,
                "params": params if params is not None else {},
            },
            debug=debug or [],
            num_invalid_debug=num_invalid_debug,
        )

    return _make
