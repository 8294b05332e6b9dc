"""
Process runner — spawn an executable and collect its output.

This is the single spawning primitive used by external modules. It
feeds optional stdin, reports the child's pid before waiting on it,
and returns exit code, stdout and stderr. Failure to create the
process is reported in ``spawn_error``, never raised.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PidCallback = Callable[[int], None]


@dataclass
class ProcessResult:
    """Outcome of a spawned process."""

    exit_code: int = -1
    stdout: str = ""
    stderr: str = ""
    spawn_error: str = ""
    timed_out: bool = False

    @property
    def spawned(self) -> bool:
        """Whether the process was created and its streams captured."""
        return not self.spawn_error


def build_command(executable: str, args: Sequence[str]) -> list[str]:
    """Build the argv for ``executable``.

    On Windows scripts are not directly executable, so the command goes
    through ``cmd.exe /c``.
    """
    if os.name == "nt":
        return ["cmd.exe", "/c", executable, *args]
    return [executable, *args]


def _build_environment(
    env: Mapping[str, str] | None,
    merge_environment: bool,
) -> dict[str, str]:
    if merge_environment:
        merged = dict(os.environ)
        merged.update(env or {})
        return merged
    return dict(env or {})


def run_process(
    executable: str,
    args: Sequence[str] = (),
    stdin: str | None = None,
    env: Mapping[str, str] | None = None,
    pid_callback: PidCallback | None = None,
    timeout: int = 0,
    merge_environment: bool = True,
) -> ProcessResult:
    """Run ``executable`` with ``args`` and wait for it to exit.

    Args:
        executable: Path of the program to run.
        args: Arguments passed after the executable.
        stdin: Text written to the child's stdin (closed if None).
        env: Extra environment variables for the child.
        pid_callback: Called once with the child's pid before waiting.
        timeout: Seconds before the child is killed; 0 means no timeout.
        merge_environment: Inherit the agent's environment into the child.

    Returns:
        ProcessResult. ``spawn_error`` is set only when the OS could not
        create the process.
    """
    command = build_command(executable, args)
    logger.debug("Spawning: %s", command)

    try:
        proc = subprocess.Popen(
            command,
            stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_build_environment(env, merge_environment),
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except (OSError, ValueError) as e:
        logger.debug("Failed to spawn %s: %s", executable, e)
        return ProcessResult(spawn_error=str(e) or e.__class__.__name__)

    if pid_callback is not None:
        try:
            pid_callback(proc.pid)
        except OSError as e:
            logger.error("pid callback failed for process %d (%s): %s", proc.pid, executable, e)

    try:
        stdout, stderr = proc.communicate(input=stdin, timeout=timeout or None)
    except subprocess.TimeoutExpired:
        proc.kill()
        stdout, stderr = proc.communicate()
        logger.warning("Process %s timed out after %ds and was killed", executable, timeout)
        return ProcessResult(
            exit_code=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            timed_out=True,
        )

    logger.debug("Process %d (%s) exited with code %d", proc.pid, executable, proc.returncode)
    return ProcessResult(exit_code=proc.returncode, stdout=stdout, stderr=stderr)
