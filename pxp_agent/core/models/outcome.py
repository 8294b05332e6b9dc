"""
ActionOutcome model — what a module invocation produced.

A nonzero ``exit_code`` is an ordinary outcome, not an error: the
module ran and reported failure. ``results`` is the parsed stdout, or
None when stdout was empty.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class ActionOutcome(BaseModel):
    """Exit code, raw output and parsed results of an action."""

    exit_code: int
    stderr: str = ""
    stdout: str = ""
    results: Any = None

    @property
    def ok(self) -> bool:
        """Whether the module exited with code 0."""
        return self.exit_code == 0
