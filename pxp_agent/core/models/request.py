"""
ActionRequest model — one action invocation received from the broker.

A request is built from the parsed chunks of a transport message: the
envelope carries the message id and sender, the data chunk carries
the transaction, module, action and params, and any debug chunks are
kept so they can be echoed back on selected responses.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class InvalidRequestError(ValueError):
    """Raised when a message cannot be turned into an ActionRequest."""


class RequestType(StrEnum):
    """How the result of an action is delivered."""

    BLOCKING = "blocking"
    NON_BLOCKING = "non_blocking"


class ParsedChunks(BaseModel):
    """A transport message split into its chunks.

    ``debug`` holds the debug chunks that parsed as JSON objects;
    ``num_invalid_debug`` counts the ones that did not.
    """

    envelope: dict[str, Any] = Field(default_factory=dict)
    data: dict[str, Any] = Field(default_factory=dict)
    debug: list[dict[str, Any]] = Field(default_factory=list)
    num_invalid_debug: int = 0


class ActionRequest(BaseModel):
    """A request to run ``module``/``action`` with ``params``.

    ``results_dir`` is set by the processor for non-blocking requests
    once the directory exists.
    """

    id: str
    transaction_id: str
    sender: str
    module: str
    action: str
    params: Any = Field(default_factory=dict)
    type: RequestType = RequestType.BLOCKING
    results_dir: str = ""
    parsed_chunks: ParsedChunks = Field(default_factory=ParsedChunks)

    @property
    def is_blocking(self) -> bool:
        return self.type == RequestType.BLOCKING

    def pretty_label(self) -> str:
        """Log label, e.g. ``blocking 'echo run' request (transaction 42)``."""
        kind = "blocking" if self.is_blocking else "non-blocking"
        return f"{kind} '{self.module} {self.action}' request (transaction {self.transaction_id})"

    @classmethod
    def from_parsed_chunks(
        cls,
        request_type: RequestType,
        parsed_chunks: ParsedChunks,
    ) -> ActionRequest:
        """Build a request from a transport message.

        Raises:
            InvalidRequestError: A required envelope or data field is
                missing or not a string.
        """
        envelope = parsed_chunks.envelope
        data = parsed_chunks.data

        fields: dict[str, str] = {}
        for source, source_name, keys in (
            (envelope, "envelope", ("id", "sender")),
            (data, "data", ("transaction_id", "module", "action")),
        ):
            for key in keys:
                value = source.get(key)
                if not isinstance(value, str) or not value:
                    raise InvalidRequestError(f"missing or invalid '{key}' in {source_name}")
                fields[key] = value

        return cls(
            **fields,
            params=data.get("params", {}),
            type=request_type,
            parsed_chunks=parsed_chunks,
        )
