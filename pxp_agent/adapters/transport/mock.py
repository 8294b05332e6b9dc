"""
Mock connector — recording test double for the broker transport.

Records every message it is asked to send. Can be configured to fail
sends, either always or for specific message types.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from pxp_agent.adapters.transport.base import Connector, TransportConnectionError


@dataclass
class SentMessage:
    """A message captured by the mock connector."""

    endpoints: list[str]
    message_type: str
    timeout: int
    data: dict[str, Any]
    debug: list[dict[str, Any]] = field(default_factory=list)


class MockConnector(Connector):
    """Connector that records messages instead of sending them."""

    def __init__(self, broker_ws_uri: str = "wss://mock-broker:8142/pcp", **kwargs: Any):
        super().__init__(broker_ws_uri, **kwargs)
        self._connected = False
        self._failing_types: set[str] = set()
        self._fail_all = False
        self._sent: list[SentMessage] = []
        self._lock = threading.Lock()

    @property
    def sent(self) -> list[SentMessage]:
        """Snapshot of the messages this mock has accepted."""
        with self._lock:
            return list(self._sent)

    @property
    def send_count(self) -> int:
        with self._lock:
            return len(self._sent)

    def messages_of_type(self, message_type: str) -> list[SentMessage]:
        with self._lock:
            return [m for m in self._sent if m.message_type == message_type]

    def set_failure(self, message_type: str | None = None) -> None:
        """Fail sends of ``message_type``, or every send if None."""
        with self._lock:
            if message_type is None:
                self._fail_all = True
            else:
                self._failing_types.add(message_type)

    def connect(self) -> None:
        self._connected = True

    def is_connected(self) -> bool:
        return self._connected

    def send(
        self,
        endpoints: list[str],
        message_type: str,
        timeout: int,
        data: dict[str, Any],
        debug: list[dict[str, Any]] | None = None,
    ) -> None:
        with self._lock:
            if self._fail_all or message_type in self._failing_types:
                raise TransportConnectionError(f"mock failure sending {message_type}")
            self._sent.append(
                SentMessage(
                    endpoints=list(endpoints),
                    message_type=message_type,
                    timeout=timeout,
                    data=data,
                    debug=list(debug or []),
                )
            )

    def reset(self) -> None:
        """Clear recorded messages and configured failures."""
        with self._lock:
            self._sent.clear()
            self._failing_types.clear()
            self._fail_all = False
