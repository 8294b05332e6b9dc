"""
Transport base — the contract between the agent and the broker client.

The agent never talks to the broker directly. It sends messages
through a ``Connector``: a list of destination endpoints, a message
type URI, a delivery timeout, a JSON data chunk and optional debug
chunks. How the connection is made is left to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class TransportError(Exception):
    """Base class for transport failures."""


class TransportConnectionError(TransportError):
    """Raised when a message cannot be delivered to the broker."""


class TransportTimeoutError(TransportError):
    """Raised when the broker does not accept a message in time."""


# Message type of the transport's own error message
PCP_ERROR_MSG_TYPE = "http://puppetlabs.com/error_message"


class Connector(ABC):
    """Abstract broker client.

    Args:
        broker_ws_uri: WebSocket URI of the broker.
        client_type: Client type announced to the broker.
        ca: Path of the CA certificate.
        crt: Path of the client certificate.
        key: Path of the client private key.
        connection_timeout: Seconds allowed to establish the connection.
    """

    def __init__(
        self,
        broker_ws_uri: str,
        client_type: str = "agent",
        ca: str = "",
        crt: str = "",
        key: str = "",
        connection_timeout: int = 5,
    ):
        self.broker_ws_uri = broker_ws_uri
        self.client_type = client_type
        self.ca = ca
        self.crt = crt
        self.key = key
        self.connection_timeout = connection_timeout

    @abstractmethod
    def connect(self) -> None:
        """Open the connection to the broker.

        Raises:
            TransportConnectionError: The broker is unreachable.
        """

    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the connection is currently open."""

    @abstractmethod
    def send(
        self,
        endpoints: list[str],
        message_type: str,
        timeout: int,
        data: dict[str, Any],
        debug: list[dict[str, Any]] | None = None,
    ) -> None:
        """Send one message to ``endpoints``.

        Raises:
            TransportError: The message could not be delivered.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} broker={self.broker_ws_uri!r}>"
