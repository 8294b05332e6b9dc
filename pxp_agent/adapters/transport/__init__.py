"""
Transport — broker client contract and test double.
"""

from pxp_agent.adapters.transport.base import (
    PCP_ERROR_MSG_TYPE,
    Connector,
    TransportConnectionError,
    TransportError,
    TransportTimeoutError,
)
from pxp_agent.adapters.transport.mock import MockConnector, SentMessage

__all__ = [
    "Connector",
    "MockConnector",
    "PCP_ERROR_MSG_TYPE",
    "SentMessage",
    "TransportConnectionError",
    "TransportError",
    "TransportTimeoutError",
]
