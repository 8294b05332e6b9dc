"""
Connector — PXP responses over the broker transport.
"""

from pxp_agent.core.connector.pxp_connector import (
    DEFAULT_MSG_TIMEOUT_SEC,
    PXPConnector,
    wrap_debug,
)

__all__ = [
    "DEFAULT_MSG_TIMEOUT_SEC",
    "PXPConnector",
    "wrap_debug",
]
