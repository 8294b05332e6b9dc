"""
Domain models — Pydantic types for requests and outcomes.

    from pxp_agent.core.models import ActionRequest, ActionOutcome, RequestType
"""

from pxp_agent.core.models.outcome import ActionOutcome
from pxp_agent.core.models.request import (
    ActionRequest,
    InvalidRequestError,
    ParsedChunks,
    RequestType,
)

__all__ = [
    "ActionOutcome",
    "ActionRequest",
    "InvalidRequestError",
    "ParsedChunks",
    "RequestType",
]
