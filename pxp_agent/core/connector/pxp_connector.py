"""
PXP connector — the four response variants over the broker transport.

Every response goes to the request's sender (PCP errors go to the
given endpoints) with a fixed 2 second delivery timeout. Sending is
best effort: transport failures are logged and never raised, so a
request is never held up by the inability to reply.

Debug chunks of the request are echoed on blocking and provisional
responses only; a non-blocking response follows a provisional one
that already carried them.
"""

from __future__ import annotations

import logging
from typing import Any

from pxp_agent.adapters.transport.base import Connector, TransportError
from pxp_agent.core.config.loader import AgentConfiguration
from pxp_agent.core.connector.schemas import (
    BLOCKING_RESPONSE_TYPE,
    NON_BLOCKING_RESPONSE_TYPE,
    PCP_ERROR_MSG_TYPE,
    PROVISIONAL_RESPONSE_TYPE,
    PXP_ERROR_MSG_TYPE,
)
from pxp_agent.core.models.request import ActionRequest, ParsedChunks

logger = logging.getLogger(__name__)

DEFAULT_MSG_TIMEOUT_SEC = 2


def wrap_debug(parsed_chunks: ParsedChunks) -> list[dict[str, Any]]:
    """Debug chunks to echo back, warning about any malformed ones."""
    bad = parsed_chunks.num_invalid_debug
    if bad:
        logger.warning(
            "Message %s contained %d bad debug chunk%s",
            parsed_chunks.envelope.get("id", "(unknown)"),
            bad,
            "" if bad == 1 else "s",
        )
    return list(parsed_chunks.debug)


class PXPConnector:
    """Sends PXP responses through a transport ``Connector``."""

    def __init__(self, transport: Connector):
        self.transport = transport

    @classmethod
    def from_configuration(
        cls,
        config: AgentConfiguration,
        transport_cls: type[Connector],
    ) -> PXPConnector:
        """Build the transport from the agent configuration and wrap it."""
        transport = transport_cls(
            config.broker_ws_uri,
            client_type=config.client_type,
            ca=config.ca,
            crt=config.crt,
            key=config.key,
            connection_timeout=config.connection_timeout,
        )
        return cls(transport)

    def connect(self) -> None:
        self.transport.connect()

    def send_pcp_error(
        self,
        request_id: str,
        description: str,
        endpoints: list[str],
    ) -> None:
        data = {"id": request_id, "description": description}

        try:
            self.transport.send(endpoints, PCP_ERROR_MSG_TYPE, DEFAULT_MSG_TIMEOUT_SEC, data)
            logger.info("Replied to request %s with a PCP error message", request_id)
        except TransportError as e:
            logger.error("Failed to send PCP error message for request %s: %s", request_id, e)

    def send_pxp_error(self, request: ActionRequest, description: str) -> None:
        data = {
            "transaction_id": request.transaction_id,
            "id": request.id,
            "description": description,
        }

        try:
            self.transport.send(
                [request.sender], PXP_ERROR_MSG_TYPE, DEFAULT_MSG_TIMEOUT_SEC, data
            )
            logger.info("Replied to %s by %s, request ID %s, with a PXP error message",
                        request.pretty_label(), request.sender, request.id)
        except TransportError as e:
            logger.error(
                "Failed to send a PXP error message for the %s by %s "
                "(no further sending attempts will be made): %s; error: %s",
                request.pretty_label(), request.sender, e, description,
            )

    def send_blocking_response(self, request: ActionRequest, results: Any) -> None:
        debug = wrap_debug(request.parsed_chunks)
        data = {"transaction_id": request.transaction_id, "results": results}

        try:
            self.transport.send(
                [request.sender], BLOCKING_RESPONSE_TYPE, DEFAULT_MSG_TIMEOUT_SEC, data, debug
            )
            logger.info("Sent response for the %s by %s", request.pretty_label(), request.sender)
        except TransportError as e:
            logger.error("Failed to reply to the %s by %s: %s",
                         request.pretty_label(), request.sender, e)

    def send_non_blocking_response(
        self,
        request: ActionRequest,
        results: Any,
        job_id: str,
    ) -> None:
        data = {
            "transaction_id": request.transaction_id,
            "job_id": job_id,
            "results": results,
        }

        try:
            self.transport.send(
                [request.sender], NON_BLOCKING_RESPONSE_TYPE, DEFAULT_MSG_TIMEOUT_SEC, data
            )
            logger.info("Sent response for the %s by %s", request.pretty_label(), request.sender)
        except TransportError as e:
            logger.error(
                "Failed to reply to the %s by %s (no further attempts will be made): %s",
                request.pretty_label(), request.sender, e,
            )

    def send_provisional_response(self, request: ActionRequest) -> None:
        debug = wrap_debug(request.parsed_chunks)
        data = {"transaction_id": request.transaction_id}

        try:
            self.transport.send(
                [request.sender], PROVISIONAL_RESPONSE_TYPE, DEFAULT_MSG_TIMEOUT_SEC, data, debug
            )
            logger.info("Sent provisional response for the %s by %s",
                        request.pretty_label(), request.sender)
        except TransportError as e:
            logger.error(
                "Failed to send provisional response for the %s by %s "
                "(no further attempts will be made): %s",
                request.pretty_label(), request.sender, e,
            )
