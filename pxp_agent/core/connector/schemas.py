"""PXP message type URIs."""

from pxp_agent.adapters.transport.base import PCP_ERROR_MSG_TYPE

BLOCKING_REQUEST_TYPE = "http://puppetlabs.com/rpc_blocking_request"
NON_BLOCKING_REQUEST_TYPE = "http://puppetlabs.com/rpc_non_blocking_request"

PROVISIONAL_RESPONSE_TYPE = "http://puppetlabs.com/rpc_provisional_response"
BLOCKING_RESPONSE_TYPE = "http://puppetlabs.com/rpc_blocking_response"
NON_BLOCKING_RESPONSE_TYPE = "http://puppetlabs.com/rpc_non_blocking_response"
PXP_ERROR_MSG_TYPE = "http://puppetlabs.com/rpc_error_message"

__all__ = [
    "BLOCKING_REQUEST_TYPE",
    "BLOCKING_RESPONSE_TYPE",
    "NON_BLOCKING_REQUEST_TYPE",
    "NON_BLOCKING_RESPONSE_TYPE",
    "PCP_ERROR_MSG_TYPE",
    "PROVISIONAL_RESPONSE_TYPE",
    "PXP_ERROR_MSG_TYPE",
]
