"""
Tests for the PXP connector, debug wrapping and the mock transport.
"""

import logging
import threading

import pytest

from pxp_agent.adapters.transport.base import TransportConnectionError, TransportTimeoutError
from pxp_agent.adapters.transport.mock import MockConnector
from pxp_agent.core.config.loader import AgentConfiguration
from pxp_agent.core.connector.pxp_connector import (
    DEFAULT_MSG_TIMEOUT_SEC,
    PXPConnector,
    wrap_debug,
)
from pxp_agent.core.connector.schemas import (
    BLOCKING_RESPONSE_TYPE,
    NON_BLOCKING_RESPONSE_TYPE,
    PCP_ERROR_MSG_TYPE,
    PROVISIONAL_RESPONSE_TYPE,
    PXP_ERROR_MSG_TYPE,
)
from pxp_agent.core.models.request import ParsedChunks

SENDER = "pcp://controller/server"
DEBUG = [{"hops": [{"server": "broker-1"}]}, {"hops": [{"server": "broker-2"}]}]


@pytest.fixture
def transport() -> MockConnector:
    return MockConnector()


@pytest.fixture
def connector(transport: MockConnector) -> PXPConnector:
    return PXPConnector(transport)


@pytest.fixture
def request_with_debug(make_request):
    chunks = ParsedChunks(
        envelope={"id": "msg-1", "sender": SENDER},
        data={"transaction_id": "txn-1"},
        debug=DEBUG,
    )
    return make_request(parsed_chunks=chunks)


# ── Debug Wrapping Tests ─────────────────────────────────────────────


class TestWrapDebug:
    def test_returns_debug_in_order(self):
        chunks = ParsedChunks(envelope={"id": "m"}, debug=DEBUG)
        assert wrap_debug(chunks) == DEBUG

    def test_no_warning_when_all_valid(self, caplog):
        caplog.set_level(logging.INFO)
        wrap_debug(ParsedChunks(envelope={"id": "m"}, debug=DEBUG))
        assert "bad debug" not in caplog.text

    def test_singular_warning(self, caplog):
        caplog.set_level(logging.INFO)
        wrap_debug(ParsedChunks(envelope={"id": "m-1"}, num_invalid_debug=1))
        assert "Message m-1 contained 1 bad debug chunk" in caplog.text
        assert "chunks" not in caplog.text

    def test_plural_warning(self, caplog):
        caplog.set_level(logging.INFO)
        wrap_debug(ParsedChunks(envelope={"id": "m-2"}, num_invalid_debug=3))
        assert "contained 3 bad debug chunks" in caplog.text


# ── Response Tests ───────────────────────────────────────────────────


class TestResponses:
    def test_pcp_error(self, connector, transport):
        connector.send_pcp_error("msg-9", "bad envelope", ["pcp://a/b", "pcp://c/d"])
        assert transport.send_count == 1
        msg = transport.sent[0]
        assert msg.message_type == PCP_ERROR_MSG_TYPE
        assert msg.endpoints == ["pcp://a/b", "pcp://c/d"]
        assert msg.timeout == DEFAULT_MSG_TIMEOUT_SEC == 2
        assert msg.data == {"id": "msg-9", "description": "bad envelope"}
        assert msg.debug == []

    def test_pxp_error(self, connector, transport, request_with_debug):
        connector.send_pxp_error(request_with_debug, "it failed")
        msg = transport.sent[0]
        assert msg.message_type == PXP_ERROR_MSG_TYPE
        assert msg.endpoints == [SENDER]
        assert msg.timeout == 2
        assert msg.data == {"transaction_id": "txn-1", "id": "msg-1", "description": "it failed"}
        assert msg.debug == []

    def test_blocking_response(self, connector, transport, request_with_debug):
        connector.send_blocking_response(request_with_debug, {"ok": True})
        msg = transport.sent[0]
        assert msg.message_type == BLOCKING_RESPONSE_TYPE
        assert msg.endpoints == [SENDER]
        assert msg.timeout == 2
        assert msg.data == {"transaction_id": "txn-1", "results": {"ok": True}}
        assert msg.debug == DEBUG

    def test_blocking_response_null_results(self, connector, transport, make_request):
        connector.send_blocking_response(make_request(), None)
        assert transport.sent[0].data["results"] is None

    def test_non_blocking_response(self, connector, transport, request_with_debug):
        connector.send_non_blocking_response(request_with_debug, [1, 2], job_id="job-7")
        msg = transport.sent[0]
        assert msg.message_type == NON_BLOCKING_RESPONSE_TYPE
        assert msg.endpoints == [SENDER]
        assert msg.timeout == 2
        assert msg.data == {"transaction_id": "txn-1", "job_id": "job-7", "results": [1, 2]}
        assert msg.debug == []

    def test_provisional_response(self, connector, transport, request_with_debug):
        connector.send_provisional_response(request_with_debug)
        msg = transport.sent[0]
        assert msg.message_type == PROVISIONAL_RESPONSE_TYPE
        assert msg.endpoints == [SENDER]
        assert msg.timeout == 2
        assert msg.data == {"transaction_id": "txn-1"}
        assert msg.debug == DEBUG


# ── Send Failure Tests ───────────────────────────────────────────────


class TestSendFailures:
    def test_provisional_failure_swallowed(self, connector, transport, make_request, caplog):
        caplog.set_level(logging.INFO)
        transport.set_failure(PROVISIONAL_RESPONSE_TYPE)
        connector.send_provisional_response(make_request())
        assert transport.send_count == 0
        assert "Failed to send provisional response" in caplog.text

    @pytest.mark.parametrize(
        "send",
        [
            lambda c, r: c.send_pcp_error("msg-1", "x", ["pcp://a/b"]),
            lambda c, r: c.send_pxp_error(r, "x"),
            lambda c, r: c.send_blocking_response(r, {}),
            lambda c, r: c.send_non_blocking_response(r, {}, "job"),
            lambda c, r: c.send_provisional_response(r),
        ],
    )
    def test_every_response_swallows(self, connector, transport, make_request, caplog, send):
        caplog.set_level(logging.INFO)
        transport.set_failure()
        send(connector, make_request())
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_timeout_error_swallowed(self, make_request, caplog):
        caplog.set_level(logging.INFO)

        class SlowConnector(MockConnector):
            def send(self, *args, **kwargs):
                raise TransportTimeoutError("no ack within 2s")

        PXPConnector(SlowConnector()).send_blocking_response(make_request(), {})
        assert "no ack within 2s" in caplog.text

    def test_other_errors_propagate(self, make_request):
        class BrokenConnector(MockConnector):
            def send(self, *args, **kwargs):
                raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            PXPConnector(BrokenConnector()).send_blocking_response(make_request(), {})


# ── Construction Tests ───────────────────────────────────────────────


class TestConstruction:
    def test_from_configuration(self):
        config = AgentConfiguration(
            broker_ws_uri="wss://broker:8142/pcp",
            client_type="agent",
            ca="/ssl/ca.pem",
            crt="/ssl/crt.pem",
            key="/ssl/key.pem",
            connection_timeout=7,
        )
        connector = PXPConnector.from_configuration(config, MockConnector)
        transport = connector.transport
        assert isinstance(transport, MockConnector)
        assert transport.broker_ws_uri == "wss://broker:8142/pcp"
        assert transport.ca == "/ssl/ca.pem"
        assert transport.connection_timeout == 7

    def test_connect(self, connector, transport):
        assert not transport.is_connected()
        connector.connect()
        assert transport.is_connected()

    def test_mock_reset(self, transport):
        transport.set_failure()
        with pytest.raises(TransportConnectionError):
            transport.send(["x"], "t", 2, {})
        transport.reset()
        transport.send(["x"], "t", 2, {})
        assert transport.send_count == 1

    def test_mock_concurrent_sends(self, transport):
        def send_batch(n: int) -> None:
            for i in range(50):
                transport.send([f"pcp://client/{n}"], "t", 2, {"i": i})

        threads = [threading.Thread(target=send_batch, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert transport.send_count == 400
        snapshot = transport.sent
        snapshot.clear()
        assert transport.send_count == 400

    def test_mock_failure_applies_to_later_sends(self, transport):
        transport.send(["x"], "ok", 2, {})
        transport.set_failure("bad")
        with pytest.raises(TransportConnectionError):
            transport.send(["x"], "bad", 2, {})
        transport.send(["x"], "ok", 2, {})
        assert [m.message_type for m in transport.sent] == ["ok", "ok"]
