"""
Unit tests for the contract-enforcing transport.
"""

import json

import httpx
import pytest

from baas_client.app.adapters.transport import RequestEnvelope, TransportClient
from baas_client.app.contracts import ContractRegistry, EndpointContract, default_registry
from baas_client.app.crypto.cipher import CipherCodec
from baas_client.app.serialization import canonical_json
from shared.errors import (
    HttpStatusError,
    NetworkError,
    TransportDecryptError,
    UnknownOperation,
    ValidationError,
)
from shared.metrics import MetricsCollector
from shared.test_helpers import FakeBaasBackend, RawReply, TestDataFactory

BASE_URL = "http://baas.test"


@pytest.fixture
def codec():
    return CipherCodec("0123456789abcdef0123456789abcdef", "0123456789abcdef")


@pytest.fixture
def backend(codec):
    return FakeBaasBackend(codec, default_registry())


@pytest.fixture
def metrics():
    return MetricsCollector("baas_client")


@pytest.fixture
def transport(codec, backend, metrics):
    return TransportClient(
        base_url=BASE_URL,
        codec=codec,
        http_client=backend.client(),
        metrics=metrics,
    )


class TestRequestEncoding:
    """Request bodies follow each operation's request encryption."""

    @pytest.mark.asyncio
    async def test_encrypted_request_is_canonical_json(self, transport, backend, codec):
        """Decrypted wire bytes equal the canonical JSON of the params."""
        params = {"user_id": "jdoe", "customer_id": "CUST-001", "bps_id": "BPS-17"}
        backend.respond("getTasksWorkflowsCount", TestDataFactory.tasks_workflows_count(7))

        await transport.send("getTasksWorkflowsCount", params)

        call = backend.calls_for("getTasksWorkflowsCount")[0]
        assert call.headers["content-type"] == "text/plain"
        assert call.wire_body != call.plaintext
        assert codec.decrypt(call.wire_body) == canonical_json(params)
        assert call.plaintext == '{"bps_id":"BPS-17","customer_id":"CUST-001","user_id":"jdoe"}'

    @pytest.mark.asyncio
    async def test_plain_request_is_json(self, transport, backend):
        backend.respond("getCorpDetails", TestDataFactory.corp_details())

        await transport.send("getCorpDetails", {"companyID": "C-77"})

        call = backend.calls_for("getCorpDetails")[0]
        assert call.headers["content-type"] == "application/json"
        assert call.wire_body == '{"companyID":"C-77"}'
        assert call.method == "POST"
        assert call.path == "/baasContent/corp_details"

    @pytest.mark.asyncio
    async def test_accept_and_authorization_headers(self, codec, backend):
        transport = TransportClient(
            BASE_URL, codec, http_client=backend.client(), session_token="tok-123"
        )
        await transport.send("getCorpDetails", {"companyID": "C-77"})

        headers = backend.calls[0].headers
        assert headers["accept"] == "application/json;charset=utf-8"
        assert headers["authorization"] == "Bearer tok-123"

    @pytest.mark.asyncio
    async def test_no_authorization_without_token(self, transport, backend):
        await transport.send("getCorpDetails", {"companyID": "C-77"})
        assert "authorization" not in backend.calls[0].headers

    @pytest.mark.asyncio
    async def test_get_sends_params_as_query(self, codec):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        registry = ContractRegistry([
            EndpointContract(operation_id="ping", path="/baasHome/ping", method="GET")
        ])
        transport = TransportClient(
            BASE_URL, codec, registry=registry,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        assert await transport.send("ping", {"customer_id": "C"}) == {"ok": True}
        assert seen[0].method == "GET"
        assert seen[0].url.params["customer_id"] == "C"
        assert seen[0].content == b""

    @pytest.mark.asyncio
    async def test_sign_in_password_is_encrypted_inside_encrypted_body(self, transport, backend, codec):
        """The password travels as its own ciphertext within the encrypted body."""
        backend.respond("signIn", {"token": "t"})

        await transport.send("signIn", {"username": "jdoe", "password": "hunter2"})

        call = backend.calls_for("signIn")[0]
        assert call.params["username"] == "jdoe"
        assert call.params["password"] == codec.encrypt("hunter2") == "r06KOlud4+uBflVTe0sZLg=="
        assert codec.decrypt(call.params["password"]) == "hunter2"
        assert "hunter2" not in call.plaintext

    @pytest.mark.asyncio
    async def test_plain_body_can_carry_encrypted_field(self, transport, backend, codec):
        await transport.send("setPassword", {"userName": "jdoe", "password": "hunter2"})

        call = backend.calls_for("setPassword")[0]
        assert call.headers["content-type"] == "application/json"
        assert call.wire_body == canonical_json({"password": codec.encrypt("hunter2"), "userName": "jdoe"})

    def test_encrypted_fields_leave_caller_params_untouched(self, transport, codec):
        contract = transport.registry.lookup("signIn")
        params = {"username": "jdoe", "password": "hunter2"}

        wire = transport.wire_params(contract, RequestEnvelope("signIn", params))

        assert wire["password"] == codec.encrypt("hunter2")
        assert params["password"] == "hunter2"


class TestPathRouting:
    """Queue-routed listings pick their backend path from queue_id."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("queue_id, path", [
        ("qu10001", "/baasHome/loadAppRecent_baas"),
        ("qu10012", "/baasHome/loadAppRecent_data_Extraction"),
        ("qu10011", "/baasHome/loadAppRecent_smart_dataentry"),
        ("qu10013", "/baasHome/loadExceptionsAppRecent"),
        ("qu10015", "/baasHome/loadDocUploadRecents"),
        ("qu99999", "/baasHome/loadAppRecent_baas"),
    ])
    async def test_recent_listing_routes(self, transport, backend, queue_id, path):
        params = TestDataFactory.base_params(queue_id=queue_id)
        backend.respond("loadAppRecentWorkflows", [[{"din": "DIN-1"}], [{"total_count": 1}]])

        result = await transport.send("loadAppRecentWorkflows", params)

        call = backend.calls_for("loadAppRecentWorkflows")[0]
        assert call.path == path
        assert call.params["queue_id"] == queue_id
        assert result == [[{"din": "DIN-1"}], [{"total_count": 1}]]

    @pytest.mark.asyncio
    async def test_past_due_search_defaults_to_doc_upload(self, transport, backend):
        await transport.send("searchAppPastDueWorkflows", TestDataFactory.base_params(queue_id="qu00000"))
        await transport.send("searchAppPastDueWorkflows", TestDataFactory.base_params(queue_id="qu10006"))

        paths = [call.path for call in backend.calls_for("searchAppPastDueWorkflows")]
        assert paths == ["/baasHome/loadSerachDocUploadPastDue", "/baasHome/search_app_pastDue_baas"]

    @pytest.mark.asyncio
    async def test_routed_failure_reports_resolved_path(self, transport, backend):
        backend.fail("loadAppPastDueWorkflows", 500)

        with pytest.raises(HttpStatusError) as exc_info:
            await transport.send("loadAppPastDueWorkflows", TestDataFactory.base_params(queue_id="qu10013"))

        assert exc_info.value.details["path"] == "/baasHome/loadExceptionsAppPastDue"


class TestResponseDecoding:
    """Response bodies follow each operation's response encryption."""

    @pytest.mark.asyncio
    async def test_encrypted_response_is_decrypted_and_unwrapped(self, transport, backend):
        backend.respond("getTasksWorkflowsCount", TestDataFactory.tasks_workflows_count(42))

        result = await transport.send("getTasksWorkflowsCount", TestDataFactory.base_params())

        assert result == [[42]]

    @pytest.mark.asyncio
    async def test_encrypted_request_plain_response(self, transport, backend):
        """getExceptionSupplierCount sends ciphertext but reads a plain reply."""
        rows = [[{"supplier_id": "SUP-1", "exception_count": 4}]]
        backend.respond("getExceptionSupplierCount", rows)

        envelope = await transport.exchange("getExceptionSupplierCount", TestDataFactory.base_params())

        assert envelope.decrypted is None
        assert json.loads(envelope.raw) == rows
        assert envelope.normalized == rows
        assert backend.calls[0].headers["content-type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_exchange_exposes_each_stage(self, transport, backend, codec):
        backend.respond("getTasksWorkflowsCount", TestDataFactory.tasks_workflows_count(3))

        envelope = await transport.exchange("getTasksWorkflowsCount", TestDataFactory.base_params())

        assert envelope.status_code == 200
        assert codec.decrypt(envelope.raw) == envelope.decrypted
        assert json.loads(envelope.decrypted) == TestDataFactory.tasks_workflows_count(3)
        assert envelope.normalized == [[3]]
        assert envelope.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_plain_first_row(self, transport, backend):
        backend.respond("getBatchInventoryOverview", [[{"batches": 12, "pending": 3}], []])

        result = await transport.send(
            "getBatchInventoryOverview", TestDataFactory.base_params(sp_process_id="SP-1")
        )

        assert result == {"batches": 12, "pending": 3}

    @pytest.mark.asyncio
    async def test_malformed_nested_json_returns_decrypted_text(self, transport, backend, metrics):
        payload = [[{"merged_json": "{broken"}]]
        backend.respond("getTasksWorkflowsCount", payload)

        result = await transport.send("getTasksWorkflowsCount", TestDataFactory.base_params())

        assert result == json.dumps(payload)
        assert metrics.get_sample_value(
            "normalization_fallbacks_total", operation="getTasksWorkflowsCount"
        ) == 1.0

    @pytest.mark.asyncio
    async def test_undecryptable_response(self, transport, backend, codec, metrics):
        """A body that is not ciphertext fails with TransportDecryptError."""
        backend.respond("getTasksWorkflowsCount", RawReply("plain text"))
        # Served unencrypted so the client sees something that is not ciphertext
        backend.codec = _PassThroughEncrypt(codec)

        with pytest.raises(TransportDecryptError) as exc_info:
            await transport.send("getTasksWorkflowsCount", TestDataFactory.base_params())

        assert exc_info.value.details["operation_id"] == "getTasksWorkflowsCount"
        assert metrics.get_sample_value(
            "transport_requests_total",
            operation="getTasksWorkflowsCount", method="POST", outcome="decrypt_error",
        ) == 1.0


class _PassThroughEncrypt:
    """Codec that decrypts normally but leaves replies unencrypted."""

    def __init__(self, codec):
        self._codec = codec

    def decrypt(self, text):
        return self._codec.decrypt(text)

    def encrypt(self, text):
        return text


class TestTransportErrors:
    """Failures map to the shared error taxonomy."""

    @pytest.mark.asyncio
    async def test_unknown_operation(self, transport, backend):
        with pytest.raises(UnknownOperation):
            await transport.send("getEverything", {})
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_missing_params_fail_before_network(self, transport, backend):
        with pytest.raises(ValidationError) as exc_info:
            await transport.send("getTasksWorkflowsCount", {"customer_id": "C"})

        assert exc_info.value.details["missing"] == ["bps_id", "user_id"]
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_http_status_error(self, transport, backend, metrics):
        backend.fail("getAgentData", 503)

        with pytest.raises(HttpStatusError) as exc_info:
            await transport.send("getAgentData", TestDataFactory.base_params())

        assert exc_info.value.status == 503
        assert exc_info.value.body == "backend error 503"
        assert exc_info.value.retryable is False
        assert metrics.get_sample_value("errors_total", error_type="HTTP_STATUS_ERROR", service="baas_client") == 1.0

    @pytest.mark.asyncio
    async def test_connection_error(self, transport, backend):
        backend.fail("getAgentData", httpx.ConnectError("connection refused"))

        with pytest.raises(NetworkError) as exc_info:
            await transport.send("getAgentData", TestDataFactory.base_params())

        assert exc_info.value.retryable is True
        assert exc_info.value.timed_out is False

    @pytest.mark.asyncio
    async def test_timeout(self, transport, backend, metrics):
        backend.fail("getAgentData", httpx.ReadTimeout("timed out"))

        with pytest.raises(NetworkError) as exc_info:
            await transport.send("getAgentData", TestDataFactory.base_params(), timeout=0.5)

        assert exc_info.value.timed_out is True
        assert "0.5" in exc_info.value.message
        assert metrics.get_sample_value(
            "transport_requests_total", operation="getAgentData", method="POST", outcome="timeout"
        ) == 1.0

    @pytest.mark.asyncio
    async def test_per_call_timeout_is_applied(self, codec):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.extensions["timeout"])
            return httpx.Response(200, json={})

        transport = TransportClient(
            BASE_URL, codec, timeout=30.0,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        await transport.send("getCorpDetails", {"companyID": "C"}, timeout=2.5)
        await transport.send("getCorpDetails", {"companyID": "C"})

        assert seen[0]["read"] == 2.5
        assert seen[1]["read"] == 30.0


class TestTransportLifecycle:
    """Client ownership."""

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, codec, backend):
        http_client = backend.client()
        async with TransportClient(BASE_URL, codec, http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, codec):
        transport = TransportClient(BASE_URL, codec)
        client = transport._get_client()
        await transport.aclose()
        assert client.is_closed
