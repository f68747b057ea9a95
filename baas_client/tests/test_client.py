"""
Unit tests for the BaasClient facade.
"""

import itertools

import httpx
import pytest

from baas_client import BaasClient
from baas_client.app.caching import cache_key
from baas_client.app.contracts import default_registry
from baas_client.app.crypto.cipher import CipherCodec
from shared.config import ClientConfig
from shared.errors import ErrorKind, HttpStatusError, NetworkError, UnknownOperation
from shared.logging import clear_context, customer_id_var, operation_id_var, request_id_var
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryError
from shared.test_helpers import FakeBaasBackend, TestDataFactory

COUNTS = "getTasksWorkflowsCount"

NO_WAIT = RetryConfig(max_attempts=3, base_delay=0.0, jitter=False)


@pytest.fixture
def config():
    return ClientConfig(api_base_url="http://baas.test/", cache_grace_seconds=60.0)


@pytest.fixture
def codec(config):
    return CipherCodec(config.cipher_key, config.cipher_iv)


@pytest.fixture
def backend(codec):
    backend = FakeBaasBackend(codec, default_registry())
    backend.respond(COUNTS, TestDataFactory.tasks_workflows_count(42))
    return backend


@pytest.fixture
def client(config, codec, backend):
    """Client wired to the in-memory backend."""
    return BaasClient(
        config=config,
        http_client=backend.client(),
        metrics=MetricsCollector("baas_client"),
        codec=codec,
    )


@pytest.fixture
def params():
    return TestDataFactory.base_params()


class TestCallDispatch:
    """call() picks the cached or uncached path from the contract kind."""

    @pytest.mark.asyncio
    async def test_query_goes_through_cache(self, client, backend, params):
        assert await client.call(COUNTS, params) == [[42]]
        assert await client.call(COUNTS, params) == [[42]]

        assert len(backend.calls) == 1
        assert client.cache.entry(cache_key(COUNTS, params)).subscriber_count == 0

    @pytest.mark.asyncio
    async def test_mutation_is_not_cached(self, client, backend, params):
        backend.respond("searchRecentWorkflows", [["ok"]])

        await client.call("searchRecentWorkflows", params)
        await client.call("searchRecentWorkflows", params)

        assert len(backend.calls_for("searchRecentWorkflows")) == 2
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_call_sets_log_context(self, client, backend, params):
        clear_context()
        await client.call(COUNTS, params)

        assert operation_id_var.get() == COUNTS
        assert customer_id_var.get() == "CUST-001"
        assert request_id_var.get() is not None
        clear_context()

    @pytest.mark.asyncio
    async def test_base_url_slash_is_stripped(self, client, backend, params):
        await client.call(COUNTS, params)
        assert client.transport.base_url == "http://baas.test"
        assert backend.calls[0].path == "/baasHome/tasksWorkflowsCount"


class TestFetch:
    """fetch() folds client errors into a CallResult."""

    @pytest.mark.asyncio
    async def test_success(self, client, backend, params):
        result = await client.fetch(COUNTS, params)

        assert result.ok
        assert result.value == [[42]]
        assert result.unwrap() == [[42]]
        assert result.to_dict() == {"ok": [[42]]}

    @pytest.mark.asyncio
    async def test_http_failure(self, client, backend, params):
        backend.fail(COUNTS, 502)

        result = await client.fetch(COUNTS, params)

        assert not result.ok
        assert result.kind is ErrorKind.HTTP_STATUS
        assert result.to_dict()["error"] == "http_status"
        assert result.to_dict()["detail"]["details"]["status"] == 502
        with pytest.raises(HttpStatusError):
            result.unwrap()

    @pytest.mark.asyncio
    async def test_network_failure(self, client, backend, params):
        backend.fail(COUNTS, httpx.ConnectError("refused"))

        result = await client.fetch(COUNTS, params)

        assert result.kind is ErrorKind.NETWORK
        assert result.error.retryable

    @pytest.mark.asyncio
    async def test_validation_failure(self, client):
        result = await client.fetch(COUNTS, {})
        assert result.kind is ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_unknown_operation_propagates(self, client):
        with pytest.raises(UnknownOperation):
            await client.fetch("getEverything", {})


class TestCallWithRetry:
    """Retries are opt-in and limited to network failures."""

    @pytest.mark.asyncio
    async def test_recovers_after_network_errors(self, client, backend, params):
        attempts = itertools.count(1)

        def flaky(_params):
            if next(attempts) < 3:
                raise httpx.ConnectError("connection reset")
            return TestDataFactory.tasks_workflows_count(9)

        backend.respond(COUNTS, flaky)

        assert await client.call_with_retry(COUNTS, params, retry_config=NO_WAIT) == [[9]]
        assert len(backend.calls) == 3

    @pytest.mark.asyncio
    async def test_exhausted_attempts(self, client, backend, params):
        backend.fail(COUNTS, httpx.ReadTimeout("slow"))

        with pytest.raises(RetryError) as exc_info:
            await client.call_with_retry(
                COUNTS, params, retry_config=RetryConfig(max_attempts=2, base_delay=0.0, jitter=False)
            )

        assert isinstance(exc_info.value.last_exception, NetworkError)
        assert exc_info.value.last_exception.timed_out
        assert exc_info.value.attempts == 2
        assert len(backend.calls) == 2

    @pytest.mark.asyncio
    async def test_status_errors_are_not_retried(self, client, backend, params):
        backend.fail(COUNTS, 500)

        with pytest.raises(HttpStatusError):
            await client.call_with_retry(COUNTS, params, retry_config=NO_WAIT)

        assert len(backend.calls) == 1


class TestSessionAndSubscriptions:
    """Bearer token handling and facade pass-throughs."""

    @pytest.mark.asyncio
    async def test_session_token(self, client, backend, params):
        await client.call(COUNTS, params)
        assert "authorization" not in backend.calls[-1].headers

        client.set_session_token("session-abc")
        await client.call(COUNTS, params, force_refetch=True)
        assert backend.calls[-1].headers["authorization"] == "Bearer session-abc"

        client.set_session_token(None)
        await client.call(COUNTS, params, force_refetch=True)
        assert "authorization" not in backend.calls[-1].headers

    @pytest.mark.asyncio
    async def test_configured_session_token(self):
        client = BaasClient(config=ClientConfig(session_token="from-config"))
        assert client.transport.session_token == "from-config"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_subscribe_and_invalidate(self, client, backend, params):
        subscription = client.subscribe(COUNTS, params)
        assert await subscription.result() == [[42]]

        assert client.invalidate_tags({"Tasks"}) == 1
        await client.cache.wait_idle()
        assert len(backend.calls) == 2

        client.unsubscribe(subscription.key)
        assert client.cache.entry(subscription.key).subscriber_count == 0

    @pytest.mark.asyncio
    async def test_mutate_with_explicit_tags(self, client, backend, params):
        await client.query(COUNTS, params)

        await client.mutate("startWorkflow", {}, invalidates_tags={"Workflows"})
        await client.cache.wait_idle()

        assert len(backend.calls_for(COUNTS)) == 2


class TestLifecycle:
    """Construction from the environment and shutdown."""

    @pytest.mark.asyncio
    async def test_aclose_clears_cache(self, client, backend, params):
        async with client:
            await client.query(COUNTS, params)
            assert len(client.cache) == 1

        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BAAS_API_BASE_URL", "https://baas.example.com/")
        monkeypatch.setenv("BAAS_REQUEST_TIMEOUT_SECONDS", "5")

        client = BaasClient.from_env(cache_grace_seconds=1.5)

        assert client.config.api_base_url == "https://baas.example.com"
        assert client.transport.timeout == 5.0
        assert client.cache.grace_seconds == 1.5
        await client.aclose()
