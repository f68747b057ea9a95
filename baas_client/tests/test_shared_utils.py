"""
Unit tests for the shared config, error, retry, logging and metrics helpers.
"""

import pydantic
import pytest

from baas_client.app.caching import cache_key
from baas_client.app.serialization import canonical_json, canonical_params
from shared.config import ClientConfig, get_config
from shared.errors import (
    CallResult,
    DecodeError,
    ErrorKind,
    HttpStatusError,
    NetworkError,
    UnknownOperation,
    ValidationError,
    settle,
)
from shared.logging import (
    add_correlation_context,
    add_service_context,
    clear_context,
    set_call_context,
    set_request_id,
)
from shared.metrics import get_metrics_collector
from shared.retry import RetryConfig, RetryError, _calculate_delay, retry_on_exception


class TestCanonicalJson:
    """Parameter ordering never changes wire text or cache keys."""

    def test_key_order_is_irrelevant(self):
        assert canonical_json({"b": 1, "a": {"d": 2, "c": 3}}) == '{"a":{"c":3,"d":2},"b":1}'

    def test_non_ascii_is_kept(self):
        assert canonical_json({"name": "café"}) == '{"name":"café"}'

    def test_none_params_equal_empty(self):
        assert canonical_params(None) == canonical_params({}) == "{}"

    def test_cache_key(self):
        assert cache_key("getAgentData", {"user_id": "u", "customer_id": "c"}) == \
            'getAgentData({"customer_id":"c","user_id":"u"})'
        assert cache_key("getAgentData") == cache_key("getAgentData", {})


class TestErrors:
    """Error taxonomy and tagged results."""

    def test_error_kinds_and_codes(self):
        assert NetworkError().kind is ErrorKind.NETWORK
        assert NetworkError().retryable
        assert HttpStatusError(404, "missing").code == "HTTP_STATUS_ERROR"
        assert DecodeError().kind is ErrorKind.DECODE
        assert UnknownOperation("op").kind is ErrorKind.UNKNOWN_OPERATION
        assert not ValidationError().retryable

    def test_to_response_carries_context(self):
        clear_context()
        request_id = set_request_id("req-1")
        set_call_context(operation_id="getAgentData")

        response = HttpStatusError(503, "unavailable").to_response()

        assert request_id == "req-1"
        assert response.request_id == "req-1"
        assert response.operation_id == "getAgentData"
        assert response.kind is ErrorKind.HTTP_STATUS
        assert response.details == {"status": 503, "body": "unavailable"}
        clear_context()

    def test_details_operation_wins_over_context(self):
        set_call_context(operation_id="outer")
        response = NetworkError(details={"operation_id": "inner"}).to_response()
        assert response.operation_id == "inner"
        clear_context()

    @pytest.mark.asyncio
    async def test_settle_success(self):
        async def ok():
            return 5

        result = await settle(ok())
        assert result == CallResult.success(5)

    @pytest.mark.asyncio
    async def test_settle_folds_client_errors(self):
        async def failing():
            raise NetworkError("down", timed_out=True)

        result = await settle(failing())

        assert result.kind is ErrorKind.NETWORK
        assert result.to_dict()["detail"]["details"]["timed_out"] is True

    @pytest.mark.asyncio
    async def test_settle_reraises_unknown_operation(self):
        async def unknown():
            raise UnknownOperation("getNothing")

        with pytest.raises(UnknownOperation):
            await settle(unknown())

    @pytest.mark.asyncio
    async def test_settle_does_not_swallow_other_exceptions(self):
        async def broken():
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await settle(broken())


class TestClientConfig:
    """Environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BAAS_API_BASE_URL", raising=False)
        config = get_config()

        assert config.request_timeout_seconds == 30.0
        assert config.accept_header == "application/json;charset=utf-8"
        assert config.cipher_key == "0123456789abcdef0123456789abcdef"
        assert config.cipher_iv == "0123456789abcdef"
        assert config.cache_grace_seconds == 60.0
        assert config.session_token is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("BAAS_API_BASE_URL", "https://api.example.com/")
        monkeypatch.setenv("BAAS_SESSION_TOKEN", "tok")
        monkeypatch.setenv("BAAS_CACHE_GRACE_SECONDS", "2.5")

        config = ClientConfig()

        assert config.api_base_url == "https://api.example.com"
        assert config.session_token == "tok"
        assert config.cache_grace_seconds == 2.5

    @pytest.mark.parametrize("overrides", [
        {"cipher_key": "too-short"},
        {"cipher_iv": "0123"},
        {"request_timeout_seconds": 0},
        {"cache_grace_seconds": -1},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(pydantic.ValidationError):
            ClientConfig(**overrides)


class TestRetry:
    """Caller-side retry decorator."""

    @pytest.mark.asyncio
    async def test_retries_listed_exceptions(self):
        calls = []

        @retry_on_exception((NetworkError,), config=RetryConfig(max_attempts=3, base_delay=0.0))
        async def flaky():
            calls.append(1)
            if len(calls) < 2:
                raise NetworkError("blip")
            return "ok"

        assert await flaky() == "ok"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self):
        @retry_on_exception((NetworkError,), config=RetryConfig(max_attempts=3, base_delay=0.0))
        async def rejected():
            raise HttpStatusError(400, "bad")

        with pytest.raises(HttpStatusError):
            await rejected()

    @pytest.mark.asyncio
    async def test_exhaustion(self):
        @retry_on_exception((NetworkError,), config=RetryConfig(max_attempts=2, base_delay=0.0))
        async def down():
            raise NetworkError("down")

        with pytest.raises(RetryError) as exc_info:
            await down()
        assert exc_info.value.attempts == 2

    @pytest.mark.parametrize("strategy, attempt, expected", [
        ("exponential", 3, 4.0),
        ("linear", 3, 3.0),
        ("fixed", 3, 1.0),
        ("exponential", 10, 10.0),
    ])
    def test_delay(self, strategy, attempt, expected):
        config = RetryConfig(base_delay=1.0, max_delay=10.0, jitter=False, backoff_strategy=strategy)
        assert _calculate_delay(attempt, config) == expected


class TestLoggingProcessors:
    """structlog processors add service and correlation fields."""

    def test_service_context(self):
        event = add_service_context(None, "info", {"logger": "baas_client.transport"})
        assert event["service"] == "baas_client"
        assert event["component"] == "transport"

    def test_correlation_context(self):
        clear_context()
        set_request_id("req-9")
        set_call_context(operation_id="getCorpDetails", customer_id="CUST-001")

        event = add_correlation_context(None, "info", {})

        assert event == {
            "request_id": "req-9",
            "operation_id": "getCorpDetails",
            "customer_id": "CUST-001",
        }
        clear_context()

    def test_bound_operation_is_not_overwritten(self):
        set_call_context(operation_id="ambient")
        event = add_correlation_context(None, "info", {"operation_id": "bound"})
        assert event["operation_id"] == "bound"
        clear_context()


class TestMetricsCollector:
    """Each collector keeps its own registry."""

    def test_collectors_are_isolated(self):
        first = get_metrics_collector()
        second = get_metrics_collector()

        first.record_cache_event("hit", "getAgentData")

        assert first.get_sample_value("cache_events_total", event="hit", operation="getAgentData") == 1.0
        assert second.get_sample_value("cache_events_total", event="hit", operation="getAgentData") == 0.0

    def test_transport_histogram(self):
        metrics = get_metrics_collector()
        metrics.record_transport_request("getAgentData", "POST", "ok", 0.25)

        assert metrics.get_sample_value(
            "transport_request_duration_seconds_count", operation="getAgentData"
        ) == 1.0
        assert metrics.get_metric("transport_requests_total") is not None
