"""
BaasClient facade.

Wires configuration, cipher, contract registry, transport and cache into
one object that presentation layers talk to.
"""

from collections import abc
from typing import Any, Iterable, Mapping, Optional

import httpx

from shared.config import ClientConfig, get_config
from shared.errors import CallResult, NetworkError, settle
from shared.logging import configure_logging, get_logger, set_call_context, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.retry import RetryConfig, retry_on_exception

from .adapters.transport import TransportClient
from .caching.query_cache import QueryCache, QuerySubscription
from .contracts.registry import ContractRegistry, default_registry
from .crypto.cipher import CipherCodec


class BaasClient:
    """Typed, deduplicated, cache-coherent access to the BaaS backend."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        registry: Optional[ContractRegistry] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None,
        codec: Optional[CipherCodec] = None,
    ):
        self.config = config or get_config()
        self.metrics = metrics or get_metrics_collector("baas_client")
        self.registry = registry or default_registry()
        self.codec = codec or CipherCodec(self.config.cipher_key, self.config.cipher_iv)
        self.logger = get_logger("baas_client.client")

        self.transport = TransportClient(
            base_url=self.config.api_base_url,
            codec=self.codec,
            registry=self.registry,
            timeout=self.config.request_timeout_seconds,
            accept_header=self.config.accept_header,
            session_token=self.config.session_token,
            http_client=http_client,
            metrics=self.metrics,
        )
        self.cache = QueryCache(
            self.transport,
            registry=self.registry,
            grace_seconds=self.config.cache_grace_seconds,
            metrics=self.metrics,
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "BaasClient":
        """Build a client from BAAS_* environment settings and configure logging."""
        config = get_config(**overrides)
        configure_logging("baas_client", config.log_level)
        return cls(config=config)

    def set_session_token(self, token: Optional[str]) -> None:
        """Token sent as a bearer credential on subsequent calls."""
        self.transport.session_token = token

    async def query(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        provides_tags: Optional[Iterable[str]] = None,
        force_refetch: bool = False,
        subscribe: bool = True,
        allow_stale: bool = False,
        timeout: Optional[float] = None,
    ) -> Any:
        return await self.cache.query(
            operation_id,
            params,
            provides_tags=provides_tags,
            force_refetch=force_refetch,
            subscribe=subscribe,
            allow_stale=allow_stale,
            timeout=timeout,
        )

    async def mutate(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        invalidates_tags: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        return await self.cache.mutate(operation_id, params, invalidates_tags=invalidates_tags, timeout=timeout)

    async def call(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        force_refetch: bool = False,
        timeout: Optional[float] = None,
    ) -> Any:
        """Dispatch on the contract kind: mutations run uncached, queries go through the cache unsubscribed."""
        contract = self.registry.lookup(operation_id)
        set_request_id()
        set_call_context(
            operation_id,
            params.get("customer_id") if isinstance(params, abc.Mapping) else None,
        )
        if contract.is_mutation:
            return await self.mutate(operation_id, params, timeout=timeout)
        return await self.cache.query(
            operation_id, params, force_refetch=force_refetch, subscribe=False, timeout=timeout
        )

    async def fetch(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> CallResult:
        """Like call(), but returns a tagged CallResult instead of raising client errors."""
        return await settle(self.call(operation_id, params, timeout=timeout))

    async def call_with_retry(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        call() with retries on NetworkError only.

        Retries refetch the query entry, since a failed fetch leaves it
        Errored. Raises RetryError once attempts are exhausted.
        """
        config = retry_config or RetryConfig(max_attempts=3, base_delay=0.5, max_delay=5.0)
        attempts = 0

        @retry_on_exception((NetworkError,), config=config)
        async def _attempt() -> Any:
            nonlocal attempts
            attempts += 1
            return await self.call(operation_id, params, force_refetch=attempts > 1, timeout=timeout)

        return await _attempt()

    def subscribe(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        provides_tags: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
    ) -> QuerySubscription:
        return self.cache.subscribe(operation_id, params, provides_tags=provides_tags, timeout=timeout)

    def unsubscribe(self, key: str) -> None:
        self.cache.unsubscribe(key)

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        return self.cache.invalidate_tags(tags)

    async def aclose(self) -> None:
        """Cancel pending fetches and close the HTTP client."""
        await self.cache.clear()
        await self.transport.aclose()
        self.logger.debug("Client closed")

    async def __aenter__(self) -> "BaasClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
