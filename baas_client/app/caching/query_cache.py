"""
Request coalescing and tag-based invalidation over the transport.

Entries are keyed by (operation, canonical params). At most one fetch per
key is in flight; every concurrent caller awaits the same task. Mutations
invalidate tags: affected entries with subscribers are refetched once,
entries nobody subscribes to are dropped. An entry with no subscribers is
evicted after a grace window.

All state changes happen on the event loop thread without awaiting in
between, so no locks are needed.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Set

from shared.errors import BaasClientError, ValidationError
from shared.logging import get_logger, operation_id_var
from shared.metrics import MetricsCollector

from ..adapters.transport import TransportClient
from ..contracts.models import MISSING
from ..contracts.registry import ContractRegistry
from .keys import cache_key


class EntryState(str, Enum):
    """Lifecycle of a cache entry."""

    PENDING = "pending"
    FRESH = "fresh"
    STALE = "stale"
    ERRORED = "errored"


@dataclass
class CacheEntry:
    """Cached result for one (operation, params) pair."""

    key: str
    operation_id: str
    params: Dict[str, Any]
    tags: FrozenSet[str] = frozenset()
    state: EntryState = EntryState.PENDING
    value: Any = None
    error: Optional[BaseException] = None
    stale_value: Any = MISSING
    subscriber_count: int = 0
    refetch_requested: bool = False
    inflight: Optional["asyncio.Task[Any]"] = field(default=None, repr=False)
    eviction: Optional[asyncio.TimerHandle] = field(default=None, repr=False)

    @property
    def has_stale_value(self) -> bool:
        return self.stale_value is not MISSING


class QueryCache:
    """Coalescing, tag-aware cache in front of a TransportClient."""

    def __init__(
        self,
        transport: TransportClient,
        registry: Optional[ContractRegistry] = None,
        grace_seconds: float = 60.0,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.transport = transport
        self.registry = registry or transport.registry
        self.grace_seconds = grace_seconds
        self.metrics = metrics
        self.logger = get_logger("baas_client.cache")

        self._entries: Dict[str, CacheEntry] = {}
        self._tasks: Set["asyncio.Task[Any]"] = set()

    # Queries

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
        """
        Return the cached or fetched result for a query operation.

        Concurrent identical calls share one backend request. With
        subscribe=True (the default) the caller holds a subscription on the
        entry until unsubscribe(cache_key(...)) is called.

        Args:
            operation_id: Query operation from the contract table
            params: Call parameters; None is the same as {}
            provides_tags: Tags for the entry; defaults to the contract's
            force_refetch: Fetch again even when Fresh or Errored
            subscribe: Count the caller as a subscriber
            allow_stale: While refetching, return the last Fresh value
                instead of waiting
            timeout: Per-call timeout in seconds, used when this call
                starts the fetch

        Raises:
            BaasClientError: the fetch failed, or the entry is Errored
        """
        entry = self._acquire(operation_id, params, provides_tags, subscribe, force_refetch, timeout)
        return await self._resolve(entry, allow_stale)

    def subscribe(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        provides_tags: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
    ) -> "QuerySubscription":
        """Subscribe to a query and start fetching it without waiting for the result."""
        entry = self._acquire(operation_id, params, provides_tags, True, False, timeout)
        return QuerySubscription(self, entry.key, entry.operation_id, entry.params)

    def _acquire(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]],
        provides_tags: Optional[Iterable[str]],
        subscribe: bool,
        force_refetch: bool,
        timeout: Optional[float],
    ) -> CacheEntry:
        contract = self.registry.lookup(operation_id)
        if contract.is_mutation:
            raise ValidationError(
                f"{operation_id} is a mutation and cannot be queried",
                details={"operation_id": operation_id}
            )
        self.registry.validate_params(contract, params)

        key = cache_key(operation_id, params)
        tags = frozenset(provides_tags) if provides_tags is not None else contract.provides_tags

        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key, operation_id=operation_id, params=dict(params or {}), tags=tags)
            self._entries[key] = entry
            self._set_size_gauge()
            self._record("miss", operation_id)
            self.logger.debug("Cache miss", key=key)
        elif provides_tags is not None:
            entry.tags = tags

        if subscribe:
            entry.subscriber_count += 1
            self._cancel_eviction(entry)

        if entry.inflight is None and (
            force_refetch
            or entry.state in (EntryState.PENDING, EntryState.STALE)
        ):
            self._start_fetch(entry, timeout)
        elif entry.inflight is not None:
            self._record("coalesced", operation_id)
            self.logger.debug("Joined in-flight request", key=key)
        elif entry.state is EntryState.FRESH:
            self._record("hit", operation_id)

        return entry

    async def _resolve(self, entry: CacheEntry, allow_stale: bool) -> Any:
        if entry.state is EntryState.FRESH:
            return entry.value
        if entry.state is EntryState.ERRORED:
            raise entry.error

        if allow_stale and entry.has_stale_value:
            return entry.stale_value

        # Shield so a cancelled caller does not cancel the shared request
        return await asyncio.shield(entry.inflight)

    async def refetch(self, key: str, timeout: Optional[float] = None) -> Any:
        """Force a new fetch of an existing entry, e.g. to retry after an error."""
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(key)
        return await self.query(
            entry.operation_id,
            entry.params,
            force_refetch=True,
            subscribe=False,
            timeout=timeout,
        )

    # Mutations

    async def mutate(
        self,
        operation_id: str,
        params: Optional[Mapping[str, Any]] = None,
        invalidates_tags: Optional[Iterable[str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Run an operation without caching or deduplication.

        On success every entry carrying one of the invalidated tags (the
        contract's unless given) is refetched or dropped.
        """
        contract = self.registry.lookup(operation_id)
        self.registry.validate_params(contract, params)

        result = await self.transport.send(operation_id, params, timeout=timeout)

        tags = frozenset(invalidates_tags) if invalidates_tags is not None else contract.invalidates_tags
        if tags:
            self.invalidate_tags(tags)
        return result

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Invalidate every entry carrying any of `tags`. Returns the number affected."""
        tags = frozenset(tags)
        affected = [entry for entry in self._entries.values() if entry.tags & tags]

        for entry in affected:
            self._record("invalidated", entry.operation_id)

            if entry.inflight is not None:
                # Result may predate the mutation; refetch once it settles
                entry.refetch_requested = True
            elif entry.subscriber_count == 0:
                self._drop(entry)
            else:
                if entry.state is EntryState.FRESH:
                    entry.stale_value = entry.value
                    entry.value = None
                entry.state = EntryState.STALE
                self._record("refetch", entry.operation_id)
                self._start_fetch(entry, None)

        if affected:
            self.logger.info("Invalidated cache tags", tags=sorted(tags), entries=len(affected))
        return len(affected)

    # Subscriptions

    def unsubscribe(self, key: str) -> None:
        """Release one subscription; at zero the entry is evicted after the grace window."""
        entry = self._entries.get(key)
        if entry is None:
            self.logger.debug("Unsubscribe for unknown key", key=key)
            return

        if entry.subscriber_count > 0:
            entry.subscriber_count -= 1

        if entry.subscriber_count == 0 and entry.inflight is None:
            self._arm_eviction(entry)

    # Fetch lifecycle

    def _start_fetch(self, entry: CacheEntry, timeout: Optional[float]) -> None:
        if entry.state is EntryState.FRESH:
            entry.stale_value = entry.value
            entry.value = None
        entry.state = EntryState.PENDING
        entry.error = None
        self._cancel_eviction(entry)

        task = asyncio.get_running_loop().create_task(self._run_fetch(entry, timeout))
        entry.inflight = task
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

        self._record("fetch", entry.operation_id)
        self.logger.debug("Fetching", key=entry.key)

    async def _run_fetch(self, entry: CacheEntry, timeout: Optional[float]) -> Any:
        operation_id_var.set(entry.operation_id)
        try:
            value = await self.transport.send(entry.operation_id, entry.params, timeout=timeout)
        except asyncio.CancelledError:
            entry.inflight = None
            raise
        except Exception as exc:
            self._settle(entry, error=exc)
            raise
        self._settle(entry, value=value)
        return value

    def _settle(self, entry: CacheEntry, value: Any = None, error: Optional[BaseException] = None) -> None:
        entry.inflight = None

        if error is None:
            entry.state = EntryState.FRESH
            entry.value = value
            entry.error = None
            entry.stale_value = MISSING
        else:
            entry.state = EntryState.ERRORED
            entry.error = error
            if self.metrics and not isinstance(error, BaasClientError):
                self.metrics.record_error(type(error).__name__)
            self.logger.warning("Query failed", key=entry.key, error=str(error))

        if self._entries.get(entry.key) is not entry:
            return

        if entry.refetch_requested:
            entry.refetch_requested = False
            if entry.subscriber_count > 0:
                self._record("refetch", entry.operation_id)
                self._start_fetch(entry, None)
            else:
                self._drop(entry)
        elif entry.subscriber_count == 0:
            self._arm_eviction(entry)

    def _task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        # Mark the outcome retrieved; waiters (if any) get it through the shield
        if not task.cancelled():
            task.exception()

    # Eviction

    def _arm_eviction(self, entry: CacheEntry) -> None:
        self._cancel_eviction(entry)
        loop = asyncio.get_running_loop()
        entry.eviction = loop.call_later(self.grace_seconds, self._evict, entry)

    def _cancel_eviction(self, entry: CacheEntry) -> None:
        if entry.eviction is not None:
            entry.eviction.cancel()
            entry.eviction = None

    def _evict(self, entry: CacheEntry) -> None:
        entry.eviction = None
        if self._entries.get(entry.key) is not entry:
            return
        if entry.subscriber_count > 0 or entry.inflight is not None:
            return
        del self._entries[entry.key]
        self._set_size_gauge()
        self._record("evicted", entry.operation_id)
        self.logger.debug("Evicted cache entry", key=entry.key)

    def _drop(self, entry: CacheEntry) -> None:
        self._cancel_eviction(entry)
        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]
            self._set_size_gauge()
            self._record("dropped", entry.operation_id)

    # Introspection

    def entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """State of every tracked entry, for diagnostics."""
        return {
            key: {
                "operation_id": entry.operation_id,
                "state": entry.state.value,
                "subscribers": entry.subscriber_count,
                "tags": sorted(entry.tags),
                "in_flight": entry.inflight is not None,
            }
            for key, entry in self._entries.items()
        }

    def __len__(self) -> int:
        return len(self._entries)

    async def wait_idle(self) -> None:
        """Wait until no fetch (including scheduled refetches) is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def clear(self) -> None:
        """Cancel in-flight fetches and forget every entry."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for entry in self._entries.values():
            self._cancel_eviction(entry)
        self._entries.clear()
        self._set_size_gauge()

    def _record(self, event: str, operation_id: str):
        if self.metrics:
            self.metrics.record_cache_event(event, operation_id)

    def _set_size_gauge(self):
        if self.metrics:
            self.metrics.set_cache_entries(len(self._entries))


class QuerySubscription:
    """Handle for one subscription to a cached query."""

    def __init__(self, cache: QueryCache, key: str, operation_id: str, params: Dict[str, Any]):
        self.cache = cache
        self.key = key
        self.operation_id = operation_id
        self.params = params
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def state(self) -> Optional[EntryState]:
        entry = self.cache.entry(self.key)
        return entry.state if entry is not None else None

    async def result(self, allow_stale: bool = False) -> Any:
        """Current value, waiting for an in-flight fetch if needed."""
        return await self.cache.query(
            self.operation_id, self.params, subscribe=False, allow_stale=allow_stale
        )

    async def refetch(self, timeout: Optional[float] = None) -> Any:
        return await self.cache.query(
            self.operation_id, self.params, force_refetch=True, subscribe=False, timeout=timeout
        )

    def unsubscribe(self) -> None:
        if self._active:
            self._active = False
            self.cache.unsubscribe(self.key)

    async def __aenter__(self) -> "QuerySubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.unsubscribe()
