import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from functools import partial

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_exponential

from config.exchange_rates import ExchangeRatesConfig
from domain.exceptions.rates import (
    CacheError,
    LastUpdatedUnknownError,
    RatesNotAvailableError,
    TransportError,
)
from domain.models.rates import LookupResult, RateSnapshot, RatesResult
from infrastructure.cache.base import LAST_UPDATED_KEY, LATEST_RATES_KEY, RateStore, historic_key
from infrastructure.monitoring.logger import RatesEventLogger
from infrastructure.providers.base import ExchangeRateProvider
from infrastructure.registry import build_provider, build_store, build_transport

logger = logging.getLogger(__name__)


class ServiceStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


class RatesCallback:
    """Notified after rates are retrieved and stored. Override what you need."""

    def latest_rates_retrieved(self, snapshot: RateSnapshot, retrieved_at: datetime) -> None:
        pass

    def historic_rates_retrieved(self, snapshot: RateSnapshot, on: date) -> None:
        pass


@dataclass
class _Query:
    kind: str
    future: asyncio.Future
    on: date | None = None


@dataclass
class _Tick:
    pass


@dataclass
class _Preload:
    on: date


def _is_transport_failure(result: RatesResult) -> bool:
    return isinstance(result.error, TransportError)


def _describe_interval(retrieve_every_ms: int | None) -> str:
    if retrieve_every_ms is None:
        return "Rates will be retrieved now and never again."
    seconds = retrieve_every_ms // 1000 if retrieve_every_ms % 1000 == 0 else retrieve_every_ms / 1000
    unit = "second" if seconds == 1 else "seconds"
    return f"Rates will be retrieved now and then every {seconds} {unit}."


class ExchangeRateService:
    """
    Keeps exchange rates fresh in a RateStore and answers queries from it.

    One worker task reads a mailbox of queries, timer ticks and preload
    requests and handles them one at a time, so no two fetches of the same
    service ever overlap. Reads that hit the store skip the mailbox.
    """

    def __init__(
        self,
        config: ExchangeRatesConfig,
        provider: ExchangeRateProvider,
        store: RateStore,
        callback: RatesCallback | None = None,
    ):
        self.config = config
        self.provider = provider
        self.store = store
        self.callback = callback or RatesCallback()
        self.namespace = config.namespace
        self.events = RatesEventLogger(logger, config.log_levels.as_dict())

        self.status = ServiceStatus.NOT_STARTED
        self._mailbox: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self._timer: asyncio.TimerHandle | None = None

    @classmethod
    def from_config(cls, config: ExchangeRatesConfig, callback: RatesCallback | None = None) -> "ExchangeRateService":
        transport = build_transport(config.transport, config.transport_options)
        provider = build_provider(config.provider, config.provider_options, transport)
        store = build_store(config.cache, config.cache_options)
        return cls(config, provider, store, callback)

    @property
    def is_running(self) -> bool:
        return self.status is ServiceStatus.RUNNING

    # Lifecycle

    async def start(self) -> None:
        if self.status is not ServiceStatus.NOT_STARTED:
            raise RuntimeError(f"Exchange rate service cannot start from status {self.status.value}")

        self.events.info("Starting exchange rate retrieval service", namespace=self.namespace)
        await self.store.init(self.namespace)

        self._mailbox = asyncio.Queue()
        self._worker = asyncio.create_task(self._run(), name=f"exchange-rates:{self.namespace}")
        self.status = ServiceStatus.RUNNING

        self.events.info(_describe_interval(self.config.retrieve_every_ms))
        self._mailbox.put_nowait(_Tick())

        preload = self.config.preload_dates()
        if preload:
            self.events.info(f"Preloading historic rates for {self.config.preload_historic_rates}")
            for on in preload:
                self._mailbox.put_nowait(_Preload(on))

    async def stop(self) -> None:
        if self.status is not ServiceStatus.RUNNING:
            return
        self.status = ServiceStatus.STOPPED

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        pending = []
        while not self._mailbox.empty():
            pending.append(self._mailbox.get_nowait())
        for message in pending:
            if isinstance(message, _Query) and not message.future.done():
                message.future.set_exception(RuntimeError("Exchange rate service stopped"))

        try:
            await self.store.terminate(self.namespace)
        finally:
            await self.provider.close()
        self.events.info("Stopped exchange rate retrieval service", namespace=self.namespace)

    # Queries

    async def latest_rates(self) -> LookupResult[RateSnapshot]:
        return await self._read_or_ask(LATEST_RATES_KEY, "latest")

    async def historic_rates(self, on: date) -> LookupResult[RateSnapshot]:
        return await self._read_or_ask(historic_key(on), "historic", on)

    async def last_updated(self) -> LookupResult[datetime]:
        self._ensure_running()
        try:
            value = await self.store.get(self.namespace, LAST_UPDATED_KEY)
        except CacheError as e:
            self.events.failure(f"Could not read last updated date: {e}")
            return LookupResult.failed(e)

        if value is None:
            return LookupResult.failed(LastUpdatedUnknownError())
        return LookupResult.ok(value)

    async def refresh_latest_rates(self) -> LookupResult[RateSnapshot]:
        """Fetch the latest rates now, whatever the store holds."""
        return await self._ask("refresh")

    async def latest_rates_with_last_updated(self) -> LookupResult[tuple[RateSnapshot, datetime | None]]:
        """Latest rates paired with the time they were retrieved, read in one step."""
        self._ensure_running()
        try:
            pair = await self._read_latest_pair()
        except CacheError as e:
            self.events.failure(f"Could not read latest rates from the rate store: {e}")
            return LookupResult.failed(e)

        if pair is not None:
            return LookupResult.ok(pair)
        return await self._ask("latest_pair")

    async def latest_rates_available(self) -> bool:
        """Whether latest rates are stored. Never fetches."""
        self._ensure_running()
        try:
            return await self.store.get(self.namespace, LATEST_RATES_KEY) is not None
        except CacheError as e:
            self.events.failure(f"Could not read latest rates from the rate store: {e}")
            return False

    async def _read_latest_pair(self) -> tuple[RateSnapshot, datetime | None] | None:
        stored = await self.store.get_many(self.namespace, [LATEST_RATES_KEY, LAST_UPDATED_KEY])
        if stored.get(LATEST_RATES_KEY) is None:
            return None
        return stored[LATEST_RATES_KEY], stored.get(LAST_UPDATED_KEY)

    async def _read_or_ask(self, key: str, kind: str, on: date | None = None) -> LookupResult[RateSnapshot]:
        self._ensure_running()
        try:
            value = await self.store.get(self.namespace, key)
        except CacheError as e:
            self.events.failure(f"Could not read {key} from the rate store: {e}")
            return LookupResult.failed(e)

        if value is not None:
            return LookupResult.ok(value)
        return await self._ask(kind, on)

    async def _ask(self, kind: str, on: date | None = None) -> LookupResult:
        self._ensure_running()
        future = asyncio.get_running_loop().create_future()
        self._mailbox.put_nowait(_Query(kind=kind, future=future, on=on))
        return await future

    async def drain(self) -> None:
        """Wait until every message queued so far has been handled."""
        self._ensure_running()
        await self._mailbox.join()

    def _ensure_running(self) -> None:
        if not self.is_running:
            raise RuntimeError("Exchange rate service is not running")

    # Worker

    async def _run(self) -> None:
        while True:
            message = await self._mailbox.get()
            try:
                await self._handle(message)
            except asyncio.CancelledError:
                if isinstance(message, _Query) and not message.future.done():
                    message.future.set_exception(RuntimeError("Exchange rate service stopped"))
                raise
            except Exception as e:
                logger.exception(f"Unexpected error while handling {type(message).__name__}")
                if isinstance(message, _Query) and not message.future.done():
                    message.future.set_exception(e)
            finally:
                self._mailbox.task_done()
                if isinstance(message, _Tick):
                    self._schedule_tick()

    async def _handle(self, message: object) -> None:
        if isinstance(message, _Query):
            result = await self._answer(message)
            if not message.future.done():
                message.future.set_result(result)
        elif isinstance(message, _Tick):
            await self._guarded(self._retrieve_latest(require_snapshot=False))
        elif isinstance(message, _Preload):
            await self._guarded(self._preload(message.on))
        else:
            logger.error(f"Invalid message for exchange rate service: {message!r}")

    def _schedule_tick(self) -> None:
        if self.config.retrieve_every_ms is None or not self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.config.retrieve_every_ms / 1000, self._mailbox.put_nowait, _Tick())

    async def _guarded(self, work: Awaitable[LookupResult]) -> LookupResult:
        try:
            return await work
        except CacheError as e:
            self.events.failure(f"Rate store error: {e}", namespace=self.namespace)
            return LookupResult.failed(e)

    async def _answer(self, query: _Query) -> LookupResult:
        if query.kind == "refresh":
            return await self._guarded(self._retrieve_latest(require_snapshot=True))
        if query.kind == "latest_pair":
            return await self._guarded(self._latest_pair_or_retrieve())

        if query.kind == "latest":
            key = LATEST_RATES_KEY
            retrieve = partial(self._retrieve_latest, require_snapshot=True)
        elif query.kind == "historic":
            key = historic_key(query.on)
            retrieve = partial(self._retrieve_historic, query.on)
        else:
            raise ValueError(f"Unknown query kind {query.kind!r}")

        async def cached_or_retrieve() -> LookupResult:
            # Another query may have filled the store while this one waited.
            stored = await self.store.get(self.namespace, key)
            if stored is not None:
                return LookupResult.ok(stored)
            return await retrieve()

        return await self._guarded(cached_or_retrieve())

    async def _latest_pair_or_retrieve(self) -> LookupResult[tuple[RateSnapshot, datetime | None]]:
        pair = await self._read_latest_pair()
        if pair is not None:
            return LookupResult.ok(pair)

        result = await self._retrieve_latest(require_snapshot=True)
        if not result.is_successful:
            return result
        return LookupResult.ok(await self._read_latest_pair() or (result.value, None))

    async def _fetch(self, fetch: Callable[[], Awaitable[RatesResult]]) -> RatesResult:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.fetch_attempts),
            wait=wait_exponential(multiplier=self.config.retry_wait_ms / 1000, max=10),
            retry=retry_if_result(_is_transport_failure),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        return await retrying(fetch)

    async def _fetch_fresh(
        self,
        fetch: Callable[[], Awaitable[RatesResult]],
        lookup_key: str,
        require_snapshot: bool,
        on: date | None = None,
    ) -> tuple[RatesResult, RateSnapshot | None]:
        """
        Fetch, resolving "not modified" against the store.

        When a snapshot is required and the store has lost it, the validators
        remembered for that resource are dropped and it is fetched again in full.
        """
        result = await self._fetch(fetch)
        if not result.not_modified or not require_snapshot:
            return result, None

        stored = await self.store.get(self.namespace, lookup_key)
        if stored is not None:
            return result, stored

        self.provider.forget_validators(on)
        return await self._fetch(fetch), None

    async def _retrieve_latest(self, require_snapshot: bool) -> LookupResult[RateSnapshot]:
        result, stored = await self._fetch_fresh(self.provider.get_latest_rates, LATEST_RATES_KEY, require_snapshot)

        if stored is not None:
            return LookupResult.ok(stored)
        if result.not_modified:
            if require_snapshot:
                self.events.failure("Latest exchange rates are unchanged but not stored")
                return LookupResult.failed(RatesNotAvailableError())
            self.events.success("Latest exchange rates are unchanged")
            return LookupResult.ok(None)
        if not result.is_successful:
            self.events.failure(f"Could not retrieve latest exchange rates: {result.error}")
            return LookupResult.failed(result.error)

        retrieved_at = datetime.now(UTC)
        await self.store.put_many(
            self.namespace, {LATEST_RATES_KEY: result.snapshot, LAST_UPDATED_KEY: retrieved_at}
        )
        self._notify(self.callback.latest_rates_retrieved, result.snapshot, retrieved_at)
        self.events.success("Retrieved latest exchange rates successfully", currencies=len(result.snapshot))
        return LookupResult.ok(result.snapshot)

    async def _retrieve_historic(self, on: date) -> LookupResult[RateSnapshot]:
        key = historic_key(on)
        result, stored = await self._fetch_fresh(
            partial(self.provider.get_historic_rates, on), key, require_snapshot=True, on=on
        )

        if stored is not None:
            return LookupResult.ok(stored)
        if result.not_modified:
            self.events.failure(f"Historic exchange rates for {on.isoformat()} are unchanged but not stored")
            return LookupResult.failed(RatesNotAvailableError(on))
        if not result.is_successful:
            self.events.failure(f"Could not retrieve historic exchange rates for {on.isoformat()}: {result.error}")
            return LookupResult.failed(result.error)

        # Historic rates never change once stored.
        existing = await self.store.get(self.namespace, key)
        if existing is not None:
            return LookupResult.ok(existing)

        await self.store.put(self.namespace, key, result.snapshot)
        self._notify(self.callback.historic_rates_retrieved, result.snapshot, on)
        self.events.success(f"Retrieved historic exchange rates for {on.isoformat()} successfully")
        return LookupResult.ok(result.snapshot)

    async def _preload(self, on: date) -> LookupResult[RateSnapshot]:
        stored = await self.store.get(self.namespace, historic_key(on))
        if stored is not None:
            return LookupResult.ok(stored)
        return await self._retrieve_historic(on)

    def _notify(self, method: Callable, *args) -> None:
        try:
            method(*args)
        except Exception:
            logger.exception(f"Rates callback {method.__qualname__} failed")
