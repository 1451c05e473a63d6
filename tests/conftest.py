import itertools
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from application.services.exchange_rate_service import ExchangeRateService
from config.exchange_rates import build_config
from domain.exceptions.rates import TransportError
from domain.models.rates import RateSnapshot, RatesResult
from infrastructure.cache.memory_cache import InMemoryRateStore

_names = itertools.count()

SCENARIO_RATES = RateSnapshot({"AUD": Decimal("0.70"), "EUR": Decimal("1.20"), "USD": Decimal("1")})


def offline() -> RatesResult:
    return RatesResult.failed(TransportError("https://rates.test/latest.json", "Request failed: ConnectError"))


class FakeProvider:
    """
    Provider returning canned results in order. The last result repeats.
    """
    name = "fake"

    def __init__(self, latest: list[RatesResult] | None = None, historic: dict[date, list[RatesResult]] | None = None):
        self.latest_results = list(latest or [])
        self.historic_results = {on: list(results) for on, results in (historic or {}).items()}
        self.latest_calls = 0
        self.historic_calls: list[date] = []
        self.forget_calls = 0
        self.forgotten: list[date | None] = []
        self.closed = False

    @staticmethod
    def _next(results: list[RatesResult]) -> RatesResult:
        if not results:
            return offline()
        if len(results) > 1:
            return results.pop(0)
        return results[0]

    async def get_latest_rates(self) -> RatesResult:
        self.latest_calls += 1
        return self._next(self.latest_results)

    async def get_historic_rates(self, on: date) -> RatesResult:
        self.historic_calls.append(on)
        return self._next(self.historic_results.get(on, []))

    def forget_validators(self, on: date | None = None) -> None:
        self.forget_calls += 1
        self.forgotten.append(on)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def service_name():
    name = f"test_{next(_names)}"
    yield name
    InMemoryRateStore.drop(f"isolated:{name}")
    InMemoryRateStore.drop(f"shared:{name}")


@pytest.fixture
def make_config(service_name):
    def _make(**overrides):
        options = {
            "name": service_name,
            "provider_options": {"app_id": "test"},
            "retrieve_every_ms": None,
        }
        options.update(overrides)
        return build_config(**options)
    return _make


@pytest_asyncio.fixture
async def start_service():
    """Start services against a FakeProvider and wait for their start-up work."""
    services = []

    async def _start(provider, config, store=None, callback=None):
        service = ExchangeRateService(config, provider, store or InMemoryRateStore(), callback)
        await service.start()
        await service.drain()
        services.append(service)
        return service

    yield _start

    for service in services:
        await service.stop()
