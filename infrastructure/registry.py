"""
Adapter registries - map the names used in configuration to implementations.
"""
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from infrastructure.cache.base import RateStore
from infrastructure.cache.memory_cache import InMemoryRateStore
from infrastructure.cache.redis_cache import RedisRateStore
from infrastructure.cache.sqlite_cache import SQLiteRateStore
from infrastructure.http.base import HttpAdapter
from infrastructure.http.httpx_adapter import HttpxAdapter
from infrastructure.http.transport import ETagTransport
from infrastructure.providers import ExchangeRateProvider, FixerIOProvider, OpenExchangeProvider

PROVIDER_REGISTRY: dict[str, type[ExchangeRateProvider]] = {
    OpenExchangeProvider.name: OpenExchangeProvider,
    FixerIOProvider.name: FixerIOProvider,
}

STORE_REGISTRY: dict[str, type[RateStore]] = {
    InMemoryRateStore.name: InMemoryRateStore,
    SQLiteRateStore.name: SQLiteRateStore,
    RedisRateStore.name: RedisRateStore,
}

TRANSPORT_REGISTRY: dict[str, type[HttpAdapter]] = {
    HttpxAdapter.name: HttpxAdapter,
}


def _lookup(registry: dict[str, type], kind: str, name: str) -> type:
    implementation = registry.get(name)
    if implementation is None:
        known = ", ".join(sorted(registry))
        raise ValueError(f"Unknown {kind} {name!r}; expected one of: {known}")
    return implementation


def validate_options(registry: dict[str, type], kind: str, name: str, options: Mapping[str, Any]) -> BaseModel:
    """
    Validate an option bag against the options model of the named adapter.

    Raises ValueError for an unknown name and pydantic's ValidationError for
    bad options.
    """
    implementation = _lookup(registry, kind, name)
    return implementation.options_model.model_validate(dict(options))


def build_store(name: str, options: Mapping[str, Any]) -> RateStore:
    store_class = _lookup(STORE_REGISTRY, "cache", name)
    return store_class(store_class.options_model.model_validate(dict(options)))


def build_transport(name: str, options: Mapping[str, Any]) -> ETagTransport:
    adapter_class = _lookup(TRANSPORT_REGISTRY, "transport", name)
    return ETagTransport(adapter_class(adapter_class.options_model.model_validate(dict(options))))


def build_provider(name: str, options: Mapping[str, Any], transport: ETagTransport) -> ExchangeRateProvider:
    provider_class = _lookup(PROVIDER_REGISTRY, "provider", name)
    return provider_class(provider_class.options_model.model_validate(dict(options)), transport)
