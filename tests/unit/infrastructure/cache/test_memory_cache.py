from datetime import UTC, datetime
from decimal import Decimal

import pytest

from domain.models.rates import RateSnapshot
from infrastructure.cache.base import LAST_UPDATED_KEY, LATEST_RATES_KEY
from infrastructure.cache.memory_cache import InMemoryRateStore

SNAPSHOT = RateSnapshot({'USD': Decimal('1'), 'EUR': Decimal('1.20')})


@pytest.fixture
def namespace(service_name):
    return f'isolated:{service_name}'


@pytest.mark.asyncio
async def test_get_missing_key_returns_none(namespace):
    store = InMemoryRateStore()
    await store.init(namespace)

    assert await store.get(namespace, LATEST_RATES_KEY) is None


@pytest.mark.asyncio
async def test_put_then_get(namespace):
    store = InMemoryRateStore()
    await store.init(namespace)

    assert await store.put(namespace, LATEST_RATES_KEY, SNAPSHOT) == SNAPSHOT
    assert await store.get(namespace, LATEST_RATES_KEY) == SNAPSHOT


@pytest.mark.asyncio
async def test_put_many_writes_every_key(namespace):
    store = InMemoryRateStore()
    retrieved_at = datetime.now(UTC)

    await store.put_many(namespace, {LATEST_RATES_KEY: SNAPSHOT, LAST_UPDATED_KEY: retrieved_at})

    assert await store.get(namespace, LATEST_RATES_KEY) == SNAPSHOT
    assert await store.get(namespace, LAST_UPDATED_KEY) == retrieved_at


@pytest.mark.asyncio
async def test_stores_in_one_process_share_a_namespace(namespace):
    await InMemoryRateStore().put(namespace, LATEST_RATES_KEY, SNAPSHOT)

    assert await InMemoryRateStore().get(namespace, LATEST_RATES_KEY) == SNAPSHOT


@pytest.mark.asyncio
async def test_namespaces_are_isolated(namespace):
    store = InMemoryRateStore()
    await store.put(namespace, LATEST_RATES_KEY, SNAPSHOT)

    assert await store.get(f'{namespace}_other', LATEST_RATES_KEY) is None


@pytest.mark.asyncio
async def test_drop_forgets_namespace(namespace):
    store = InMemoryRateStore()
    await store.put(namespace, LATEST_RATES_KEY, SNAPSHOT)

    InMemoryRateStore.drop(namespace)

    assert await store.get(namespace, LATEST_RATES_KEY) is None


@pytest.mark.asyncio
async def test_get_many_reads_present_keys_only(namespace):
    store = InMemoryRateStore()
    retrieved_at = datetime.now(UTC)
    await store.put_many(namespace, {LATEST_RATES_KEY: SNAPSHOT, LAST_UPDATED_KEY: retrieved_at})

    assert await store.get_many(namespace, [LATEST_RATES_KEY, LAST_UPDATED_KEY, '2024-01-31']) == {
        LATEST_RATES_KEY: SNAPSHOT,
        LAST_UPDATED_KEY: retrieved_at,
    }
    assert await store.get_many(f'{namespace}_other', [LATEST_RATES_KEY]) == {}
