from datetime import UTC, datetime
from decimal import Decimal

import pytest

from domain.models.rates import RateSnapshot
from infrastructure.cache.base import LAST_UPDATED_KEY, LATEST_RATES_KEY, historic_key
from infrastructure.cache.sqlite_cache import SQLiteRateStore, SQLiteStoreOptions

NAMESPACE = 'isolated:sqlite_test'
SNAPSHOT = RateSnapshot({'USD': Decimal('1'), 'EUR': Decimal('1.10')})


@pytest.fixture
def options(tmp_path):
    return SQLiteStoreOptions(url=f"sqlite+aiosqlite:///{tmp_path / 'rates.db'}")


@pytest.mark.asyncio
async def test_get_missing_key_returns_none(options):
    store = SQLiteRateStore(options)
    await store.init(NAMESPACE)

    assert await store.get(NAMESPACE, LATEST_RATES_KEY) is None
    await store.terminate(NAMESPACE)


@pytest.mark.asyncio
async def test_entries_survive_restart(options):
    retrieved_at = datetime(2025, 11, 5, 10, 30, tzinfo=UTC)
    store = SQLiteRateStore(options)
    await store.init(NAMESPACE)
    await store.put_many(NAMESPACE, {LATEST_RATES_KEY: SNAPSHOT, LAST_UPDATED_KEY: retrieved_at})
    await store.terminate(NAMESPACE)

    reopened = SQLiteRateStore(options)
    await reopened.init(NAMESPACE)

    stored = await reopened.get(NAMESPACE, LATEST_RATES_KEY)
    assert stored == SNAPSHOT
    assert str(stored['EUR']) == '1.10'
    assert await reopened.get(NAMESPACE, LAST_UPDATED_KEY) == retrieved_at
    await reopened.terminate(NAMESPACE)


@pytest.mark.asyncio
async def test_put_overwrites_existing_entry(options):
    newer = RateSnapshot({'USD': Decimal('1'), 'EUR': Decimal('1.05')})
    store = SQLiteRateStore(options)
    await store.init(NAMESPACE)

    await store.put(NAMESPACE, LATEST_RATES_KEY, SNAPSHOT)
    await store.put(NAMESPACE, LATEST_RATES_KEY, newer)

    assert await store.get(NAMESPACE, LATEST_RATES_KEY) == newer
    await store.terminate(NAMESPACE)


@pytest.mark.asyncio
async def test_namespaces_are_isolated(options):
    store = SQLiteRateStore(options)
    await store.init(NAMESPACE)
    key = historic_key(datetime(2024, 1, 31).date())

    await store.put(NAMESPACE, key, SNAPSHOT)

    assert await store.get('isolated:someone_else', key) is None
    await store.terminate(NAMESPACE)


@pytest.mark.asyncio
async def test_get_many_reads_latest_rates_with_their_timestamp(options):
    retrieved_at = datetime(2025, 11, 5, 10, 30, tzinfo=UTC)
    store = SQLiteRateStore(options)
    await store.init(NAMESPACE)
    await store.put_many(NAMESPACE, {LATEST_RATES_KEY: SNAPSHOT, LAST_UPDATED_KEY: retrieved_at})

    stored = await store.get_many(NAMESPACE, [LATEST_RATES_KEY, LAST_UPDATED_KEY, historic_key(retrieved_at.date())])

    assert stored == {LATEST_RATES_KEY: SNAPSHOT, LAST_UPDATED_KEY: retrieved_at}
    await store.terminate(NAMESPACE)
