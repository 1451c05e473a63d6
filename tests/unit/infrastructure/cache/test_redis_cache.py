# nosec B101


import json
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from domain.exceptions.rates import CacheError
from domain.models.rates import RateSnapshot
from infrastructure.cache.base import LAST_UPDATED_KEY, LATEST_RATES_KEY
from infrastructure.cache.codec import encode_value
from infrastructure.cache.redis_cache import RedisRateStore

NAMESPACE = 'shared:prod'
SNAPSHOT = RateSnapshot({'USD': Decimal('1'), 'EUR': Decimal('0.85')})


@pytest.mark.asyncio
async def test_get_hit_decodes_snapshot():
	mock_redis = AsyncMock()
	mock_redis.get.return_value = encode_value(SNAPSHOT)
	store = RedisRateStore(redis_client=mock_redis)

	result = await store.get(NAMESPACE, LATEST_RATES_KEY)

	assert result == SNAPSHOT
	assert isinstance(result['EUR'], Decimal)
	mock_redis.get.assert_called_once_with('exchange_rates:shared:prod:latest_rates')


@pytest.mark.asyncio
async def test_get_miss_returns_none():
	mock_redis = AsyncMock()
	mock_redis.get.return_value = None
	store = RedisRateStore(redis_client=mock_redis)

	assert await store.get(NAMESPACE, LATEST_RATES_KEY) is None


@pytest.mark.asyncio
async def test_put_sets_encoded_value():
	mock_redis = AsyncMock()
	store = RedisRateStore(redis_client=mock_redis)

	await store.put(NAMESPACE, '2024-01-31', SNAPSHOT)

	key, value = mock_redis.set.call_args[0]
	assert key == 'exchange_rates:shared:prod:2024-01-31'
	assert json.loads(value) == {'type': 'rates', 'rates': {'USD': '1', 'EUR': '0.85'}}


@pytest.mark.asyncio
async def test_put_many_uses_a_single_mset():
	mock_redis = AsyncMock()
	store = RedisRateStore(redis_client=mock_redis)
	retrieved_at = datetime(2025, 11, 5, 10, 30, tzinfo=UTC)

	await store.put_many(NAMESPACE, {LATEST_RATES_KEY: SNAPSHOT, LAST_UPDATED_KEY: retrieved_at})

	mock_redis.mset.assert_called_once()
	mapping = mock_redis.mset.call_args[0][0]
	assert set(mapping) == {
		'exchange_rates:shared:prod:latest_rates',
		'exchange_rates:shared:prod:last_updated',
	}


@pytest.mark.asyncio
async def test_redis_errors_become_cache_errors():
	mock_redis = AsyncMock()
	mock_redis.get.side_effect = RedisConnectionError('Connection refused')
	store = RedisRateStore(redis_client=mock_redis)

	with pytest.raises(CacheError):
		await store.get(NAMESPACE, LATEST_RATES_KEY)


@pytest.mark.asyncio
async def test_corrupt_entry_raises_cache_error():
	mock_redis = AsyncMock()
	mock_redis.get.return_value = 'invalid json {'
	store = RedisRateStore(redis_client=mock_redis)

	with pytest.raises(CacheError):
		await store.get(NAMESPACE, LATEST_RATES_KEY)


@pytest.mark.asyncio
async def test_init_pings_and_terminate_closes():
	mock_redis = AsyncMock()
	store = RedisRateStore(redis_client=mock_redis)

	await store.init(NAMESPACE)
	await store.terminate(NAMESPACE)

	mock_redis.ping.assert_awaited_once()
	mock_redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_many_uses_a_single_mget():
	mock_redis = AsyncMock()
	mock_redis.mget.return_value = [encode_value(SNAPSHOT), None]
	store = RedisRateStore(redis_client=mock_redis)

	result = await store.get_many(NAMESPACE, [LATEST_RATES_KEY, LAST_UPDATED_KEY])

	assert result == {LATEST_RATES_KEY: SNAPSHOT}
	mock_redis.mget.assert_called_once_with([
		'exchange_rates:shared:prod:latest_rates',
		'exchange_rates:shared:prod:last_updated',
	])
