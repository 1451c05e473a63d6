from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from redis import asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions.rates import CacheError
from infrastructure.cache.base import RateStore
from infrastructure.cache.codec import decode_value, encode_value


class RedisStoreOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(default="redis://localhost:6379", min_length=1)
    key_prefix: str = Field(default="exchange_rates", min_length=1)


class RedisRateStore(RateStore):
    """
    Redis-backed store, durable and shareable between processes.

    Single keys are written with SET and batches with MSET, both atomic on
    the server, so orchestrators sharing a namespace cannot tear an entry.
    """

    name = "redis"
    options_model = RedisStoreOptions

    def __init__(self, options: RedisStoreOptions | None = None, redis_client: redis.Redis | None = None):
        self.options = options or RedisStoreOptions()
        self.redis = redis_client or redis.from_url(self.options.url, decode_responses=True)

    def _make_key(self, namespace: str, key: str) -> str:
        return f"{self.options.key_prefix}:{namespace}:{key}"

    async def init(self, namespace: str) -> None:
        try:
            await self.redis.ping()
        except RedisError as e:
            raise CacheError(f"Could not reach redis rate store: {e}") from e

    async def get(self, namespace: str, key: str) -> Any | None:
        try:
            data = await self.redis.get(self._make_key(namespace, key))
        except RedisError as e:
            raise CacheError(f"Rate store read failed for {namespace}:{key}: {e}") from e

        if data is None:
            return None
        return decode_value(data)

    async def get_many(self, namespace: str, keys: Sequence[str]) -> dict[str, Any]:
        if not keys:
            return {}
        try:
            values = await self.redis.mget([self._make_key(namespace, key) for key in keys])
        except RedisError as e:
            raise CacheError(f"Rate store read failed for {namespace}: {e}") from e

        return {key: decode_value(data) for key, data in zip(keys, values) if data is not None}

    async def put(self, namespace: str, key: str, value: Any) -> Any:
        try:
            await self.redis.set(self._make_key(namespace, key), encode_value(value))
        except RedisError as e:
            raise CacheError(f"Rate store write failed for {namespace}:{key}: {e}") from e
        return value

    async def put_many(self, namespace: str, items: Mapping[str, Any]) -> None:
        if not items:
            return
        mapping = {self._make_key(namespace, key): encode_value(value) for key, value in items.items()}
        try:
            await self.redis.mset(mapping)
        except RedisError as e:
            raise CacheError(f"Rate store write failed for {namespace}: {e}") from e

    async def terminate(self, namespace: str) -> None:
        await self.redis.aclose()
