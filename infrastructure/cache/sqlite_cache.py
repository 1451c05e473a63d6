from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from domain.exceptions.rates import CacheError
from infrastructure.cache.base import RateStore
from infrastructure.cache.codec import decode_value, encode_value
from infrastructure.persistence.database import Database
from infrastructure.persistence.models.rate_store import RateStoreEntryDB


class SQLiteStoreOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(default="sqlite+aiosqlite:///./exchange_rates_cache.db", min_length=1)


class SQLiteRateStore(RateStore):
    """
    File-backed store that survives restarts.

    Each put is a single upsert, so concurrent writers never tear an entry.
    """

    name = "sqlite"
    options_model = SQLiteStoreOptions

    def __init__(self, options: SQLiteStoreOptions | None = None, database: Database | None = None):
        self.options = options or SQLiteStoreOptions()
        self.database = database or Database(self.options.url)

    async def init(self, namespace: str) -> None:
        try:
            await self.database.create_tables()
        except SQLAlchemyError as e:
            raise CacheError(f"Could not open rate store at {self.options.url}: {e}") from e

    async def get(self, namespace: str, key: str) -> Any | None:
        try:
            async with self.database.session() as session:
                entry = await session.get(RateStoreEntryDB, (namespace, key))
                data = entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise CacheError(f"Rate store read failed for {namespace}:{key}: {e}") from e

        if data is None:
            return None
        return decode_value(data)

    async def get_many(self, namespace: str, keys: Sequence[str]) -> dict[str, Any]:
        if not keys:
            return {}
        stmt = select(RateStoreEntryDB.key, RateStoreEntryDB.value).where(
            RateStoreEntryDB.namespace == namespace, RateStoreEntryDB.key.in_(keys)
        )
        try:
            async with self.database.session() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise CacheError(f"Rate store read failed for {namespace}: {e}") from e

        return {key: decode_value(value) for key, value in rows}

    async def put(self, namespace: str, key: str, value: Any) -> Any:
        await self.put_many(namespace, {key: value})
        return value

    async def put_many(self, namespace: str, items: Mapping[str, Any]) -> None:
        if not items:
            return
        updated_at = datetime.now(UTC)
        rows = [
            {"namespace": namespace, "key": key, "value": encode_value(value), "updated_at": updated_at}
            for key, value in items.items()
        ]
        stmt = sqlite_insert(RateStoreEntryDB).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["namespace", "key"],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )
        try:
            async with self.database.session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise CacheError(f"Rate store write failed for {namespace}: {e}") from e

    async def terminate(self, namespace: str) -> None:
        await self.database.close()
