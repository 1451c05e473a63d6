import threading
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from infrastructure.cache.base import RateStore

# One table per namespace, shared by every store in the process.
_TABLES: dict[str, dict[str, Any]] = {}
_TABLES_LOCK = threading.Lock()


class MemoryStoreOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class InMemoryRateStore(RateStore):
    """
    Process-local store. Data lives until the process exits.

    Writers replace a namespace's table with an updated copy, so readers
    never lock and never see half of a batch.
    """

    name = "memory"
    options_model = MemoryStoreOptions

    def __init__(self, options: MemoryStoreOptions | None = None):
        self.options = options or MemoryStoreOptions()

    async def init(self, namespace: str) -> None:
        with _TABLES_LOCK:
            _TABLES.setdefault(namespace, {})

    async def get(self, namespace: str, key: str) -> Any | None:
        return _TABLES.get(namespace, {}).get(key)

    async def get_many(self, namespace: str, keys: Sequence[str]) -> dict[str, Any]:
        table = _TABLES.get(namespace, {})
        return {key: table[key] for key in keys if key in table}

    async def put(self, namespace: str, key: str, value: Any) -> Any:
        await self.put_many(namespace, {key: value})
        return value

    async def put_many(self, namespace: str, items: Mapping[str, Any]) -> None:
        with _TABLES_LOCK:
            _TABLES[namespace] = {**_TABLES.get(namespace, {}), **items}

    async def terminate(self, namespace: str) -> None:
        return None

    @staticmethod
    def drop(namespace: str) -> None:
        """Forget everything stored under a namespace."""
        with _TABLES_LOCK:
            _TABLES.pop(namespace, None)
