from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any, ClassVar

from pydantic import BaseModel

LATEST_RATES_KEY = "latest_rates"
LAST_UPDATED_KEY = "last_updated"


def historic_key(on: date) -> str:
    return on.isoformat()


class RateStore(ABC):
    """
    Namespaced key/value store for rate snapshots and their timestamps.

    `get` returns None for a missing key and never raises for absence.
    Backend failures surface as CacheError.
    """

    name: ClassVar[str]
    options_model: ClassVar[type[BaseModel]]

    @abstractmethod
    async def init(self, namespace: str) -> None:
        ...

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Any | None:
        ...

    @abstractmethod
    async def get_many(self, namespace: str, keys: Sequence[str]) -> dict[str, Any]:
        """Read several keys as one atomic step. Missing keys are left out."""

    @abstractmethod
    async def put(self, namespace: str, key: str, value: Any) -> Any:
        ...

    @abstractmethod
    async def put_many(self, namespace: str, items: Mapping[str, Any]) -> None:
        """Write several keys as one atomic step."""

    @abstractmethod
    async def terminate(self, namespace: str) -> None:
        ...
