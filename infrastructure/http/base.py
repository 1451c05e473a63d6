from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from pydantic import BaseModel

from domain.exceptions.rates import TransportError


@dataclass(frozen=True)
class Fresh:
    """A response carrying a body. Header names are lower-cased."""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class NotModified:
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TransportFailure:
    error: TransportError


HttpResult = Fresh | NotModified | TransportFailure


class HttpAdapter(ABC):
    """Low-level GET used by ETagTransport. Failures come back as TransportFailure, never raised."""

    name: ClassVar[str]
    options_model: ClassVar[type[BaseModel]]

    @abstractmethod
    async def get(self, url: str, headers: dict[str, str]) -> HttpResult:
        ...

    async def close(self) -> None:
        return None
