import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Generic, TypeVar

from domain.exceptions.rates import ExchangeRateError, InvalidCurrencyError

T = TypeVar("T")

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z][A-Z0-9]{2,4}$")


def normalize_currency_code(code: object) -> str:
    """Upper-case a currency code and check its shape (e.g. USD, XAU, BTC)."""
    if not isinstance(code, str):
        raise InvalidCurrencyError(code)
    normalized = code.strip().upper()
    if not CURRENCY_CODE_PATTERN.match(normalized):
        raise InvalidCurrencyError(code)
    return normalized


class RateSnapshot(Mapping[str, Decimal]):
    """
    Immutable point-in-time mapping of currency code to conversion rate.

    Every rate is a finite, non-negative Decimal. An empty snapshot is a
    valid value and is never the same thing as "no snapshot".
    """

    __slots__ = ("_rates",)

    def __init__(self, rates: Mapping[str, Decimal] | None = None):
        validated: dict[str, Decimal] = {}
        for code, rate in (rates or {}).items():
            if not isinstance(code, str) or not code:
                raise ValueError(f"Invalid currency code in snapshot: {code!r}")
            if not isinstance(rate, Decimal):
                raise TypeError(f"Rate for {code} must be a Decimal, got {type(rate).__name__}")
            if not rate.is_finite() or rate < 0:
                raise ValueError(f"Rate for {code} must be finite and non-negative, got {rate}")
            validated[code] = rate
        self._rates = validated

    def __getitem__(self, code: str) -> Decimal:
        return self._rates[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"RateSnapshot({self._rates!r})"

    def to_dict(self) -> dict[str, Decimal]:
        return dict(self._rates)


@dataclass(frozen=True)
class RatesResult:
    """Outcome of one provider fetch: a new snapshot, "not modified", or an error."""

    snapshot: RateSnapshot | None = None
    not_modified: bool = False
    error: ExchangeRateError | None = None

    @classmethod
    def fetched(cls, snapshot: RateSnapshot) -> "RatesResult":
        return cls(snapshot=snapshot)

    @classmethod
    def unchanged(cls) -> "RatesResult":
        return cls(not_modified=True)

    @classmethod
    def failed(cls, error: ExchangeRateError) -> "RatesResult":
        return cls(error=error)

    @property
    def is_successful(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class LookupResult(Generic[T]):
    """Answer to a rates query: either a value or the error explaining its absence."""

    value: T | None = None
    error: ExchangeRateError | None = None

    @classmethod
    def ok(cls, value: T) -> "LookupResult[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, error: ExchangeRateError) -> "LookupResult[T]":
        return cls(error=error)

    @property
    def is_successful(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
