import json
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from pydantic import BaseModel

from domain.exceptions.rates import DecodeError, ExchangeRateError
from domain.models.rates import RateSnapshot, RatesResult
from infrastructure.http.base import NotModified, TransportFailure
from infrastructure.http.transport import ETagTransport


class ExchangeRateProvider(ABC):
    """A base class for rate providers, handling the common fetch and decode logic.

    Adapters never retry and never raise for transport or decode problems;
    every outcome comes back as a RatesResult.
    """

    name: ClassVar[str]
    options_model: ClassVar[type[BaseModel]]

    def __init__(self, options: BaseModel, transport: ETagTransport):
        self.options = options
        self.transport = transport

    @abstractmethod
    def _latest_url(self) -> str:
        ...

    @abstractmethod
    def _historic_url(self, on: date) -> str:
        ...

    async def get_latest_rates(self) -> RatesResult:
        return await self._fetch(self._latest_url())

    async def get_historic_rates(self, on: date) -> RatesResult:
        return await self._fetch(self._historic_url(on))

    async def _fetch(self, url: str) -> RatesResult:
        result = await self.transport.get(url)

        if isinstance(result, NotModified):
            return RatesResult.unchanged()
        if isinstance(result, TransportFailure):
            return RatesResult.failed(result.error)

        try:
            return RatesResult.fetched(self._decode(result.body))
        except ExchangeRateError as e:
            return RatesResult.failed(e)

    def _decode(self, body: bytes) -> RateSnapshot:
        try:
            document = json.loads(body, parse_float=Decimal, parse_constant=Decimal)
        except ValueError as e:
            raise DecodeError(f"{self.name} returned a malformed body: {e}") from e

        if not isinstance(document, dict):
            raise DecodeError(f"{self.name} returned a non-object body")

        self._check_document(document)

        if "base" not in document or not isinstance(document.get("rates"), dict):
            raise DecodeError(f"{self.name} response is missing 'base' or 'rates'")

        rates = {}
        for code, value in document["rates"].items():
            if not isinstance(code, str):
                raise DecodeError(f"{self.name} returned an invalid currency code: {code!r}")
            rates[code.upper()] = self._to_decimal(code, value)

        try:
            return RateSnapshot(rates)
        except (TypeError, ValueError) as e:
            raise DecodeError(str(e)) from e

    def _check_document(self, document: dict[str, Any]) -> None:
        """Hook for provider-specific error bodies. Raise ProviderError to reject."""

    def _to_decimal(self, code: str, value: Any) -> Decimal:
        if isinstance(value, bool):
            raise DecodeError(f"Rate for {code} is not a number: {value!r}")
        try:
            if isinstance(value, Decimal):
                return value
            if isinstance(value, int):
                return Decimal(value)
            if isinstance(value, float):
                return Decimal(str(value))
            if isinstance(value, str):
                return Decimal(value.strip())
        except InvalidOperation as e:
            raise DecodeError(f"Rate for {code} is not a number: {value!r}") from e
        raise DecodeError(f"Rate for {code} is not a number: {value!r}")

    def forget_validators(self, on: date | None = None) -> None:
        """Drop the validators of the latest rates, or of one historic date."""
        url = self._latest_url() if on is None else self._historic_url(on)
        self.transport.forget(url)

    async def close(self) -> None:
        await self.transport.close()
