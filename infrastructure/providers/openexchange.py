from datetime import date
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from domain.exceptions.rates import ProviderError
from infrastructure.providers.base import ExchangeRateProvider


class OpenExchangeOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    app_id: str = Field(min_length=1)
    base_url: str = "https://openexchangerates.org/api"


class OpenExchangeProvider(ExchangeRateProvider):
    name = "openexchangerates"
    options_model = OpenExchangeOptions

    def _url(self, endpoint: str) -> str:
        query = urlencode({"app_id": self.options.app_id})
        return f"{self.options.base_url.rstrip('/')}/{endpoint}?{query}"

    def _latest_url(self) -> str:
        return self._url("latest.json")

    def _historic_url(self, on: date) -> str:
        return self._url(f"historical/{on.isoformat()}.json")

    def _check_document(self, document: dict[str, Any]) -> None:
        if document.get("error"):
            message = document.get("description", document.get("message", "Unknown error"))
            raise ProviderError("OpenExchange", str(message))
