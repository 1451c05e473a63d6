from datetime import date
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from domain.exceptions.rates import ProviderError
from infrastructure.providers.base import ExchangeRateProvider


class FixerIOOptions(BaseModel):
	model_config = ConfigDict(extra='forbid', frozen=True)

	api_key: str = Field(min_length=1)
	base_url: str = 'http://data.fixer.io/api'


class FixerIOProvider(ExchangeRateProvider):
	name = 'fixerio'
	options_model = FixerIOOptions

	def _url(self, endpoint: str) -> str:
		query = urlencode({'access_key': self.options.api_key})
		return f"{self.options.base_url.rstrip('/')}/{endpoint}?{query}"

	def _latest_url(self) -> str:
		return self._url('latest')

	def _historic_url(self, on: date) -> str:
		return self._url(on.isoformat())

	def _check_document(self, document: dict[str, Any]) -> None:
		if document.get('success', True) is False:
			error = document.get('error') or {}
			info = error.get('info', 'Unknown error') if isinstance(error, dict) else str(error)
			raise ProviderError('Fixer.io', info)
