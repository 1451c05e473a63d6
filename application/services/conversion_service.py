from datetime import date
from decimal import Decimal

from application.services.exchange_rate_service import ExchangeRateService
from domain.exceptions.rates import RateNotAvailableError
from domain.models.rates import RateSnapshot, normalize_currency_code


class ConversionService:
	def __init__(self, rate_service: ExchangeRateService):
		self.rate_service = rate_service

	async def convert(self, amount: Decimal, from_currency: str, to_currency: str, on: date | None = None) -> dict:
		from_currency = normalize_currency_code(from_currency)
		to_currency = normalize_currency_code(to_currency)

		last_updated = None
		if on is None:
			rates, last_updated = (await self.rate_service.latest_rates_with_last_updated()).unwrap()
		else:
			rates = (await self.rate_service.historic_rates(on)).unwrap()

		if from_currency == to_currency:
			converted_amount = amount
			exchange_rate = Decimal('1')
		else:
			from_rate = self._rate_for(rates, from_currency, on)
			to_rate = self._rate_for(rates, to_currency, on)
			converted_amount = amount / from_rate * to_rate
			exchange_rate = to_rate / from_rate

		return {
			'from_currency': from_currency,
			'to_currency': to_currency,
			'original_amount': amount,
			'converted_amount': converted_amount,
			'exchange_rate': exchange_rate,
			'date': on,
			'last_updated': last_updated,
		}

	@staticmethod
	def _rate_for(rates: RateSnapshot, currency: str, on: date | None) -> Decimal:
		rate = rates.get(currency)
		if rate is None or rate == 0:
			raise RateNotAvailableError(currency, on)
		return rate
