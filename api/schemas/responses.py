import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class LatestRatesResponse(BaseModel):
	rates: dict[str, Decimal] = Field(..., description='Rate per currency code, relative to the provider base')
	last_updated: dt.datetime | None = Field(None, description='When the latest rates were retrieved')

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'rates': {'USD': '1', 'EUR': '1.20', 'AUD': '0.70'},
				'last_updated': '2025-09-27T10:30:00Z',
			}
		}
	)


class HistoricRatesResponse(BaseModel):
	date: dt.date
	rates: dict[str, Decimal] = Field(..., description='Rate per currency code on that date')


class LastUpdatedResponse(BaseModel):
	last_updated: dt.datetime = Field(..., description='When the latest rates were retrieved')


class ConversionResponse(BaseModel):
	from_currency: str = Field(..., description='Source currency code')
	to_currency: str = Field(..., description='Target currency code')
	original_amount: Decimal = Field(..., description='Original amount requested')
	converted_amount: Decimal = Field(..., description='Converted amount')
	exchange_rate: Decimal = Field(..., description='Exchange rate used for conversion')
	date: dt.date | None = Field(None, description='Historic date of the rates, if any')
	last_updated: dt.datetime | None = Field(None, description='When the latest rates were retrieved')

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'from_currency': 'USD',
				'to_currency': 'EUR',
				'original_amount': '100.00',
				'converted_amount': '120.0000',
				'exchange_rate': '1.20',
				'date': None,
				'last_updated': '2025-09-27T10:30:00Z',
			}
		}
	)


class HealthResponse(BaseModel):
	status: str = Field(..., description='Service status: not_started, running or stopped')
	namespace: str | None = None
	latest_rates_available: bool = False
	last_updated: dt.datetime | None = None
