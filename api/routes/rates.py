from datetime import date
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_conversion_service, get_exchange_rate_service
from api.schemas import ConversionResponse, HistoricRatesResponse, LastUpdatedResponse, LatestRatesResponse
from application.services import ConversionService, ExchangeRateService

router = APIRouter(prefix='/api', tags=['rates'])


@router.get(
	'/rates/latest',
	response_model=LatestRatesResponse,
	status_code=status.HTTP_200_OK,
	summary='Get the latest exchange rates',
)
async def get_latest_rates(
	service: Annotated[ExchangeRateService, Depends(get_exchange_rate_service)],
) -> LatestRatesResponse:
	rates, last_updated = (await service.latest_rates_with_last_updated()).unwrap()
	return LatestRatesResponse(rates=rates.to_dict(), last_updated=last_updated)


@router.get(
	'/rates/historic/{on}',
	response_model=HistoricRatesResponse,
	status_code=status.HTTP_200_OK,
	summary='Get the exchange rates for a past date',
)
async def get_historic_rates(
	on: Annotated[date, Path(description='ISO date, e.g. 2024-01-31')],
	service: Annotated[ExchangeRateService, Depends(get_exchange_rate_service)],
) -> HistoricRatesResponse:
	rates = (await service.historic_rates(on)).unwrap()
	return HistoricRatesResponse(date=on, rates=rates.to_dict())


@router.get(
	'/rates/last-updated',
	response_model=LastUpdatedResponse,
	status_code=status.HTTP_200_OK,
	summary='When the latest rates were last retrieved',
)
async def get_last_updated(
	service: Annotated[ExchangeRateService, Depends(get_exchange_rate_service)],
) -> LastUpdatedResponse:
	last_updated = (await service.last_updated()).unwrap()
	return LastUpdatedResponse(last_updated=last_updated)


@router.get(
	'/convert/{from_currency}/{to_currency}/{amount}',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert currency amount',
)
async def convert_currency(
	from_currency: Annotated[str, Path(min_length=3, max_length=5)],
	to_currency: Annotated[str, Path(min_length=3, max_length=5)],
	amount: Annotated[Decimal, Path(gt=0)],
	service: Annotated[ConversionService, Depends(get_conversion_service)],
	on: Annotated[date | None, Query(alias='date')] = None,
) -> ConversionResponse:
	result = await service.convert(amount, from_currency, to_currency, on)
	return ConversionResponse(**result)
