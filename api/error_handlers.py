import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.exceptions.rates import (
	CacheError,
	DecodeError,
	InvalidCurrencyError,
	LastUpdatedUnknownError,
	ProviderError,
	RateNotAvailableError,
	RatesNotAvailableError,
	TransportError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = (RatesNotAvailableError, LastUpdatedUnknownError, RateNotAvailableError)
UNAVAILABLE_ERRORS = (TransportError, DecodeError, ProviderError, CacheError)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(InvalidCurrencyError)
	async def invalid_currency_handler(request: Request, exc: InvalidCurrencyError):
		return JSONResponse(status_code=400, content={'detail': str(exc)})

	async def not_found_handler(request: Request, exc: Exception):
		return JSONResponse(status_code=404, content={'detail': str(exc)})

	async def unavailable_handler(request: Request, exc: Exception):
		logger.error(f'Exchange rates unavailable: {exc}')
		return JSONResponse(
			status_code=503, content={'detail': 'Exchange rate service unavailable'}
		)

	for error in NOT_FOUND_ERRORS:
		app.add_exception_handler(error, not_found_handler)
	for error in UNAVAILABLE_ERRORS:
		app.add_exception_handler(error, unavailable_handler)
