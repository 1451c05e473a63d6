from .responses import (
	ConversionResponse,
	HealthResponse,
	HistoricRatesResponse,
	LastUpdatedResponse,
	LatestRatesResponse,
)

__all__ = [
	'ConversionResponse',
	'HealthResponse',
	'HistoricRatesResponse',
	'LastUpdatedResponse',
	'LatestRatesResponse',
]
