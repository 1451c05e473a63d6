import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status

from application.services import ConversionService, ExchangeRateService, ServiceSupervisor
from config.settings import get_settings

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	supervisor: ServiceSupervisor | None = None


deps = AppDependencies()


async def init_dependencies() -> None:
	"""Build the rates configuration and start the service. Called at app startup."""
	logger.info('Initializing dependencies...')
	settings = get_settings()

	deps.supervisor = ServiceSupervisor()
	await deps.supervisor.start(settings.exchange_rates_config())
	logger.info('Dependencies initialized')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.supervisor:
		await deps.supervisor.stop()

	logger.info('Cleanup complete')


def get_supervisor() -> ServiceSupervisor:
	if deps.supervisor is None:
		raise RuntimeError('Service supervisor not initialized')
	return deps.supervisor


def get_exchange_rate_service(
	supervisor: Annotated[ServiceSupervisor, Depends(get_supervisor)],
) -> ExchangeRateService:
	try:
		return supervisor.service
	except RuntimeError as e:
		raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e


def get_conversion_service(
	rate_service: Annotated[ExchangeRateService, Depends(get_exchange_rate_service)],
) -> ConversionService:
	return ConversionService(rate_service=rate_service)
