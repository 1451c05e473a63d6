import asyncio
import logging

from config.exchange_rates import ExchangeRatesConfig
from application.services.exchange_rate_service import ExchangeRateService, RatesCallback, ServiceStatus

logger = logging.getLogger(__name__)


class ServiceSupervisor:
    """
    Owns at most one running ExchangeRateService.

    Reconfiguring means stopping the current service and starting a fresh
    one, so a service never changes configuration while it runs.
    """

    def __init__(self):
        self._service: ExchangeRateService | None = None
        self._config: ExchangeRatesConfig | None = None
        self._callback: RatesCallback | None = None
        self._lock = asyncio.Lock()

    @property
    def service(self) -> ExchangeRateService:
        if self._service is None or not self._service.is_running:
            raise RuntimeError("Exchange rate service is not running")
        return self._service

    @property
    def status(self) -> ServiceStatus:
        if self._service is None:
            return ServiceStatus.NOT_STARTED
        return self._service.status

    async def start(
        self,
        config: ExchangeRatesConfig,
        callback: RatesCallback | None = None,
        service: ExchangeRateService | None = None,
    ) -> ExchangeRateService:
        async with self._lock:
            if self._service is not None and self._service.is_running:
                raise RuntimeError("Exchange rate service is already running")
            self._config = config
            self._callback = callback
            self._service = service or ExchangeRateService.from_config(config, callback)
            await self._service.start()
            logger.info(f"Exchange rate service started for {config.namespace}")
            return self._service

    async def stop(self) -> None:
        async with self._lock:
            if self._service is None:
                return
            await self._service.stop()
            logger.info(f"Exchange rate service stopped for {self._service.namespace}")

    async def restart(self, config: ExchangeRatesConfig | None = None) -> ExchangeRateService:
        """Stop the running service and start a new one, optionally with a new config."""
        new_config = config or self._config
        if new_config is None:
            raise RuntimeError("Exchange rate service was never configured")
        await self.stop()
        return await self.start(new_config, self._callback)
