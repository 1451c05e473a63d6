from .conversion_service import ConversionService
from .exchange_rate_service import ExchangeRateService, RatesCallback, ServiceStatus
from .supervisor import ServiceSupervisor

__all__ = ['ConversionService', 'ExchangeRateService', 'RatesCallback', 'ServiceStatus', 'ServiceSupervisor']
