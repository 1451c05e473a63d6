from .base import ExchangeRateProvider
from .fixerio import FixerIOOptions, FixerIOProvider
from .openexchange import OpenExchangeOptions, OpenExchangeProvider

__all__ = ['ExchangeRateProvider', 'FixerIOOptions', 'FixerIOProvider', 'OpenExchangeOptions', 'OpenExchangeProvider']
