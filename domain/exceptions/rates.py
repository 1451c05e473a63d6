from datetime import date


class CurrencyException(Exception):
    pass


class InvalidCurrencyError(CurrencyException):
    def __init__(self, currency: object):
        self.currency = currency
        super().__init__(f"Currency {currency!r} is not a valid currency code")


class ConfigurationError(CurrencyException):
    """Invalid exchange rates configuration. Raised once, at construction."""


class ExchangeRateError(CurrencyException):
    """Base class for errors the rates service hands back as data."""


class TransportError(ExchangeRateError):
    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{reason} ({url})")


class DecodeError(ExchangeRateError):
    pass


class ProviderError(ExchangeRateError):
    def __init__(self, provider: str, reason: str):
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} API error: {reason}")


class CacheError(ExchangeRateError):
    pass


class RatesNotAvailableError(ExchangeRateError):
    def __init__(self, on: date | None = None):
        self.date = on
        if on is None:
            message = "No exchange rates were found"
        else:
            message = f"No exchange rates for {on.isoformat()} were found"
        super().__init__(message)


class LastUpdatedUnknownError(ExchangeRateError):
    def __init__(self):
        super().__init__("Last updated date is not known")


class RateNotAvailableError(ExchangeRateError):
    def __init__(self, currency: str, on: date | None = None):
        self.currency = currency
        self.date = on
        message = f"No exchange rate is available for currency {currency}"
        if on is not None:
            message += f" on {on.isoformat()}"
        super().__init__(message)
