from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.exchange_rates import DEFAULT_RETRIEVE_EVERY_MS, ExchangeRatesConfig, build_config


class Settings(BaseSettings):
	# Exchange rates service
	EXCHANGE_RATES_MODE: str = 'isolated'
	EXCHANGE_RATES_NAME: str = 'exchange_rates'
	EXCHANGE_RATES_SHARED_NAME: str | None = None
	EXCHANGE_RATES_PROVIDER: str = 'openexchangerates'
	EXCHANGE_RATES_CACHE: str = 'memory'
	EXCHANGE_RATES_RETRIEVE_EVERY: int | None = DEFAULT_RETRIEVE_EVERY_MS
	EXCHANGE_RATES_FETCH_ATTEMPTS: int = 1
	EXCHANGE_RATES_RETRY_WAIT: int = 1000
	EXCHANGE_RATES_PRELOAD: str | None = None

	EXCHANGE_RATES_LOG_SUCCESS: str | None = None
	EXCHANGE_RATES_LOG_FAILURE: str | None = 'WARNING'
	EXCHANGE_RATES_LOG_INFO: str | None = 'INFO'

	# Providers
	OPENEXCHANGE_APP_ID: str = ''
	OPENEXCHANGE_BASE_URL: str = 'https://openexchangerates.org/api'
	FIXERIO_API_KEY: str = ''
	FIXERIO_BASE_URL: str = 'http://data.fixer.io/api'

	# Stores
	DATABASE_URL: str = 'sqlite+aiosqlite:///./exchange_rates_cache.db'
	REDIS_URL: str = 'redis://localhost:6379'

	# HTTP
	HTTP_TIMEOUT: float = 10.0
	HTTP_VERIFY_SSL: bool = True

	# Application
	APP_NAME: str = 'Exchange Rates API'
	DEBUG: bool = False
	LOG_DIRECTORY: str = 'logs'
	LOG_LEVEL: str = 'INFO'

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

	@field_validator('EXCHANGE_RATES_RETRIEVE_EVERY', mode='before')
	@classmethod
	def parse_retrieve_every(cls, value):
		if isinstance(value, str) and value.strip().lower() in ('', 'never', 'none'):
			return None
		return value

	def _provider_options(self) -> dict:
		if self.EXCHANGE_RATES_PROVIDER == 'fixerio':
			return {'api_key': self.FIXERIO_API_KEY, 'base_url': self.FIXERIO_BASE_URL}
		return {'app_id': self.OPENEXCHANGE_APP_ID, 'base_url': self.OPENEXCHANGE_BASE_URL}

	def _cache_options(self) -> dict:
		if self.EXCHANGE_RATES_CACHE == 'sqlite':
			return {'url': self.DATABASE_URL}
		if self.EXCHANGE_RATES_CACHE == 'redis':
			return {'url': self.REDIS_URL}
		return {}

	def exchange_rates_config(self) -> ExchangeRatesConfig:
		"""Build the service configuration. Raises ConfigurationError when invalid."""
		return build_config(
			mode=self.EXCHANGE_RATES_MODE,
			name=self.EXCHANGE_RATES_NAME,
			shared_name=self.EXCHANGE_RATES_SHARED_NAME,
			provider=self.EXCHANGE_RATES_PROVIDER,
			provider_options=self._provider_options(),
			cache=self.EXCHANGE_RATES_CACHE,
			cache_options=self._cache_options(),
			transport_options={'timeout': self.HTTP_TIMEOUT, 'verify_ssl': self.HTTP_VERIFY_SSL},
			retrieve_every_ms=self.EXCHANGE_RATES_RETRIEVE_EVERY,
			fetch_attempts=self.EXCHANGE_RATES_FETCH_ATTEMPTS,
			retry_wait_ms=self.EXCHANGE_RATES_RETRY_WAIT,
			preload_historic_rates=self.EXCHANGE_RATES_PRELOAD or None,
			log_levels={
				'success': self.EXCHANGE_RATES_LOG_SUCCESS,
				'failure': self.EXCHANGE_RATES_LOG_FAILURE,
				'info': self.EXCHANGE_RATES_LOG_INFO,
			},
		)


@lru_cache
def get_settings() -> Settings:
	return Settings()
