from datetime import date

import pytest

from config.exchange_rates import DateRange
from config.settings import Settings
from domain.exceptions.rates import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
	for name in ('OPENEXCHANGE_APP_ID', 'FIXERIO_API_KEY', 'EXCHANGE_RATES_PROVIDER', 'EXCHANGE_RATES_CACHE'):
		monkeypatch.delenv(name, raising=False)


def test_settings_build_default_config():
	config = Settings(_env_file=None, OPENEXCHANGE_APP_ID='abc').exchange_rates_config()

	assert config.provider == 'openexchangerates'
	assert config.provider_options == {'app_id': 'abc', 'base_url': 'https://openexchangerates.org/api'}
	assert config.transport_options == {'timeout': 10.0, 'verify_ssl': True}
	assert config.retrieve_every_ms == 300_000


def test_settings_read_environment(monkeypatch):
	monkeypatch.setenv('EXCHANGE_RATES_PROVIDER', 'fixerio')
	monkeypatch.setenv('FIXERIO_API_KEY', 'fixer-key')
	monkeypatch.setenv('EXCHANGE_RATES_CACHE', 'sqlite')
	monkeypatch.setenv('DATABASE_URL', 'sqlite+aiosqlite:///./test.db')
	monkeypatch.setenv('EXCHANGE_RATES_RETRIEVE_EVERY', 'never')
	monkeypatch.setenv('EXCHANGE_RATES_PRELOAD', '2024-01-01..2024-01-02')
	monkeypatch.setenv('EXCHANGE_RATES_LOG_SUCCESS', 'info')

	config = Settings(_env_file=None).exchange_rates_config()

	assert config.provider == 'fixerio'
	assert config.provider_options['api_key'] == 'fixer-key'
	assert config.cache_options == {'url': 'sqlite+aiosqlite:///./test.db'}
	assert config.retrieve_every_ms is None
	assert config.preload_historic_rates == DateRange(start=date(2024, 1, 1), end=date(2024, 1, 2))
	assert config.log_levels.success.value == 'INFO'


def test_shared_mode_from_settings():
	config = Settings(
		_env_file=None,
		OPENEXCHANGE_APP_ID='abc',
		EXCHANGE_RATES_MODE='shared',
		EXCHANGE_RATES_SHARED_NAME='fleet',
		EXCHANGE_RATES_CACHE='redis',
		REDIS_URL='redis://cache:6379',
	).exchange_rates_config()

	assert config.namespace == 'shared:fleet'
	assert config.cache_options == {'url': 'redis://cache:6379'}


def test_missing_credentials_is_a_configuration_error():
	with pytest.raises(ConfigurationError):
		Settings(_env_file=None).exchange_rates_config()
