import asyncio
import logging
import signal
import sys

from application.services import ServiceSupervisor
from config.settings import get_settings
from domain.exceptions.rates import ConfigurationError
from infrastructure.monitoring.logger import configure_logging

logger = logging.getLogger(__name__)


async def main():
    """Entry point for running the exchange rates service without the API."""
    settings = get_settings()
    configure_logging(settings.LOG_DIRECTORY, settings.LOG_LEVEL)

    try:
        config = settings.exchange_rates_config()
    except ConfigurationError as e:
        logger.error(f"Invalid exchange rates configuration: {e}")
        sys.exit(1)

    logger.info("=" * 60)
    logger.info("EXCHANGE RATES WORKER STARTING")
    logger.info("=" * 60)
    logger.info(f"Provider: {config.provider}")
    logger.info(f"Cache: {config.cache} ({config.namespace})")
    logger.info(f"Retrieve every: {config.retrieve_every_ms or 'never'} ms")
    logger.info("=" * 60)

    supervisor = ServiceSupervisor()
    shutdown = asyncio.Event()

    def signal_handler(sig: signal.Signals):
        logger.info(f"Received signal {sig.name}, shutting down gracefully...")
        shutdown.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    await supervisor.start(config)
    try:
        await shutdown.wait()
    finally:
        await supervisor.stop()
        logger.info("Cleanup completed")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
