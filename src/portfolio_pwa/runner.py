#!/usr/bin/env python3
"""
portfolio-pwa - Main Entry Point

Registers the configured cache version against the site's origin (install
and activate), replays deferred form submissions and reports the result.
"""

import asyncio
import logging
import sys

from .cache.storage import CacheStorage
from .config import Settings
from .net.http import RequestsFetcher
from .utils.errors import ConfigurationError, PortfolioPWAError
from .utils.logging_config import setup_logging
from .worker.service_worker import Registration, ServiceWorker
from .worker.sync import SYNC_TAG, PendingSubmissionStore, SubmissionSync


async def run(settings: Settings, fetcher=None) -> int:
    """Warm the offline cache and flush pending submissions; returns an exit code"""
    logger = logging.getLogger(__name__)
    settings.require_origin()

    owned = fetcher is None
    fetcher = fetcher or RequestsFetcher(timeout=settings.fetch_timeout)
    try:
        storage = CacheStorage(cache_dir=settings.cache_dir)
        sync = SubmissionSync(PendingSubmissionStore(settings.pending_dir), fetcher)
        worker = ServiceWorker.from_settings(settings, storage, fetcher, sync)

        registration = Registration()
        if not await registration.register(worker):
            logger.error(f"Cache version {settings.cache_version} could not be installed")
            return 1

        result = await worker.on_sync(SYNC_TAG)
        logger.info(f"Cache stores: {storage.get_stats()['stores']}")
        logger.info(f"Pending submissions - Delivered: {result['delivered']}, Remaining: {result['remaining']}")
        return 0
    finally:
        if owned:
            fetcher.close()


def main():
    """Main entry point for the portfolio-pwa command"""
    logger = logging.getLogger(__name__)
    try:
        settings = Settings.from_env()
        setup_logging(settings.log_level, settings.log_file)

        logger.info("portfolio-pwa starting...")
        sys.exit(asyncio.run(run(settings)))

    except KeyboardInterrupt:
        logger.info("Shutdown requested")
        sys.exit(0)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)
    except PortfolioPWAError as e:
        logger.error(f"portfolio-pwa failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
