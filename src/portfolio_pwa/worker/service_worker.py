"""
Service worker event entry points and the registration that routes fetches
"""

from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from ..cache.routing import StrategySelector
from ..cache.storage import CacheNames, CacheStorage
from ..net.http import Request, Response
from ..utils.logging_config import get_logger
from .lifecycle import LifecycleManager, LifecycleState
from .sync import SYNC_TAG, SubmissionSync


class ServiceWorker:
    """One deployed version of the offline layer"""

    def __init__(self,
                 storage: CacheStorage,
                 fetcher: Callable[[Request], Awaitable[Response]],
                 origin: str,
                 cache_names: CacheNames,
                 static_assets: Iterable[str],
                 api_prefix: str = '/api',
                 offline_url: str = '/offline.html',
                 sync: SubmissionSync = None):
        static_assets = list(static_assets)
        self.cache_names = cache_names
        self.lifecycle = LifecycleManager(storage, fetcher, origin, cache_names, static_assets)
        self.selector = StrategySelector(
            storage, fetcher, origin, cache_names, static_assets, api_prefix, offline_url
        )
        self.sync = sync
        self.logger = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings, storage: CacheStorage, fetcher, sync: SubmissionSync = None) -> 'ServiceWorker':
        return cls(
            storage,
            fetcher,
            settings.origin,
            settings.cache_names,
            settings.static_assets,
            settings.api_prefix,
            settings.offline_url,
            sync
        )

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    async def on_install(self) -> bool:
        self.logger.info(f"Install event for {self.cache_names.primary}")
        return await self.lifecycle.install()

    async def on_activate(self) -> List[str]:
        self.logger.info(f"Activate event for {self.cache_names.primary}")
        return await self.lifecycle.activate()

    async def on_fetch(self, request: Request) -> Optional[Response]:
        """Response for an intercepted request, or None if not intercepted"""
        return await self.selector.handle(request)

    async def on_sync(self, tag: str) -> Optional[Dict[str, Any]]:
        if tag != SYNC_TAG or self.sync is None:
            self.logger.debug(f"Ignoring sync event {tag}")
            return None
        return await self.sync.replay()

    async def drain(self):
        """Wait for in-flight background cache refreshes"""
        await self.selector.drain()


class Registration:
    """Tracks the worker in control and hands control to newer versions"""

    def __init__(self):
        self.active: Optional[ServiceWorker] = None
        self.logger = get_logger(__name__)

    async def register(self, worker: ServiceWorker) -> bool:
        """
        Install and activate ``worker``

        On success the previously active worker is superseded and new
        fetches go to ``worker``; requests it already accepted finish on
        the old worker. On install failure the previous worker stays.
        """
        if not await worker.on_install():
            self.logger.warning("New worker failed to install; keeping the current version")
            return False

        await worker.on_activate()
        previous, self.active = self.active, worker
        if previous is not None:
            previous.lifecycle.supersede()
        self.logger.info(f"Worker {worker.cache_names.primary} now controls requests")
        return True

    async def handle_fetch(self, request: Request) -> Optional[Response]:
        if self.active is None:
            return None
        return await self.active.on_fetch(request)
