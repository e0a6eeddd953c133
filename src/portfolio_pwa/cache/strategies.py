"""
Retrieval strategies: cache-first (stale-while-revalidate) and network-first
"""

import asyncio
from typing import Awaitable, Callable, Optional, Set

from ..net.http import Request, Response
from ..utils.errors import NetworkError
from ..utils.logging_config import get_logger, log_strategy
from .storage import CacheStorage, CacheStore

Fetcher = Callable[[Request], Awaitable[Response]]


class CacheStrategy:
    """Base class for retrieval strategies"""

    name = 'base'

    def __init__(self, storage: CacheStorage, fetcher: Fetcher, store_name: str):
        self.storage = storage
        self.fetcher = fetcher
        self.store_name = store_name
        self.logger = get_logger(__name__)

    async def handle(self, request: Request) -> Response:
        """Produce a response for ``request``; never raises network errors"""
        raise NotImplementedError

    def should_cache(self, request: Request, response: Response) -> bool:
        """Only successful GET responses are written back"""
        return request.method == 'GET' and response is not None and response.ok

    async def _store(self, store: CacheStore, request: Request, response: Response):
        if self.should_cache(request, response):
            await store.put(request, response)


class CacheFirstStrategy(CacheStrategy):
    """Serve from cache immediately and refresh the entry in the background"""

    name = 'cache-first'
    OFFLINE_MESSAGE = 'Offline - Content not available'

    def __init__(self, storage: CacheStorage, fetcher: Fetcher, store_name: str):
        super().__init__(storage, fetcher, store_name)
        self._background: Set[asyncio.Task] = set()

    async def handle(self, request: Request) -> Response:
        store = await self.storage.open(self.store_name)
        cached = await store.match(request)

        # Cache hit: serve it now, refresh the entry for next time
        if cached is not None:
            self._refresh_in_background(store, request)
            log_strategy(self.logger, self.name, request.url, 'served from cache')
            return cached

        # Miss (or a non-GET request): go to the network synchronously
        try:
            response = await self.fetcher(request)
        except NetworkError as e:
            log_strategy(self.logger, self.name, request.url, f'offline placeholder ({e})')
            return Response.offline(self.OFFLINE_MESSAGE, request.url)

        await self._store(store, request, response)
        log_strategy(self.logger, self.name, request.url, f'served from network ({response.status})')
        return response

    def _refresh_in_background(self, store: CacheStore, request: Request):
        task = asyncio.ensure_future(self._refresh(store, request))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh(self, store: CacheStore, request: Request):
        try:
            response = await self.fetcher(request)
        except NetworkError as e:
            # The cached copy was already served; nothing to do
            self.logger.debug(f"Background refresh failed for {request.url}: {e}")
            return

        await self._store(store, request, response)

    @property
    def pending_refreshes(self) -> int:
        return len(self._background)

    async def drain(self):
        """Wait for every outstanding background refresh to settle"""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)


class NetworkFirstStrategy(CacheStrategy):
    """Prefer the network; fall back to cache, offline document, then 503"""

    name = 'network-first'
    OFFLINE_MESSAGE = 'Offline - No cached version available'

    def __init__(self,
                 storage: CacheStorage,
                 fetcher: Fetcher,
                 store_name: str,
                 offline_url: Optional[str] = None):
        super().__init__(storage, fetcher, store_name)
        self.offline_url = offline_url

    async def handle(self, request: Request) -> Response:
        store = await self.storage.open(self.store_name)

        # Any HTTP status counts as a network answer; only transport failures fall back
        try:
            response = await self.fetcher(request)
        except NetworkError as e:
            self.logger.debug(f"Network failed for {request.url}: {e}")
            return await self._fallback(store, request)

        await self._store(store, request, response)
        log_strategy(self.logger, self.name, request.url, f'served from network ({response.status})')
        return response

    async def _fallback(self, store: CacheStore, request: Request) -> Response:
        # 1. Last copy from the runtime store (GET only)
        cached = await store.match(request)
        if cached is not None:
            log_strategy(self.logger, self.name, request.url, 'served from cache')
            return cached

        # 2. Navigations get the offline document, wherever it was cached
        if request.destination == 'document' and self.offline_url:
            offline_page = await self.storage.match(request.origin + self.offline_url)
            if offline_page is not None:
                log_strategy(self.logger, self.name, request.url, 'served offline document')
                return offline_page

        # 3. Nothing cached: synthesized 503
        log_strategy(self.logger, self.name, request.url, 'offline placeholder')
        return Response.offline(self.OFFLINE_MESSAGE, request.url)
