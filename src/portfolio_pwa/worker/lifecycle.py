"""
Install/activate lifecycle of a deployed cache version
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Iterable, List, Tuple

from ..cache.storage import CacheNames, CacheStorage
from ..net.http import Request, Response
from ..utils.errors import InstallError, LifecycleError, NetworkError
from ..utils.logging_config import get_logger


class LifecycleState(Enum):
    INSTALLING = 'installing'
    INSTALLED = 'installed'
    ACTIVE = 'active'
    SUPERSEDED = 'superseded'


class LifecycleManager:
    """Pre-populates the primary store and reclaims stores of older versions"""

    def __init__(self,
                 storage: CacheStorage,
                 fetcher: Callable[[Request], Awaitable[Response]],
                 origin: str,
                 cache_names: CacheNames,
                 static_assets: Iterable[str]):
        self.storage = storage
        self.fetcher = fetcher
        self.origin = origin.rstrip('/')
        self.cache_names = cache_names
        self.static_assets = list(static_assets)
        self.state = LifecycleState.INSTALLING
        self.controlling = False
        self.logger = get_logger(__name__)

    async def install(self) -> bool:
        """
        Fetch every static asset and write them to the primary store

        Nothing is written unless all assets were fetched successfully. A
        failed install is logged, not retried, and leaves this version
        superseded so the previous one keeps control.

        Returns:
            True if the primary store is fully populated
        """
        if self.state is not LifecycleState.INSTALLING:
            raise LifecycleError("Install can only run once per worker", self.state.value)

        primary = self.cache_names.primary
        created = not await self.storage.has(primary)
        self.logger.info(f"Caching {len(self.static_assets)} static assets into {primary}")

        # Fetch everything before touching the store
        try:
            fetched = await self._fetch_all()
        except InstallError as e:
            self.logger.error(f"Install failed: {e}")
            # Leave no half-created store behind
            if created:
                await self.storage.delete(primary)
            self.state = LifecycleState.SUPERSEDED
            return False

        # All assets arrived; commit them
        store = await self.storage.open(primary)
        for request, response in fetched:
            await store.put(request, response)

        self.state = LifecycleState.INSTALLED
        return True

    async def activate(self) -> List[str]:
        """
        Delete every store not named by the current version and take control

        Returns:
            Names of the deleted stores
        """
        if self.state is not LifecycleState.INSTALLED:
            raise LifecycleError("Only an installed worker can be activated", self.state.value)

        # Current names are kept even if this version never opened them
        deleted = []
        for name in await self.storage.keys():
            if name not in self.cache_names:
                self.logger.info(f"Deleting old cache: {name}")
                await self.storage.delete(name)
                deleted.append(name)

        self.state = LifecycleState.ACTIVE
        self.controlling = True
        return deleted

    def supersede(self):
        self.state = LifecycleState.SUPERSEDED
        self.controlling = False

    async def _fetch_all(self) -> List[Tuple[Request, Response]]:
        requests_ = [Request(self.origin + path) for path in self.static_assets]
        results = await asyncio.gather(
            *(self.fetcher(request) for request in requests_),
            return_exceptions=True
        )

        # First failure in manifest order aborts the whole install
        for request, result in zip(requests_, results):
            if isinstance(result, NetworkError):
                raise InstallError(f"Failed to fetch {request.url}: {result}", request.url) from result
            if isinstance(result, BaseException):
                raise result
            if not result.ok:
                raise InstallError(f"Fetching {request.url} returned {result.status}", request.url)

        return list(zip(requests_, results))
