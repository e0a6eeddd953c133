"""
Request classification and strategy dispatch
"""

from enum import Enum
from typing import Dict, Iterable, Optional

from ..net.http import Request, Response
from ..utils.logging_config import get_logger
from .storage import CacheNames, CacheStorage
from .strategies import CacheFirstStrategy, CacheStrategy, Fetcher, NetworkFirstStrategy


class RequestKind(Enum):
    PASSTHROUGH = 'passthrough'
    API = 'api'
    IMAGE = 'image'
    STATIC = 'static'
    OTHER = 'other'


def classify(request: Request,
             origin: str,
             static_assets: Iterable[str],
             api_prefix: str = '/api') -> RequestKind:
    """
    Classify an intercepted request

    Rules are applied in priority order: foreign origin, API path,
    image destination, static asset manifest, everything else.

    Args:
        request: The intercepted request
        origin: The worker's own origin, e.g. https://example.com
        static_assets: Paths of the static asset manifest
        api_prefix: Path prefix of API routes

    Returns:
        The request's kind
    """
    if request.origin != origin.lower():
        return RequestKind.PASSTHROUGH

    path = request.path
    prefix = api_prefix.rstrip('/')
    if path == prefix or path.startswith(prefix + '/'):
        return RequestKind.API

    if request.destination == 'image':
        return RequestKind.IMAGE

    if path in static_assets:
        return RequestKind.STATIC

    return RequestKind.OTHER


class StrategySelector:
    """Maps each request kind to exactly one strategy"""

    def __init__(self,
                 storage: CacheStorage,
                 fetcher: Fetcher,
                 origin: str,
                 cache_names: CacheNames,
                 static_assets: Iterable[str],
                 api_prefix: str = '/api',
                 offline_url: str = '/offline.html'):
        self.origin = origin.lower()
        self.static_assets = frozenset(static_assets)
        self.api_prefix = api_prefix
        self.logger = get_logger(__name__)

        network_first = NetworkFirstStrategy(storage, fetcher, cache_names.runtime, offline_url)
        self.strategies: Dict[RequestKind, CacheStrategy] = {
            RequestKind.API: network_first,
            RequestKind.IMAGE: CacheFirstStrategy(storage, fetcher, cache_names.image),
            RequestKind.STATIC: CacheFirstStrategy(storage, fetcher, cache_names.primary),
            RequestKind.OTHER: network_first,
        }

    def classify(self, request: Request) -> RequestKind:
        return classify(request, self.origin, self.static_assets, self.api_prefix)

    def select(self, request: Request) -> Optional[CacheStrategy]:
        """Strategy for ``request``, or None when it is not intercepted"""
        return self.strategies.get(self.classify(request))

    async def handle(self, request: Request) -> Optional[Response]:
        strategy = self.select(request)
        if strategy is None:
            self.logger.debug(f"Not intercepting cross-origin request {request.url}")
            return None
        return await strategy.handle(request)

    async def drain(self):
        """Wait for background refreshes of every cache-first strategy"""
        for strategy in set(self.strategies.values()):
            if isinstance(strategy, CacheFirstStrategy):
                await strategy.drain()
