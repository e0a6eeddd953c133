"""
Shared fixtures: an in-memory fake network standing in for the fetcher
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from portfolio_pwa.cache.storage import CacheNames, CacheStorage
from portfolio_pwa.net.http import Request, Response
from portfolio_pwa.utils.errors import FetchTimeoutError, NetworkError

ORIGIN = "https://example.com"
STATIC_ASSETS = ['/', '/index.html', '/style.css', '/offline.html']


class FakeNetwork:
    """Scriptable fetcher: serves registered responses, can go offline"""

    def __init__(self):
        self.routes: Dict[str, Response] = {}
        self.failing: set = set()
        self.gates: Dict[str, asyncio.Event] = {}
        self.offline = False
        self.calls: List[Request] = []
        self.timeouts: List[Optional[float]] = []

    def serve(self, path: str, body: bytes, status: int = 200, headers: dict = None):
        url = ORIGIN + path if path.startswith('/') else path
        self.routes[url] = Response(status=status, body=body, headers=headers or {}, url=url)

    def fail(self, path: str):
        self.failing.add(ORIGIN + path if path.startswith('/') else path)

    def hold(self, path: str) -> asyncio.Event:
        """Block fetches of ``path`` until the returned event is set"""
        gate = asyncio.Event()
        self.gates[ORIGIN + path] = gate
        return gate

    def calls_for(self, path: str) -> List[Request]:
        return [r for r in self.calls if r.url == ORIGIN + path]

    async def __call__(self, request: Request, timeout: float = None) -> Response:
        self.calls.append(request)
        self.timeouts.append(timeout)

        gate = self.gates.get(request.url)
        if gate is not None:
            await gate.wait()

        if self.offline or request.url in self.failing:
            raise NetworkError(f"Connection error: {request.url}")

        route = self.routes.get(request.url)
        if route is None:
            return Response(status=404, body=b'Not Found', url=request.url)
        return route.clone()


class ScriptedFetcher:
    """Returns queued outcomes in order; exceptions in the queue are raised"""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests: List[Request] = []
        self.timeouts: List[Optional[float]] = []

    async def __call__(self, request: Request, timeout: float = None) -> Response:
        self.requests.append(request)
        self.timeouts.append(timeout)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return Response(status=outcome, body=b'', url=request.url)
        return outcome


def timeout_error() -> FetchTimeoutError:
    return FetchTimeoutError("Request timeout after 30 seconds", 30)


@pytest.fixture
def network():
    return FakeNetwork()


@pytest.fixture
def storage():
    return CacheStorage()


@pytest.fixture
def names_v1():
    return CacheNames(primary='v1-static', runtime='v1-runtime', image='v1-image')


@pytest.fixture
def names_v2():
    return CacheNames(primary='v2-static', runtime='v2-runtime', image='v2-image')


@pytest.fixture
def site(network):
    """Network serving every static asset"""
    network.serve('/', b'<html>home</html>', headers={'Content-Type': 'text/html'})
    network.serve('/index.html', b'<html>home</html>', headers={'Content-Type': 'text/html'})
    network.serve('/style.css', b'body{}', headers={'Content-Type': 'text/css'})
    network.serve('/offline.html', b'<html>You are offline</html>', headers={'Content-Type': 'text/html'})
    return network
