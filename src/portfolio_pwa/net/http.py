"""
Request/response value types and the network fetcher used by the caching layer
"""

import asyncio
import base64
import functools
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter

from ..utils.errors import FetchTimeoutError, NetworkError
from ..utils.logging_config import get_logger, log_fetch


class Request:
    """An intercepted or outbound HTTP request"""

    def __init__(self,
                 url: str,
                 method: str = 'GET',
                 destination: str = '',
                 headers: Dict[str, str] = None,
                 body: Optional[bytes] = None):
        self.url = url
        self.method = method.upper()
        self.destination = destination or ''
        self.headers = dict(headers or {})
        self.body = body

    @classmethod
    def post_json(cls, url: str, data: Any, headers: Dict[str, str] = None) -> 'Request':
        """Build a JSON POST request"""
        merged = {'Content-Type': 'application/json'}
        merged.update(headers or {})
        return cls(url, method='POST', headers=merged, body=json.dumps(data).encode('utf-8'))

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme}://{parts.netloc}".lower()

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or '/'

    @property
    def cache_key(self) -> str:
        """Cache identity; only GET requests are ever stored so the URL is enough"""
        return self.url

    def __repr__(self) -> str:
        return f"Request({self.method} {self.url!r}, destination={self.destination!r})"


class Response:
    """An HTTP response as stored in and served from cache stores"""

    def __init__(self,
                 status: int = 200,
                 body: bytes = b'',
                 headers: Dict[str, str] = None,
                 status_text: str = '',
                 url: str = '',
                 synthesized: bool = False):
        self.status = status
        self.body = body if isinstance(body, bytes) else str(body).encode('utf-8')
        self.headers = dict(headers or {})
        self.status_text = status_text
        self.url = url
        self.synthesized = synthesized

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @classmethod
    def offline(cls, message: str, url: str = '') -> 'Response':
        """Synthesized 503 placeholder returned when nothing else is available"""
        return cls(
            status=503,
            body=message.encode('utf-8'),
            headers={'Content-Type': 'text/plain'},
            status_text='Service Unavailable',
            url=url,
            synthesized=True
        )

    @classmethod
    def from_requests(cls, response: requests.Response) -> 'Response':
        return cls(
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            status_text=response.reason or '',
            url=response.url
        )

    def clone(self) -> 'Response':
        return Response(self.status, self.body, self.headers, self.status_text, self.url, self.synthesized)

    def text(self, encoding: str = 'utf-8') -> str:
        return self.body.decode(encoding, errors='replace')

    def json(self) -> Any:
        return json.loads(self.body.decode('utf-8'))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for on-disk persistence"""
        return {
            'status': self.status,
            'status_text': self.status_text,
            'headers': self.headers,
            'url': self.url,
            'body': base64.b64encode(self.body).decode('ascii')
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Response':
        return cls(
            status=data['status'],
            body=base64.b64decode(data.get('body', '')),
            headers=data.get('headers'),
            status_text=data.get('status_text', ''),
            url=data.get('url', '')
        )

    def __repr__(self) -> str:
        return f"Response(status={self.status}, url={self.url!r}, size={len(self.body)})"


class RequestsFetcher:
    """Async network fetcher backed by a requests.Session

    Blocking requests calls run in the event loop's default executor; every
    attempt is bounded by ``timeout`` and raises ``FetchTimeoutError`` when
    the ceiling is hit, or ``NetworkError`` for any other transport failure.

    The ceiling ends the await, not the worker thread: requests applies its
    own ``timeout`` per connect and per read, so an abandoned call can keep
    running in the executor until requests gives up on its own.
    """

    def __init__(self, timeout: float = 30, session: requests.Session = None):
        self.timeout = timeout
        self.logger = get_logger(__name__)
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create HTTP session; retries are handled by the caller's policy"""
        session = requests.Session()

        adapter = HTTPAdapter(pool_connections=10, pool_maxsize=10, max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    async def __call__(self, request: Request, timeout: float = None) -> Response:
        timeout = timeout or self.timeout
        loop = asyncio.get_running_loop()
        call = functools.partial(self._send, request, timeout)

        try:
            return await asyncio.wait_for(loop.run_in_executor(None, call), timeout)
        except asyncio.TimeoutError:
            raise FetchTimeoutError(f"Request timeout after {timeout} seconds", timeout)

    def _send(self, request: Request, timeout: float) -> Response:
        start_time = time.time()
        try:
            response = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                timeout=timeout
            )
        except requests.exceptions.Timeout:
            raise FetchTimeoutError(f"Request timeout after {timeout} seconds", timeout)
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}")

        log_fetch(self.logger, request.method, request.url, response.status_code, time.time() - start_time)
        return Response.from_requests(response)

    def close(self):
        """Close the HTTP session"""
        if self.session:
            self.session.close()
            self.logger.debug("Fetcher session closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
