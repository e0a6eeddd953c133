"""
Outbound calls with bounded retries and exponential backoff
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

from ..utils.errors import FetchTimeoutError, RetryExhaustedError
from ..utils.logging_config import get_logger
from ..utils.validation import SecurityValidator
from .http import Request, Response

# Too Many Requests, Service Unavailable
TRANSIENT_STATUSES = frozenset({429, 503})


class BackoffClient:
    """Wraps a fetcher with retries for transient upstream failures

    Only 429/503 responses and per-attempt timeouts are retried. Any other
    non-success status is handed back untouched, and other network errors
    propagate immediately. Retry ``n`` waits ``initial_delay * 2 ** (n - 1)``.
    """

    def __init__(self,
                 fetcher: Callable[..., Awaitable[Response]],
                 max_retries: int = 3,
                 initial_delay: float = 1.0,
                 timeout: float = 30,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.fetcher = fetcher
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.timeout = timeout
        self.sleep = sleep
        self.logger = get_logger(__name__)

    async def call(self,
                   url: str,
                   options: Dict[str, Any] = None,
                   max_retries: int = None,
                   initial_delay: float = None) -> Response:
        """
        Issue a request, retrying transient failures

        Args:
            url: Target URL
            options: Optional ``method``, ``headers``, ``json`` or ``body``
            max_retries: Retries after the first attempt (client default if None)
            initial_delay: Delay before the first retry in seconds

        Returns:
            The first non-transient response

        Raises:
            RetryExhaustedError: If every attempt failed transiently
            NetworkError: On a non-timeout transport failure
        """
        request = self._build_request(url, options or {})
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay
        clean_url = SecurityValidator.sanitize_api_key_in_text(url)

        attempt = 0
        while True:
            attempt += 1
            last_error: Optional[Exception] = None
            last_status: Optional[int] = None

            try:
                response = await self.fetcher(request, timeout=self.timeout)
            except FetchTimeoutError as e:
                last_error = e
                reason = 'timed out'
            else:
                if response.ok or response.status not in TRANSIENT_STATUSES:
                    return response
                last_status = response.status
                reason = f'returned {response.status}'

            if attempt > retries:
                raise RetryExhaustedError(
                    f"Upstream call to {clean_url} failed after {attempt} attempts ({reason})",
                    attempts=attempt,
                    last_status=last_status
                ) from last_error

            self.logger.info(
                f"Upstream {reason}. Retrying in {delay}s... (Retry {attempt}/{retries})"
            )
            await self.sleep(delay)
            delay *= 2

    def _build_request(self, url: str, options: Dict[str, Any]) -> Request:
        method = options.get('method', 'GET')
        headers = dict(options.get('headers') or {})
        body = options.get('body')

        if 'json' in options:
            headers.setdefault('Content-Type', 'application/json')
            body = json.dumps(options['json'])

        if isinstance(body, str):
            body = body.encode('utf-8')

        return Request(url, method=method, headers=headers, body=body)
