"""Network access: fetcher, backoff retries and the chat proxy"""

from .http import Request, Response, RequestsFetcher
from .backoff import BackoffClient
from .chat import ChatProxy

__all__ = ["Request", "Response", "RequestsFetcher", "BackoffClient", "ChatProxy"]
