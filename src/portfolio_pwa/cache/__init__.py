"""Cache storage, retrieval strategies and request routing"""

from .storage import CacheNames, CacheStorage, CacheStore
from .strategies import CacheFirstStrategy, CacheStrategy, NetworkFirstStrategy
from .routing import RequestKind, StrategySelector, classify

__all__ = [
    "CacheNames",
    "CacheStorage",
    "CacheStore",
    "CacheStrategy",
    "CacheFirstStrategy",
    "NetworkFirstStrategy",
    "RequestKind",
    "StrategySelector",
    "classify",
]
