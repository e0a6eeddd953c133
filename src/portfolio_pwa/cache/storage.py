"""
Named, versioned response stores for the offline caching layer
"""

import hashlib
import json
import os
import re
import shutil
from typing import Any, Dict, List, NamedTuple, Optional, Union

from cachetools import LRUCache

from ..net.http import Request, Response
from ..utils.errors import CacheError
from ..utils.logging_config import get_logger, log_cache_operation

RequestLike = Union[Request, str]

STORE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9._\-]+$')


class CacheNames(NamedTuple):
    """The store names recognized by one deployed version"""

    primary: str
    runtime: str
    image: str

    @classmethod
    def for_version(cls, version: str) -> 'CacheNames':
        return cls(
            primary=f"portfolio-v{version}",
            runtime=f"runtime-v{version}",
            image=f"images-v{version}"
        )


def _key_for(request: RequestLike) -> str:
    if isinstance(request, Request):
        return request.cache_key
    return request


class CacheStore:
    """A single named store mapping request URL to the last stored response

    Entries live in a bounded LRU memory cache and, when ``directory`` is
    given, are mirrored to one JSON file per entry so that a store survives
    a process restart.
    """

    def __init__(self, name: str, max_entries: int = 1000, directory: str = None):
        self.name = name
        self.directory = directory
        self.logger = get_logger(__name__)
        self._entries = LRUCache(maxsize=max_entries)

        if directory:
            os.makedirs(directory, exist_ok=True)
            self._load_from_disk()

    async def match(self, request: RequestLike) -> Optional[Response]:
        """Return a copy of the stored response for ``request``, if any

        Only GET requests ever match; a write to a cached URL is a miss.
        """
        if isinstance(request, Request) and request.method != 'GET':
            return None

        key = _key_for(request)
        response = self._entries.get(key)
        log_cache_operation(self.logger, 'MATCH', self.name, key, hit=response is not None)
        return response.clone() if response is not None else None

    async def put(self, request: RequestLike, response: Response):
        """Store ``response`` under ``request``, replacing any existing entry"""
        if isinstance(request, Request) and request.method != 'GET':
            raise CacheError(f"Only GET requests can be cached, got {request.method}",
                             {"store": self.name, "url": request.url})

        key = _key_for(request)
        log_cache_operation(self.logger, 'PUT', self.name, key)
        stored = response.clone()
        self._entries[key] = stored

        if self.directory:
            self._set_to_disk(key, stored)

    async def delete(self, request: RequestLike) -> bool:
        """Remove a single entry"""
        key = _key_for(request)
        log_cache_operation(self.logger, 'DELETE', self.name, key)
        removed = self._entries.pop(key, None) is not None

        if self.directory:
            removed = self._delete_from_disk(key) or removed
        return removed

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, request: RequestLike) -> bool:
        return _key_for(request) in self._entries

    def _destroy(self):
        """Drop every entry and the on-disk directory"""
        self._entries.clear()
        if self.directory and os.path.isdir(self.directory):
            shutil.rmtree(self.directory, ignore_errors=True)

    def _load_from_disk(self):
        for filename in sorted(os.listdir(self.directory)):
            if not filename.endswith('.cache'):
                continue

            filepath = os.path.join(self.directory, filename)
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    record = json.load(f)
                self._entries[record['key']] = Response.from_dict(record['response'])
            except (json.JSONDecodeError, KeyError, IOError) as e:
                self.logger.warning(f"Dropping unreadable cache file {filepath}: {e}")
                try:
                    os.remove(filepath)
                except OSError:
                    pass

    def _set_to_disk(self, key: str, response: Response):
        filepath = self._get_cache_filepath(key)
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump({'key': key, 'response': response.to_dict()}, f, separators=(',', ':'))
        except (IOError, TypeError) as e:
            self.logger.error(f"Failed to write cache file {filepath}: {e}")
            try:
                if os.path.exists(filepath):
                    os.remove(filepath)
            except OSError:
                pass

    def _delete_from_disk(self, key: str) -> bool:
        filepath = self._get_cache_filepath(key)
        try:
            if os.path.exists(filepath):
                os.remove(filepath)
                return True
        except OSError as e:
            self.logger.warning(f"Failed to delete cache file {filepath}: {e}")
        return False

    def _get_cache_filepath(self, key: str) -> str:
        key_hash = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self.directory, f"{key_hash}.cache")


class CacheStorage:
    """Collection of named cache stores (the host's cache storage)"""

    def __init__(self, cache_dir: str = None, max_entries: int = 1000):
        """
        Initialize cache storage

        Args:
            cache_dir: Directory for persistent stores (memory only if None)
            max_entries: Maximum number of entries kept per store
        """
        self.logger = get_logger(__name__)
        self.cache_dir = cache_dir
        self.max_entries = max_entries
        self._stores: Dict[str, CacheStore] = {}

        if cache_dir:
            os.makedirs(cache_dir, exist_ok=True)
            for name in sorted(os.listdir(cache_dir)):
                if os.path.isdir(os.path.join(cache_dir, name)) and STORE_NAME_PATTERN.match(name):
                    self._stores[name] = self._create_store(name)

        self.logger.info(f"Cache storage initialized - Stores: {len(self._stores)}, "
                         f"Directory: {cache_dir or 'memory'}")

    async def open(self, name: str) -> CacheStore:
        """Return the store called ``name``, creating it on first open"""
        store = self._stores.get(name)
        if store is None:
            if not STORE_NAME_PATTERN.match(name or ''):
                raise CacheError(f"Invalid cache store name: {name!r}")
            store = self._create_store(name)
            self._stores[name] = store
            self.logger.debug(f"Opened new cache store {name}")
        return store

    async def has(self, name: str) -> bool:
        return name in self._stores

    async def delete(self, name: str) -> bool:
        """Delete a whole store; returns False when it did not exist"""
        store = self._stores.pop(name, None)
        if store is None:
            return False
        store._destroy()
        self.logger.info(f"Deleted cache store {name}")
        return True

    async def keys(self) -> List[str]:
        """Names of all existing stores, in creation order"""
        return list(self._stores.keys())

    async def match(self, request: RequestLike) -> Optional[Response]:
        """Look ``request`` up in every store, oldest store first"""
        for store in list(self._stores.values()):
            response = await store.match(request)
            if response is not None:
                return response
        return None

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics

        Returns:
            Dictionary with per-store entry counts
        """
        return {
            'stores': {name: len(store) for name, store in self._stores.items()},
            'max_entries_per_store': self.max_entries,
            'directory': self.cache_dir
        }

    def _create_store(self, name: str) -> CacheStore:
        directory = os.path.join(self.cache_dir, name) if self.cache_dir else None
        return CacheStore(name, self.max_entries, directory)
