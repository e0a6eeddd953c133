"""
Deferred form submissions: durable queue and background sync replay
"""

import json
import os
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..net.http import Request, Response
from ..utils.errors import CacheError, NetworkError
from ..utils.logging_config import get_logger

SYNC_TAG = 'sync-form-submission'
COUNTER_FILE = 'next_id'


class PendingSubmissionStore:
    """Write requests waiting for connectivity, one JSON file per record"""

    def __init__(self, directory: str):
        self.directory = directory
        self.logger = get_logger(__name__)
        os.makedirs(directory, exist_ok=True)

    def add_pending(self, url: str, data: Any) -> int:
        """
        Queue a submission

        Args:
            url: Absolute URL the payload must be POSTed to
            data: JSON-serializable payload

        Returns:
            The new record id
        """
        record_id = self._allocate_id()
        record = {'id': record_id, 'url': url, 'data': data, 'created': time.time()}

        try:
            self._write_atomic(self._get_record_filepath(record_id), record)
        except (IOError, TypeError) as e:
            raise CacheError(f"Failed to persist pending submission: {e}", {"url": url})

        self.logger.info(f"Queued submission {record_id} for {url}")
        return record_id

    def list_pending(self) -> List[Dict[str, Any]]:
        """All pending records, oldest first"""
        records = []
        for record_id in sorted(self._ids()):
            filepath = self._get_record_filepath(record_id)
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    records.append(json.load(f))
            except (json.JSONDecodeError, IOError) as e:
                self.logger.warning(f"Skipping unreadable pending submission {filepath}: {e}")
        return records

    def remove_pending(self, record_id: int) -> bool:
        filepath = self._get_record_filepath(record_id)
        try:
            os.remove(filepath)
            return True
        except FileNotFoundError:
            return False

    def __len__(self) -> int:
        return len(self._ids())

    def _ids(self) -> List[int]:
        ids = []
        for filename in os.listdir(self.directory):
            stem, ext = os.path.splitext(filename)
            if ext == '.json' and stem.isdigit():
                ids.append(int(stem))
        return ids

    def _allocate_id(self) -> int:
        """Next id from the durable counter; ids are never handed out twice"""
        counter_path = os.path.join(self.directory, COUNTER_FILE)
        try:
            with open(counter_path, 'r', encoding='utf-8') as f:
                next_id = int(f.read().strip())
        except (FileNotFoundError, ValueError):
            next_id = 1

        # Records written before the counter existed still bound the sequence
        record_id = max(next_id, max(self._ids(), default=0) + 1)

        try:
            self._write_atomic(counter_path, record_id + 1)
        except IOError as e:
            raise CacheError(f"Failed to persist submission counter: {e}")
        return record_id

    @staticmethod
    def _write_atomic(filepath: str, value: Any):
        tmp_path = filepath + '.tmp'
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(value, f, ensure_ascii=False)
            os.replace(tmp_path, filepath)
        except (IOError, TypeError):
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _get_record_filepath(self, record_id: int) -> str:
        return os.path.join(self.directory, f"{record_id}.json")


class SubmissionSync:
    """Sends write requests, deferring them while offline"""

    def __init__(self,
                 store: PendingSubmissionStore,
                 fetcher: Callable[[Request], Awaitable[Response]]):
        self.store = store
        self.fetcher = fetcher
        self.logger = get_logger(__name__)

    async def submit(self, url: str, data: Any) -> Optional[Response]:
        """POST ``data`` now, or queue it and return None when the network is down"""
        try:
            return await self.fetcher(Request.post_json(url, data))
        except NetworkError as e:
            self.logger.warning(f"Submission to {url} deferred: {e}")
            self.store.add_pending(url, data)
            return None

    async def replay(self) -> Dict[str, int]:
        """
        Deliver every queued submission

        Records are removed only after a successful response; failures stay
        queued for the next sync.

        Returns:
            Counts of delivered and remaining records
        """
        delivered = 0
        for record in self.store.list_pending():
            try:
                response = await self.fetcher(Request.post_json(record['url'], record['data']))
            except NetworkError as e:
                self.logger.error(f"Failed to sync submission {record['id']}: {e}")
                continue

            if response.ok:
                self.store.remove_pending(record['id'])
                delivered += 1
                self.logger.info(f"Synced submission {record['id']}")
            else:
                self.logger.warning(f"Submission {record['id']} rejected with status {response.status}")

        remaining = len(self.store)
        self.logger.info(f"Submission sync finished - Delivered: {delivered}, Remaining: {remaining}")
        return {'delivered': delivered, 'remaining': remaining}
