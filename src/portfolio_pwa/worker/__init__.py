"""Service worker lifecycle, background sync and event handling"""

from .lifecycle import LifecycleManager, LifecycleState
from .sync import PendingSubmissionStore, SubmissionSync, SYNC_TAG
from .service_worker import Registration, ServiceWorker

__all__ = [
    "LifecycleManager",
    "LifecycleState",
    "PendingSubmissionStore",
    "SubmissionSync",
    "SYNC_TAG",
    "Registration",
    "ServiceWorker",
]
