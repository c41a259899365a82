"""Fan-out of committed changes to live watchers.

Every ORM object carries a ``resource_path`` such as
``users/{uid}/courses/{cid}/lessons/{lid}``. Paths touched by a flush are
remembered on the session and published once the transaction commits, so
watchers never see writes that were rolled back.
"""

import asyncio
import logging
import threading
from typing import Iterable

from sqlalchemy import event
from sqlalchemy.orm import Session

from ..models import Enrollment

logger = logging.getLogger(__name__)

CHANGED_PATHS_KEY = "changed_paths"


def paths_overlap(watched: str, changed: str) -> bool:
    """A change concerns a watcher when one path contains the other."""
    watched = watched.strip("/")
    changed = changed.strip("/")
    return (
        watched == changed
        or changed.startswith(watched + "/")
        or watched.startswith(changed + "/")
    )


class Subscription:
    def __init__(self, path: str, loop: asyncio.AbstractEventLoop):
        self.path = path
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue()

    def __repr__(self):
        return f"<Subscription(path='{self.path}')>"


class ChangeHub:
    """Thread-safe registry of watchers keyed by path."""

    def __init__(self):
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, path: str) -> Subscription:
        """Register a watcher; must be called from the watcher's event loop."""
        subscription = Subscription(path, asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.add(subscription)
        logger.debug(f"Watching {path}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, paths: Iterable[str]) -> int:
        """Wake every watcher whose path overlaps a changed path."""
        paths = list(paths)
        if not paths:
            return 0
        with self._lock:
            subscriptions = list(self._subscriptions)

        notified = 0
        for subscription in subscriptions:
            matched = [path for path in paths if paths_overlap(subscription.path, path)]
            if not matched:
                continue
            try:
                subscription.loop.call_soon_threadsafe(subscription.queue.put_nowait, matched)
                notified += 1
            except RuntimeError as e:
                # Loop already closed; the watcher is gone
                logger.warning(f"Dropping watcher on {subscription.path}: {e}")
                self.unsubscribe(subscription)
        return notified


hub = ChangeHub()


def _changed_paths(obj) -> list[str]:
    path = getattr(obj, "resource_path", None)
    if path is None:
        return []
    paths = [path]
    if isinstance(obj, Enrollment):
        # Block documents report their student count
        paths.append(obj.block_path)
    return paths


@event.listens_for(Session, "after_flush")
def collect_changed_paths(session, flush_context):
    changed = session.info.setdefault(CHANGED_PATHS_KEY, set())
    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        changed.update(_changed_paths(obj))


@event.listens_for(Session, "after_commit")
def publish_changed_paths(session):
    changed = session.info.pop(CHANGED_PATHS_KEY, None)
    if changed:
        hub.publish(sorted(changed))


@event.listens_for(Session, "after_rollback")
def discard_changed_paths(session):
    session.info.pop(CHANGED_PATHS_KEY, None)
