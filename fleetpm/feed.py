"""
Change feed for repository collections.

Subscriptions are pull based: each one queues a fresh snapshot after every
committed transaction that touched its collection, and the caller drains the
queue whenever it likes. The queue keeps only the newest ``MAX_PENDING``
snapshots; older ones are dropped. Nothing here runs in the background.
"""

import logging
import threading
from collections import deque

logger = logging.getLogger(__name__)

MAX_PENDING = 16


class Subscription:
    def __init__(self, feed, account_id, collection, loader, max_pending=MAX_PENDING):
        self.account_id = account_id
        self.collection = collection
        self._feed = feed
        self._loader = loader
        self._pending = deque(maxlen=max_pending)
        self._lock = threading.Lock()
        self.closed = False

    def refresh(self):
        snapshot = self._loader()
        with self._lock:
            self._pending.append(snapshot)
        return snapshot

    def pending(self):
        with self._lock:
            return len(self._pending)

    def latest(self):
        """Drop everything queued and return the newest snapshot, if any."""
        with self._lock:
            if not self._pending:
                return None
            snapshot = self._pending[-1]
            self._pending.clear()
            return snapshot

    def __iter__(self):
        while True:
            with self._lock:
                if not self._pending:
                    return
                snapshot = self._pending.popleft()
            yield snapshot

    def close(self):
        self._feed.unsubscribe(self)
        self.closed = True
        with self._lock:
            self._pending.clear()

    def __enter__(self):
        return self

    def __exit__(self, *_exc):
        self.close()


class SnapshotFeed:
    def __init__(self, max_pending=MAX_PENDING):
        self.max_pending = max_pending
        self._subscriptions = []
        self._lock = threading.Lock()

    def subscribe(self, account_id, collection, loader):
        subscription = Subscription(self, account_id, collection, loader, self.max_pending)
        subscription.refresh()
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, account_id, collections):
        with self._lock:
            targets = [
                sub
                for sub in self._subscriptions
                if sub.account_id == account_id and sub.collection in collections
            ]
        for subscription in targets:
            # The commit already happened; a failed reload must not surface as a failed write.
            try:
                subscription.refresh()
            except Exception:
                logger.exception("Snapshot reload failed for %s", subscription.collection)
        if targets:
            logger.debug("Published %d snapshot(s) for %s", len(targets), sorted(collections))
