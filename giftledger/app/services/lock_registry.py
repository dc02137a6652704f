"""Per-instrument lock registry

Operations on the same gift card or promotion are serialized on that id's
lock; different ids never contend. The registry's own guard is held only
while a lock is looked up or created.
"""

import threading
from contextlib import contextmanager
from typing import Iterator


class LockRegistry:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        with self.lock_for(key):
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
