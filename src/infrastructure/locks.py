"""
Per-order asyncio locks.

Every status mutation of an order runs while holding that order's lock,
so two concurrent requests against the same order are serialised: the
second one re-reads the order the first one wrote and is checked against
the transition table on its own.

Locks are created lazily and held weakly: an ``OrderLock`` keeps its
``asyncio.Lock`` alive while anyone holds or waits on it, and the entry
disappears from the registry once the last user lets go.
"""

from __future__ import annotations

import asyncio
import weakref


class OrderLocks:
    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, order_id: str) -> asyncio.Lock:
        lock = self._locks.get(order_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[order_id] = lock
        return lock

    def __call__(self, order_id: str) -> "OrderLock":
        return OrderLock(self, order_id)

    def __len__(self) -> int:
        return len(self._locks)


class OrderLock:
    def __init__(self, registry: OrderLocks, order_id: str):
        self._lock = registry.get(order_id)

    async def acquire(self) -> bool:
        await self._lock.acquire()
        return True

    def release(self) -> None:
        if self._lock.locked():
            self._lock.release()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    # context-manager support
    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, *args):
        self.release()
