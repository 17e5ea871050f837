# storefront/core/locks.py

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


class KeyedLocks:
    """
    A registry of asyncio locks, one per key.

    Used to serialize cart mutations per (owner, product) inside the process:
    two concurrent "add" calls for the same product run one after the other,
    so the find-or-create on the remote row cannot race.
    Locks are dropped once nobody holds or waits for them.
    """

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every CartSession in this process
cart_locks = KeyedLocks()
