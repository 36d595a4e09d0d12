"""In-process mutual exclusion per resource.

The lock is taken before the availability check and released after commit,
so two requests for the same resource in one process cannot both pass the
check. Across processes the ``SELECT ... FOR UPDATE`` on the resource row and
the unique slot index do the same job.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

from app.models.enums import ResourceKind

LockKey = tuple[ResourceKind, uuid.UUID]


class ResourceLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[LockKey, asyncio.Lock] = {}

    def lock_for(self, kind: ResourceKind, resource_id: uuid.UUID) -> asyncio.Lock:
        return self._locks.setdefault((kind, resource_id), asyncio.Lock())

    @asynccontextmanager
    async def hold(self, *keys: LockKey) -> AsyncIterator[None]:
        """Acquire the locks for ``keys`` in a stable order."""
        async with AsyncExitStack() as stack:
            for kind, resource_id in sorted(set(keys), key=lambda k: (k[0].value, str(k[1]))):
                await stack.enter_async_context(self.lock_for(kind, resource_id))
            yield


resource_locks = ResourceLockRegistry()
