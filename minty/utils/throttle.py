# minty/utils/throttle.py
import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, Optional, Set, TypeVar

from minty.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestThrottle:
    """
    Spaces calls sharing a ``scope`` at least ``min_interval`` seconds apart
    and drops duplicates.

    The scope is usually the owner's id, so one user's calls never wait on
    another user's. Without a scope the key itself is used. A call whose key is
    already in flight returns None immediately instead of running the action a
    second time. Failures are logged and return None.
    """

    def __init__(self, min_interval: Optional[float] = None):
        if min_interval is None:
            min_interval = settings.NOTIFICATION_MIN_INTERVAL_SECONDS
        self.min_interval = max(float(min_interval), 0.0)
        self._pending: Set[str] = set()
        self._next_slot: Dict[str, float] = {}

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def _reserve_slot(self, scope: str) -> float:
        """Claim the next free slot for ``scope`` and return the seconds to wait for it."""
        now = time.monotonic()
        # Forget scopes whose spacing window already passed
        for stale in [s for s, slot in self._next_slot.items() if slot <= now]:
            del self._next_slot[stale]

        slot = max(now, self._next_slot.get(scope, now))
        self._next_slot[scope] = slot + self.min_interval
        return slot - now

    async def run(
        self,
        key: str,
        action: Callable[[], Awaitable[T]],
        scope: Optional[str] = None,
    ) -> Optional[T]:
        if key in self._pending:
            logger.debug(f"Skipping duplicate in-flight request: {key}")
            return None

        self._pending.add(key)
        try:
            wait = self._reserve_slot(scope if scope is not None else key)
            if wait > 0:
                await asyncio.sleep(wait)
            return await action()
        except Exception as e:
            logger.error(f"Throttled request {key} failed: {str(e)}")
            return None
        finally:
            self._pending.discard(key)
