"""Cancellable delayed follow-up messages.

The engine only declares that a follow-up is due after follow_up_delay_ms;
this scheduler runs it on the event loop. One pending follow-up per key: a
new schedule replaces the old one, and clearing a chat cancels it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

FollowUpCallback = Callable[[], Awaitable[None]]


class FollowUpScheduler:
    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def schedule(self, key: str, delay_ms: int, callback: FollowUpCallback) -> asyncio.Task[None]:
        """Run callback after delay_ms, replacing any follow-up pending for key."""
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, delay_ms, callback))
        self._tasks[key] = task
        return task

    async def _run(self, key: str, delay_ms: int, callback: FollowUpCallback) -> None:
        try:
            await asyncio.sleep(max(delay_ms, 0) / 1000)
            await callback()
        except asyncio.CancelledError:
            logger.debug("Follow-up for %s cancelled", key)
            raise
        except Exception:
            logger.warning("Follow-up for %s failed", key, exc_info=True)
        finally:
            if self._tasks.get(key) is asyncio.current_task():
                del self._tasks[key]

    def pending(self, key: str) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    def cancel(self, key: str) -> bool:
        """Cancel the pending follow-up for key. Returns True if one was pending."""
        task = self._tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def cancel_all(self) -> int:
        keys = list(self._tasks)
        return sum(1 for key in keys if self.cancel(key))
