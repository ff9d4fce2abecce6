"""Cancelable debounce timer for the asyncio event loop."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class DebounceTimer:
    """Run an async action once input has been quiet for ``delay`` seconds.

    Only the waiting period is cancelable. Once the timer fires, the action
    runs to completion even if the timer is restarted or cancelled; callers
    that need to ignore stale results must do so themselves.
    """

    def __init__(self, delay: float, action: Callable[[], Awaitable[Any]], name: str = "timer"):
        self.delay = delay
        self.name = name
        self._action = action
        self._waiting: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while the timer is counting down."""
        return self._waiting is not None and not self._waiting.done()

    def start(self) -> None:
        """(Re)start the countdown, discarding any previous countdown."""
        self.cancel()
        self._waiting = asyncio.ensure_future(self._run())

    def cancel(self) -> bool:
        """Cancel the countdown. Returns True if a countdown was discarded."""
        if self._waiting is None:
            return False
        waiting, self._waiting = self._waiting, None
        if waiting.done():
            return False
        waiting.cancel()
        return True

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.current_task()
        if self._waiting is task:
            self._waiting = None
        self._running.add(task)
        try:
            await self._action()
        except Exception as e:
            logger.error(f"Action of {self.name} failed: {e}")
        finally:
            self._running.discard(task)

    async def wait(self) -> None:
        """Wait for the current countdown and any fired actions to finish."""
        while True:
            tasks = [task for task in (self._waiting, *self._running) if task is not None]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)
            if not self.pending and not self._running:
                return
