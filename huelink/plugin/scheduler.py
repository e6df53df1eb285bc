"""
Repeating poll timer.

Each tick launches the poll as its own task, so stopping cancels only the
timer; a poll already talking to the bridge runs to completion.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class PollScheduler:
    """Runs `poll` immediately and then every `interval` seconds until stopped."""
    
    def __init__(self, poll: Callable[[], Awaitable[None]], interval: float = 5.0):
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        
        self.poll = poll
        self.interval = interval
        self.cycles = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
    
    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()
    
    @property
    def inflight(self) -> int:
        return len(self._inflight)
    
    def start(self) -> None:
        if self.is_running:
            return
        
        logger.debug(f"Polling every {self.interval}s")
        self._timer = asyncio.get_running_loop().create_task(self._run())
    
    async def stop(self) -> None:
        """Cancel the timer, then wait for polls already in flight."""
        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None
        
        if self._inflight:
            logger.debug(f"Waiting for {len(self._inflight)} in-flight poll(s)")
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
    
    async def _run(self) -> None:
        while True:
            self.cycles += 1
            task = asyncio.get_running_loop().create_task(self.poll())
            self._inflight.add(task)
            task.add_done_callback(self._finished)
            
            await asyncio.sleep(self.interval)
    
    def _finished(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        
        if task.cancelled():
            return
        
        error = task.exception()
        if error is not None:
            logger.error(f"Poll cycle failed: {error!r}")
