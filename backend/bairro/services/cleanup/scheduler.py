"""
Sweep Scheduler

Runs a DuplicateSweep once at startup and then at a fixed period. Sweeps never
overlap: a tick that fires while one is still running is skipped, and so is a
manual trigger.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from .sweep import DuplicateSweep


logger = logging.getLogger(__name__)


class SweepScheduler:
    """
    Usage:
        scheduler = SweepScheduler(sweep, interval=timedelta(minutes=70))
        scheduler.start()
        ...
        await scheduler.stop(grace_seconds=10)
    """

    def __init__(
        self,
        sweep: DuplicateSweep,
        interval: timedelta,
        run_on_start: bool = True,
    ):
        if interval.total_seconds() <= 0:
            raise ValueError("Sweep interval must be positive")
        self.sweep = sweep
        self.interval = interval
        self.run_on_start = run_on_start
        self.last_result: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()
        self._loop_task: Optional[asyncio.Task] = None
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        """Start the periodic loop on the running event loop."""
        if self._loop_task is not None and not self._loop_task.done():
            return
        logger.info(f"Initializing duplicate sweep every {self.interval}")
        self._loop_task = asyncio.create_task(self._loop())

    async def run_once(self) -> Dict[str, Any]:
        """Run a sweep now unless one is already in progress."""
        if self._lock.locked():
            logger.warning("Duplicate sweep already running, skipping")
            return {
                "status": "skipped",
                "run_date": datetime.now(timezone.utc).isoformat(),
            }
        async with self._lock:
            result = await self.sweep.run()
            self.last_result = result
            return result

    async def stop(self, grace_seconds: float = 10) -> None:
        """
        Stop ticking and let an in-flight sweep finish within the grace period.

        Database work already handed to a worker thread cannot be interrupted;
        it is abandoned once the grace period is over.
        """
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        task = self._sweep_task
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=grace_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Duplicate sweep still running after {grace_seconds}s, cancelling")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _loop(self) -> None:
        if self.run_on_start:
            self._tick()
        while True:
            await asyncio.sleep(self.interval.total_seconds())
            self._tick()

    def _tick(self) -> None:
        if self._sweep_task is not None and not self._sweep_task.done():
            logger.warning("Previous duplicate sweep still running, skipping this tick")
            return
        self._sweep_task = asyncio.create_task(self._run_in_background())

    async def _run_in_background(self) -> None:
        try:
            await self.run_once()
        except Exception as e:
            # Keep the schedule alive, the next tick retries
            logger.exception(f"Duplicate sweep failed: {e}")
