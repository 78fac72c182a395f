import asyncio
from typing import Optional

from loguru import logger

from esports_notifier.config.settings import settings
from esports_notifier.models.reports import CycleReport
from .orchestrator import PollOrchestrator


class PollScheduler:
    """Runs a poll cycle on a fixed interval, plus on demand via trigger()."""

    def __init__(
        self,
        orchestrator: PollOrchestrator,
        interval_seconds: Optional[float] = None,
        run_on_start: Optional[bool] = None,
    ):
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds or settings.poll_interval_minutes * 60
        self.run_on_start = settings.poll_on_startup if run_on_start is None else run_on_start
        self.last_report: Optional[CycleReport] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._shutdown = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._shutdown.clear()
        self._task = asyncio.create_task(self._run(), name="poll-scheduler")
        logger.info(f"Scheduled polling every {self.interval_seconds / 60:g} minute(s)")

    async def stop(self) -> None:
        self._shutdown.set()
        if self._task is not None:
            # A cycle in progress runs to completion before the loop exits
            await self._task
            self._task = None
        logger.info("Poll scheduler stopped")

    async def trigger(self) -> CycleReport:
        """Run one full cycle now. Per-team locks serialize it with scheduled cycles."""
        logger.info("Manual poll triggered")
        report = await self.orchestrator.run_cycle()
        self.last_report = report
        return report

    async def _run(self) -> None:
        if not self.run_on_start and await self._wait_interval():
            return
        while not self._shutdown.is_set():
            try:
                self.last_report = await self.orchestrator.run_cycle()
            except Exception as e:
                # run_cycle isolates teams; this only guards the loop itself
                logger.exception(f"Poll cycle crashed: {e}")
            if await self._wait_interval():
                return

    async def _wait_interval(self) -> bool:
        """Sleep for one interval. Returns True if shutdown was requested."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=self.interval_seconds)
            return True
        except asyncio.TimeoutError:
            return False
