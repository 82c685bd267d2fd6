"""
Daily index refresh as a cancellable asyncio task
"""
import asyncio
from datetime import datetime, time, timedelta
from typing import Awaitable, Callable, Optional

from core.logging_config import get_logger, log_error

logger = get_logger("scheduler")


def parse_run_at(run_at: str) -> time:
    """Parse an "HH:MM" wall-clock time."""
    try:
        hours, minutes = run_at.split(":")
        return time(hour=int(hours), minute=int(minutes))
    except ValueError as e:
        raise ValueError(f"Invalid refresh time {run_at!r}, expected HH:MM") from e


class IndexRefreshTask:
    """Runs ``callback`` every day at ``run_at`` until cancelled."""

    def __init__(self, callback: Callable[[], Awaitable[None]], run_at: str = "00:00", name: str = "index-refresh"):
        self.callback = callback
        self.run_at = parse_run_at(run_at)
        self.name = name
        self._task: Optional[asyncio.Task] = None

    def next_run(self, now: datetime) -> datetime:
        candidate = datetime.combine(now.date(), self.run_at)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.info("index_refresh_scheduled", task=self.name, run_at=self.run_at.strftime("%H:%M"))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.info("index_refresh_cancelled", task=self.name)
        self._task = None

    async def _run(self) -> None:
        while True:
            now = datetime.now()
            delay = (self.next_run(now) - now).total_seconds()
            await asyncio.sleep(delay)

            logger.info("Refreshing document index...", task=self.name)
            try:
                await self.callback()
            except Exception as e:
                log_error(logger, e, f"scheduled refresh {self.name}")
                continue
            logger.info("Document index refreshed.", task=self.name)
