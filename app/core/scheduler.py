from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from app.storage.device_cache import DeviceCache

logger = logging.getLogger(__name__)


class PeriodicJob:
    """Run a synchronous callable now and then every ``interval_seconds`` until stopped."""

    def __init__(self, name: str, func: Callable[[], Any], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self._func = func
        self._interval_seconds = float(interval_seconds)
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> Any:
        try:
            result = self._func()
        except Exception as exc:
            logger.warning("periodic_job_failed name=%s: %s", self.name, exc)
            return None
        finally:
            self.runs += 1
        logger.debug("periodic_job_ran name=%s result=%s", self.name, result)
        return result

    async def _loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            self.run_once()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval_seconds)
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        """Schedule the loop on the running event loop. Calling it twice is a no-op."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._loop(self._stop_event))
        logger.info("periodic_job_started name=%s interval_s=%s", self.name, self._interval_seconds)

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None
        self._stop_event = None
        logger.info("periodic_job_stopped name=%s", self.name)


def build_cache_sweeper(cache: "DeviceCache", interval_seconds: float = 3600) -> PeriodicJob:
    return PeriodicJob("device_cache_sweep", cache.sweep_expired, interval_seconds)
