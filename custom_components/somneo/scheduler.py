"""Independent polling timers for one Somneo device."""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Mapping, Optional

from homeassistant.helpers.event import async_track_time_interval  # type: ignore

_LOGGER = logging.getLogger(__name__)

PollJob = Callable[[], Awaitable[object]]


class PollingScheduler:
    """Owns one repeating timer per job.

    Cancelling a timer only stops future ticks; a running job is never
    aborted. A tick that arrives while the previous run of the same job is
    still in flight is skipped.
    """

    def __init__(
        self,
        hass,
        jobs: Mapping[str, PollJob],
        intervals: Mapping[str, timedelta],
        persist_enabled: Callable[[bool], Awaitable[None]] | None = None,
        enabled: bool = True,
    ):
        self._hass = hass
        self._jobs = dict(jobs)
        self._intervals: Dict[str, timedelta] = dict(intervals)
        self._persist_enabled = persist_enabled
        self._enabled = enabled
        self._unsubs: Dict[str, Callable[[], None]] = {}
        self._running: Dict[str, asyncio.Task] = {}

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active_jobs(self) -> set[str]:
        return set(self._unsubs)

    def interval(self, job: str) -> Optional[timedelta]:
        return self._intervals.get(job)

    def _start_timer(self, job: str) -> None:
        self._cancel_timer(job)
        interval = self._intervals[job]

        async def _tick(_now) -> None:
            await self.async_run(job)

        self._unsubs[job] = async_track_time_interval(
            self._hass, _tick, interval, name=f"somneo {job} poll"
        )
        _LOGGER.debug("Polling %s every %s", job, interval)

    def _cancel_timer(self, job: str) -> None:
        unsub = self._unsubs.pop(job, None)
        if unsub is not None:
            unsub()

    def async_start(self) -> None:
        """Start every timer when polling is enabled."""
        if not self._enabled:
            _LOGGER.debug("Polling is paused, timers not started")
            return
        for job in self._jobs:
            self._start_timer(job)

    def async_stop(self) -> None:
        for job in list(self._unsubs):
            self._cancel_timer(job)

    def async_update_intervals(self, intervals: Mapping[str, timedelta]) -> set[str]:
        """Recreate only the timers whose interval changed."""
        changed = {job for job, value in intervals.items() if job in self._jobs and self._intervals.get(job) != value}
        for job in changed:
            self._intervals[job] = intervals[job]
            if self._enabled:
                self._start_timer(job)
        return changed

    async def async_set_enabled(self, enabled: bool) -> bool:
        """Pause or resume all timers and remember the choice."""
        self._enabled = enabled
        if enabled:
            self.async_start()
        else:
            self.async_stop()
        if self._persist_enabled is not None:
            await self._persist_enabled(enabled)
        _LOGGER.info("Somneo polling %s", "enabled" if enabled else "disabled")
        return enabled

    async def async_toggle(self) -> bool:
        return await self.async_set_enabled(not self._enabled)

    async def async_run(self, job: str) -> None:
        """Run ``job`` now unless a run of it is still in flight."""
        running = self._running.get(job)
        if running is not None and not running.done():
            _LOGGER.debug("Skipping %s poll, previous run still in progress", job)
            return
        task = asyncio.ensure_future(self._jobs[job]())
        self._running[job] = task
        try:
            await task
        except Exception:  # pylint: disable=broad-except
            _LOGGER.exception("Unexpected error in %s poll", job)
        finally:
            if self._running.get(job) is task:
                self._running.pop(job, None)
