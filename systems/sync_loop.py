# Copyright (C) 2026 grodz
#
# This file is part of Sawaya.
#
# Sawaya is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""Keeps control panel messages in sync with live player state.

Two triggers share one refresh operation:
- Periodic: every `interval` seconds, refresh every registered panel at once
- Event: when a track ends, refresh that guild's panel once, in the background

A refresh always reads a fresh snapshot and only edits the message when the
rendered panel (body or link field) changed. Overlapping refreshes of one
guild are harmless: the worst case is a redundant edit with identical content.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

import discord
from loguru import logger

from core.snapshot import PlayerSnapshot, PlayerSnapshotReader
from systems.control_registry import ControlEntry, ControlRegistry
from systems.messenger import EditResult, PanelMessenger
from ui.render import RenderedPanel

DEFAULT_INTERVAL = 2.5
MAX_CONCURRENT_EVENT_REFRESHES = 32


class PanelPresenter(Protocol):
    def render(self, guild_id: int, snapshot: PlayerSnapshot) -> RenderedPanel: ...

    def build_embed(self, rendered: RenderedPanel) -> discord.Embed: ...


class RefreshOutcome(Enum):
    REFRESHED = "refreshed"
    UNCHANGED = "unchanged"
    EVICTED = "evicted"
    FAILED = "failed"


@dataclass
class TickReport:
    """Counts of refresh outcomes for one periodic tick."""
    refreshed: int = 0
    unchanged: int = 0
    evicted: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.refreshed + self.unchanged + self.evicted + self.failed

    def add(self, outcome: RefreshOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)


class ControlSyncLoop:
    """Periodic and event-driven panel refresher.

    Args:
        registry: Shared guild -> panel registry
        reader: Source of fresh player snapshots
        messenger: Classifies edit failures (not found vs transient)
        presenter: Renders snapshots and builds the panel embed
        interval: Seconds between periodic ticks
        on_crash: Called with the exception when the periodic loop dies (an
            unmapped player state); the bot uses it to shut down
    """

    def __init__(
        self,
        registry: ControlRegistry,
        reader: PlayerSnapshotReader,
        messenger: PanelMessenger,
        presenter: PanelPresenter,
        interval: float = DEFAULT_INTERVAL,
        on_crash: Callable[[BaseException], None] | None = None,
    ) -> None:
        self.registry = registry
        self.reader = reader
        self.messenger = messenger
        self.presenter = presenter
        self.interval = interval
        self.on_crash = on_crash

        self._task: asyncio.Task | None = None
        self._stopping = asyncio.Event()
        # Track fire-and-forget event refreshes so they are not GC'd mid-flight
        self._pending: set[asyncio.Task] = set()
        self._event_slots = asyncio.Semaphore(MAX_CONCURRENT_EVENT_REFRESHES)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self, entry: ControlEntry) -> RefreshOutcome:
        """Re-render one panel and write it back if the body changed."""
        guild_id = entry.guild_id
        snapshot = self.reader.get_snapshot(guild_id)
        rendered = self.presenter.render(guild_id, snapshot)

        if rendered == entry.last_rendered:
            return RefreshOutcome.UNCHANGED

        result = await self.messenger.edit(entry.message, self.presenter.build_embed(rendered))

        if result is EditResult.OK:
            entry.last_rendered = rendered
            return RefreshOutcome.REFRESHED

        if result is EditResult.NOT_FOUND:
            # Message deleted by a user or expired: silent cleanup, no retry
            self.registry.remove(guild_id, entry)
            logger.debug(f"panel for guild {guild_id} is gone, dropped")
            return RefreshOutcome.EVICTED

        # Transient: keep the entry, the next tick retries
        return RefreshOutcome.FAILED

    async def refresh_all(self) -> TickReport:
        """Refresh every registered panel concurrently.

        One guild's failure never aborts the others. An AssertionError
        (unmapped player state) is re-raised after the tick completes.
        """
        entries = self.registry.entries()
        report = TickReport()
        if not entries:
            return report

        results = await asyncio.gather(
            *(self.refresh(entry) for entry in entries),
            return_exceptions=True,
        )

        programming_error: AssertionError | None = None
        for entry, result in zip(entries, results):
            if isinstance(result, RefreshOutcome):
                report.add(result)
            elif isinstance(result, AssertionError):
                programming_error = result
            elif isinstance(result, asyncio.CancelledError):
                raise result
            else:
                report.failed += 1
                logger.opt(exception=result).warning(f"panel refresh failed for guild {entry.guild_id}")

        if programming_error is not None:
            raise programming_error

        if report.evicted or report.failed:
            logger.debug(
                f"panel tick: {report.refreshed} refreshed, {report.unchanged} unchanged, "
                f"{report.evicted} evicted, {report.failed} failed"
            )
        return report

    def notify_track_ended(self, guild_id: int) -> asyncio.Task | None:
        """Schedule one background refresh for a guild whose track just ended.

        Returns the spawned task, or None when the guild has no panel or the
        loop is shutting down. Never blocks the caller.
        """
        if self._stopping.is_set():
            return None

        entry = self.registry.get(guild_id)
        if entry is None:
            return None

        task = asyncio.create_task(self._event_refresh(entry))
        self._pending.add(task)
        task.add_done_callback(self._on_event_refresh_done)
        return task

    async def _event_refresh(self, entry: ControlEntry) -> RefreshOutcome:
        async with self._event_slots:
            return await self.refresh(entry)

    def _on_event_refresh_done(self, task: asyncio.Task) -> None:
        """Log unhandled failures from event-triggered refreshes."""
        self._pending.discard(task)
        if task.cancelled():
            return
        if exc := task.exception():
            logger.opt(exception=exc).error("event-triggered panel refresh failed")
            if isinstance(exc, AssertionError) and self.on_crash is not None:
                self.on_crash(exc)

    def start(self) -> None:
        """Start the periodic loop. No-op if already running."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="control-sync-loop")
        self._task.add_done_callback(self._on_loop_done)
        logger.debug(f"panel sync loop started ({self.interval}s interval)")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            await self.refresh_all()
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("panel sync loop cancelled")
            return
        if exc := task.exception():
            logger.opt(exception=exc).critical("panel sync loop crashed")
            if self.on_crash is not None:
                self.on_crash(exc)

    async def stop(self) -> None:
        """Stop scheduling ticks. In-flight refreshes are allowed to finish."""
        self._stopping.set()

        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

        logger.debug("panel sync loop stopped")
