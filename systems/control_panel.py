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

"""
Control Panel Manager

Opens and closes the per-guild control panel message:
- Opening replaces: the old panel is deleted and evicted before the new one
  is sent, so a guild never has two live panels
- Closing removes the registry entry and deletes the message
- Opens for one guild are serialized; different guilds don't block each other

Keeping panels up to date is the sync loop's job, not this manager's.
"""

import asyncio
from typing import Any, Callable

import discord
from loguru import logger

from core.snapshot import PlayerSnapshotReader
from systems.control_registry import ControlEntry, ControlRegistry
from systems.messenger import PanelMessenger
from systems.sync_loop import PanelPresenter


class ControlPanelManager:
    """Per-guild panel lifecycle.

    Args:
        registry: Shared guild -> panel registry
        messenger: Sends and deletes panel messages
        reader: Snapshot source for the initial render
        presenter: Renders snapshots and builds the panel embed
        view_factory: Builds the button view attached to a new panel
    """

    def __init__(
        self,
        registry: ControlRegistry,
        messenger: PanelMessenger,
        reader: PlayerSnapshotReader,
        presenter: PanelPresenter,
        view_factory: Callable[[int], discord.ui.View | None],
    ) -> None:
        self.registry = registry
        self.messenger = messenger
        self.reader = reader
        self.presenter = presenter
        self.view_factory = view_factory
        self._open_locks: dict[int, asyncio.Lock] = {}

    def _get_open_lock(self, guild_id: int) -> asyncio.Lock:
        if guild_id not in self._open_locks:
            self._open_locks[guild_id] = asyncio.Lock()
        return self._open_locks[guild_id]

    def _drop_open_lock(self, guild_id: int) -> None:
        """Forget an idle guild's lock once its panel is closed. A held lock stays."""
        lock = self._open_locks.get(guild_id)
        if lock is not None and not lock.locked():
            del self._open_locks[guild_id]

    async def open_panel(self, guild_id: int, channel: Any) -> ControlEntry:
        """Post a fresh panel in `channel`, replacing any existing one.

        Send failures propagate to the caller; the old panel is already gone
        by then and no entry is left behind.
        """
        async with self._get_open_lock(guild_id):
            old = self.registry.remove(guild_id)
            if old is not None:
                await self.messenger.delete(old.message)
                logger.debug(f"replaced panel in guild {guild_id}")

            rendered = self.presenter.render(guild_id, self.reader.get_snapshot(guild_id))
            message = await self.messenger.send(
                channel,
                self.presenter.build_embed(rendered),
                view=self.view_factory(guild_id),
            )
            entry = self.registry.put(guild_id, message, rendered)

        logger.info(f"opened panel in guild {guild_id}")
        return entry

    async def close_panel(self, guild_id: int) -> bool:
        """Remove and delete the guild's panel. False if it had none."""
        entry = self.registry.remove(guild_id)
        if entry is None:
            return False

        await self.messenger.delete(entry.message)
        self._drop_open_lock(guild_id)
        logger.info(f"closed panel in guild {guild_id}")
        return True

    async def close_message(self, guild_id: int, message: Any) -> None:
        """Close from a panel's own close button.

        A stale panel (not the registered one) is only deleted; the guild's
        live panel stays registered.
        """
        entry = self.registry.get(guild_id)
        if entry is not None and getattr(entry.message, "id", None) == getattr(message, "id", None):
            if self.registry.remove(guild_id, entry) is not None:
                await self.messenger.delete(entry.message)
                self._drop_open_lock(guild_id)
                logger.info(f"closed panel in guild {guild_id}")
            return

        await self.messenger.delete(message)
