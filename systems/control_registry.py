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

"""Guild -> control panel message mapping.

One registry instance is built by the bot at startup and shared by the sync
loop (reads on every tick) and the command layer (open/close). It only holds
the mapping: deleting the remote message is always the caller's job.

Entry lifecycle:
    put() on panel open -> Active
    Active --edit ok--> Active
    Active --edit not found--> removed by the sync loop
    Active --close button--> removed by the command layer
A removed entry is never revived; reopening creates a new one.
"""

import threading
from dataclasses import dataclass
from typing import Any


@dataclass
class ControlEntry:
    """A live control panel.

    Attributes:
        guild_id: Guild the panel belongs to
        message: Remote message handle (discord.Message in production)
        last_rendered: RenderedPanel last written to the message (body and
            link field), used to skip edits when nothing changed
    """
    guild_id: int
    message: Any
    last_rendered: Any = None


class ControlRegistry:
    """Thread-safe single-entry-per-guild registry.

    Every operation holds an internal lock for its duration, so callers never
    lock and never observe a half-written entry.
    """

    def __init__(self) -> None:
        self._entries: dict[int, ControlEntry] = {}
        self._lock = threading.Lock()

    def put(self, guild_id: int, message: Any, last_rendered: Any = None) -> ControlEntry:
        """Register `message` as the guild's panel, overwriting any previous entry."""
        entry = ControlEntry(guild_id, message, last_rendered)
        with self._lock:
            self._entries[guild_id] = entry
        return entry

    def get(self, guild_id: int) -> ControlEntry | None:
        with self._lock:
            return self._entries.get(guild_id)

    def remove(self, guild_id: int, entry: ControlEntry | None = None) -> ControlEntry | None:
        """Remove the guild's entry. Idempotent.

        When `entry` is given, only that exact entry is removed: a refresh that
        lost its message must not evict a panel opened after it started.
        """
        with self._lock:
            current = self._entries.get(guild_id)
            if current is None:
                return None
            if entry is not None and current is not entry:
                return None
            return self._entries.pop(guild_id)

    def entries(self) -> list[ControlEntry]:
        """Point-in-time copy of all entries, safe to iterate while others mutate."""
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, guild_id: object) -> bool:
        with self._lock:
            return guild_id in self._entries
