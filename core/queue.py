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

"""Per-guild playback session state.

Lavalink players (mafic) only know about the track that is currently
playing. The queue of upcoming tracks, the loop flag and the volume the panel
displays live here, one session per guild.
"""

import random
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

import mafic
from loguru import logger

from core.errors import EmptyQueueError

# Volume is stored as a fraction: 1.0 == 100%
MIN_VOLUME = 0.0
MAX_VOLUME = 1.5
VOLUME_STEP = 0.05


def clamp_volume(volume: float) -> float:
    """Clamp a volume fraction to 0.0-1.5 (0-150%)."""
    return max(MIN_VOLUME, min(MAX_VOLUME, volume))


@dataclass
class GuildSession:
    """Queue and playback modes for one guild.

    Lifecycle:
    - Created when the bot joins voice for the guild
    - Marked destroyed when the player is torn down (leave / disconnect)
    - Replaced by a fresh session on the next join
    """
    pending: deque[mafic.Track] = field(default_factory=deque)
    current: mafic.Track | None = None
    looping: bool = False
    volume: float = 0.2
    destroyed: bool = False

    def __len__(self) -> int:
        return len(self.pending)

    def enqueue(self, track: mafic.Track) -> None:
        self.pending.append(track)

    def enqueue_many(self, tracks: Iterable[mafic.Track]) -> int:
        """Append tracks in order. Returns how many were added."""
        before = len(self.pending)
        self.pending.extend(tracks)
        return len(self.pending) - before

    def next_track(self) -> mafic.Track | None:
        """Pop the track that should play after the current one.

        When looping, the current track is repeated and the queue is untouched.
        """
        if self.looping and self.current is not None:
            return self.current

        if not self.pending:
            self.current = None
            return None

        self.current = self.pending.popleft()
        return self.current

    def skip(self) -> mafic.Track:
        """Move to the next queued track, ignoring the loop flag."""
        if not self.pending:
            raise EmptyQueueError()

        self.current = self.pending.popleft()
        return self.current

    def shuffle(self) -> None:
        """Shuffle upcoming tracks in place."""
        if not self.pending:
            raise EmptyQueueError()

        items = list(self.pending)
        random.shuffle(items)
        self.pending = deque(items)
        logger.debug(f"shuffled {len(items)} queued tracks")

    def clear(self) -> None:
        self.pending.clear()
        self.current = None

    def upcoming(self, limit: int) -> list[mafic.Track]:
        """First `limit` queued tracks, in play order."""
        return list(self.pending)[:limit]

    def set_volume(self, volume: float) -> float:
        self.volume = clamp_volume(volume)
        return self.volume

    def step_volume(self, steps: int) -> float:
        """Move volume by `steps` increments of 5%. Returns the new value."""
        return self.set_volume(round(self.volume + steps * VOLUME_STEP, 2))


class SessionStore:
    """Guild id -> GuildSession mapping."""

    def __init__(self, default_volume: float = 0.2) -> None:
        self.default_volume = clamp_volume(default_volume)
        self._sessions: dict[int, GuildSession] = {}

    def get(self, guild_id: int) -> GuildSession | None:
        return self._sessions.get(guild_id)

    def get_or_create(self, guild_id: int) -> GuildSession:
        session = self._sessions.get(guild_id)
        if session is None or session.destroyed:
            session = GuildSession(volume=self.default_volume)
            self._sessions[guild_id] = session
        return session

    def destroy(self, guild_id: int) -> None:
        """Mark the guild's session destroyed and drop its queue."""
        session = self._sessions.get(guild_id)
        if session is not None:
            session.clear()
            session.destroyed = True

    def discard(self, guild_id: int) -> None:
        self._sessions.pop(guild_id, None)
