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

"""Point-in-time views of remote player state.

A PlayerSnapshot is built fresh for every panel refresh and thrown away after
rendering. Nothing here is cached: two reads of the same guild may differ.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from core.queue import GuildSession, SessionStore

# Lavalink reports this length for live streams
STREAM_LENGTH_MS = 2**63 - 1


class PlayerState(Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    NOT_PLAYING = "not_playing"
    DESTROYED = "destroyed"
    NOT_CONNECTED = "not_connected"


@dataclass(frozen=True)
class TrackInfo:
    title: str
    author: str
    duration_seconds: float
    uri: str | None = None
    is_stream: bool = False

    @classmethod
    def from_track(cls, track: Any) -> "TrackInfo":
        """Build from a mafic.Track (or anything shaped like one)."""
        length_ms = getattr(track, "length", 0) or 0
        is_stream = bool(getattr(track, "stream", False)) or length_ms >= STREAM_LENGTH_MS
        return cls(
            title=track.title or "",
            author=track.author or "",
            duration_seconds=0.0 if is_stream else length_ms / 1000,
            uri=getattr(track, "uri", None),
            is_stream=is_stream,
        )


@dataclass(frozen=True)
class PlayerSnapshot:
    """Read-only view of a guild's player.

    position_seconds may exceed the track duration transiently; consumers
    clamp rather than trust it.
    """
    exists: bool
    current_track: TrackInfo | None = None
    position_seconds: float = 0.0
    volume: float = 0.0
    state: PlayerState = PlayerState.NOT_PLAYING
    looping: bool = False
    queue_length: int = 0

    @classmethod
    def absent(cls) -> "PlayerSnapshot":
        return cls(exists=False)


def player_state(player: Any, session: GuildSession | None) -> PlayerState:
    """Map a mafic player plus session flags onto PlayerState."""
    if session is not None and session.destroyed:
        return PlayerState.DESTROYED
    if not player.connected:
        return PlayerState.NOT_CONNECTED
    if player.current is None:
        return PlayerState.NOT_PLAYING
    if player.paused:
        return PlayerState.PAUSED
    return PlayerState.PLAYING


def snapshot_from_player(player: Any, session: GuildSession | None) -> PlayerSnapshot:
    """Build a snapshot from a live player. Pure: no awaits, no side effects."""
    track = TrackInfo.from_track(player.current) if player.current is not None else None
    position_ms = player.position or 0

    return PlayerSnapshot(
        exists=True,
        current_track=track,
        position_seconds=position_ms / 1000 if track else 0.0,
        volume=session.volume if session else 0.0,
        state=player_state(player, session),
        looping=session.looping if session else False,
        queue_length=len(session) if session else 0,
    )


class PlayerSnapshotReader:
    """Reads the current player state for a guild.

    Args:
        lookup_player: guild id -> mafic.Player or None
        sessions: SessionStore holding the bot-side queue per guild
    """

    def __init__(self, lookup_player: Callable[[int], Any], sessions: SessionStore) -> None:
        self._lookup_player = lookup_player
        self._sessions = sessions

    def get_snapshot(self, guild_id: int) -> PlayerSnapshot:
        """Never raises for a missing player; returns PlayerSnapshot.absent()."""
        player = self._lookup_player(guild_id)
        if player is None:
            return PlayerSnapshot.absent()
        return snapshot_from_player(player, self._sessions.get(guild_id))
