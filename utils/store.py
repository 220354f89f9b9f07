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

"""Persistent bot data: per-guild settings and user playlists."""

import asyncio
import json
import os
import tempfile
import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from core.snapshot import TrackInfo

DEFAULT_LOCALE = "en"


@dataclass
class GuildConfig:
    locale: str = DEFAULT_LOCALE


@dataclass
class StoredTrack:
    """A playlist entry. Resolved back into a playable track by uri."""
    title: str
    author: str
    uri: str
    duration_seconds: float = 0.0
    artwork_url: str | None = None

    @classmethod
    def from_track(cls, track: Any) -> "StoredTrack":
        info = TrackInfo.from_track(track)
        return cls(
            title=info.title,
            author=info.author,
            uri=info.uri or "",
            duration_seconds=info.duration_seconds,
            artwork_url=getattr(track, "artwork_url", None),
        )


@dataclass
class PlaylistInfo:
    id: str
    name: str
    owner: int
    contributors: list[int] = field(default_factory=list)
    tracks: list[StoredTrack] = field(default_factory=list)

    def is_owner(self, user_id: int) -> bool:
        return self.owner == user_id

    def can_edit(self, user_id: int) -> bool:
        """Owner or contributor: may add tracks."""
        return self.owner == user_id or user_id in self.contributors

    @classmethod
    def from_dict(cls, data: dict) -> "PlaylistInfo":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            owner=int(data["owner"]),
            contributors=[int(c) for c in data.get("contributors", [])],
            tracks=[StoredTrack(**t) for t in data.get("tracks", [])],
        )


class BotData:
    """Guild configs and playlists, persisted to botdata.json.

    Mutations happen in memory; call save() to persist. Saves use the
    temp-file-then-rename pattern under a lock, so a crash mid-write never
    leaves a truncated file behind.

    Attributes:
        data_path: Directory containing botdata.json
        data_file: Full path to botdata.json
        guilds: guild id -> GuildConfig
        playlists: All playlists, in creation order
    """

    def __init__(self, data_path: Path) -> None:
        self.data_path = data_path
        self.data_file = data_path / "botdata.json"
        self.guilds: dict[int, GuildConfig] = {}
        self.playlists: list[PlaylistInfo] = []
        self._save_lock = asyncio.Lock()

    async def load(self) -> None:
        """Load botdata.json. A corrupt file is backed up to .bak and defaults are used."""
        if not self.data_file.exists():
            logger.info("bot data not found, starting fresh")
            return

        try:
            content = await asyncio.to_thread(self.data_file.read_text, encoding='utf-8')
            loaded = json.loads(content)
            self.guilds = {
                int(guild_id): GuildConfig(**config)
                for guild_id, config in loaded.get("guilds", {}).items()
            }
            self.playlists = [PlaylistInfo.from_dict(p) for p in loaded.get("playlists", [])]
            logger.info(f"restored {len(self.playlists)} playlists, {len(self.guilds)} guild configs")
        except (json.JSONDecodeError, IOError, KeyError, TypeError, ValueError, AttributeError):
            backup = self.data_file.with_suffix('.json.bak')
            try:
                self.data_file.rename(backup)
                logger.warning(f"bot data corrupt, backed up to {backup.name}")
            except OSError:
                logger.warning("bot data corrupt, using defaults")
            self.guilds = {}
            self.playlists = []

    def to_dict(self) -> dict:
        return {
            "guilds": {str(guild_id): asdict(config) for guild_id, config in self.guilds.items()},
            "playlists": [asdict(p) for p in self.playlists],
        }

    async def save(self) -> None:
        """Persist to botdata.json. Failures are logged, not raised."""
        async with self._save_lock:
            temp_path = None
            try:
                self.data_path.mkdir(parents=True, exist_ok=True)
                temp_fd, temp_path = tempfile.mkstemp(dir=self.data_path, suffix='.tmp')
                await asyncio.to_thread(self._write_atomic, temp_fd, temp_path, self.to_dict())
                logger.debug("bot data saved")
            except Exception:
                if temp_path:
                    Path(temp_path).unlink(missing_ok=True)
                logger.opt(exception=True).warning("failed to save botdata.json")

    def _write_atomic(self, temp_fd: int, temp_path: str, data: dict) -> None:
        """Synchronous helper for atomic JSON write."""
        try:
            f = os.fdopen(temp_fd, 'w', encoding='utf-8')
        except Exception:
            os.close(temp_fd)
            raise
        with f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        Path(temp_path).replace(self.data_file)

    # --- Guilds ---

    def guild_locale(self, guild_id: int | None) -> str:
        """Locale for a guild without creating a config entry."""
        if guild_id is None:
            return DEFAULT_LOCALE
        config = self.guilds.get(guild_id)
        return config.locale if config else DEFAULT_LOCALE

    async def get_or_new_guild(self, guild_id: int) -> GuildConfig:
        """Get the guild's config, creating and saving a default one if missing."""
        if guild_id not in self.guilds:
            self.guilds[guild_id] = GuildConfig()
            await self.save()
        return self.guilds[guild_id]

    # --- Playlists ---

    def new_playlist_id(self) -> str:
        while True:
            candidate = str(uuid.uuid4())
            if self.get_playlist(candidate) is None:
                return candidate

    def get_playlist(self, playlist_id: str) -> PlaylistInfo | None:
        return next((p for p in self.playlists if p.id == playlist_id), None)

    def playlists_of(self, owner: int) -> list[PlaylistInfo]:
        return [p for p in self.playlists if p.owner == owner]

    def has_playlist_named(self, owner: int, name: str) -> bool:
        return any(p.owner == owner and p.name == name for p in self.playlists)

    async def create_playlist(self, name: str, owner: int) -> PlaylistInfo:
        playlist = PlaylistInfo(id=self.new_playlist_id(), name=name, owner=owner)
        self.playlists.append(playlist)
        await self.save()
        logger.info(f"playlist '{name}' created ({playlist.id})")
        return playlist

    async def delete_playlist(self, playlist: PlaylistInfo) -> None:
        if playlist in self.playlists:
            self.playlists.remove(playlist)
            await self.save()
            logger.info(f"playlist '{playlist.name}' deleted ({playlist.id})")
