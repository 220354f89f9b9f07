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

import json

import pytest

from conftest import make_track
from utils.store import BotData, PlaylistInfo, StoredTrack


@pytest.fixture
def store(tmp_path):
    return BotData(tmp_path)


async def test_missing_file_starts_empty(store):
    await store.load()
    assert store.playlists == []
    assert store.guilds == {}


async def test_round_trip(store, tmp_path):
    playlist = await store.create_playlist("Road trip", owner=10)
    playlist.contributors.append(20)
    playlist.tracks.append(StoredTrack.from_track(make_track()))
    config = await store.get_or_new_guild(5)
    config.locale = "ru"
    await store.save()

    restored = BotData(tmp_path)
    await restored.load()

    assert restored.guild_locale(5) == "ru"
    loaded = restored.get_playlist(playlist.id)
    assert loaded.name == "Road trip"
    assert loaded.contributors == [20]
    assert loaded.tracks[0].uri == "https://example.com/song"
    assert loaded.tracks[0].duration_seconds == 100


async def test_corrupt_file_is_backed_up(store, tmp_path):
    (tmp_path / "botdata.json").write_text("{not json", encoding="utf-8")

    await store.load()

    assert store.playlists == []
    assert (tmp_path / "botdata.json.bak").exists()


async def test_save_writes_json(store, tmp_path):
    await store.create_playlist("Mix", owner=1)

    data = json.loads((tmp_path / "botdata.json").read_text(encoding="utf-8"))
    assert data["playlists"][0]["name"] == "Mix"


async def test_delete_playlist(store):
    playlist = await store.create_playlist("Mix", owner=1)
    await store.delete_playlist(playlist)
    assert store.get_playlist(playlist.id) is None


async def test_playlist_lookups(store):
    mine = await store.create_playlist("Mix", owner=1)
    await store.create_playlist("Other", owner=2)

    assert store.playlists_of(1) == [mine]
    assert store.has_playlist_named(1, "Mix")
    assert not store.has_playlist_named(2, "Mix")


def test_guild_locale_defaults_to_english(store):
    assert store.guild_locale(None) == "en"
    assert store.guild_locale(123) == "en"
    assert 123 not in store.guilds


def test_permissions():
    playlist = PlaylistInfo(id="x", name="Mix", owner=1, contributors=[2])

    assert playlist.is_owner(1)
    assert not playlist.is_owner(2)
    assert playlist.can_edit(2)
    assert not playlist.can_edit(3)
