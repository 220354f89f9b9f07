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

from conftest import make_player, make_track
from core.snapshot import (
    STREAM_LENGTH_MS,
    PlayerSnapshot,
    PlayerState,
    TrackInfo,
    player_state,
)


def test_track_info_from_track():
    info = TrackInfo.from_track(make_track(length_ms=215_000))

    assert info.title == "Song"
    assert info.author == "Artist"
    assert info.duration_seconds == 215
    assert not info.is_stream


def test_stream_track():
    assert TrackInfo.from_track(make_track(stream=True)).is_stream

    info = TrackInfo.from_track(make_track(length_ms=STREAM_LENGTH_MS))
    assert info.is_stream
    assert info.duration_seconds == 0


def test_absent_player(reader):
    assert reader.get_snapshot(1) == PlayerSnapshot.absent()


def test_snapshot_of_playing_guild(reader, players, sessions):
    players[1] = make_player(make_track(), position_ms=12_500)
    session = sessions.get_or_create(1)
    session.enqueue_many(["a", "b"])
    session.looping = True

    snapshot = reader.get_snapshot(1)

    assert snapshot.exists
    assert snapshot.current_track.title == "Song"
    assert snapshot.position_seconds == 12.5
    assert snapshot.volume == 0.5
    assert snapshot.state is PlayerState.PLAYING
    assert snapshot.looping
    assert snapshot.queue_length == 2


def test_idle_player_reports_no_position(reader, players):
    players[1] = make_player(None, position_ms=5_000)

    snapshot = reader.get_snapshot(1)

    assert snapshot.current_track is None
    assert snapshot.position_seconds == 0
    assert snapshot.state is PlayerState.NOT_PLAYING


def test_player_state_mapping(sessions):
    session = sessions.get_or_create(1)
    track = make_track()

    assert player_state(make_player(track), session) is PlayerState.PLAYING
    assert player_state(make_player(track, paused=True), session) is PlayerState.PAUSED
    assert player_state(make_player(None), session) is PlayerState.NOT_PLAYING
    assert player_state(make_player(track, connected=False), session) is PlayerState.NOT_CONNECTED

    sessions.destroy(1)
    assert player_state(make_player(track), session) is PlayerState.DESTROYED
