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

import pytest

from core.errors import EmptyQueueError
from core.queue import MAX_VOLUME, GuildSession, SessionStore, clamp_volume


def test_next_track_pops_in_order():
    session = GuildSession()
    session.enqueue_many(["a", "b"])

    assert session.next_track() == "a"
    assert session.next_track() == "b"
    assert session.next_track() is None
    assert session.current is None


def test_looping_repeats_current():
    session = GuildSession()
    session.enqueue_many(["a", "b"])
    session.next_track()
    session.looping = True

    assert session.next_track() == "a"
    assert len(session) == 1


def test_skip_ignores_loop():
    session = GuildSession(looping=True)
    session.enqueue_many(["a", "b"])
    session.next_track()

    assert session.skip() == "b"


def test_skip_empty_raises():
    with pytest.raises(EmptyQueueError):
        GuildSession().skip()


def test_shuffle_keeps_tracks():
    session = GuildSession()
    session.enqueue_many(range(20))
    session.shuffle()

    assert sorted(session.pending) == list(range(20))


def test_shuffle_empty_raises():
    with pytest.raises(EmptyQueueError):
        GuildSession().shuffle()


def test_upcoming_limit():
    session = GuildSession()
    session.enqueue_many("abcde")
    assert session.upcoming(3) == ["a", "b", "c"]


def test_step_volume_clamps():
    session = GuildSession(volume=1.45)
    assert session.step_volume(2) == MAX_VOLUME
    session.set_volume(0.05)
    assert session.step_volume(-3) == 0.0
    assert session.step_volume(1) == 0.05


def test_clamp_volume():
    assert clamp_volume(-1) == 0.0
    assert clamp_volume(3) == MAX_VOLUME


class TestSessionStore:
    def test_new_session_uses_default_volume(self):
        store = SessionStore(default_volume=0.3)
        assert store.get_or_create(1).volume == 0.3

    def test_get_or_create_reuses_live_session(self):
        store = SessionStore()
        assert store.get_or_create(1) is store.get_or_create(1)

    def test_destroy_then_recreate(self):
        store = SessionStore()
        session = store.get_or_create(1)
        session.enqueue("a")

        store.destroy(1)
        assert session.destroyed
        assert len(session) == 0
        assert store.get(1) is session

        fresh = store.get_or_create(1)
        assert fresh is not session
        assert not fresh.destroyed

    def test_discard(self):
        store = SessionStore()
        store.get_or_create(1)
        store.discard(1)
        assert store.get(1) is None
