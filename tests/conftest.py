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

"""Shared fakes for the control panel tests.

Discord messages and Lavalink players are replaced by small stand-ins that
record what was done to them.
"""

import itertools
from types import SimpleNamespace

import pytest

from core.queue import SessionStore
from core.snapshot import PlayerSnapshotReader
from systems.control_registry import ControlRegistry
from systems.messenger import EditResult
from ui.render import PanelLabels, render

TEST_WIDTH = 10

_message_ids = itertools.count(1)


class FakeMessage:
    def __init__(self) -> None:
        self.id = next(_message_ids)


class FakeMessenger:
    """Records sends/edits/deletes; edit results can be scripted per message id."""

    def __init__(self) -> None:
        self.results: dict[int, EditResult] = {}
        self.errors: dict[int, Exception] = {}
        self.edits: list[tuple[FakeMessage, str]] = []
        self.sent: list[tuple[object, FakeMessage, str]] = []
        self.deleted: list[FakeMessage] = []
        self.send_error: Exception | None = None

    async def edit(self, message, embed) -> EditResult:
        if message.id in self.errors:
            raise self.errors[message.id]
        self.edits.append((message, embed))
        return self.results.get(message.id, EditResult.OK)

    async def delete(self, message) -> None:
        self.deleted.append(message)

    async def send(self, channel, embed, view=None):
        if self.send_error is not None:
            raise self.send_error
        message = FakeMessage()
        self.sent.append((channel, message, embed))
        return message


class FakePresenter:
    """Uses the real renderer; the "embed" is the rendered body itself."""

    labels = PanelLabels(no_player="Nothing is playing", link="Link")

    def __init__(self) -> None:
        self.broken: set[int] = set()

    def render(self, guild_id, snapshot):
        if guild_id in self.broken:
            raise AssertionError(f"broken render for {guild_id}")
        return render(snapshot, self.labels, TEST_WIDTH)

    def build_embed(self, rendered):
        return rendered.body


def make_track(title="Song", author="Artist", length_ms=100_000, uri="https://example.com/song", stream=False):
    return SimpleNamespace(title=title, author=author, length=length_ms, uri=uri, stream=stream)


def make_player(track=None, position_ms=0, paused=False, connected=True):
    return SimpleNamespace(current=track, position=position_ms, paused=paused, connected=connected)


@pytest.fixture
def players() -> dict:
    return {}


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore(default_volume=0.5)


@pytest.fixture
def reader(players, sessions) -> PlayerSnapshotReader:
    return PlayerSnapshotReader(players.get, sessions)


@pytest.fixture
def registry() -> ControlRegistry:
    return ControlRegistry()


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def presenter() -> FakePresenter:
    return FakePresenter()
