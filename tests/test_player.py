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

"""Player cog behaviour against fake players, guilds and interactions."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import mafic
import pytest
from loguru import logger

from cogs.player import Player, active_listeners
from conftest import make_track
from core.queue import SessionStore
from utils.locale import LocaleManager

GUILD_ID = 1
BOT_USER_ID = 999


class FakeChannel:
    def __init__(self, name="music", members=None) -> None:
        self.name = name
        self.members = members if members is not None else []


class FakePlayer:
    """Stands in for a connected mafic.Player; play() sets the current track."""

    def __init__(self, guild, channel) -> None:
        self.guild = guild
        self.channel = channel
        self.connected = True
        self.current = None
        self.played: list = []
        self.disconnect = AsyncMock()
        self.stop = AsyncMock()
        self.set_volume = AsyncMock()

    async def play(self, track, replace=False):
        self.played.append(track)
        self.current = track


class FakeConfig:
    def __init__(self, **settings) -> None:
        self.settings = {"inactivity_timeout": 0, "panel": {}, "ui": {}, **settings}

    def get(self, key, default=None):
        return self.settings.get(key, default)

    def section(self, name):
        return self.settings.get(name, {})


def make_member(bot=False, self_deaf=False, deaf=False, member_id=5):
    return SimpleNamespace(
        id=member_id,
        bot=bot,
        guild=SimpleNamespace(id=GUILD_ID),
        voice=SimpleNamespace(self_deaf=self_deaf, deaf=deaf),
    )


def make_interaction(guild, channel=None):
    return SimpleNamespace(
        guild=guild,
        guild_id=guild.id,
        user=SimpleNamespace(voice=SimpleNamespace(channel=channel) if channel else None),
        response=SimpleNamespace(
            is_done=lambda: False,
            send_message=AsyncMock(),
            defer=AsyncMock(),
        ),
        followup=SimpleNamespace(send=AsyncMock()),
    )


def track_end(player, reason):
    return SimpleNamespace(player=player, reason=reason)


@pytest.fixture(autouse=True)
def voice_client_players(monkeypatch):
    def get_player(guild):
        return guild.voice_client if guild else None

    monkeypatch.setattr("cogs.player.get_player", get_player)
    monkeypatch.setattr("utils.response.get_player", get_player)


@pytest.fixture
def channel():
    return FakeChannel(members=[make_member()])


@pytest.fixture
def guild():
    return SimpleNamespace(id=GUILD_ID, voice_client=None)


@pytest.fixture
def player(guild, channel):
    player = FakePlayer(guild, channel)
    guild.voice_client = player
    return player


@pytest.fixture
def bot(guild):
    return SimpleNamespace(
        user=SimpleNamespace(id=BOT_USER_ID),
        sessions=SessionStore(default_volume=0.5),
        sync_loop=SimpleNamespace(notify_track_ended=Mock()),
        locale=LocaleManager(),
        config_manager=FakeConfig(),
        get_guild=lambda guild_id: guild if guild_id == guild.id else None,
    )


@pytest.fixture
async def cog(bot):
    cog = Player(bot)
    yield cog
    tasks = list(cog._inactivity_tasks.values())
    await cog.cog_unload()
    await asyncio.gather(*tasks, return_exceptions=True)


@pytest.fixture
def session(bot):
    return bot.sessions.get_or_create(GUILD_ID)


@pytest.fixture
def error_logs():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="ERROR")
    yield records
    logger.remove(handler_id)


# Track end


@pytest.mark.parametrize("reason", [mafic.EndReason.FINISHED, mafic.EndReason.LOAD_FAILED])
async def test_track_end_advances_queue(cog, player, session, reason):
    second = make_track(title="Second")
    session.enqueue(second)

    await cog.on_track_end(track_end(player, reason))

    assert player.played == [second]
    assert session.current is second
    assert len(session) == 0


@pytest.mark.parametrize("reason", [mafic.EndReason.REPLACED, mafic.EndReason.STOPPED])
async def test_track_end_without_advance(cog, player, session, reason):
    session.enqueue(make_track(title="Second"))

    await cog.on_track_end(track_end(player, reason))

    assert player.played == []
    assert len(session) == 1


async def test_looping_repeats_current_track(cog, player, session):
    first, second = make_track(title="First"), make_track(title="Second")
    session.current = first
    session.looping = True
    session.enqueue(second)

    await cog.on_track_end(track_end(player, mafic.EndReason.FINISHED))

    assert player.played == [first]
    assert list(session.pending) == [second]
    assert session.looping


async def test_load_failure_turns_looping_off(cog, player, session):
    first, second = make_track(title="First"), make_track(title="Second")
    session.current = first
    session.looping = True
    session.enqueue(second)

    await cog.on_track_end(track_end(player, mafic.EndReason.LOAD_FAILED))

    assert not session.looping
    assert player.played == [second]


async def test_empty_queue_stops_quietly(cog, player, session):
    session.current = make_track()

    await cog.on_track_end(track_end(player, mafic.EndReason.FINISHED))

    assert player.played == []
    assert session.current is None


async def test_disconnected_player_does_not_advance(cog, player, session):
    player.connected = False
    session.enqueue(make_track())

    await cog.on_track_end(track_end(player, mafic.EndReason.FINISHED))

    assert player.played == []


async def test_destroyed_session_does_not_advance(cog, bot, player, session):
    session.enqueue(make_track())
    bot.sessions.destroy(GUILD_ID)

    await cog.on_track_end(track_end(player, mafic.EndReason.FINISHED))

    assert player.played == []


@pytest.mark.parametrize("reason", list(mafic.EndReason))
async def test_track_end_notifies_panel_once(cog, bot, player, session, reason):
    session.enqueue(make_track())

    await cog.on_track_end(track_end(player, reason))

    bot.sync_loop.notify_track_ended.assert_called_once_with(GUILD_ID)


# Controls


async def test_control_without_player_answers_noplayer(cog, guild, error_logs):
    interaction = make_interaction(guild)

    await cog.run_control(interaction, cog.skip_track)

    interaction.response.send_message.assert_awaited_once_with(
        "Nothing is playing. Use /player play to start", ephemeral=True
    )
    assert error_logs == []


async def test_control_from_other_channel_is_refused(cog, guild, player):
    interaction = make_interaction(guild, channel=FakeChannel(name="elsewhere"))
    action = AsyncMock(return_value="resp.player.controls.skipped")

    await cog.run_control(interaction, action)

    action.assert_not_awaited()
    interaction.response.send_message.assert_awaited_once_with(
        "You need to be in the same voice channel as the bot", ephemeral=True
    )


async def test_control_from_bot_channel_runs(cog, guild, player, channel):
    interaction = make_interaction(guild, channel=channel)
    action = AsyncMock(return_value=None)

    await cog.run_control(interaction, action)

    action.assert_awaited_once_with(guild)
    interaction.response.defer.assert_awaited_once()


async def test_leave_destroys_session_and_disconnects(cog, bot, guild, player, session):
    session.enqueue(make_track())

    key = await cog.leave_channel(guild)

    assert key == "resp.player.controls.leave"
    assert session.destroyed
    player.disconnect.assert_awaited_once()


# Inactivity


def test_deafened_members_and_bots_are_not_listeners():
    listener = make_member()
    channel = FakeChannel(members=[
        listener,
        make_member(bot=True),
        make_member(self_deaf=True),
        make_member(deaf=True),
    ])

    assert active_listeners(channel) == [listener]
    assert active_listeners(None) == []


async def test_idle_player_leaves_after_timeout(cog, bot, player, session):
    bot.config_manager.settings["inactivity_timeout"] = 0.01

    cog.update_inactivity(GUILD_ID, player)
    await cog._inactivity_tasks[GUILD_ID]

    player.disconnect.assert_awaited_once()
    assert session.destroyed
    assert GUILD_ID not in cog._inactivity_tasks


async def test_alone_in_channel_leaves_after_timeout(cog, bot, player, channel, session):
    bot.config_manager.settings["inactivity_timeout"] = 0.01
    player.current = make_track()
    channel.members.clear()

    cog.update_inactivity(GUILD_ID, player)
    await cog._inactivity_tasks[GUILD_ID]

    player.disconnect.assert_awaited_once()


async def test_queue_finishing_starts_countdown(cog, bot, player, session):
    bot.config_manager.settings["inactivity_timeout"] = 60

    await cog.on_track_end(track_end(player, mafic.EndReason.FINISHED))

    assert not cog._inactivity_tasks[GUILD_ID].done()


async def test_starting_a_track_cancels_countdown(cog, bot, player):
    bot.config_manager.settings["inactivity_timeout"] = 60
    cog.update_inactivity(GUILD_ID, player)
    task = cog._inactivity_tasks[GUILD_ID]

    await cog.enqueue(player, GUILD_ID, [make_track()])
    await asyncio.gather(task, return_exceptions=True)

    assert GUILD_ID not in cog._inactivity_tasks
    player.disconnect.assert_not_awaited()


async def test_listener_joining_cancels_countdown(cog, bot, player, channel):
    bot.config_manager.settings["inactivity_timeout"] = 60
    player.current = make_track()
    channel.members.clear()
    cog.update_inactivity(GUILD_ID, player)
    assert GUILD_ID in cog._inactivity_tasks

    member = make_member()
    channel.members.append(member)
    await cog.on_voice_state_update(
        member, SimpleNamespace(channel=None), SimpleNamespace(channel=channel)
    )

    assert GUILD_ID not in cog._inactivity_tasks


async def test_last_listener_leaving_starts_countdown(cog, bot, player, channel):
    bot.config_manager.settings["inactivity_timeout"] = 60
    player.current = make_track()
    member = channel.members.pop()

    await cog.on_voice_state_update(
        member, SimpleNamespace(channel=channel), SimpleNamespace(channel=None)
    )

    assert not cog._inactivity_tasks[GUILD_ID].done()


async def test_repeated_events_keep_running_countdown(cog, bot, player):
    bot.config_manager.settings["inactivity_timeout"] = 60
    cog.update_inactivity(GUILD_ID, player)
    task = cog._inactivity_tasks[GUILD_ID]

    cog.update_inactivity(GUILD_ID, player)

    assert cog._inactivity_tasks[GUILD_ID] is task


async def test_zero_timeout_never_leaves(cog, player):
    cog.update_inactivity(GUILD_ID, player)

    assert GUILD_ID not in cog._inactivity_tasks


async def test_countdown_rechecks_before_leaving(cog, bot, player):
    bot.config_manager.settings["inactivity_timeout"] = 0.01
    cog.update_inactivity(GUILD_ID, player)
    task = cog._inactivity_tasks[GUILD_ID]
    # A track started without going through the cog
    player.current = make_track()

    await task

    player.disconnect.assert_not_awaited()


async def test_bot_disconnect_cancels_countdown(cog, bot, player, channel, session):
    bot.config_manager.settings["inactivity_timeout"] = 60
    cog.update_inactivity(GUILD_ID, player)

    me = make_member(member_id=BOT_USER_ID)
    await cog.on_voice_state_update(
        me, SimpleNamespace(channel=channel), SimpleNamespace(channel=None)
    )

    assert GUILD_ID not in cog._inactivity_tasks
    assert session.destroyed
