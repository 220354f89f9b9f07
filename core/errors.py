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

"""Command-layer error conditions.

These are answered with an ephemeral localized message and never logged as
errors. Each carries the locale key used for the reply.
"""


class PlaybackError(Exception):
    """Base class for conditions surfaced to the requesting user."""

    locale_key = "resp.player.controls.noplayer"


class NoActivePlayerError(PlaybackError):
    """A player command was issued while no player exists for the guild."""

    locale_key = "resp.player.controls.noplayer"


class NoTrackError(PlaybackError):
    """The player exists but has no current track to act on."""

    locale_key = "resp.player.controls.notrack"


class EmptyQueueError(PlaybackError):
    """Skip or shuffle requested with nothing queued."""

    locale_key = "resp.player.controls.emptyqueue"


class NodeUnavailableError(PlaybackError):
    """No Lavalink node is connected to load tracks from."""

    locale_key = "resp.player.unavailable"


class NoVoiceChannelError(PlaybackError):
    """The user asked the bot to join but isn't in a voice channel."""

    locale_key = "resp.player.novoicechannel"
