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

"""Playlist browsing views.

Views hold no playlist logic: every button forwards to the Playlist cog,
which re-reads the playlist and re-checks permissions on each click.
"""

from typing import Awaitable, Callable

import discord

from ui.views import AutoDeleteView, PaginationView, numbered_buttons
from utils.response import BUTTON_LABEL_MAX, truncate_for_display
from utils.store import PlaylistInfo, StoredTrack

Text = Callable[[str], str]

# Rows used by the show view (0 and 1 belong to the track list and navigation)
ACTION_ROW = 2
OWNER_ROW = 3


def make_button(
    label: str,
    callback: Callable[[discord.Interaction], Awaitable[None]],
    style: discord.ButtonStyle = discord.ButtonStyle.secondary,
    row: int | None = None,
) -> discord.ui.Button:
    button = discord.ui.Button(label=truncate_for_display(label, BUTTON_LABEL_MAX), style=style, row=row)
    button.callback = callback
    return button


class PlaylistListView(PaginationView):
    """Numbered buttons that open a playlist, plus page navigation."""

    def __init__(self, cog, playlists: list[PlaylistInfo], page_size: int,
                 format_page: Callable[[list, int, int], discord.Embed], page: int = 0) -> None:
        self.cog = cog
        super().__init__(playlists, page_size, format_page, page=page, bot=cog.bot)

    def page_items(self) -> list[discord.ui.Item]:
        start = self.current_page * self.page_size
        return numbered_buttons(start, len(self.get_page_items()), self._open)

    async def _open(self, interaction: discord.Interaction, index: int) -> None:
        await self.cog.show_playlist(interaction, self.items[index].id)


class PlaylistShowView(PaginationView):
    """Track list of one playlist with the actions the viewer may use.

    Args:
        cog: Playlist cog handling the clicks
        playlist: Playlist shown
        user_id: Viewer, decides which owner/contributor buttons appear
        text: Localized string lookup for the viewer's guild
        page_size: Tracks per page
        format_page: Embed builder for a page
        page: Initial page (0-based)
    """

    def __init__(self, cog, playlist: PlaylistInfo, user_id: int, text: Text, page_size: int,
                 format_page: Callable[[list, int, int], discord.Embed], page: int = 0) -> None:
        self.cog = cog
        self.playlist = playlist
        self.user_id = user_id
        self.text = text
        super().__init__(playlist.tracks, page_size, format_page, page=page, bot=cog.bot)

    def page_items(self) -> list[discord.ui.Item]:
        start = self.current_page * self.page_size
        return numbered_buttons(start, len(self.get_page_items()), self._track)

    def extra_items(self) -> list[discord.ui.Item]:
        playlist_id = self.playlist.id
        cog = self.cog
        items = []

        if self.playlist.can_edit(self.user_id):
            items.append(make_button(
                self.text("resp.playlist.controls.add"),
                lambda i: cog.open_add_modal(i, playlist_id),
                discord.ButtonStyle.success, ACTION_ROW,
            ))

        if self.playlist.tracks:
            items.append(make_button(
                self.text("resp.playlist.controls.play"),
                lambda i: cog.play_playlist(i, playlist_id, shuffled=False),
                row=ACTION_ROW,
            ))
            items.append(make_button(
                self.text("resp.playlist.controls.random"),
                lambda i: cog.play_playlist(i, playlist_id, shuffled=True),
                row=ACTION_ROW,
            ))

        items.append(make_button(
            self.text("resp.playlist.controls.refresh"),
            lambda i: cog.show_playlist(i, playlist_id, self.current_page, edit=True),
            row=ACTION_ROW,
        ))

        if self.playlist.is_owner(self.user_id):
            items.append(make_button(
                self.text("resp.playlist.controls.contributor.add"),
                lambda i: cog.pick_contributor(i, playlist_id, adding=True),
                row=OWNER_ROW,
            ))
            items.append(make_button(
                self.text("resp.playlist.controls.contributor.remove"),
                lambda i: cog.pick_contributor(i, playlist_id, adding=False),
                row=OWNER_ROW,
            ))
            items.append(make_button(
                self.text("resp.playlist.controls.rename"),
                lambda i: cog.open_rename_modal(i, playlist_id),
                row=OWNER_ROW,
            ))
            items.append(make_button(
                self.text("resp.playlist.controls.delete"),
                lambda i: cog.confirm_delete(i, playlist_id),
                discord.ButtonStyle.danger, OWNER_ROW,
            ))

        return items

    async def _track(self, interaction: discord.Interaction, index: int) -> None:
        await self.cog.show_track(interaction, self.playlist.id, index)


class TrackView(AutoDeleteView):
    """Play button for a playlist entry; owners also get a delete button."""

    def __init__(self, cog, playlist: PlaylistInfo, track: StoredTrack, position: int,
                 user_id: int, text: Text) -> None:
        super().__init__(bot=cog.bot)
        playlist_id = playlist.id
        count = len(playlist.tracks)
        uri = track.uri

        self.add_item(make_button(
            text("resp.playlist.track.play"),
            lambda i: cog.play_track(i, uri),
        ))
        if playlist.is_owner(user_id):
            self.add_item(make_button(
                text("resp.playlist.track.delete"),
                lambda i: cog.confirm_delete_track(i, playlist_id, position, count, uri),
                discord.ButtonStyle.danger,
            ))
