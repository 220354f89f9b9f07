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

"""Playlist commands for Sawaya.

Playlists are stored per user (owner) and shared across guilds. The owner
manages the playlist; contributors may only add tracks. Entries are stored
by uri and loaded through Lavalink again when played.
"""

import asyncio
import random
from functools import partial

import aiohttp
import discord
import mafic
from discord import app_commands
from discord.ext import commands
from loguru import logger

from core.errors import PlaybackError
from ui.playlist import PlaylistListView, PlaylistShowView, TrackView
from ui.render import format_duration
from ui.views import ChoiceView, ConfirmView, TextInputModal, UserPickView
from utils.response import (
    EMBED_FIELD_MAX,
    EMBED_FIELD_NAME_MAX,
    EMBED_TITLE_MAX,
    ResponseMixin,
    escape_markdown,
    truncate_for_display,
)
from utils.search import search_playlists
from utils.store import PlaylistInfo, StoredTrack

# Concurrent Lavalink loads when a playlist is enqueued
RESOLVE_CONCURRENCY = 5

PLAYLIST_NAME_MAX = 100


class Playlist(ResponseMixin, commands.Cog):
    """Create, browse, edit and play stored playlists."""

    playlist_group = app_commands.Group(
        name="playlist",
        description="A list of commands for managing music playlists",
        guild_only=True,
    )

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def store(self):
        return self.bot.store

    @property
    def page_size(self) -> int:
        return self.bot.config_manager.section("ui").get("page_size", 5)

    @property
    def color(self) -> int:
        return self.bot.config_manager.section("panel").get("color", 0x9B59B6)

    def display_name(self, guild: discord.Guild | None, user_id: int) -> str:
        """Member display name, falling back to the cached user, then a mention."""
        member = guild.get_member(user_id) if guild else None
        if member is not None:
            return member.display_name
        user = self.bot.get_user(user_id)
        if user is not None:
            return user.name
        return f"<@{user_id}>"

    async def _lookup(self, interaction: discord.Interaction, playlist_id: str) -> PlaylistInfo | None:
        """Playlist by id, or answer "doesn't exist" and return None."""
        playlist = self.store.get_playlist(playlist_id)
        if playlist is None:
            await self.respond(interaction, "resp.playlist.id.notexist", id=playlist_id)
        return playlist

    async def _lookup_owned(self, interaction: discord.Interaction, playlist_id: str) -> PlaylistInfo | None:
        playlist = await self._lookup(interaction, playlist_id)
        if playlist is not None and not playlist.is_owner(interaction.user.id):
            await self.respond(interaction, "resp.playlist.not.owner")
            return None
        return playlist

    async def _lookup_editable(self, interaction: discord.Interaction, playlist_id: str) -> PlaylistInfo | None:
        playlist = await self._lookup(interaction, playlist_id)
        if playlist is not None and not playlist.can_edit(interaction.user.id):
            await self.respond(interaction, "resp.playlist.not.contributor")
            return None
        return playlist

    def _total_pages(self, count: int) -> int:
        return max(1, (count + self.page_size - 1) // self.page_size)

    def _footer(self, interaction: discord.Interaction, embed: discord.Embed, count: int,
                page: int, total: int) -> None:
        if count > self.page_size:
            embed.set_footer(text=self.text(interaction, "resp.playlist.page", page=f"{page + 1}/{total}"))

    # =========================================================================
    # Listing and search
    # =========================================================================

    async def send_playlists(
        self,
        interaction: discord.Interaction,
        playlists: list[PlaylistInfo],
        title: str,
        page: int = 0,
        description: str | None = None,
    ) -> None:
        """Paginated list of playlists with numbered buttons to open one."""
        if not playlists:
            await self.respond(interaction, "resp.playlist.empty")
            return
        if page < 0 or page >= self._total_pages(len(playlists)):
            await self.respond(interaction, "resp.playlist.wrongpage")
            return

        def format_page(items: list, page_num: int, total: int) -> discord.Embed:
            embed = discord.Embed(
                title=truncate_for_display(title, EMBED_TITLE_MAX),
                description=description,
                color=self.color,
            )
            start = page_num * self.page_size
            for index, playlist in enumerate(items, start=start + 1):
                owner = self.display_name(interaction.guild, playlist.owner)
                embed.add_field(
                    name=truncate_for_display(f"{index}. {playlist.name}", EMBED_FIELD_NAME_MAX),
                    value=escape_markdown(truncate_for_display(f"by {owner}", EMBED_FIELD_MAX)),
                    inline=False,
                )
            self._footer(interaction, embed, len(playlists), page_num, total)
            return embed

        view = PlaylistListView(self, playlists, self.page_size, format_page, page=page)
        await interaction.response.send_message(embed=view.current_embed(), view=view, ephemeral=True)
        view.message = await interaction.original_response()  # Store for on_timeout

    @playlist_group.command(name="create", description="Creates a new playlist")
    @app_commands.describe(name="Name of the playlist")
    async def create(self, interaction: discord.Interaction,
                     name: app_commands.Range[str, 1, PLAYLIST_NAME_MAX]) -> None:
        name = name.strip()
        if not name:
            await self.respond(interaction, "resp.playlist.name.invalid")
            return
        if self.store.has_playlist_named(interaction.user.id, name):
            await self.respond(interaction, "resp.playlist.create.exists")
            return

        playlist = await self.store.create_playlist(name, interaction.user.id)
        await self.show_playlist(interaction, playlist.id)

    @playlist_group.command(name="list", description="Lists playlists")
    @app_commands.describe(
        mine="To show your playlists or all playlists",
        page="Number of the page, starts with 0",
    )
    async def list_playlists(self, interaction: discord.Interaction, mine: bool = True, page: int = 0) -> None:
        playlists = self.store.playlists_of(interaction.user.id) if mine else list(self.store.playlists)
        title = self.text(interaction, "resp.playlist.mine.title" if mine else "resp.playlist.shared.title")
        await self.send_playlists(interaction, playlists, title, page)

    @playlist_group.command(name="search", description="Search playlists")
    @app_commands.describe(
        query="What playlist to search for",
        mine="To show your playlists or all playlists",
    )
    async def search(self, interaction: discord.Interaction, query: str, mine: bool = False) -> None:
        candidates = self.store.playlists_of(interaction.user.id) if mine else list(self.store.playlists)
        results = [playlist for playlist, _ in search_playlists(query, candidates)]
        logger.debug(f"playlist search {query!r} -> {len(results)} results")
        await self.send_playlists(
            interaction,
            results,
            self.text(interaction, "resp.playlist.search.title", query=query),
            description=self.text(interaction, "resp.playlist.search.mine" if mine else "resp.playlist.search.shared"),
        )

    # =========================================================================
    # Show
    # =========================================================================

    def _playlist_header(self, interaction: discord.Interaction, playlist: PlaylistInfo) -> str:
        guild = interaction.guild
        lines = [
            f"ID: {playlist.id}",
            self.text(interaction, "resp.playlist.owner", owner=self.display_name(guild, playlist.owner)),
        ]
        if playlist.contributors:
            names = ", ".join(self.display_name(guild, user_id) for user_id in playlist.contributors)
            lines.append(self.text(interaction, "resp.playlist.contributors", names=names))
        lines.append(self.text(interaction, "resp.playlist.trackcount", count=len(playlist.tracks)))
        return escape_markdown("\n".join(lines))

    async def show_playlist(self, interaction: discord.Interaction, playlist_id: str, page: int = 0,
                            edit: bool = False) -> None:
        """Playlist details with a page of tracks and the viewer's actions.

        With edit=True (refresh button) the clicked message is updated in place.
        """
        playlist = await self._lookup(interaction, playlist_id)
        if playlist is None:
            return

        total_pages = self._total_pages(len(playlist.tracks))
        if edit:
            page = max(0, min(page, total_pages - 1))
        elif page < 0 or page >= total_pages:
            await self.respond(interaction, "resp.playlist.wrongpage")
            return

        header = self._playlist_header(interaction, playlist)

        def format_page(items: list, page_num: int, total: int) -> discord.Embed:
            embed = discord.Embed(
                title=truncate_for_display(
                    self.text(interaction, "resp.playlist.title", name=playlist.name), EMBED_TITLE_MAX
                ),
                description=header,
                color=self.color,
            )
            start = page_num * self.page_size
            for index, track in enumerate(items, start=start + 1):
                embed.add_field(
                    name=truncate_for_display(f"{index}. {track.title}", EMBED_FIELD_NAME_MAX),
                    value=escape_markdown(truncate_for_display(
                        f"({format_duration(track.duration_seconds)}) - by {track.author}", EMBED_FIELD_MAX
                    )),
                    inline=False,
                )
            self._footer(interaction, embed, len(playlist.tracks), page_num, total)
            return embed

        view = PlaylistShowView(
            self,
            playlist,
            interaction.user.id,
            partial(self.text, interaction),
            self.page_size,
            format_page,
            page=page,
        )

        if edit:
            await interaction.response.edit_message(embed=view.current_embed(), view=view)
        else:
            await interaction.response.send_message(embed=view.current_embed(), view=view, ephemeral=True)
        view.message = await interaction.original_response()

    @playlist_group.command(name="show", description="Displays information about the playlist")
    @app_commands.describe(id="ID of the playlist", page="Number of the page, starts with 0")
    async def show(self, interaction: discord.Interaction, id: str, page: int = 0) -> None:
        await self.show_playlist(interaction, id.strip(), page)

    # =========================================================================
    # Tracks
    # =========================================================================

    async def show_track(self, interaction: discord.Interaction, playlist_id: str, position: int) -> None:
        playlist = await self._lookup(interaction, playlist_id)
        if playlist is None:
            return
        if not 0 <= position < len(playlist.tracks):
            await self.respond(interaction, "resp.playlist.track.notexist")
            return

        track = playlist.tracks[position]
        position_text = self.text(interaction, "resp.playlist.track.position", position=position + 1)
        embed = discord.Embed(
            title=truncate_for_display(track.title or "-", EMBED_TITLE_MAX),
            description=f"by {escape_markdown(track.author)}\n{track.uri}\n\n{position_text}",
            color=self.color,
        )
        if track.artwork_url:
            embed.set_image(url=track.artwork_url)

        view = TrackView(self, playlist, track, position, interaction.user.id, partial(self.text, interaction))
        await interaction.response.send_message(embed=embed, view=view, ephemeral=True)
        view.message = await interaction.original_response()

    async def play_track(self, interaction: discord.Interaction, uri: str) -> None:
        player_cog = self.bot.get_cog("Player")
        if player_cog is None:
            await self.respond(interaction, "resp.player.unavailable")
            return
        await player_cog.play_link(interaction, uri)

    async def _show_confirmation(self, interaction: discord.Interaction, text: str, button: str,
                                 on_confirm) -> None:
        embed = discord.Embed(
            title=self.text(interaction, "resp.confirmation.title"),
            description=text,
            color=discord.Color.red(),
        )
        view = ConfirmView(button, on_confirm, bot=self.bot)
        await interaction.response.send_message(embed=embed, view=view, ephemeral=True)
        view.message = await interaction.original_response()

    async def confirm_delete_track(self, interaction: discord.Interaction, playlist_id: str,
                                   position: int, count: int, uri: str) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return
        if not 0 <= position < len(playlist.tracks):
            await self.respond(interaction, "resp.playlist.track.notexist")
            return

        async def confirmed(confirm_interaction: discord.Interaction) -> None:
            await self.delete_track(confirm_interaction, playlist_id, position, count, uri)

        await self._show_confirmation(
            interaction,
            escape_markdown(self.text(interaction, "resp.playlist.track.delete.text", name=playlist.name)),
            self.text(interaction, "resp.playlist.track.delete"),
            confirmed,
        )

    async def delete_track(self, interaction: discord.Interaction, playlist_id: str,
                           position: int, count: int, uri: str) -> None:
        """Remove the entry at position if the playlist is unchanged since it was shown.

        Position, track count and uri must all still match, so a stale
        confirmation never removes a different track.
        """
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return

        if (
            not 0 <= position < len(playlist.tracks)
            or len(playlist.tracks) != count
            or playlist.tracks[position].uri != uri
        ):
            await self.respond(interaction, "resp.playlist.track.notexist")
            return

        removed = playlist.tracks.pop(position)
        await self.store.save()
        logger.info(f"removed {removed.title!r} from playlist {playlist.id}")
        await self.respond(interaction, "resp.playlist.track.delete.done")

    # =========================================================================
    # Adding tracks
    # =========================================================================

    async def open_add_modal(self, interaction: discord.Interaction, playlist_id: str) -> None:
        playlist = await self._lookup_editable(interaction, playlist_id)
        if playlist is None:
            return

        async def submitted(modal_interaction: discord.Interaction, query: str) -> None:
            await self.search_for_playlist(modal_interaction, playlist_id, query)

        await interaction.response.send_modal(TextInputModal(
            title=self.text(interaction, "resp.playlist.modal.search.title"),
            label=self.text(interaction, "resp.playlist.modal.search.label"),
            placeholder=self.text(interaction, "resp.playlist.modal.search.placeholder"),
            on_submit=submitted,
        ))

    @playlist_group.command(name="add", description="Adds a track to specified playlist")
    @app_commands.describe(id="ID of the playlist")
    async def add(self, interaction: discord.Interaction, id: str) -> None:
        await self.open_add_modal(interaction, id.strip())

    async def search_for_playlist(self, interaction: discord.Interaction, playlist_id: str, query: str) -> None:
        """Search Lavalink for `query` and offer the results for the playlist."""
        playlist = await self._lookup_editable(interaction, playlist_id)
        if playlist is None:
            return

        player_cog = self.bot.get_cog("Player")
        if player_cog is None:
            await self.respond(interaction, "resp.player.unavailable")
            return

        await interaction.response.defer(ephemeral=True)
        try:
            result = await player_cog.fetch_tracks(interaction.guild, query)
        except PlaybackError as e:
            await self.respond_error(interaction, e)
            return
        except (mafic.MaficException, aiohttp.ClientError) as e:
            logger.warning(f"playlist track search failed for {query!r}: {e}")
            await self.respond(interaction, "resp.player.play.failed")
            return

        tracks = list(result.tracks if isinstance(result, mafic.Playlist) else result or [])
        if not tracks:
            embed = discord.Embed(
                title=truncate_for_display(f'"{query}"', EMBED_TITLE_MAX),
                description=self.text(interaction, "resp.player.play.noresults"),
                color=discord.Color.red(),
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
            return

        if len(tracks) == 1:
            await self.add_track(interaction, playlist_id, StoredTrack.from_track(tracks[0]))
            return

        choices = tracks[:self.bot.config_manager.section("ui").get("search_results", 5)]
        embed = discord.Embed(
            title=truncate_for_display(f'"{query}"', EMBED_TITLE_MAX),
            description=escape_markdown(self.text(interaction, "resp.playlist.adding", name=playlist.name)),
            color=self.color,
        )
        for index, track in enumerate(choices, start=1):
            stored = StoredTrack.from_track(track)
            embed.add_field(
                name=truncate_for_display(f"{index}. {stored.title}", EMBED_FIELD_NAME_MAX),
                value=escape_markdown(truncate_for_display(
                    f"({format_duration(stored.duration_seconds)}) - by {stored.author}", EMBED_FIELD_MAX
                )),
                inline=False,
            )

        async def pick(pick_interaction: discord.Interaction, index: int) -> None:
            await self.add_track(pick_interaction, playlist_id, StoredTrack.from_track(choices[index]))

        view = ChoiceView(len(choices), pick, bot=self.bot)
        view.message = await interaction.followup.send(embed=embed, view=view, ephemeral=True, wait=True)

    async def add_track(self, interaction: discord.Interaction, playlist_id: str, track: StoredTrack) -> None:
        playlist = await self._lookup_editable(interaction, playlist_id)
        if playlist is None:
            return
        if not track.uri:
            await self.respond(interaction, "resp.player.play.invalidlink")
            return

        playlist.tracks.append(track)
        await self.store.save()
        logger.info(f"{interaction.user.display_name} added {track.title!r} to playlist {playlist.id}")
        await self.respond(interaction, "resp.playlist.added")

    # =========================================================================
    # Playing
    # =========================================================================

    async def play_playlist(self, interaction: discord.Interaction, playlist_id: str, shuffled: bool) -> None:
        """Load every entry through Lavalink and enqueue them (optionally shuffled)."""
        playlist = await self._lookup(interaction, playlist_id)
        if playlist is None:
            return
        if not playlist.tracks:
            await self.respond(interaction, "resp.playlist.invalid")
            return

        player_cog = self.bot.get_cog("Player")
        if player_cog is None:
            await self.respond(interaction, "resp.player.unavailable")
            return

        await interaction.response.defer(ephemeral=True)
        entries = list(playlist.tracks)
        if shuffled:
            random.shuffle(entries)

        try:
            player = await player_cog.ensure_player(interaction)
        except PlaybackError as e:
            await self.respond_error(interaction, e)
            return

        slots = asyncio.Semaphore(RESOLVE_CONCURRENCY)

        async def resolve(entry: StoredTrack) -> mafic.Track | None:
            async with slots:
                return await player_cog.resolve_track(interaction.guild, entry.uri)

        results = await asyncio.gather(*(resolve(entry) for entry in entries), return_exceptions=True)
        tracks = []
        for entry, result in zip(entries, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning(f"failed to load {entry.uri!r}: {result}")
            elif result is not None:
                tracks.append(result)

        if not tracks:
            await self.respond(interaction, "resp.playlist.invalid")
            return

        try:
            added = await player_cog.enqueue(player, interaction.guild_id, tracks)
        except mafic.MaficException as e:
            logger.warning(f"failed to start playlist {playlist.id}: {e}")
            await self.respond(interaction, "resp.player.controls.failed")
            return

        logger.info(f"{interaction.user.display_name} played playlist {playlist.id} ({added} tracks)")
        await self.respond(interaction, "resp.playlist.played", count=added)

    # =========================================================================
    # Contributors, rename, delete
    # =========================================================================

    async def pick_contributor(self, interaction: discord.Interaction, playlist_id: str, adding: bool) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return

        async def picked(pick_interaction: discord.Interaction, user: discord.abc.User) -> None:
            await self.set_contributor(pick_interaction, playlist_id, user, adding)

        view = UserPickView(self.text(interaction, "resp.playlist.contributor.select"), picked, bot=self.bot)
        await interaction.response.send_message(view=view, ephemeral=True)
        view.message = await interaction.original_response()

    async def set_contributor(self, interaction: discord.Interaction, playlist_id: str,
                              user: discord.abc.User, adding: bool) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return

        if adding:
            if user.id != playlist.owner and user.id not in playlist.contributors:
                playlist.contributors.append(user.id)
                await self.store.save()
            await self.respond(interaction, "resp.playlist.contributor.added", user=user.display_name)
        else:
            if user.id in playlist.contributors:
                playlist.contributors.remove(user.id)
                await self.store.save()
            await self.respond(interaction, "resp.playlist.contributor.removed", user=user.display_name)

    async def open_rename_modal(self, interaction: discord.Interaction, playlist_id: str) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return

        async def submitted(modal_interaction: discord.Interaction, name: str) -> None:
            await self.rename(modal_interaction, playlist_id, name)

        await interaction.response.send_modal(TextInputModal(
            title=self.text(interaction, "resp.playlist.modal.rename.title"),
            label=self.text(interaction, "resp.playlist.modal.rename.label"),
            placeholder=self.text(interaction, "resp.playlist.modal.rename.placeholder"),
            on_submit=submitted,
            default=playlist.name,
            max_length=PLAYLIST_NAME_MAX,
        ))

    @playlist_group.command(name="rename", description="Rename a playlist")
    @app_commands.describe(id="ID of the playlist")
    async def rename_command(self, interaction: discord.Interaction, id: str) -> None:
        await self.open_rename_modal(interaction, id.strip())

    async def rename(self, interaction: discord.Interaction, playlist_id: str, name: str) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return
        if not name:
            await self.respond(interaction, "resp.playlist.name.invalid")
            return

        old_name, playlist.name = playlist.name, name
        await self.store.save()
        logger.info(f"playlist {playlist.id} renamed {old_name!r} -> {name!r}")
        await self.respond(interaction, "resp.playlist.rename.done")

    async def confirm_delete(self, interaction: discord.Interaction, playlist_id: str) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return

        async def confirmed(confirm_interaction: discord.Interaction) -> None:
            await self.delete(confirm_interaction, playlist_id)

        await self._show_confirmation(
            interaction,
            escape_markdown(self.text(interaction, "resp.playlist.delete.text", name=playlist.name)),
            self.text(interaction, "resp.playlist.controls.delete"),
            confirmed,
        )

    @playlist_group.command(name="delete", description="Deletes the playlist")
    @app_commands.describe(id="ID of the playlist")
    async def delete_command(self, interaction: discord.Interaction, id: str) -> None:
        await self.confirm_delete(interaction, id.strip())

    async def delete(self, interaction: discord.Interaction, playlist_id: str) -> None:
        playlist = await self._lookup_owned(interaction, playlist_id)
        if playlist is None:
            return

        await self.store.delete_playlist(playlist)
        await self.respond(interaction, "resp.playlist.delete.done")


async def setup(bot: commands.Bot) -> None:
    """Load the Playlist cog."""
    await bot.add_cog(Playlist(bot))
