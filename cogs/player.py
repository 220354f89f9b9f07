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

"""Music playback commands for Sawaya."""

import asyncio
from typing import Any, Awaitable, Callable

import aiohttp
import discord
import mafic
from discord import app_commands
from discord.ext import commands
from loguru import logger

from core.errors import (
    NoActivePlayerError,
    NodeUnavailableError,
    NoTrackError,
    NoVoiceChannelError,
    PlaybackError,
)
from core.queue import GuildSession
from core.snapshot import TrackInfo
from ui.render import format_duration
from ui.views import ChoiceView, ReplayView
from utils.response import (
    EMBED_FIELD_MAX,
    EMBED_FIELD_NAME_MAX,
    EMBED_TITLE_MAX,
    ResponseMixin,
    escape_markdown,
    get_player,
    truncate_for_display,
)
from utils.search import is_url

# A control takes the guild plus its own arguments and returns the locale key
# of its reply (None when the effect only shows on the panel)
Control = Callable[..., Awaitable[str | None]]

# Track end reasons after which the next queued track starts
ADVANCE_REASONS = (mafic.EndReason.FINISHED, mafic.EndReason.LOAD_FAILED)


def active_listeners(channel: Any) -> list[discord.Member]:
    """Members who can hear the bot: humans that are not deafened."""
    if channel is None:
        return []
    return [
        m for m in channel.members
        if not m.bot and not m.voice.self_deaf and not m.voice.deaf
    ]


def track_duration(track: Any) -> str:
    info = TrackInfo.from_track(track)
    return format_duration(info.duration_seconds, info.is_stream)


class Player(ResponseMixin, commands.Cog):
    """Lavalink playback, the /player group and the control panel actions."""

    player_group = app_commands.Group(
        name="player",
        description="A list of commands for playing music",
        guild_only=True,
    )

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        # Playback operation lock (prevents concurrent skip/play/track end races)
        self._playback_locks: dict[int, asyncio.Lock] = {}
        # Pending idle/alone disconnects per guild
        self._inactivity_tasks: dict[int, asyncio.Task] = {}

    def _get_playback_lock(self, guild_id: int) -> asyncio.Lock:
        """Get or create playback lock for a guild.

        Every operation that changes the current track (skip, stop, leave,
        enqueue into an idle player, track end) holds this lock.
        """
        if guild_id not in self._playback_locks:
            self._playback_locks[guild_id] = asyncio.Lock()
        return self._playback_locks[guild_id]

    async def cog_unload(self) -> None:
        for task in self._inactivity_tasks.values():
            task.cancel()
        self._inactivity_tasks.clear()
        self._playback_locks.clear()

    @property
    def color(self) -> int:
        return self.bot.config_manager.section("panel").get("color", 0x9B59B6)

    def _get_player_by_guild_id(self, guild_id: int) -> mafic.Player | None:
        """Get player by guild ID for background tasks."""
        return get_player(self.bot.get_guild(guild_id))

    def _require_player(self, guild: discord.Guild) -> tuple[mafic.Player, GuildSession]:
        player = get_player(guild)
        if player is None:
            raise NoActivePlayerError()
        return player, self.bot.sessions.get_or_create(guild.id)

    async def _apply_volume(self, player: mafic.Player, session: GuildSession) -> None:
        await player.set_volume(round(session.volume * 100))

    # =========================================================================
    # Inactivity (idle or alone in voice)
    # =========================================================================

    def _get_timeout_seconds(self) -> float:
        """Seconds idle or alone before leaving voice; 0 disables."""
        return self.bot.config_manager.get("inactivity_timeout", 30)

    def _is_inactive(self, player: mafic.Player) -> bool:
        return player.current is None or not active_listeners(player.channel)

    def update_inactivity(self, guild_id: int, player: mafic.Player | None = None) -> None:
        """Start the disconnect countdown when idle or alone, cancel it otherwise.

        A countdown already running is left alone, so repeated events don't
        push the disconnect further out.
        """
        if player is None:
            player = self._get_player_by_guild_id(guild_id)
        if player is None or not player.connected:
            self._cancel_inactivity_timer(guild_id)
            return

        if not self._is_inactive(player):
            self._cancel_inactivity_timer(guild_id)
            return

        task = self._inactivity_tasks.get(guild_id)
        if task is not None and not task.done():
            return
        self._start_inactivity_timer(guild_id)

    def _start_inactivity_timer(self, guild_id: int) -> None:
        """Start countdown - cancel existing first (prevents orphaned tasks)."""
        self._cancel_inactivity_timer(guild_id)
        timeout = self._get_timeout_seconds()
        if timeout <= 0:
            return
        self._inactivity_tasks[guild_id] = asyncio.create_task(
            self._inactivity_countdown(guild_id, timeout)
        )
        logger.debug(f"starting {timeout}s inactivity timer in guild {guild_id}")

    def _cancel_inactivity_timer(self, guild_id: int) -> None:
        """Cancel if exists and not done."""
        if task := self._inactivity_tasks.pop(guild_id, None):
            if not task.done():
                task.cancel()
                logger.debug(f"inactivity timer cancelled in guild {guild_id}")

    async def _inactivity_countdown(self, guild_id: int, timeout: float) -> None:
        """Background task that leaves voice after timeout."""
        try:
            await asyncio.sleep(timeout)
        except asyncio.CancelledError:
            return  # Expected when activity resumes

        if self._inactivity_tasks.get(guild_id) is asyncio.current_task():
            del self._inactivity_tasks[guild_id]

        player = self._get_player_by_guild_id(guild_id)
        # Re-validate: a track may have started or a listener joined meanwhile
        if player is None or not player.connected or not self._is_inactive(player):
            return

        logger.info(f"inactive for {timeout}s, leaving voice in guild {guild_id}")
        try:
            async with self._get_playback_lock(guild_id):
                self.bot.sessions.destroy(guild_id)
                await player.disconnect()
        except mafic.MaficException as e:
            logger.warning(f"inactivity disconnect failed in guild {guild_id}: {e}")

    # =========================================================================
    # Controls (shared by slash commands and panel buttons)
    # =========================================================================

    async def run_control(
        self,
        interaction: discord.Interaction,
        action: Control,
        *args,
        quiet: bool = False,
    ) -> None:
        """Run a playback control on behalf of an interaction.

        The wrong-voice-channel guard runs first. Precondition failures are
        answered with their localized message. With quiet=True (panel buttons
        whose effect is visible on the panel) success is only acknowledged.
        """
        if await self.deny_wrong_channel(interaction):
            return

        try:
            key = await action(interaction.guild, *args)
        except PlaybackError as e:
            await self.respond_error(interaction, e)
            return
        except mafic.MaficException as e:
            logger.warning(f"{action.__name__} failed in guild {interaction.guild_id}: {e}")
            await self.respond(interaction, "resp.player.controls.failed")
            return

        if key and not quiet:
            await self.respond(interaction, key)
        else:
            await self.acknowledge(interaction)

    async def toggle_pause(self, guild: discord.Guild) -> str:
        player, _ = self._require_player(guild)
        if player.current is None:
            raise NoTrackError()

        if player.paused:
            await player.resume()
            return "resp.player.controls.resumed"
        await player.pause()
        return "resp.player.controls.paused"

    async def seek(self, guild: discord.Guild, seconds: int) -> None:
        """Move the playhead by `seconds`, clamped to the track bounds."""
        player, _ = self._require_player(guild)
        track = player.current
        if track is None:
            raise NoTrackError()
        if not track.seekable or track.stream:
            return None

        position = max(0, min(track.length, player.position + seconds * 1000))
        await player.seek(position)
        return None

    async def skip_track(self, guild: discord.Guild) -> str:
        player, session = self._require_player(guild)
        async with self._get_playback_lock(guild.id):
            track = session.skip()
            await player.play(track, replace=True)
        logger.info(f"skipped to {track.title!r} in guild {guild.id}")
        return "resp.player.controls.skipped"

    async def stop_playback(self, guild: discord.Guild) -> str:
        player, session = self._require_player(guild)
        async with self._get_playback_lock(guild.id):
            session.clear()
            await player.stop()
        logger.info(f"stopped playback in guild {guild.id}")
        return "resp.player.controls.stop"

    async def leave_channel(self, guild: discord.Guild) -> str:
        player, _ = self._require_player(guild)
        self._cancel_inactivity_timer(guild.id)
        async with self._get_playback_lock(guild.id):
            self.bot.sessions.destroy(guild.id)
            await player.disconnect()
        logger.info(f"left voice in guild {guild.id}")
        return "resp.player.controls.leave"

    async def step_volume(self, guild: discord.Guild, steps: int) -> None:
        player, session = self._require_player(guild)
        session.step_volume(steps)
        await self._apply_volume(player, session)
        return None

    async def set_volume(self, guild: discord.Guild, percent: int) -> int:
        """Set volume in percent (0-150). Returns the applied percentage."""
        player, session = self._require_player(guild)
        session.set_volume(percent / 100)
        await self._apply_volume(player, session)
        return round(session.volume * 100)

    async def toggle_loop(self, guild: discord.Guild) -> str:
        _, session = self._require_player(guild)
        session.looping = not session.looping
        return "resp.player.controls.looped" if session.looping else "resp.player.controls.unlooped"

    async def shuffle_queue(self, guild: discord.Guild) -> str:
        _, session = self._require_player(guild)
        session.shuffle()
        return "resp.player.controls.shuffled"

    # =========================================================================
    # Queue display
    # =========================================================================

    def build_queue_embed(self, interaction: discord.Interaction, player: mafic.Player,
                          session: GuildSession) -> discord.Embed:
        limit = self.bot.config_manager.section("ui").get("queue_display_size", 20)
        embed = discord.Embed(title=self.text(interaction, "resp.player.queue.title"), color=self.color)

        current = player.current
        if current is not None:
            embed.add_field(
                name=truncate_for_display(
                    self.text(interaction, "resp.player.queue.nowplaying", title=current.title),
                    EMBED_FIELD_NAME_MAX,
                ),
                value=escape_markdown(truncate_for_display(
                    f"({track_duration(current)}) by {current.author}", EMBED_FIELD_MAX
                )),
                inline=False,
            )

        if not session.pending:
            embed.description = self.text(interaction, "resp.player.queue.empty")

        for track in session.upcoming(limit):
            embed.add_field(
                name=truncate_for_display(track.title or "-", EMBED_FIELD_NAME_MAX),
                value=escape_markdown(truncate_for_display(
                    f"({track_duration(track)}) - by {track.author}", EMBED_FIELD_MAX
                )),
                inline=False,
            )

        hidden = len(session) - limit
        if hidden > 0:
            embed.set_footer(text=self.text(interaction, "resp.player.queue.more", count=hidden))
        return embed

    async def show_queue(self, interaction: discord.Interaction) -> None:
        player = get_player(interaction.guild)
        if player is None:
            await self.respond_error(interaction, NoActivePlayerError())
            return

        session = self.bot.sessions.get_or_create(interaction.guild_id)
        embed = self.build_queue_embed(interaction, player, session)
        await interaction.response.send_message(embed=embed, ephemeral=True)

    # =========================================================================
    # Loading and enqueueing
    # =========================================================================

    async def ensure_player(self, interaction: discord.Interaction) -> mafic.Player:
        """Existing player, or join the user's voice channel with a fresh session."""
        player = get_player(interaction.guild)
        if player is not None:
            return player

        voice = getattr(interaction.user, "voice", None)
        if voice is None or voice.channel is None:
            raise NoVoiceChannelError()

        try:
            player = await voice.channel.connect(cls=mafic.Player, self_deaf=True)
        except (discord.ClientException, asyncio.TimeoutError, mafic.MaficException) as e:
            logger.error(f"voice connection failed: {e}")
            raise NodeUnavailableError() from e

        self.bot.sessions.discard(interaction.guild_id)
        session = self.bot.sessions.get_or_create(interaction.guild_id)
        await self._apply_volume(player, session)
        self.update_inactivity(interaction.guild_id, player)
        logger.info(f"summoned by {interaction.user.display_name} to #{voice.channel.name}")
        return player

    async def fetch_tracks(self, guild: discord.Guild, query: str) -> list[mafic.Track] | mafic.Playlist | None:
        """Resolve a link or a YouTube search through Lavalink."""
        player = get_player(guild)
        if player is not None:
            return await player.fetch_tracks(query, search_type=mafic.SearchType.YOUTUBE)

        nodes = self.bot.pool.nodes
        if not nodes:
            raise NodeUnavailableError()
        return await nodes[0].fetch_tracks(query, search_type=mafic.SearchType.YOUTUBE)

    async def resolve_track(self, guild: discord.Guild, uri: str) -> mafic.Track | None:
        """Load a single track back from its uri (playlist entries)."""
        result = await self.fetch_tracks(guild, uri)
        tracks = result.tracks if isinstance(result, mafic.Playlist) else result or []
        return tracks[0] if tracks else None

    async def enqueue(self, player: mafic.Player, guild_id: int, tracks: list[mafic.Track]) -> int:
        """Queue tracks; starts the first one when the player is idle."""
        session = self.bot.sessions.get_or_create(guild_id)
        async with self._get_playback_lock(guild_id):
            added = session.enqueue_many(tracks)
            if player.current is None and session.pending:
                track = session.skip()
                await player.play(track)
                logger.debug(f"started {track.title!r} in guild {guild_id}")
        self.update_inactivity(guild_id, player)
        return added

    def _playlist_order(self, playlist: mafic.Playlist) -> list[mafic.Track]:
        """Tracks starting at the selected one, wrapping around to the start."""
        tracks = list(playlist.tracks)
        selected = playlist.selected_track
        if selected is not None and 0 <= selected < len(tracks):
            return tracks[selected:] + tracks[:selected]
        return tracks

    def _track_embed(self, interaction: discord.Interaction, track: mafic.Track) -> discord.Embed:
        embed = discord.Embed(title=self.text(interaction, "resp.player.play.enqueued"), color=self.color)
        embed.add_field(
            name=truncate_for_display(track.title or "-", EMBED_FIELD_NAME_MAX),
            value=escape_markdown(truncate_for_display(track.author or "-", EMBED_FIELD_MAX)),
            inline=False,
        )
        embed.add_field(
            name=self.text(interaction, "resp.player.play.duration"),
            value=track_duration(track),
            inline=False,
        )
        if track.uri:
            embed.add_field(name=self.text(interaction, "resp.player.play.link"), value=track.uri, inline=False)
        if getattr(track, "artwork_url", None):
            embed.set_image(url=track.artwork_url)
        return embed

    def _playlist_embed(self, interaction: discord.Interaction, playlist: mafic.Playlist,
                        link: str, first: mafic.Track) -> discord.Embed:
        embed = discord.Embed(title=self.text(interaction, "resp.player.play.enqueued"), color=self.color)
        embed.add_field(
            name=self.text(interaction, "resp.playlist.name"),
            value=escape_markdown(truncate_for_display(playlist.name or "-", EMBED_FIELD_MAX)),
            inline=False,
        )
        embed.add_field(
            name=self.text(interaction, "resp.playlist.trackcount.noparam"),
            value=str(len(playlist.tracks)),
            inline=False,
        )
        embed.add_field(name=self.text(interaction, "resp.player.play.link"), value=link, inline=False)
        if getattr(first, "artwork_url", None):
            embed.set_image(url=first.artwork_url)
        return embed

    async def _announce(self, interaction: discord.Interaction, embed: discord.Embed, link: str,
                        ephemeral: bool) -> None:
        """Send the enqueue embed with a 🔁 button that enqueues the link again."""
        async def replay(replay_interaction: discord.Interaction) -> None:
            await self.play_link(replay_interaction, link)

        view = ReplayView(replay, bot=self.bot)
        view.message = await interaction.followup.send(embed=embed, view=view, ephemeral=ephemeral, wait=True)

    async def play_result(
        self,
        interaction: discord.Interaction,
        link: str,
        result: list[mafic.Track] | mafic.Playlist | None,
        ephemeral: bool = False,
    ) -> None:
        """Enqueue an already loaded link (single track or playlist) and announce it."""
        player = await self.ensure_player(interaction)
        guild_id = interaction.guild_id

        if isinstance(result, mafic.Playlist):
            tracks = self._playlist_order(result)
            if not tracks:
                await self.respond(interaction, "resp.playlist.invalid")
                return
            await self.enqueue(player, guild_id, tracks)
            logger.info(f"{interaction.user.display_name} enqueued playlist {result.name!r} ({len(tracks)} tracks)")
            await self._announce(interaction, self._playlist_embed(interaction, result, link, tracks[0]), link, ephemeral)
            return

        if not result:
            await self.respond(interaction, "resp.player.play.invalidlink")
            return

        track = result[0]
        await self.enqueue(player, guild_id, [track])
        logger.info(f"{interaction.user.display_name} enqueued {track.title!r}")
        await self._announce(interaction, self._track_embed(interaction, track), track.uri or link, ephemeral)

    async def play_link(self, interaction: discord.Interaction, link: str) -> None:
        """Component entry point: load `link` and enqueue it publicly."""
        if not interaction.response.is_done():
            await interaction.response.defer()

        try:
            # Join before loading so a missing voice channel fails fast
            await self.ensure_player(interaction)
            result = await self.fetch_tracks(interaction.guild, link)
            await self.play_result(interaction, link, result)
        except PlaybackError as e:
            await self.respond_error(interaction, e)
        except (mafic.MaficException, aiohttp.ClientError) as e:
            logger.warning(f"failed to load {link!r}: {e}")
            await self.respond(interaction, "resp.player.play.failed")

    def _results_embed(self, query: str, tracks: list[mafic.Track]) -> discord.Embed:
        embed = discord.Embed(title=truncate_for_display(f'"{query}"', EMBED_TITLE_MAX), color=self.color)
        for index, track in enumerate(tracks, start=1):
            embed.add_field(
                name=truncate_for_display(f"{index}. {track.title}", EMBED_FIELD_NAME_MAX),
                value=escape_markdown(truncate_for_display(
                    f"({track_duration(track)}) - by {track.author}", EMBED_FIELD_MAX
                )),
                inline=False,
            )
        return embed

    async def search_and_play(self, interaction: discord.Interaction, query: str) -> None:
        """Links enqueue directly; text searches offer up to five numbered choices."""
        try:
            result = await self.fetch_tracks(interaction.guild, query)
        except PlaybackError as e:
            await self.respond_error(interaction, e)
            return
        except (mafic.MaficException, aiohttp.ClientError) as e:
            logger.warning(f"search failed for {query!r}: {e}")
            await self.respond(interaction, "resp.player.play.failed")
            return

        try:
            if is_url(query) and isinstance(result, mafic.Playlist):
                await self.play_result(interaction, query, result, ephemeral=True)
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
                await self.play_result(interaction, tracks[0].uri or query, [tracks[0]], ephemeral=True)
                return
        except PlaybackError as e:
            await self.respond_error(interaction, e)
            return
        except mafic.MaficException as e:
            logger.warning(f"failed to enqueue {query!r}: {e}")
            await self.respond(interaction, "resp.player.play.failed")
            return

        choices = tracks[:self.bot.config_manager.section("ui").get("search_results", 5)]

        async def pick(pick_interaction: discord.Interaction, index: int) -> None:
            chosen = choices[index]
            if chosen.uri:
                await self.play_link(pick_interaction, chosen.uri)
                return
            # Tracks without a uri can't be reloaded; enqueue the loaded object
            await pick_interaction.response.defer()
            try:
                await self.play_result(pick_interaction, query, [chosen])
            except PlaybackError as e:
                await self.respond_error(pick_interaction, e)
            except mafic.MaficException as e:
                logger.warning(f"failed to enqueue {chosen.title!r}: {e}")
                await self.respond(pick_interaction, "resp.player.play.failed")

        view = ChoiceView(len(choices), pick, bot=self.bot)
        view.message = await interaction.followup.send(
            embed=self._results_embed(query, choices), view=view, ephemeral=True, wait=True
        )

    # =========================================================================
    # Slash commands
    # =========================================================================

    @player_group.command(name="controls", description="Displays controls for the player")
    async def controls(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            await self.bot.panel_manager.open_panel(interaction.guild_id, interaction.channel)
        except discord.HTTPException as e:
            logger.error(f"failed to open panel: {e}")
        await interaction.delete_original_response()

    @player_group.command(name="volume", description="Sets playback volume")
    @app_commands.describe(volume="Volume to set 0-150")
    async def volume(self, interaction: discord.Interaction, volume: app_commands.Range[int, 0, 150]) -> None:
        if await self.deny_wrong_channel(interaction):
            return
        try:
            applied = await self.set_volume(interaction.guild, volume)
        except PlaybackError as e:
            await self.respond_error(interaction, e)
            return
        await self.respond(interaction, "resp.player.volume.set", volume=applied)

    @player_group.command(name="togglepause", description="Toggles playback of current track")
    async def togglepause(self, interaction: discord.Interaction) -> None:
        await self.run_control(interaction, self.toggle_pause)

    @player_group.command(name="skip", description="Skips current playing track")
    async def skip(self, interaction: discord.Interaction) -> None:
        await self.run_control(interaction, self.skip_track)

    @player_group.command(name="stop", description="Stops playback of current song")
    async def stop(self, interaction: discord.Interaction) -> None:
        await self.run_control(interaction, self.stop_playback)

    @player_group.command(name="leave", description="Stops playback and leaves the voice channel")
    async def leave(self, interaction: discord.Interaction) -> None:
        await self.run_control(interaction, self.leave_channel)

    @player_group.command(name="loop", description="Toggle looping of the playback")
    async def loop(self, interaction: discord.Interaction) -> None:
        await self.run_control(interaction, self.toggle_loop)

    @player_group.command(name="shuffle", description="Shuffles player queue")
    async def shuffle(self, interaction: discord.Interaction) -> None:
        await self.run_control(interaction, self.shuffle_queue)

    @player_group.command(name="play", description="Attempts to enqueue specified query")
    @app_commands.describe(query="Song to look up")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        await interaction.response.defer(ephemeral=True)
        logger.info(f"{interaction.user.display_name} searched {query!r}")
        await self.search_and_play(interaction, query.strip())

    @player_group.command(name="queue", description="Displays player queue")
    async def queue(self, interaction: discord.Interaction) -> None:
        await self.show_queue(interaction)

    # =========================================================================
    # Lavalink and voice events
    # =========================================================================

    async def _advance(self, player: mafic.Player, guild_id: int, reason: mafic.EndReason) -> None:
        """Start the next queued track after the current one ended on its own."""
        # skip/play already started something
        if player.current is not None:
            return

        session = self.bot.sessions.get(guild_id)
        if session is None or session.destroyed:
            return

        if reason == mafic.EndReason.LOAD_FAILED and session.looping:
            session.looping = False
            logger.warning(f"track failed to load, looping disabled in guild {guild_id}")

        track = session.next_track()
        if track is None:
            logger.info(f"queue finished in guild {guild_id}")
            return

        try:
            await player.play(track)
        except mafic.MaficException as e:
            logger.warning(f"failed to start {track.title!r}: {e}")

    @commands.Cog.listener()
    async def on_track_end(self, event: mafic.TrackEndEvent) -> None:
        guild_id = event.player.guild.id

        if event.reason in ADVANCE_REASONS and event.player.connected:
            async with self._get_playback_lock(guild_id):
                # Re-validate after acquiring lock (player may have disconnected)
                if event.player.connected:
                    await self._advance(event.player, guild_id, event.reason)

        self.update_inactivity(guild_id, event.player)
        self.bot.sync_loop.notify_track_ended(guild_id)

    @commands.Cog.listener()
    async def on_track_exception(self, event: mafic.TrackExceptionEvent) -> None:
        """Track playback errors; on_track_end handles queue advancement."""
        title = event.track.title if event.track else "unknown"
        logger.warning(f"track exception for {title!r}: {event.exception}")

    @commands.Cog.listener()
    async def on_track_stuck(self, event: mafic.TrackStuckEvent) -> None:
        title = event.track.title if event.track else "unknown"
        logger.warning(f"track stuck for {title!r} (threshold: {event.threshold_ms}ms)")

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Drop the session when the bot is disconnected, track listeners otherwise."""
        if self.bot.user is None:
            return
        guild_id = member.guild.id

        if member.id != self.bot.user.id:
            if member.bot:
                return
            player = self._get_player_by_guild_id(guild_id)
            if player is None or not player.connected:
                return
            # Joined, left or (un)deafened in the bot's channel
            if player.channel in (before.channel, after.channel):
                self.update_inactivity(guild_id, player)
            return

        if before.channel and not after.channel:
            logger.info(f"disconnected from voice in guild {guild_id}")
            self._cancel_inactivity_timer(guild_id)
            self.bot.sessions.destroy(guild_id)
        elif after.channel and before.channel != after.channel:
            logger.info(f"moved to #{after.channel.name}")
            self.update_inactivity(guild_id)


async def setup(bot: commands.Bot) -> None:
    """Load the Player cog."""
    await bot.add_cog(Player(bot))
