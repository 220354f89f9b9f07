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

"""Media control panel for Sawaya."""

import discord
from discord.ext import commands

from core.snapshot import PlayerSnapshot
from ui.render import PANEL_WIDTH, PanelLabels, RenderedPanel, render
from utils.locale import LocaleManager

# Seconds moved by the seek buttons
SEEK_STEP = 10

# Volume steps (of 5%) moved by the volume buttons
VOLUME_STEPS = 1


def build_panel_embed(rendered: RenderedPanel, color: int) -> discord.Embed:
    """Panel embed: body in a code block (monospace keeps the seek bar aligned).

    Without a player the localized sentence is shown as plain text.
    """
    if rendered.has_player:
        description = f"```{rendered.body}```"
    else:
        description = rendered.body

    embed = discord.Embed(description=description, color=color)
    if rendered.link_field is not None:
        name, value = rendered.link_field
        embed.add_field(name=name, value=value, inline=False)
    return embed


class PanelPresenter:
    """Turns snapshots into panel embeds using each guild's locale.

    Args:
        locale: Locale manager (labels resolved per guild at render time)
        color: Embed color
        width: Panel text width in characters
    """

    def __init__(self, locale: LocaleManager, color: int, width: int = PANEL_WIDTH) -> None:
        self.locale = locale
        self.color = color
        self.width = width

    def labels(self, guild_id: int) -> PanelLabels:
        text = self.locale.for_guild(guild_id)
        return PanelLabels(
            no_player=text("resp.player.controls.noplayer"),
            link=text("resp.player.play.link"),
        )

    def render(self, guild_id: int, snapshot: PlayerSnapshot) -> RenderedPanel:
        return render(snapshot, self.labels(guild_id), self.width)

    def build_embed(self, rendered: RenderedPanel) -> discord.Embed:
        return build_panel_embed(rendered, self.color)


class ControlPanelView(discord.ui.View):
    """Buttons under the control panel.

    Persistent (timeout=None, fixed custom ids): one instance is registered
    with bot.add_view at startup so buttons keep working after a restart.
    Every callback is forwarded to the Player cog, which owns the playback
    logic and the wrong-voice-channel guard.

    Layout:
        row 0: seek back, play/pause, stop, seek forward, skip
        row 1: volume down, volume up, leave, loop, shuffle
        row 2: queue, close
    """

    def __init__(self, bot: commands.Bot, queue_label: str = "☰") -> None:
        super().__init__(timeout=None)
        self.bot = bot
        self.queue_button.label = queue_label

    def _cog(self):
        return self.bot.get_cog("Player")

    async def _control(self, interaction: discord.Interaction, name: str, *args) -> None:
        """Run a quiet playback control on the Player cog."""
        cog = self._cog()
        if cog is None:
            await interaction.response.defer()
            return
        await cog.run_control(interaction, getattr(cog, name), *args, quiet=True)

    async def _announced(self, interaction: discord.Interaction, name: str) -> None:
        """Run a playback control that answers with a message."""
        cog = self._cog()
        if cog is None:
            await interaction.response.defer()
            return
        await cog.run_control(interaction, getattr(cog, name))

    # Row 0: transport

    @discord.ui.button(emoji="⏪", style=discord.ButtonStyle.secondary, custom_id="player-back", row=0)
    async def back_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._control(interaction, "seek", -SEEK_STEP)

    @discord.ui.button(emoji="⏯", style=discord.ButtonStyle.secondary, custom_id="player-play", row=0)
    async def play_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._control(interaction, "toggle_pause")

    @discord.ui.button(emoji="⏹", style=discord.ButtonStyle.secondary, custom_id="player-stop", row=0)
    async def stop_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._announced(interaction, "stop_playback")

    @discord.ui.button(emoji="⏩", style=discord.ButtonStyle.secondary, custom_id="player-forward", row=0)
    async def forward_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._control(interaction, "seek", SEEK_STEP)

    @discord.ui.button(emoji="⏭", style=discord.ButtonStyle.secondary, custom_id="player-skip", row=0)
    async def skip_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._announced(interaction, "skip_track")

    # Row 1: volume and modes

    @discord.ui.button(emoji="🔉", style=discord.ButtonStyle.secondary, custom_id="player-voldown", row=1)
    async def voldown_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._control(interaction, "step_volume", -VOLUME_STEPS)

    @discord.ui.button(emoji="🔊", style=discord.ButtonStyle.secondary, custom_id="player-volup", row=1)
    async def volup_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._control(interaction, "step_volume", VOLUME_STEPS)

    @discord.ui.button(emoji="⏏", style=discord.ButtonStyle.secondary, custom_id="player-leave", row=1)
    async def leave_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._announced(interaction, "leave_channel")

    @discord.ui.button(emoji="🔁", style=discord.ButtonStyle.secondary, custom_id="player-loop", row=1)
    async def loop_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._announced(interaction, "toggle_loop")

    @discord.ui.button(emoji="🔀", style=discord.ButtonStyle.secondary, custom_id="player-shuffle", row=1)
    async def shuffle_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._announced(interaction, "shuffle_queue")

    # Row 2: panel

    @discord.ui.button(label="☰", style=discord.ButtonStyle.secondary, custom_id="player-queue", row=2)
    async def queue_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        cog = self._cog()
        if cog is None:
            await interaction.response.defer()
            return
        await cog.show_queue(interaction)

    @discord.ui.button(label="🗙", style=discord.ButtonStyle.secondary, custom_id="player-close", row=2)
    async def close_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await interaction.response.defer()
        await self.bot.panel_manager.close_message(interaction.guild_id, interaction.message)
