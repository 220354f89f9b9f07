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

"""Response utilities for Discord interactions.

Provides ResponseMixin for consistent localized replies across cogs and
views. Anything with a `bot` attribute exposing `locale` can mix it in.
"""

import discord
import mafic

from core.errors import PlaybackError


def escape_markdown(text: str) -> str:
    """Escape underscores for Discord embed/message display.

    Use for: embed descriptions, embed field values, message content.
    Do NOT use for: button labels, select options (plain text).
    """
    return text.replace("_", "\\_")


# =============================================================================
# DISPLAY TRUNCATION
# =============================================================================
# Always truncate BEFORE escape_markdown (escaping can add characters).

EMBED_FIELD_NAME_MAX = 250   # embed field name (limit 256)
EMBED_FIELD_MAX = 1000       # embed field value (limit 1024)
EMBED_TITLE_MAX = 240        # embed title (limit 256)
BUTTON_LABEL_MAX = 77        # button label (limit 80)


def truncate_for_display(text: str, max_length: int) -> str:
    """Truncate text with ellipsis for Discord display.

    Always call BEFORE escape_markdown().
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def get_player(guild: discord.Guild | None) -> mafic.Player | None:
    """The guild's mafic player, or None when not connected."""
    if guild is None:
        return None
    vc = guild.voice_client
    if vc and isinstance(vc, mafic.Player):
        return vc
    return None


class ResponseMixin:
    """Mixin providing localized interaction replies.

    Requirements:
        self.bot must have a `locale` (utils.locale.LocaleManager)

    Usage:
        class MyCog(ResponseMixin, commands.Cog):
            async def my_command(self, interaction):
                await self.respond(interaction, "resp.player.controls.skipped")
    """

    def text(self, interaction: discord.Interaction, key: str, **kwargs) -> str:
        """Localized string for the interaction's guild."""
        return self.bot.locale.for_guild(interaction.guild_id)(key, **kwargs)

    async def respond(self, interaction: discord.Interaction, key: str, **kwargs) -> None:
        """Send an ephemeral localized message on the response or followup path."""
        content = self.text(interaction, key, **kwargs)
        if not interaction.response.is_done():
            await interaction.response.send_message(content, ephemeral=True)
        else:
            await interaction.followup.send(content, ephemeral=True)

    async def respond_error(self, interaction: discord.Interaction, error: PlaybackError) -> None:
        """Answer a playback precondition failure with its localized message."""
        await self.respond(interaction, error.locale_key)

    async def acknowledge(self, interaction: discord.Interaction) -> None:
        """Silently acknowledge (button presses whose effect shows on the panel)."""
        if not interaction.response.is_done():
            await interaction.response.defer()

    async def deny_wrong_channel(self, interaction: discord.Interaction) -> bool:
        """Refuse users outside the bot's voice channel. Returns True if denied.

        Only applies while a player exists: with no player there is nothing
        to protect, and the caller answers with noplayer instead.
        """
        player = get_player(interaction.guild)
        if player is None:
            return False

        voice = getattr(interaction.user, "voice", None)
        if voice is None or voice.channel is None or voice.channel != player.channel:
            await self.respond(interaction, "resp.player.wrongvoicechannel")
            return True
        return False
