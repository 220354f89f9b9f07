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

"""Guild configuration commands for Sawaya."""

import discord
from discord import app_commands
from discord.ext import commands
from loguru import logger

from utils.locale import LOCALE_CHOICES
from utils.response import ResponseMixin


class Guild(ResponseMixin, commands.Cog):
    """Per-guild settings."""

    guild_group = app_commands.Group(
        name="guild",
        description="A list of guild configuration commands",
        guild_only=True,
    )

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @guild_group.command(name="locale", description="Sets locale that the bot will be using for this guild")
    @app_commands.choices(locale=[
        app_commands.Choice(name=name, value=code) for name, code in LOCALE_CHOICES.items()
    ])
    async def locale(self, interaction: discord.Interaction, locale: app_commands.Choice[str]) -> None:
        config = await self.bot.store.get_or_new_guild(interaction.guild_id)
        config.locale = locale.value
        await self.bot.store.save()
        logger.info(f"guild {interaction.guild_id} locale set to {locale.value}")

        # Answer in the newly selected language
        await interaction.response.send_message(self.text(interaction, "resp.guild.locale.set"))


async def setup(bot: commands.Bot) -> None:
    """Load the Guild cog."""
    await bot.add_cog(Guild(bot))
