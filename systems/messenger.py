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

"""Discord message operations used by the control panel.

Edits are classified instead of raised so the sync loop can decide per
guild: NOT_FOUND evicts the panel, TRANSIENT keeps it for the next tick.
"""

import asyncio
from enum import Enum

import aiohttp
import discord
from loguru import logger

# Discord API error code: Unknown Message
UNKNOWN_MESSAGE = 10008


class EditResult(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"


class PanelMessenger:
    """Send, edit and delete panel messages.

    Args:
        edit_timeout: Upper bound in seconds for a single edit call, so one
            unresponsive guild cannot stall a whole refresh tick
    """

    def __init__(self, edit_timeout: float = 5.0) -> None:
        self.edit_timeout = edit_timeout

    async def edit(self, message: discord.Message, embed: discord.Embed) -> EditResult:
        try:
            await asyncio.wait_for(message.edit(embed=embed), timeout=self.edit_timeout)
            return EditResult.OK
        except discord.NotFound:
            return EditResult.NOT_FOUND
        except discord.HTTPException as e:
            if e.code == UNKNOWN_MESSAGE:
                return EditResult.NOT_FOUND
            logger.warning(f"panel edit failed: {e}")
            return EditResult.TRANSIENT
        except asyncio.TimeoutError:
            logger.warning(f"panel edit timed out after {self.edit_timeout}s")
            return EditResult.TRANSIENT
        except aiohttp.ClientError as e:
            logger.warning(f"panel edit connection error: {e}")
            return EditResult.TRANSIENT

    async def delete(self, message: discord.Message) -> None:
        """Delete a panel message. Already-deleted or forbidden is fine."""
        try:
            await message.delete()
        except (discord.NotFound, discord.Forbidden):
            pass
        except discord.HTTPException as e:
            logger.warning(f"couldn't delete panel: {e}")

    async def send(
        self,
        channel: discord.abc.Messageable,
        embed: discord.Embed,
        view: discord.ui.View | None = None,
    ) -> discord.Message:
        if view is None:
            return await channel.send(embed=embed)
        return await channel.send(embed=embed, view=view)
