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

import asyncio
from types import SimpleNamespace

import aiohttp
import discord
import pytest

from systems.messenger import UNKNOWN_MESSAGE, EditResult, PanelMessenger


def http_error(cls, status, code=0):
    response = SimpleNamespace(status=status, reason="error")
    return cls(response, {"code": code, "message": "error"})


class RaisingMessage:
    def __init__(self, error=None, delay=0.0):
        self.error = error
        self.delay = delay
        self.edited_with = None

    async def edit(self, embed):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.edited_with = embed

    async def delete(self):
        if self.error is not None:
            raise self.error


@pytest.fixture
def messenger():
    return PanelMessenger(edit_timeout=0.05)


async def test_edit_ok(messenger):
    message = RaisingMessage()
    assert await messenger.edit(message, "embed") is EditResult.OK
    assert message.edited_with == "embed"


async def test_not_found(messenger):
    error = http_error(discord.NotFound, 404, UNKNOWN_MESSAGE)
    assert await messenger.edit(RaisingMessage(error), "embed") is EditResult.NOT_FOUND


async def test_unknown_message_code(messenger):
    error = http_error(discord.HTTPException, 400, UNKNOWN_MESSAGE)
    assert await messenger.edit(RaisingMessage(error), "embed") is EditResult.NOT_FOUND


async def test_server_error_is_transient(messenger):
    error = http_error(discord.HTTPException, 503)
    assert await messenger.edit(RaisingMessage(error), "embed") is EditResult.TRANSIENT


async def test_rate_limit_is_transient(messenger):
    error = http_error(discord.HTTPException, 429)
    assert await messenger.edit(RaisingMessage(error), "embed") is EditResult.TRANSIENT


async def test_connection_error_is_transient(messenger):
    error = aiohttp.ClientConnectionError("reset")
    assert await messenger.edit(RaisingMessage(error), "embed") is EditResult.TRANSIENT


async def test_timeout_is_transient(messenger):
    assert await messenger.edit(RaisingMessage(delay=1.0), "embed") is EditResult.TRANSIENT


async def test_delete_ignores_missing_message(messenger):
    await messenger.delete(RaisingMessage(http_error(discord.NotFound, 404, UNKNOWN_MESSAGE)))


async def test_delete_ignores_forbidden(messenger):
    await messenger.delete(RaisingMessage(http_error(discord.Forbidden, 403)))
