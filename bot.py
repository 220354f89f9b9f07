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

"""
Sawaya Music Bot
========================================================

A Discord music bot built on discord.py and Lavalink (mafic).
Run with: python bot.py
"""

import asyncio
import logging
import os
import sys

import discord
import mafic
from discord import app_commands
from discord.ext import commands
from dotenv import load_dotenv
from loguru import logger

from core.queue import SessionStore
from core.snapshot import PlayerSnapshotReader
from systems.control_panel import ControlPanelManager
from systems.control_registry import ControlRegistry
from systems.messenger import PanelMessenger
from systems.sync_loop import ControlSyncLoop
from ui.control_panel import ControlPanelView, PanelPresenter
from utils.config import ConfigManager, check_lavalink, resolve_paths, validate_configuration
from utils.locale import LocaleManager
from utils.response import get_player
from utils.store import BotData

# Load environment variables
load_dotenv()

EXTENSIONS = ("cogs.player", "cogs.playlist", "cogs.guild")

# =============================================================================
# LOGGING SETUP
# =============================================================================

# Config log level -> loguru level
LOG_LEVELS = {
    "minimal": "NOTICE",
    "verbose": "INFO",
    "debug": "DEBUG",
}

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> "
    "<level>{level: <8}</level> "
    "<cyan>{name}</cyan>: <level>{message}</level>"
)

# Between INFO and WARNING: startup facts worth seeing at "minimal"
logger.level("NOTICE", no=25, color="<blue><bold>")


class InterceptHandler(logging.Handler):
    """Route stdlib logging (discord.py, mafic) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "verbose") -> None:
    """(Re)configure the single stderr sink and the stdlib bridge."""
    loguru_level = LOG_LEVELS.get(level, "INFO")
    logger.remove()
    logger.add(sys.stderr, level=loguru_level, format=LOG_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    # Library chatter only in debug mode
    library_level = logging.DEBUG if level == "debug" else logging.WARNING
    for name in ("discord", "mafic"):
        logging.getLogger(name).setLevel(library_level)


def custom_exception_handler(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Suppress cosmetic aiohttp shutdown warnings; everything else goes to the default handler."""
    message = context.get("message", "")
    if message in ("Unclosed client session", "Unclosed connector"):
        return
    loop.default_exception_handler(context)


# =============================================================================
# BOT
# =============================================================================


class SawayaBot(commands.Bot):
    """Bot with the shared services cogs and views rely on.

    Attributes (available after setup_hook):
        config_manager: Settings from settings.yaml and the environment
        store: Guild configs and playlists
        locale: Localized strings
        sessions: Per-guild queue, loop flag and volume
        pool: mafic node pool
        registry / reader / messenger / presenter: Control panel plumbing
        sync_loop: Periodic and event-driven panel refreshes
        panel_manager: Opens and closes control panels
    """

    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.voice_states = True
        intents.members = True
        super().__init__(command_prefix=commands.when_mentioned, intents=intents, help_command=None)

        self.config_path, self.data_path = resolve_paths()
        self.config_manager = ConfigManager(self.config_path)
        self.store = BotData(self.data_path)
        self.locale = LocaleManager(self.store, self.config_path)
        self.sessions = SessionStore()
        self.pool = mafic.NodePool(self)

        self.registry = ControlRegistry()
        self.messenger: PanelMessenger | None = None
        self.presenter: PanelPresenter | None = None
        self.reader: PlayerSnapshotReader | None = None
        self.sync_loop: ControlSyncLoop | None = None
        self.panel_manager: ControlPanelManager | None = None
        # Set when the panel loop hits a programming error; main() exits non-zero
        self.fatal_error: BaseException | None = None
        self._shutdown_task: asyncio.Task | None = None

    def lookup_player(self, guild_id: int) -> mafic.Player | None:
        return get_player(self.get_guild(guild_id))

    def make_panel_view(self, guild_id: int) -> ControlPanelView:
        queue_label = self.locale.for_guild(guild_id)("resp.player.queue.title")
        return ControlPanelView(self, queue_label=queue_label)

    async def setup_hook(self) -> None:
        asyncio.get_running_loop().set_exception_handler(custom_exception_handler)

        await self.config_manager.load()
        setup_logging(self.config_manager.section("logging").get("level", "verbose"))
        await self.store.load()
        await self.locale.load()

        self.sessions = SessionStore(self.config_manager.get("default_volume", 20) / 100)

        panel = self.config_manager.section("panel")
        self.messenger = PanelMessenger(edit_timeout=panel["edit_timeout"])
        self.presenter = PanelPresenter(self.locale, panel["color"], panel["width"])
        self.reader = PlayerSnapshotReader(self.lookup_player, self.sessions)
        self.sync_loop = ControlSyncLoop(
            self.registry,
            self.reader,
            self.messenger,
            self.presenter,
            interval=panel["update_interval"],
            on_crash=self._on_sync_loop_crash,
        )
        self.panel_manager = ControlPanelManager(
            self.registry,
            self.messenger,
            self.reader,
            self.presenter,
            self.make_panel_view,
        )

        await self._connect_lavalink()

        for extension in EXTENSIONS:
            await self.load_extension(extension)
            logger.debug(f"loaded {extension}")

        # Buttons on panels posted before a restart keep working
        self.add_view(ControlPanelView(self))

        await self._sync_commands()
        self.sync_loop.start()

    def _on_sync_loop_crash(self, exc: BaseException) -> None:
        """Fail fast: a panel state the renderer can't map is a bug, not a runtime condition."""
        if self.fatal_error is not None:
            return
        self.fatal_error = exc
        logger.critical("shutting down after a control panel programming error")
        self._shutdown_task = asyncio.create_task(self.close())

    async def _connect_lavalink(self) -> None:
        lavalink = self.config_manager.section("lavalink")
        await check_lavalink(lavalink["host"], lavalink["port"], lavalink["password"])
        await self.pool.create_node(
            host=lavalink["host"],
            port=lavalink["port"],
            label=lavalink["label"],
            password=lavalink["password"],
        )
        logger.info(f"lavalink node {lavalink['label']} connected at {lavalink['host']}:{lavalink['port']}")

    async def _sync_commands(self) -> None:
        guild_id = os.getenv("GUILD_ID")
        try:
            if guild_id:
                guild = discord.Object(id=int(guild_id))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
            else:
                synced = await self.tree.sync()
        except (discord.HTTPException, ValueError) as e:
            logger.error(f"failed to sync command tree: {e}")
            return
        logger.info(f"synced {len(synced)} commands")

    async def on_ready(self) -> None:
        logger.log("NOTICE", f"logged in as {self.user} ({len(self.guilds)} guilds)")

    async def close(self) -> None:
        """Stop panel refreshes before the connection goes away."""
        logger.info("shutting down")
        if self.sync_loop is not None:
            await self.sync_loop.stop()
        await super().close()


bot = SawayaBot()


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
    """Log unexpected command failures with their traceback."""
    original = getattr(error, "original", error)
    logger.opt(exception=original).error(f"command {interaction.command and interaction.command.qualified_name} failed")

    if not interaction.response.is_done():
        try:
            await interaction.response.send_message(
                bot.locale.for_guild(interaction.guild_id)("resp.error.unexpected"),
                ephemeral=True,
            )
        except discord.HTTPException:
            pass


def main() -> None:
    setup_logging(os.getenv("LOG_LEVEL", "verbose"))
    validate_configuration()
    logger.info("starting bot")
    bot.run(os.environ["DISCORD_TOKEN"].strip(), log_handler=None)
    if bot.fatal_error is not None:
        sys.exit(1)


if __name__ == "__main__":
    main()
