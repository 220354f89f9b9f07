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

"""Reusable UI views for Sawaya.

AutoDeleteView:
    Base class that deletes its message when the view times out.

PaginationView:
    Page navigation with prev/next buttons. Subclasses add per-page
    buttons by overriding page_items().

ChoiceView:
    Numbered buttons, one per search result or list entry.

ReplayView:
    Single 🔁 button that enqueues the same link again.

ConfirmView:
    Single confirmation button for destructive actions.

TextInputModal:
    One-field modal (track search, playlist rename).

UserPickView:
    User select for adding or removing playlist contributors.

Timeout configuration:
    Views read timeout from ui.extended_auto_delete in settings.yaml.
    Default is 90 seconds.
"""

from typing import Awaitable, Callable

import discord

from utils.response import BUTTON_LABEL_MAX, truncate_for_display

IndexCallback = Callable[[discord.Interaction, int], Awaitable[None]]
InteractionCallback = Callable[[discord.Interaction], Awaitable[None]]

DEFAULT_VIEW_TIMEOUT = 90


def view_timeout(bot) -> float | None:
    """ui.extended_auto_delete from config; 0 means never expire."""
    if bot is None:
        return DEFAULT_VIEW_TIMEOUT
    timeout = bot.config_manager.section("ui").get("extended_auto_delete", DEFAULT_VIEW_TIMEOUT)
    return timeout if timeout > 0 else None


class AutoDeleteView(discord.ui.View):
    """Base class for views that clean up their message on timeout."""

    def __init__(self, *args, bot=None, **kwargs) -> None:
        kwargs.setdefault("timeout", view_timeout(bot))
        super().__init__(*args, **kwargs)
        self.message: discord.Message | None = None
        self.bot = bot

    async def on_timeout(self) -> None:
        """Delete message when view times out."""
        if self.message:
            try:
                await self.message.delete()
            except discord.NotFound:
                pass
            except discord.HTTPException:
                pass


class PaginationView(AutoDeleteView):
    """Paginated view with prev/next buttons.

    Args:
        items: Full list of items to paginate
        page_size: Items per page
        format_page: Callback(items, page_num, total_pages) -> Embed
        page: Initial page (0-based)
        bot: Bot instance for config access
    """

    def __init__(
        self,
        items: list,
        page_size: int,
        format_page: Callable[[list, int, int], discord.Embed],
        page: int = 0,
        bot=None,
    ) -> None:
        super().__init__(bot=bot)
        self.items = items
        self.page_size = page_size
        self.format_page = format_page
        self.total_pages = max(1, (len(items) + page_size - 1) // page_size)
        self.current_page = max(0, min(page, self.total_pages - 1))

        self.prev_button = discord.ui.Button(emoji="⬅", style=discord.ButtonStyle.secondary, row=1)
        self.next_button = discord.ui.Button(emoji="➡", style=discord.ButtonStyle.secondary, row=1)
        self.prev_button.callback = self._prev
        self.next_button.callback = self._next

        self._rebuild()

    @property
    def paginated(self) -> bool:
        return self.total_pages > 1

    def get_page_items(self) -> list:
        start = self.current_page * self.page_size
        return self.items[start:start + self.page_size]

    def page_items(self) -> list[discord.ui.Item]:
        """Per-page components (row 0). Override in subclasses."""
        return []

    def extra_items(self) -> list[discord.ui.Item]:
        """Components shown on every page below the navigation. Override in subclasses."""
        return []

    def _rebuild(self) -> None:
        """Re-create components for the current page."""
        self.clear_items()
        for item in self.page_items():
            self.add_item(item)
        if self.paginated:
            self.prev_button.disabled = self.current_page <= 0
            self.next_button.disabled = self.current_page >= self.total_pages - 1
            self.add_item(self.prev_button)
            self.add_item(self.next_button)
        for item in self.extra_items():
            self.add_item(item)

    def current_embed(self) -> discord.Embed:
        return self.format_page(self.get_page_items(), self.current_page, self.total_pages)

    async def _show_page(self, interaction: discord.Interaction, page: int) -> None:
        self.current_page = page
        self._rebuild()
        await interaction.response.edit_message(embed=self.current_embed(), view=self)

    async def _prev(self, interaction: discord.Interaction) -> None:
        if self.current_page > 0:
            await self._show_page(interaction, self.current_page - 1)
        else:
            await interaction.response.defer()

    async def _next(self, interaction: discord.Interaction) -> None:
        if self.current_page < self.total_pages - 1:
            await self._show_page(interaction, self.current_page + 1)
        else:
            await interaction.response.defer()


def numbered_buttons(start: int, count: int, on_pick: IndexCallback, row: int = 0) -> list[discord.ui.Button]:
    """Buttons labelled start+1 .. start+count; clicking one calls on_pick(interaction, index)."""
    buttons = []
    for index in range(start, start + count):
        button = discord.ui.Button(label=str(index + 1), style=discord.ButtonStyle.secondary, row=row)

        async def callback(interaction: discord.Interaction, index: int = index) -> None:
            await on_pick(interaction, index)

        button.callback = callback
        buttons.append(button)
    return buttons


class ChoiceView(AutoDeleteView):
    """Numbered buttons for picking one of several results.

    Args:
        count: Number of choices (at most 5 fit on one row)
        on_pick: Callback(interaction, index)
        bot: Bot instance for config access
    """

    def __init__(self, count: int, on_pick: IndexCallback, bot=None) -> None:
        super().__init__(bot=bot)
        for button in numbered_buttons(0, min(count, 5), on_pick):
            self.add_item(button)


class ReplayView(AutoDeleteView):
    """🔁 button under an enqueue announcement."""

    def __init__(self, on_replay: InteractionCallback, bot=None) -> None:
        super().__init__(bot=bot)
        self._on_replay = on_replay

    @discord.ui.button(emoji="🔁", style=discord.ButtonStyle.secondary)
    async def replay_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        await self._on_replay(interaction)


class ConfirmView(AutoDeleteView):
    """One button that runs on_confirm; used after a "are you sure?" embed."""

    def __init__(self, label: str, on_confirm: InteractionCallback, bot=None,
                 style: discord.ButtonStyle = discord.ButtonStyle.danger) -> None:
        super().__init__(bot=bot)
        button = discord.ui.Button(label=truncate_for_display(label, BUTTON_LABEL_MAX), style=style)
        button.callback = self._confirm
        self._on_confirm = on_confirm
        self.add_item(button)

    async def _confirm(self, interaction: discord.Interaction) -> None:
        self.stop()
        await self._on_confirm(interaction)


class TextInputModal(discord.ui.Modal):
    """Single text field modal. on_submit receives the stripped value."""

    def __init__(
        self,
        title: str,
        label: str,
        placeholder: str,
        on_submit: Callable[[discord.Interaction, str], Awaitable[None]],
        default: str | None = None,
        max_length: int = 200,
    ) -> None:
        super().__init__(title=title[:45])
        self.field = discord.ui.TextInput(
            label=label[:45],
            placeholder=placeholder[:100],
            default=default,
            max_length=max_length,
        )
        self.add_item(self.field)
        self._on_submit = on_submit

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await self._on_submit(interaction, self.field.value.strip())


class UserPickView(AutoDeleteView):
    """User select; on_pick receives the chosen user."""

    def __init__(
        self,
        placeholder: str,
        on_pick: Callable[[discord.Interaction, discord.abc.User], Awaitable[None]],
        bot=None,
    ) -> None:
        super().__init__(bot=bot)
        self._on_pick = on_pick
        self.select = discord.ui.UserSelect(placeholder=placeholder[:150], min_values=1, max_values=1)
        self.select.callback = self._picked
        self.add_item(self.select)

    async def _picked(self, interaction: discord.Interaction) -> None:
        self.stop()
        await self._on_pick(interaction, self.select.values[0])
