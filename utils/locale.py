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

"""Localized response strings.

Lookup order for a key: the requested locale, then English, then the key
itself. Built-in tables can be overridden per language with a flat
locale.<lang>.yaml file (key: text) in the config directory.
"""

import asyncio
from functools import partial
from pathlib import Path
from typing import Callable

import yaml
from loguru import logger

from utils.store import DEFAULT_LOCALE, BotData

# Display name -> locale code, in the order offered by /guild locale
LOCALE_CHOICES = {
    "English": "en",
    "Русский": "ru",
}

EN = {
    # Player
    "resp.player.wrongvoicechannel": "You need to be in the same voice channel as the bot",
    "resp.player.novoicechannel": "Join a voice channel first",
    "resp.player.unavailable": "Music node is not available right now",
    "resp.player.volume.set": "Volume set to {volume}%",
    "resp.player.controls.noplayer": "Nothing is playing. Use /player play to start",
    "resp.player.controls.notrack": "No track is loaded",
    "resp.player.controls.emptyqueue": "The queue is empty",
    "resp.player.controls.failed": "The music node didn't respond, try again",
    "resp.player.controls.paused": "Paused",
    "resp.player.controls.resumed": "Resumed",
    "resp.player.controls.skipped": "Skipped",
    "resp.player.controls.stop": "Stopped",
    "resp.player.controls.leave": "Left the voice channel",
    "resp.player.controls.looped": "Looping the current track",
    "resp.player.controls.unlooped": "Looping disabled",
    "resp.player.controls.shuffled": "Queue shuffled",
    "resp.player.play.noresults": "Nothing found",
    "resp.player.play.enqueued": "Enqueued",
    "resp.player.play.link": "Link",
    "resp.player.play.duration": "Duration",
    "resp.player.play.invalidlink": "Couldn't load that link",
    "resp.player.play.failed": "Search failed, try again",
    "resp.player.queue.title": "Queue",
    "resp.player.queue.nowplaying": "Now playing: {title}",
    "resp.player.queue.empty": "The queue is empty",
    "resp.player.queue.more": "...and {count} more",
    # Playlists
    "resp.playlist.empty": "No playlists found",
    "resp.playlist.wrongpage": "There is no such page",
    "resp.playlist.page": "Page {page}",
    "resp.playlist.mine.title": "Your playlists",
    "resp.playlist.shared.title": "All playlists",
    "resp.playlist.search.title": "Search: \"{query}\"",
    "resp.playlist.search.mine": "Among your playlists",
    "resp.playlist.search.shared": "Among all playlists",
    "resp.playlist.create.exists": "You already have a playlist with that name",
    "resp.playlist.name.invalid": "Playlist name can't be empty",
    "resp.playlist.id.notexist": "Playlist {id} doesn't exist",
    "resp.playlist.title": "Playlist \"{name}\"",
    "resp.playlist.name": "Playlist",
    "resp.playlist.owner": "Owner: {owner}",
    "resp.playlist.contributors": "Contributors: {names}",
    "resp.playlist.trackcount": "Tracks: {count}",
    "resp.playlist.trackcount.noparam": "Tracks",
    "resp.playlist.invalid": "That playlist is empty or invalid",
    "resp.playlist.not.owner": "Only the owner of the playlist can do that",
    "resp.playlist.not.contributor": "Only the owner or contributors can add tracks",
    "resp.playlist.adding": "Adding to \"{name}\"",
    "resp.playlist.added": "Track added",
    "resp.playlist.played": "Enqueued {count} tracks",
    "resp.playlist.controls.add": "Add",
    "resp.playlist.controls.play": "Play",
    "resp.playlist.controls.random": "Random",
    "resp.playlist.controls.refresh": "Refresh",
    "resp.playlist.controls.contributor.add": "Add contributor",
    "resp.playlist.controls.contributor.remove": "Remove contributor",
    "resp.playlist.controls.rename": "Rename",
    "resp.playlist.controls.delete": "Delete",
    "resp.playlist.contributor.select": "Pick a user",
    "resp.playlist.contributor.added": "{user} can now add tracks",
    "resp.playlist.contributor.removed": "{user} is no longer a contributor",
    "resp.playlist.track.notexist": "That track doesn't exist anymore",
    "resp.playlist.track.position": "Position: {position}",
    "resp.playlist.track.play": "Play",
    "resp.playlist.track.delete": "Remove from playlist",
    "resp.playlist.track.delete.text": "Remove this track from \"{name}\"?",
    "resp.playlist.track.delete.done": "Track removed",
    "resp.playlist.delete.text": "Delete playlist \"{name}\"? This can't be undone",
    "resp.playlist.delete.done": "Playlist deleted",
    "resp.playlist.rename.done": "Playlist renamed",
    "resp.playlist.modal.search.title": "Track search",
    "resp.playlist.modal.search.label": "Query",
    "resp.playlist.modal.search.placeholder": "Search query or link to track",
    "resp.playlist.modal.rename.title": "Rename playlist",
    "resp.playlist.modal.rename.label": "Name",
    "resp.playlist.modal.rename.placeholder": "New name for the playlist",
    # Guild
    "resp.guild.locale.set": "Language set to English",
    # Shared
    "resp.confirmation.title": "Are you sure?",
    "resp.error.unexpected": "Something went wrong, try again later",
}

RU = {
    # Player
    "resp.player.wrongvoicechannel": "Нужно находиться в том же голосовом канале, что и бот",
    "resp.player.novoicechannel": "Сначала зайдите в голосовой канал",
    "resp.player.unavailable": "Музыкальный сервер сейчас недоступен",
    "resp.player.volume.set": "Громкость: {volume}%",
    "resp.player.controls.noplayer": "Сейчас ничего не играет. Используйте /player play",
    "resp.player.controls.notrack": "Трек не загружен",
    "resp.player.controls.emptyqueue": "Очередь пуста",
    "resp.player.controls.failed": "Музыкальный сервер не ответил, попробуйте ещё раз",
    "resp.player.controls.paused": "Пауза",
    "resp.player.controls.resumed": "Воспроизведение продолжено",
    "resp.player.controls.skipped": "Пропущено",
    "resp.player.controls.stop": "Остановлено",
    "resp.player.controls.leave": "Бот покинул голосовой канал",
    "resp.player.controls.looped": "Текущий трек повторяется",
    "resp.player.controls.unlooped": "Повтор выключен",
    "resp.player.controls.shuffled": "Очередь перемешана",
    "resp.player.play.noresults": "Ничего не найдено",
    "resp.player.play.enqueued": "Добавлено в очередь",
    "resp.player.play.link": "Ссылка",
    "resp.player.play.duration": "Длительность",
    "resp.player.play.invalidlink": "Не удалось загрузить ссылку",
    "resp.player.play.failed": "Ошибка поиска, попробуйте ещё раз",
    "resp.player.queue.title": "Очередь",
    "resp.player.queue.nowplaying": "Сейчас играет: {title}",
    "resp.player.queue.empty": "Очередь пуста",
    "resp.player.queue.more": "...и ещё {count}",
    # Playlists
    "resp.playlist.empty": "Плейлисты не найдены",
    "resp.playlist.wrongpage": "Такой страницы нет",
    "resp.playlist.page": "Страница {page}",
    "resp.playlist.mine.title": "Ваши плейлисты",
    "resp.playlist.shared.title": "Все плейлисты",
    "resp.playlist.search.title": "Поиск: \"{query}\"",
    "resp.playlist.search.mine": "Среди ваших плейлистов",
    "resp.playlist.search.shared": "Среди всех плейлистов",
    "resp.playlist.create.exists": "У вас уже есть плейлист с таким названием",
    "resp.playlist.name.invalid": "Название плейлиста не может быть пустым",
    "resp.playlist.id.notexist": "Плейлист {id} не существует",
    "resp.playlist.title": "Плейлист \"{name}\"",
    "resp.playlist.name": "Плейлист",
    "resp.playlist.owner": "Владелец: {owner}",
    "resp.playlist.contributors": "Участники: {names}",
    "resp.playlist.trackcount": "Треков: {count}",
    "resp.playlist.trackcount.noparam": "Треков",
    "resp.playlist.invalid": "Плейлист пуст или недействителен",
    "resp.playlist.not.owner": "Это может сделать только владелец плейлиста",
    "resp.playlist.not.contributor": "Добавлять треки могут только владелец и участники",
    "resp.playlist.adding": "Добавление в \"{name}\"",
    "resp.playlist.added": "Трек добавлен",
    "resp.playlist.played": "Добавлено треков: {count}",
    "resp.playlist.controls.add": "Добавить",
    "resp.playlist.controls.play": "Играть",
    "resp.playlist.controls.random": "Вперемешку",
    "resp.playlist.controls.refresh": "Обновить",
    "resp.playlist.controls.contributor.add": "Добавить участника",
    "resp.playlist.controls.contributor.remove": "Убрать участника",
    "resp.playlist.controls.rename": "Переименовать",
    "resp.playlist.controls.delete": "Удалить",
    "resp.playlist.contributor.select": "Выберите пользователя",
    "resp.playlist.contributor.added": "{user} теперь может добавлять треки",
    "resp.playlist.contributor.removed": "{user} больше не участник",
    "resp.playlist.track.notexist": "Этого трека больше нет",
    "resp.playlist.track.position": "Позиция: {position}",
    "resp.playlist.track.play": "Играть",
    "resp.playlist.track.delete": "Убрать из плейлиста",
    "resp.playlist.track.delete.text": "Убрать этот трек из \"{name}\"?",
    "resp.playlist.track.delete.done": "Трек удалён",
    "resp.playlist.delete.text": "Удалить плейлист \"{name}\"? Это необратимо",
    "resp.playlist.delete.done": "Плейлист удалён",
    "resp.playlist.rename.done": "Плейлист переименован",
    "resp.playlist.modal.search.title": "Поиск трека",
    "resp.playlist.modal.search.label": "Запрос",
    "resp.playlist.modal.search.placeholder": "Поисковый запрос или ссылка на трек",
    "resp.playlist.modal.rename.title": "Переименовать плейлист",
    "resp.playlist.modal.rename.label": "Название",
    "resp.playlist.modal.rename.placeholder": "Новое название плейлиста",
    # Guild
    "resp.guild.locale.set": "Язык изменён на русский",
    # Shared
    "resp.confirmation.title": "Вы уверены?",
    "resp.error.unexpected": "Что-то пошло не так, попробуйте позже",
}

BUILTIN_TABLES = {"en": EN, "ru": RU}


def load_overrides(path: Path) -> dict[str, str]:
    """Read a flat key: text YAML file. Invalid files are logged and ignored."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        logger.opt(exception=True).warning(f"failed to read {path.name}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"{path.name} invalid, ignoring")
        return {}
    return {str(k): str(v) for k, v in data.items() if v is not None}


class LocaleManager:
    """Resolve response strings per locale.

    Args:
        store: Bot data, used to resolve a guild's locale
        config_path: Directory holding optional locale.<lang>.yaml overrides
    """

    def __init__(self, store: BotData | None = None, config_path: Path | None = None) -> None:
        self.store = store
        self.config_path = config_path
        self.tables: dict[str, dict[str, str]] = {lang: table.copy() for lang, table in BUILTIN_TABLES.items()}

    async def load(self) -> None:
        """Apply locale.<lang>.yaml overrides found in the config directory."""
        if self.config_path is None or not self.config_path.exists():
            return

        for path in sorted(self.config_path.glob("locale.*.yaml")):
            lang = path.stem.split(".", 1)[1]
            overrides = await asyncio.to_thread(load_overrides, path)
            self.tables.setdefault(lang, {}).update(overrides)
            logger.debug(f"loaded {len(overrides)} {lang} strings from {path.name}")

    def get(self, locale: str | None, key: str, **kwargs) -> str:
        """Localized string for key, formatted with kwargs.

        Falls back to English, then to the key itself. A template with a
        missing placeholder is returned unformatted.
        """
        table = self.tables.get(locale or DEFAULT_LOCALE, {})
        template = table.get(key)
        if template is None:
            template = self.tables.get(DEFAULT_LOCALE, {}).get(key, key)
        if not kwargs:
            return template
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError):
            return template

    def locale_of(self, guild_id: int | None) -> str:
        if self.store is None:
            return DEFAULT_LOCALE
        return self.store.guild_locale(guild_id)

    def for_guild(self, guild_id: int | None) -> Callable[..., str]:
        """Bind lookups to the guild's configured locale."""
        return partial(self.get, self.locale_of(guild_id))
