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

from utils.locale import EN, RU, LocaleManager
from utils.store import BotData, GuildConfig


def test_every_english_key_has_a_russian_translation():
    assert set(EN) == set(RU)


def test_lookup_and_format():
    locale = LocaleManager()
    assert locale.get("en", "resp.player.volume.set", volume=40) == "Volume set to 40%"
    assert locale.get("ru", "resp.player.volume.set", volume=40) == "Громкость: 40%"


def test_fallbacks():
    locale = LocaleManager()
    locale.tables["ru"].pop("resp.player.play.enqueued")

    assert locale.get("ru", "resp.player.play.enqueued") == EN["resp.player.play.enqueued"]
    assert locale.get("de", "resp.player.play.enqueued") == EN["resp.player.play.enqueued"]
    assert locale.get("en", "no.such.key") == "no.such.key"


def test_missing_placeholder_returns_template():
    locale = LocaleManager()
    assert locale.get("en", "resp.player.volume.set", other=1) == EN["resp.player.volume.set"]


def test_builtin_tables_are_not_mutated():
    locale = LocaleManager()
    locale.tables["en"]["resp.player.play.enqueued"] = "changed"
    assert EN["resp.player.play.enqueued"] != "changed"


def test_for_guild_uses_guild_locale(tmp_path):
    store = BotData(tmp_path)
    store.guilds[1] = GuildConfig(locale="ru")
    locale = LocaleManager(store)

    assert locale.for_guild(1)("resp.guild.locale.set") == RU["resp.guild.locale.set"]
    assert locale.for_guild(2)("resp.guild.locale.set") == EN["resp.guild.locale.set"]


async def test_overrides_from_config_dir(tmp_path):
    (tmp_path / "locale.en.yaml").write_text('resp.player.play.enqueued: "Queued up"\n', encoding="utf-8")
    (tmp_path / "locale.de.yaml").write_text('resp.player.play.enqueued: "Eingereiht"\n', encoding="utf-8")
    locale = LocaleManager(config_path=tmp_path)
    await locale.load()

    assert locale.get("en", "resp.player.play.enqueued") == "Queued up"
    assert locale.get("de", "resp.player.play.enqueued") == "Eingereiht"


async def test_invalid_override_file_is_ignored(tmp_path):
    (tmp_path / "locale.en.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    locale = LocaleManager(config_path=tmp_path)
    await locale.load()

    assert locale.get("en", "resp.player.play.enqueued") == EN["resp.player.play.enqueued"]
