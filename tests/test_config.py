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

import pytest
import yaml

from utils.config import DEFAULT_SETTINGS, ConfigManager, deep_merge, parse_hex_color

ENV_KEYS = (
    "DEFAULT_VOLUME", "LOG_LEVEL", "LAVALINK_HOST", "LAVALINK_PORT", "LAVALINK_PASSWORD",
    "LAVALINK_LABEL", "PANEL_UPDATE_INTERVAL", "PANEL_EDIT_TIMEOUT", "PANEL_COLOR",
    "PANEL_WIDTH", "SEARCH_RESULTS", "PAGE_SIZE", "EXTENDED_AUTO_DELETE", "INACTIVITY_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def write_settings(path, data):
    (path / "settings.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")


async def test_defaults_generated(tmp_path):
    config = ConfigManager(tmp_path)
    await config.load()

    assert (tmp_path / "settings.yaml").exists()
    assert config.get("default_volume") == 20
    assert config.section("panel")["update_interval"] == 2.5


async def test_user_values_override_defaults(tmp_path):
    write_settings(tmp_path, {"panel": {"update_interval": 5}, "default_volume": 40})
    config = ConfigManager(tmp_path)
    await config.load()

    assert config.section("panel")["update_interval"] == 5.0
    assert config.section("panel")["width"] == 35
    assert config.get("default_volume") == 40


async def test_out_of_range_values_are_clamped(tmp_path):
    write_settings(tmp_path, {"panel": {"update_interval": 0.01, "width": 500}, "default_volume": 900})
    config = ConfigManager(tmp_path)
    await config.load()

    assert config.section("panel")["update_interval"] == 0.5
    assert config.section("panel")["width"] == 80
    assert config.get("default_volume") == 150


async def test_invalid_values_fall_back(tmp_path):
    write_settings(tmp_path, {"ui": {"page_size": "lots"}, "logging": {"level": "loud"}})
    config = ConfigManager(tmp_path)
    await config.load()

    assert config.section("ui")["page_size"] == DEFAULT_SETTINGS["ui"]["page_size"]
    assert config.section("logging")["level"] == "verbose"


async def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("LAVALINK_HOST", "lavalink")
    monkeypatch.setenv("LAVALINK_PORT", "2444")
    monkeypatch.setenv("PANEL_COLOR", "#FF0000")
    monkeypatch.setenv("DEFAULT_VOLUME", "not a number")
    config = ConfigManager(tmp_path)
    await config.load()

    assert config.section("lavalink")["host"] == "lavalink"
    assert config.section("lavalink")["port"] == 2444
    assert config.section("panel")["color"] == 0xFF0000
    assert config.get("default_volume") == 20


async def test_inactivity_timeout_bounds(tmp_path, monkeypatch):
    config = ConfigManager(tmp_path)
    await config.load()
    assert config.get("inactivity_timeout") == 30

    write_settings(tmp_path, {"inactivity_timeout": 99999})
    config = ConfigManager(tmp_path)
    await config.load()
    assert config.get("inactivity_timeout") == 3600

    monkeypatch.setenv("INACTIVITY_TIMEOUT", "-5")
    config = ConfigManager(tmp_path)
    await config.load()
    assert config.get("inactivity_timeout") == 0


async def test_null_section_restored(tmp_path):
    (tmp_path / "settings.yaml").write_text("panel:\n", encoding="utf-8")
    config = ConfigManager(tmp_path)
    await config.load()

    assert config.section("panel")["width"] == 35


def test_deep_merge_ignores_unknown_keys():
    merged = deep_merge({"bogus": 1, "panel": {"width": 40}}, DEFAULT_SETTINGS)

    assert "bogus" not in merged
    assert merged["panel"]["width"] == 40
    assert merged["panel"]["update_interval"] == 2.5
    assert DEFAULT_SETTINGS["panel"]["width"] == 35


@pytest.mark.parametrize("value", [0x9B59B6, "9B59B6", "0x9B59B6", "#9B59B6"])
def test_parse_hex_color(value):
    assert parse_hex_color(value) == 0x9B59B6
