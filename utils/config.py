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

"""Configuration management for Sawaya."""

import asyncio
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable

import aiohttp
import yaml
from loguru import logger


# =============================================================================
# DEFAULT SETTINGS SCHEMA
# =============================================================================
# These defaults are used when settings.yaml is missing or incomplete.
# Environment variables can override any setting (see _apply_env_overrides).
#
# Playback Settings:
#   default_volume         - Volume when joining voice, percent (0-150)
#   inactivity_timeout     - Seconds idle or alone in voice before leaving (0 = never)
#
# Lavalink Settings (lavalink.*):
#   host / port / password - Lavalink node connection
#   label                  - Node label shown in logs
#
# Panel Settings (panel.*):
#   update_interval        - Seconds between panel refresh ticks (0.5-60)
#   edit_timeout           - Seconds before a single panel edit is abandoned (1-30)
#   color                  - Embed color as hex integer (e.g., 0x9B59B6)
#   width                  - Panel text width in characters (10-80)
#
# UI Settings (ui.*):
#   search_results         - Choices offered for a text search (1-5)
#   page_size              - Items per page in playlist listings (1-10)
#   queue_display_size     - Tracks shown by the queue view (1-25)
#   extended_auto_delete   - Seconds before interactive views expire (0 = never)
#
# Logging Settings (logging.*):
#   level                  - Log verbosity: "minimal", "verbose", or "debug"
# =============================================================================

DEFAULT_SETTINGS = {
    "default_volume": 20,
    "inactivity_timeout": 30,  # seconds, 0 to disable
    "lavalink": {
        "host": "127.0.0.1",
        "port": 2333,
        "password": "youshallnotpass",
        "label": "MAIN",
    },
    "panel": {
        "update_interval": 2.5,
        "edit_timeout": 5,
        "color": 0x9B59B6,
        "width": 35,
    },
    "ui": {
        "search_results": 5,
        "page_size": 5,
        "queue_display_size": 20,
        "extended_auto_delete": 90,  # seconds, 0 to disable
    },
    # Logging (LOG_LEVEL env var overrides this)
    "logging": {
        "level": "verbose",  # minimal, verbose, debug
    },
}

# section -> key -> (min, max, type)
_BOUNDS: dict[str | None, dict[str, tuple[float, float, type]]] = {
    None: {"default_volume": (0, 150, int), "inactivity_timeout": (0, 3600, int)},
    "lavalink": {"port": (1, 65535, int)},
    "panel": {
        "update_interval": (0.5, 60, float),
        "edit_timeout": (1, 30, float),
        "width": (10, 80, int),
    },
    "ui": {
        "search_results": (1, 5, int),
        "page_size": (1, 10, int),
        "queue_display_size": (1, 25, int),
        "extended_auto_delete": (0, 3600, int),
    },
}

LOG_LEVELS = ("minimal", "verbose", "debug")


def deep_merge(user: dict, defaults: dict) -> dict:
    """Merge user config with defaults, preserving nested structure.

    User values override defaults. For nested dicts, merges recursively.
    Unknown keys (not in defaults) are logged as warnings and ignored.
    """
    result = {k: (v.copy() if isinstance(v, dict) else v) for k, v in defaults.items()}
    for key, value in user.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(value, result[key])
        elif key in defaults:
            result[key] = value
        else:
            logger.warning(f"unknown config key: {key}")
    return result


def load_yaml(path: Path, defaults: dict) -> dict:
    """Load YAML file merged over defaults.

    A missing file or invalid YAML returns a copy of defaults; parse errors
    are logged.
    """
    if not path.exists():
        return deep_merge({}, defaults)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            user = yaml.safe_load(f) or {}

        if not isinstance(user, dict):
            logger.warning(f"{path.name} invalid, using defaults")
            return deep_merge({}, defaults)

        return deep_merge(user, defaults)

    except yaml.YAMLError:
        logger.opt(exception=True).error(f"failed to parse {path.name}")
        return deep_merge({}, defaults)


def save_yaml(path: Path, data: dict, header: str = "") -> None:
    """Save YAML atomically with optional header comment.

    Writes to a temp file in the same directory then renames over the
    destination. Creates parent directories if they don't exist.
    """
    temp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=path.parent, suffix='.tmp')
        try:
            f = os.fdopen(temp_fd, 'w', encoding='utf-8')
        except Exception:
            os.close(temp_fd)
            raise
        with f:
            if header:
                f.write(header)
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        Path(temp_path).replace(path)
    except Exception:
        if temp_path:
            Path(temp_path).unlink(missing_ok=True)
        raise


def parse_hex_color(value: Any) -> int:
    """Accept 0x9B59B6, "9B59B6", "0x9B59B6" or "#9B59B6"."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value).strip().lstrip("#").removeprefix("0x").removeprefix("0X")
    return int(text, 16)


class ConfigManager:
    """Manages bot configuration from settings.yaml.

    Loads configuration at startup with this priority (highest wins):
    1. DEFAULT_SETTINGS (built-in defaults)
    2. settings.yaml (user customization)
    3. Environment variables (Docker/deployment override)

    Access patterns:
        config_manager.get("key")           # Get top-level setting
        config_manager.get("key", default)  # Get with fallback
        config_manager.section("panel")     # Get a nested section dict

    Settings are validated after loading: invalid values are clamped or
    reset to defaults with a warning logged.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self.settings: dict = {}

    async def load(self) -> None:
        """Load settings from YAML, apply env overrides, validate.

        Generates settings.yaml with defaults when missing.
        """
        settings_path = self.config_path / "settings.yaml"
        self.settings = await asyncio.to_thread(load_yaml, settings_path, DEFAULT_SETTINGS)

        if not settings_path.exists():
            header = "# Sawaya Bot Settings\n# Edit these values to customize behavior\n\n"
            await asyncio.to_thread(save_yaml, settings_path, DEFAULT_SETTINGS, header)
            logger.debug(f"generated {settings_path.name}")

        self._apply_env_overrides()
        self._validate_settings()

        logger.debug("config loaded")

    def _validate_settings(self) -> None:
        """Validate and clamp settings after loading from all sources.

        1. Null-restore: YAML "key:" with no value becomes None; restore defaults.
        2. Bounded numbers: clamp to their valid range, warn when clamped.
        3. Panel color: coerce string hex values to int.
        4. Log level: unknown names fall back to the default.
        """
        for key in list(self.settings):
            if self.settings[key] is None and key in DEFAULT_SETTINGS:
                default = DEFAULT_SETTINGS[key]
                self.settings[key] = default.copy() if isinstance(default, dict) else default
        for section, defaults in DEFAULT_SETTINGS.items():
            if not isinstance(defaults, dict):
                continue
            sect = self.settings.get(section)
            if not isinstance(sect, dict):
                logger.warning(f"{section} section invalid, using defaults")
                self.settings[section] = defaults.copy()
                continue
            for key in list(sect):
                if sect[key] is None and key in defaults:
                    sect[key] = defaults[key]

        for section, rules in _BOUNDS.items():
            target = self.settings if section is None else self.settings[section]
            defaults = DEFAULT_SETTINGS if section is None else DEFAULT_SETTINGS[section]
            for key, (min_val, max_val, kind) in rules.items():
                name = key if section is None else f"{section}.{key}"
                value = target.get(key)
                try:
                    v = kind(value)
                except (ValueError, TypeError):
                    logger.warning(f"{name}={value!r} invalid, using default")
                    target[key] = defaults[key]
                    continue
                clamped = kind(max(min_val, min(max_val, v)))
                if clamped != v:
                    logger.warning(f"{name}={v} out of range, clamped to {clamped} (valid: {min_val}-{max_val})")
                target[key] = clamped

        panel = self.settings["panel"]
        try:
            panel["color"] = parse_hex_color(panel.get("color"))
        except (ValueError, TypeError):
            logger.warning(f"panel.color={panel.get('color')!r} invalid, using default")
            panel["color"] = DEFAULT_SETTINGS["panel"]["color"]

        log_config = self.settings["logging"]
        if str(log_config.get("level", "")).lower() not in LOG_LEVELS:
            logger.warning(f"logging.level={log_config.get('level')!r} invalid, using default")
            log_config["level"] = DEFAULT_SETTINGS["logging"]["level"]

    def _apply_env_overrides(self) -> None:
        """Override settings with environment variables.

        env_map maps ENV_VAR_NAME -> (setting_key, converter). Nested keys use
        dot notation. Invalid values are logged and ignored.
        """
        def non_negative(env_key: str) -> Callable[[str], int]:
            def validate(x: str) -> int:
                v = int(x)
                if v < 0:
                    logger.warning(f"{env_key}={v} out of range, clamped to 0 (valid: 0+)")
                    return 0
                return v
            return validate

        env_map = {
            "DEFAULT_VOLUME": ("default_volume", int),
            "INACTIVITY_TIMEOUT": ("inactivity_timeout", non_negative("INACTIVITY_TIMEOUT")),
            "LOG_LEVEL": ("logging.level", str),
            # Lavalink node
            "LAVALINK_HOST": ("lavalink.host", str),
            "LAVALINK_PORT": ("lavalink.port", int),
            "LAVALINK_PASSWORD": ("lavalink.password", str),
            "LAVALINK_LABEL": ("lavalink.label", str),
            # Panel
            "PANEL_UPDATE_INTERVAL": ("panel.update_interval", float),
            "PANEL_EDIT_TIMEOUT": ("panel.edit_timeout", float),
            "PANEL_COLOR": ("panel.color", parse_hex_color),
            "PANEL_WIDTH": ("panel.width", int),
            # UI
            "SEARCH_RESULTS": ("ui.search_results", int),
            "PAGE_SIZE": ("ui.page_size", int),
            "EXTENDED_AUTO_DELETE": ("ui.extended_auto_delete", non_negative("EXTENDED_AUTO_DELETE")),
        }

        for env_key, (setting_key, converter) in env_map.items():
            if value := os.getenv(env_key):
                try:
                    converted = converter(value)
                    if "." in setting_key:
                        parts = setting_key.split(".")
                        target = self.settings
                        for part in parts[:-1]:
                            target = target.setdefault(part, {})
                            if not isinstance(target, dict):
                                logger.warning(f"invalid config structure for {setting_key}")
                                break
                        else:
                            target[parts[-1]] = converted
                    else:
                        self.settings[setting_key] = converted
                    logger.debug(f"{env_key} overrides {setting_key}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"invalid env var {env_key}: {e}")

    def get(self, key: str, default=None) -> Any:
        """Get a top-level setting value."""
        return self.settings.get(key, default)

    def section(self, name: str) -> dict:
        """Get a nested settings section, falling back to its defaults."""
        sect = self.settings.get(name)
        if isinstance(sect, dict):
            return sect
        return DEFAULT_SETTINGS.get(name, {}).copy()


def resolve_paths() -> tuple[Path, Path]:
    """Config and data directories from CONFIG_PATH/DATA_PATH or the repo defaults."""
    root = Path(__file__).parent.parent
    config_path = Path(os.getenv("CONFIG_PATH") or str(root / "config"))
    data_path = Path(os.getenv("DATA_PATH") or str(root / "data"))
    return config_path, data_path


def validate_configuration() -> None:
    """Validate configuration before bot starts, exit on failure.

    Checks performed:
    - DISCORD_TOKEN is set and has valid format (3 dot-separated sections)
    - Config and data directories exist (creates if missing)

    Also warns (non-fatal) if GUILD_ID is not set. On failure, logs all
    errors and calls sys.exit(1).
    """
    errors = []

    token = os.getenv("DISCORD_TOKEN")
    if not token:
        errors.append("DISCORD_TOKEN not set - add it to .env or the environment")
    else:
        parts = token.strip().split(".")
        if len(parts) != 3:
            errors.append(
                "DISCORD_TOKEN format appears invalid.\n"
                "Token should have three dot-separated sections.\n"
                "Get a fresh token from: https://discord.com/developers/applications"
            )
        elif any(not part for part in parts):
            errors.append(
                "DISCORD_TOKEN has empty sections.\n"
                "Get a fresh token from: https://discord.com/developers/applications"
            )

    if not os.getenv("GUILD_ID"):
        logger.warning("GUILD_ID not set - commands may take up to 1 hour to show up")

    for path in resolve_paths():
        if not path.exists():
            try:
                path.mkdir(parents=True)
                logger.warning(f"created missing directory: {path}")
            except OSError as e:
                errors.append(f"cannot create directory {path}: {e}")

    if errors:
        for error in errors:
            logger.error(error)
        sys.exit(1)


async def check_lavalink(host: str, port: int, password: str, timeout: float = 30.0) -> str | None:
    """Query the node's /version endpoint. Returns the version, or None if unreachable."""
    url = f"http://{host}:{port}/version"
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                headers={"Authorization": password},
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                if resp.status != 200:
                    logger.error(f"lavalink not responding at {url} (status {resp.status})")
                    return None
                version = await resp.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.error(f"cannot connect to lavalink at {host}:{port}: {e}")
        return None

    logger.log("NOTICE", f"lavalink version: {version}")
    return version
