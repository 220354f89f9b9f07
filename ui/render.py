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

"""Text rendering for the now-playing control panel.

Everything here is pure: the same snapshot and labels always produce the same
output, which is what lets the sync loop skip edits when nothing changed.

Panel body layout (inside a code block on Discord):

    Song title, hard-wrapped at the panel width
    by Artist
    ██████████▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁▁
    ▶ 01:12/03:40 🔊20% ➡ ☰3

The queue marker is only shown when tracks are waiting.
"""

from dataclasses import dataclass

from core.snapshot import PlayerSnapshot, PlayerState

PANEL_WIDTH = 35

SEEK_FILLED = "█"
SEEK_EMPTY = "▁"
EMPTY_TIME_TEXT = "00:00/00:00"

STATE_GLYPHS: dict[PlayerState, str] = {
    PlayerState.PLAYING: "▶",
    PlayerState.PAUSED: "❘❘",
    PlayerState.NOT_PLAYING: "■",
    PlayerState.DESTROYED: "❌",
    PlayerState.NOT_CONNECTED: "🔌",
}

LOOP_ON = "⭯"
LOOP_OFF = "➡"
QUEUE_GLYPH = "☰"

# TimeSpan-style cutoff: anything this long is a live stream
_STREAM_CUTOFF_SECONDS = 1_000_000 * 86400


@dataclass(frozen=True)
class PanelLabels:
    """Localized strings the renderer needs. Resolved before rendering."""
    no_player: str
    link: str


@dataclass(frozen=True)
class RenderedPanel:
    body: str
    link_field: tuple[str, str] | None = None
    has_player: bool = True


def format_duration(seconds: float, is_stream: bool = False) -> str:
    """Format seconds as mm:ss, hh:mm:ss past an hour, d.hh:mm:ss past a day."""
    if is_stream or seconds >= _STREAM_CUTOFF_SECONDS:
        return "Stream"

    total = max(0, int(seconds))
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)

    if days:
        return f"{days}.{hours:02d}:{minutes:02d}:{secs:02d}"
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def hard_wrap(text: str, width: int) -> list[str]:
    """Split text every `width` characters. Ignores word boundaries."""
    return [text[i:i + width] for i in range(0, len(text), width)]


def build_seek_bar(percent: float, width: int) -> str:
    """Seek bar of `width` cells; cell i (1-indexed) is filled iff (i - 1) / width < percent."""
    percent = min(1.0, max(0.0, percent))
    return "".join(
        SEEK_FILLED if (i - 1) / width < percent else SEEK_EMPTY
        for i in range(1, width + 1)
    )


def state_glyph(state: PlayerState) -> str:
    """Glyph for a player state. An unmapped state is a bug, not a runtime condition."""
    glyph = STATE_GLYPHS.get(state)
    if glyph is None:
        raise AssertionError(f"no panel glyph for player state {state!r}")
    return glyph


def format_volume(volume: float) -> str:
    # Round half away from zero, volume is never negative
    return f"{int(volume * 100 + 0.5)}%"


def render(snapshot: PlayerSnapshot, labels: PanelLabels, width: int = PANEL_WIDTH) -> RenderedPanel:
    """Render a snapshot into the panel body and optional link field."""
    if not snapshot.exists:
        return RenderedPanel(body=labels.no_player, link_field=None, has_player=False)

    track = snapshot.current_track
    lines: list[str] = []

    if track is not None:
        lines.extend(hard_wrap(track.title, width))
        lines.extend(hard_wrap(f"by {track.author}", width))
        if track.duration_seconds > 0:
            percent = snapshot.position_seconds / track.duration_seconds
        else:
            percent = 0.0
        time_text = (
            f"{format_duration(snapshot.position_seconds)}/"
            f"{format_duration(track.duration_seconds, track.is_stream)}"
        )
    else:
        percent = 0.0
        time_text = EMPTY_TIME_TEXT

    lines.append(build_seek_bar(percent, width))

    loop_glyph = LOOP_ON if snapshot.looping else LOOP_OFF
    status = f"{state_glyph(snapshot.state)} {time_text} 🔊{format_volume(snapshot.volume)} {loop_glyph}"
    if snapshot.queue_length > 0:
        status += f" {QUEUE_GLYPH}{snapshot.queue_length}"
    lines.append(status)

    link_field = None
    if track is not None and track.uri:
        link_field = (labels.link, track.uri)

    return RenderedPanel(body="\n".join(lines), link_field=link_field)
