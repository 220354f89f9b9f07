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

"""Fuzzy search over playlist names and query classification."""

from rapidfuzz import fuzz, process
from rapidfuzz.utils import default_process

from utils.store import PlaylistInfo

# Below this WRatio a name is noise, not a match
MIN_PLAYLIST_SCORE = 50


def is_url(query: str) -> bool:
    """A query containing an http(s) scheme is loaded directly instead of searched."""
    return "https://" in query or "http://" in query


def search_playlists(
    query: str,
    playlists: list[PlaylistInfo],
    min_score: float = MIN_PLAYLIST_SCORE,
) -> list[tuple[PlaylistInfo, float]]:
    """Rank playlists by name similarity to query.

    Uses WRatio, which copes with partial names and different lengths.
    Exact name matches (case-insensitive) get +1 so they win ties.

    Returns:
        (playlist, score) tuples, best first. Empty for an empty query.
    """
    if not query or not playlists:
        return []

    query = query[:100]
    query_processed = default_process(query)
    if not query_processed:
        return []

    names = [p.name for p in playlists]
    matches = process.extract(
        query,
        names,
        scorer=fuzz.WRatio,
        processor=default_process,
        limit=None,
        score_cutoff=min_score,
    )

    results = []
    for name, score, index in matches:
        if default_process(name) == query_processed:
            score += 1
        results.append((playlists[index], score))

    # Stable on creation order for equal scores
    results.sort(key=lambda r: -r[1])
    return results
