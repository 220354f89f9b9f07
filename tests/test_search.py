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

from utils.search import is_url, search_playlists
from utils.store import PlaylistInfo


def playlists(*names):
    return [PlaylistInfo(id=str(i), name=name, owner=1) for i, name in enumerate(names)]


def test_is_url():
    assert is_url("https://youtu.be/abc")
    assert is_url("play http://example.com/stream")
    assert not is_url("never gonna give you up")


def test_exact_match_ranks_first():
    results = search_playlists("chill", playlists("Chill vibes", "chill", "Metal"))

    assert results[0][0].name == "chill"
    assert all(p.name != "Metal" for p, _ in results)


def test_partial_name_matches():
    results = search_playlists("road", playlists("Road trip 2024", "Gym"))
    assert [p.name for p, _ in results] == ["Road trip 2024"]


def test_empty_inputs():
    assert search_playlists("", playlists("Mix")) == []
    assert search_playlists("mix", []) == []
    assert search_playlists("!!!", playlists("Mix")) == []
