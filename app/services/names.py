"""Nearest-name lookup for arbitrary colors.

Every query is a brute-force scan over the CSS3 named colors (as published
by ``webcolors``), scored by squared RGB distance plus twice the squared HSL
distance (HSL channels scaled to 0–255 so both terms share a range).
"""

import colorsys
from functools import lru_cache
from typing import List, NamedTuple, Tuple

import webcolors

from app.services.colors import hex_to_rgb

_HEX_DIGITS = set("0123456789ABCDEF")


class NamedColorEntry(NamedTuple):
    hex: str
    name: str
    rgb: Tuple[int, int, int]
    hsl: Tuple[int, int, int]


class NameMatch(NamedTuple):
    """Result of a name lookup: the matched table hex, its name, and whether the match is exact."""

    hex: str
    name: str
    exact: bool


def _hsl_255(rgb: Tuple[int, int, int]) -> Tuple[int, int, int]:
    """HSL with every channel scaled to 0–255."""
    r, g, b = (channel / 255.0 for channel in rgb)
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return int(round(h * 255)), int(round(s * 255)), int(round(l * 255))


def build_table(pairs) -> List[NamedColorEntry]:
    """Precompute RGB and HSL for each ``(hex, name)`` pair."""
    table: List[NamedColorEntry] = []
    for hex_value, name in pairs:
        hex_value = hex_value.upper()
        rgb = hex_to_rgb(hex_value)
        table.append(NamedColorEntry(hex_value, name, rgb, _hsl_255(rgb)))
    return table


@lru_cache(maxsize=1)
def default_table() -> Tuple[NamedColorEntry, ...]:
    # Alphabetical, so "aqua" precedes "cyan" and "gray" precedes "grey"
    names = sorted(webcolors.names(webcolors.CSS3))
    pairs = [(webcolors.name_to_hex(name, spec=webcolors.CSS3), name.title()) for name in names]
    return tuple(build_table(pairs))


def _normalize(value: str) -> str:
    color = value.strip().upper()
    if not color.startswith("#"):
        color = "#" + color
    if len(color) == 4:
        color = "#" + "".join(ch * 2 for ch in color[1:])
    return color


def name_of(value: str, table=None) -> NameMatch:
    """Return the closest named color for the hex string *value*.

    Only ``#RGB`` and ``#RRGGBB`` (``#`` optional, any case) are looked up.
    Alpha forms such as ``#RGBA`` or ``#RRGGBBAA`` are not names of solid
    colors and count as malformed, like any other length or non-hex digit.
    Malformed input yields ``NameMatch("#000000", "Invalid Color: <value>", False)``.
    """
    entries = default_table() if table is None else table
    color = _normalize(value)
    if len(color) != 7 or not set(color[1:]) <= _HEX_DIGITS:
        return NameMatch("#000000", f"Invalid Color: {value}", False)

    for entry in entries:
        if entry.hex == color:
            return NameMatch(entry.hex, entry.name, True)

    rgb = hex_to_rgb(color)
    hsl = _hsl_255(rgb)

    best = None
    best_score = -1
    for entry in entries:
        rgb_distance = sum((a - b) ** 2 for a, b in zip(rgb, entry.rgb))
        hsl_distance = sum((a - b) ** 2 for a, b in zip(hsl, entry.hsl))
        score = rgb_distance + 2 * hsl_distance
        if best is None or score < best_score:
            best, best_score = entry, score

    if best is None:
        return NameMatch("#000000", f"Invalid Color: {value}", False)
    return NameMatch(best.hex, best.name, False)
