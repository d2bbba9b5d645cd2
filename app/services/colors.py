"""Color validation, parsing and format conversion.

Color values are read with tinycss2's CSS Color Level 3 parser: hex
(``#rgb``, ``#rgba``, ``#rrggbb``, ``#rrggbbaa``), ``rgb()`` / ``rgba()`` and
``hsl()`` / ``hsla()`` in the comma syntax.  Everything else (keywords,
gradients, images, unresolved ``var()`` references) is rejected by
:func:`is_valid_color`.
"""

import colorsys
from typing import NamedTuple, Optional, Tuple

import webcolors
from tinycss2 import color3

RGB = Tuple[int, int, int]
HSB = Tuple[int, int, int]

# Colors whose alpha falls below this are treated as visually insignificant
MIN_ALPHA = 0.99

_IGNORED_KEYWORDS = {
    "transparent",
    "inherit",
    "currentcolor",
    "initial",
    "unset",
    "revert",
    "none",
}

# Substrings that disqualify a value outright (images, gradients, unresolved variables)
_REJECT_MARKERS = ("url", "gradient", "var(")

_RGB_PREFIXES = ("#", "rgb(", "rgba(")
_HSL_PREFIXES = ("hsl(", "hsla(")


class CanonicalColor(NamedTuple):
    """One extracted color; two colors are the same color when their hex matches."""

    hex: str  # "#RRGGBB", uppercase
    rgb: RGB
    hsb: HSB
    name: Optional[str]
    luminance: float


def _parse(value: Optional[str]) -> Optional[color3.RGBA]:
    if not value or not value.strip():
        return None
    parsed = color3.parse_color(value.strip())
    if parsed is None or parsed == "currentColor":
        return None
    return parsed


def _to_byte(channel: float) -> int:
    return max(0, min(255, int(round(channel * 255))))


def parse_color(value: str) -> Optional[RGB]:
    """Return the ``(r, g, b)`` triple for *value*, or ``None`` if it cannot be parsed.

    Alpha is ignored here; see :func:`parse_alpha`.
    """
    parsed = _parse(value)
    if parsed is None:
        return None
    return _to_byte(parsed.red), _to_byte(parsed.green), _to_byte(parsed.blue)


def parse_alpha(value: str) -> float:
    """Return the alpha channel of *value* in [0, 1]; ``1.0`` when it has none."""
    parsed = _parse(value)
    if parsed is None:
        return 1.0
    return min(1.0, max(0.0, parsed.alpha))


def is_valid_color(value: Optional[str], min_alpha: float = MIN_ALPHA, allow_hsl: bool = True) -> bool:
    """Return True when *value* is a solid, resolvable color worth reporting.

    Favors omission: keywords, images, gradients, unresolved variables and
    near-transparent colors are all rejected.
    """
    if not value:
        return False
    normalized = value.strip().lower()
    if not normalized or normalized in _IGNORED_KEYWORDS:
        return False
    if any(marker in normalized for marker in _REJECT_MARKERS):
        return False

    prefixes = _RGB_PREFIXES + _HSL_PREFIXES if allow_hsl else _RGB_PREFIXES
    if not normalized.startswith(prefixes):
        return False
    parsed = _parse(normalized)
    if parsed is None:
        return False
    return parsed.alpha >= min_alpha


def hex_to_rgb(value: str) -> RGB:
    """Convert ``#abc`` / ``#aabbcc`` (with or without ``#``) to an RGB triple.

    Raises:
        ValueError: if *value* is not a 3 or 6 digit hex color.
    """
    text = value.strip()
    if not text.startswith("#"):
        text = "#" + text
    return tuple(webcolors.hex_to_rgb(text))


def rgb_to_hex(rgb: RGB) -> str:
    """Format an RGB triple as ``#RRGGBB``."""
    clamped = tuple(max(0, min(255, int(channel))) for channel in rgb)
    return webcolors.rgb_to_hex(clamped).upper()


def rgb_to_hsb(rgb: RGB) -> HSB:
    """Convert RGB to HSB (HSV): hue in [0, 360), saturation and brightness in percent."""
    r, g, b = (channel / 255.0 for channel in rgb)
    h, s, v = colorsys.rgb_to_hsv(r, g, b)
    return int(round(h * 360)) % 360, int(round(s * 100)), int(round(v * 100))


def hsb_to_rgb(hsb: HSB) -> RGB:
    """Inverse of :func:`rgb_to_hsb`."""
    h, s, v = hsb
    r, g, b = colorsys.hsv_to_rgb((h % 360) / 360.0, s / 100.0, v / 100.0)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


def _linearize(channel: int) -> float:
    c = channel / 255.0
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(rgb: RGB) -> float:
    """Rec. 709 relative luminance of an sRGB color, in [0, 1]."""
    r, g, b = (_linearize(channel) for channel in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def to_canonical(value: str) -> Optional[CanonicalColor]:
    """Build a :class:`CanonicalColor` (without a name) from a color string.

    Returns ``None`` for anything :func:`parse_color` cannot read.
    """
    rgb = parse_color(value)
    if rgb is None:
        return None
    return CanonicalColor(
        hex=rgb_to_hex(rgb),
        rgb=rgb,
        hsb=rgb_to_hsb(rgb),
        name=None,
        luminance=relative_luminance(rgb),
    )
