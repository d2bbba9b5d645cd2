"""Turns a stream of CSS declarations into a deduplicated, ordered color list."""

import logging
from typing import Dict, Iterable, List, Literal, NamedTuple, Optional, Tuple

from app.services.colors import MIN_ALPHA, CanonicalColor, is_valid_color, to_canonical
from app.services.css_parser import Declaration
from app.services.names import name_of
from app.services.variables import VariableTable, is_custom_property, resolve

logger = logging.getLogger(__name__)

SortOrder = Literal["none", "asc", "desc"]

DEFAULT_COLOR_PROPERTIES: Tuple[str, ...] = ("color", "background-color", "border-color")

# Shorthands whose value mixes a color with other tokens (widths, styles, images)
SHORTHAND_PROPERTIES: Tuple[str, ...] = ("background", "border", "outline", "fill", "stroke")


class ExtractionOptions(NamedTuple):
    properties: Tuple[str, ...] = DEFAULT_COLOR_PROPERTIES
    match_color_suffix: bool = False
    include_shorthand: bool = False
    min_alpha: float = MIN_ALPHA
    allow_hsl: bool = True
    include_names: bool = True
    sort: SortOrder = "none"
    resolve_forward_references: bool = True
    max_colors: Optional[int] = None


def is_color_property(name: str, options: ExtractionOptions) -> bool:
    if name in options.properties:
        return True
    if options.match_color_suffix and name.endswith("-color"):
        return True
    return options.include_shorthand and name in SHORTHAND_PROPERTIES


def split_top_level(value: str) -> List[str]:
    """Split *value* on whitespace that is not inside parentheses."""
    tokens: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in value:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch.isspace() and depth == 0:
            if current:
                tokens.append("".join(current))
                current = []
            continue
        current.append(ch)
    if current:
        tokens.append("".join(current))
    return tokens


def _color_candidates(value: str, options: ExtractionOptions) -> List[str]:
    if is_valid_color(value, options.min_alpha, options.allow_hsl):
        return [value]
    # Multi-value longhands ("border-color: #fff #000") and shorthands alike;
    # commas separate background layers, only whitespace-level tokens are tried
    tokens = split_top_level(value.replace(",", " , "))
    return [t for t in tokens if is_valid_color(t, options.min_alpha, options.allow_hsl)]


def sort_colors(colors: List[CanonicalColor], order: SortOrder) -> List[CanonicalColor]:
    """Order *colors* by luminance; ``"none"`` keeps first-seen order."""
    if order == "none":
        return list(colors)
    return sorted(colors, key=lambda color: color.luminance, reverse=(order == "desc"))


def aggregate(
    declarations: Iterable[Declaration],
    options: ExtractionOptions = ExtractionOptions(),
    variables: Optional[VariableTable] = None,
) -> List[CanonicalColor]:
    """Collect the distinct colors declared in *declarations*.

    When *variables* is ``None`` custom properties are recorded while scanning,
    so a ``var()`` only sees definitions that came before it.  Passing a
    prebuilt table makes every definition visible and leaves it untouched.
    """
    single_pass = variables is None
    table: VariableTable = {} if variables is None else variables
    found: Dict[str, CanonicalColor] = {}

    for declaration in declarations:
        if is_custom_property(declaration.property):
            if single_pass:
                table[declaration.property] = declaration.value
            continue
        if not is_color_property(declaration.property, options):
            continue

        value = resolve(declaration.value, table)
        for candidate in _color_candidates(value, options):
            color = to_canonical(candidate)
            if color is None or color.hex in found:
                continue
            if options.include_names:
                color = color._replace(name=name_of(color.hex).name)
            found[color.hex] = color

    colors = sort_colors(list(found.values()), options.sort)
    if options.max_colors is not None:
        colors = colors[: options.max_colors]
    logger.debug("Aggregated %d distinct colors", len(colors))
    return colors
