"""CSS custom property (``var()``) resolution.

Resolution is bounded: each pass substitutes every ``var()`` it can, and the
value is re-scanned for references exposed by the substitution.  Scanning
stops when a pass changes nothing or after ``MAX_PASSES`` passes, so circular
definitions terminate and leave the unresolved expression in place.
"""

from typing import Dict, Iterable, Optional, Tuple

from app.services.css_parser import Declaration

VariableTable = Dict[str, str]

MAX_PASSES = 10

_VAR_OPEN = "var("


def _find_closing_paren(value: str, start: int) -> int:
    """Return the index of the ``)`` matching the ``(`` just before *start*, or -1."""
    depth = 1
    for index in range(start, len(value)):
        ch = value[index]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _split_reference(body: str) -> Tuple[str, Optional[str]]:
    """Split ``--name, fallback`` into its name and fallback (``None`` when absent)."""
    name, comma, fallback = body.partition(",")
    return name.strip(), (fallback.strip() if comma else None)


def _substitute_once(value: str, table: VariableTable) -> str:
    out = []
    cursor = 0
    lowered = value.lower()
    while True:
        start = lowered.find(_VAR_OPEN, cursor)
        if start == -1:
            out.append(value[cursor:])
            break
        body_start = start + len(_VAR_OPEN)
        end = _find_closing_paren(value, body_start)
        if end == -1:
            # Unbalanced; keep the rest verbatim
            out.append(value[cursor:])
            break

        out.append(value[cursor:start])
        name, fallback = _split_reference(value[body_start:end])
        if name in table:
            out.append(table[name])
        elif fallback is not None:
            out.append(fallback)
        else:
            out.append(value[start:end + 1])
        cursor = end + 1
    return "".join(out)


def resolve(value: str, table: VariableTable, max_passes: int = MAX_PASSES) -> str:
    """Substitute ``var(--name[, fallback])`` references in *value* using *table*.

    Unknown variables without a fallback are left as written.
    """
    current = value
    for _ in range(max_passes):
        if _VAR_OPEN not in current.lower():
            break
        substituted = _substitute_once(current, table)
        if substituted == current:
            break
        current = substituted
    return current.strip()


def is_custom_property(name: str) -> bool:
    return name.startswith("--")


def collect_variables(
    declarations: Iterable[Declaration], table: Optional[VariableTable] = None
) -> VariableTable:
    """Record every custom property definition in *declarations* (last one wins)."""
    table = {} if table is None else table
    for declaration in declarations:
        if is_custom_property(declaration.property):
            table[declaration.property] = declaration.value
    return table
