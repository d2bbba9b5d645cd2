"""CSS parsing on top of tinycss2.

tinycss2's token-level nodes are mapped onto a small explicit tree:

* :class:`Rule` – a style rule (selectors + declarations)
* :class:`AtRule` – an at-rule; grouping at-rules (``@media``, ``@supports``, …)
  carry their nested rules, every other at-rule carries none
* :class:`Comment`

Malformed input never raises; tinycss2 recovers from syntax errors and the
error nodes it reports are logged and skipped.
"""

import logging
from typing import Iterator, List, NamedTuple, Tuple, Union

import tinycss2

logger = logging.getLogger(__name__)

# At-rules whose block is a list of rules rather than declarations
_GROUPING_AT_RULES = {"media", "supports", "layer", "container", "document", "scope", "-moz-document"}


class Declaration(NamedTuple):
    property: str
    value: str


class Rule(NamedTuple):
    selectors: Tuple[str, ...]
    declarations: Tuple[Declaration, ...]


class AtRule(NamedTuple):
    name: str
    rules: Tuple["Node", ...]


class Comment(NamedTuple):
    text: str


Node = Union[Rule, AtRule, Comment]


def _property_name(decl) -> str:
    # Custom properties are case-sensitive; everything else is not
    if decl.name.startswith("--"):
        return decl.name
    return decl.lower_name


def _parse_declarations(tokens) -> Tuple[Declaration, ...]:
    declarations: List[Declaration] = []
    for item in tinycss2.parse_declaration_list(tokens, skip_comments=True, skip_whitespace=True):
        if item.type == "declaration":
            value = tinycss2.serialize(item.value).strip()
            declarations.append(Declaration(_property_name(item), value))
        elif item.type == "error":
            logger.debug("Skipping invalid declaration: %s", item.message)
    return tuple(declarations)


def _selectors(prelude) -> Tuple[str, ...]:
    text = tinycss2.serialize(prelude).strip()
    return tuple(part.strip() for part in text.split(",") if part.strip())


def _convert(nodes) -> List[Node]:
    tree: List[Node] = []
    for node in nodes:
        if node.type == "qualified-rule":
            tree.append(Rule(_selectors(node.prelude), _parse_declarations(node.content)))
        elif node.type == "at-rule":
            name = node.lower_at_keyword
            nested: Tuple[Node, ...] = ()
            if name in _GROUPING_AT_RULES and node.content is not None:
                nested = tuple(
                    _convert(tinycss2.parse_rule_list(node.content, skip_comments=False, skip_whitespace=True))
                )
            tree.append(AtRule(name, nested))
        elif node.type == "comment":
            tree.append(Comment(node.value))
        elif node.type == "error":
            logger.debug("Skipping invalid rule: %s", node.message)
    return tree


def parse_stylesheet(css_text: str) -> List[Node]:
    """Parse a full stylesheet into a list of :data:`Node` objects."""
    nodes = tinycss2.parse_stylesheet(css_text, skip_comments=False, skip_whitespace=True)
    return _convert(nodes)


def parse_inline(style: str) -> List[Declaration]:
    """Parse the contents of a ``style=""`` attribute into declarations."""
    return list(_parse_declarations(style))


def iter_declarations(nodes) -> Iterator[Declaration]:
    """Yield every declaration in *nodes*, walking at-rules depth-first."""
    for node in nodes:
        if isinstance(node, Rule):
            yield from node.declarations
        elif isinstance(node, AtRule):
            yield from iter_declarations(node.rules)
