"""Style source discovery: stylesheet links, ``<style>`` blocks and ``style`` attributes."""

import logging
from typing import Iterator, List, NamedTuple, Union
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from app.services.css_parser import Declaration, iter_declarations, parse_inline, parse_stylesheet

logger = logging.getLogger(__name__)


class ExternalSource(NamedTuple):
    url: str
    text: str


class InlineBlock(NamedTuple):
    text: str


class InlineAttribute(NamedTuple):
    text: str


StyleSource = Union[ExternalSource, InlineBlock, InlineAttribute]


def _rel_values(tag) -> List[str]:
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return [value.lower() for value in rel]


def find_stylesheet_links(soup: BeautifulSoup, base_url: str) -> List[str]:
    """Return absolute URLs of every ``<link rel="stylesheet">`` in document order.

    Alternate stylesheets and non-http(s) URLs are skipped; duplicates are dropped.
    """
    seen: set = set()
    links: List[str] = []
    for link in soup.find_all("link", href=True):
        rel = _rel_values(link)
        if "stylesheet" not in rel or "alternate" in rel:
            continue
        href = str(link["href"]).strip()
        if not href:
            continue
        abs_url = urljoin(base_url, href)
        if urlparse(abs_url).scheme not in ("http", "https"):
            continue
        if abs_url not in seen:
            seen.add(abs_url)
            links.append(abs_url)
    return links


def collect_inline_sources(soup: BeautifulSoup) -> List[StyleSource]:
    """Return ``<style>`` block contents followed by inline ``style`` attribute values."""
    sources: List[StyleSource] = []
    for style in soup.find_all("style"):
        text = style.string if style.string is not None else style.get_text()
        if text and text.strip():
            sources.append(InlineBlock(text))
    for tag in soup.find_all(style=True):
        text = str(tag["style"]).strip()
        if text:
            sources.append(InlineAttribute(text))
    return sources


def source_declarations(source: StyleSource) -> List[Declaration]:
    """Parse one source into its declarations; a source that fails to parse yields none."""
    try:
        if isinstance(source, InlineAttribute):
            return parse_inline(source.text)
        return list(iter_declarations(parse_stylesheet(source.text)))
    except Exception as exc:
        label = source.url if isinstance(source, ExternalSource) else type(source).__name__
        logger.warning("Failed to parse CSS from %s – %s", label, exc)
        return []


def iter_source_declarations(sources) -> Iterator[Declaration]:
    """Lazily yield the declarations of every source, in order."""
    for source in sources:
        yield from source_declarations(source)
