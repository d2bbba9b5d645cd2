"""Page-level color extraction: fetch the page, gather its CSS, aggregate colors."""

import asyncio
import logging
from typing import List, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from app.config import Settings
from app.services.aggregator import ExtractionOptions, SortOrder, aggregate
from app.services.colors import CanonicalColor
from app.services.fetcher import ACCEPT_CSS, fetch_url
from app.services.sources import (
    ExternalSource,
    collect_inline_sources,
    find_stylesheet_links,
    iter_source_declarations,
)
from app.services.variables import collect_variables

logger = logging.getLogger(__name__)

STYLESHEET_TIMEOUT = 5  # seconds
MAX_STYLESHEETS = 30


def options_from_settings(
    settings: Settings,
    include_names: Optional[bool] = None,
    sort: Optional[SortOrder] = None,
) -> ExtractionOptions:
    """Build :class:`ExtractionOptions` from *settings*, applying per-request overrides."""
    return ExtractionOptions(
        properties=tuple(p.lower() for p in settings.color_properties),
        match_color_suffix=settings.match_color_suffix,
        include_shorthand=settings.include_shorthand_properties,
        min_alpha=settings.min_alpha,
        allow_hsl=settings.allow_hsl,
        include_names=settings.enable_name_lookup if include_names is None else include_names,
        sort=settings.sort_order if sort is None else sort,
        resolve_forward_references=settings.resolve_forward_references,
        max_colors=settings.max_colors,
    )


def _base_url(soup: BeautifulSoup, page_url: str) -> str:
    """Honour a ``<base href>`` element when resolving relative stylesheet links."""
    base = soup.find("base", href=True)
    if base:
        return urljoin(page_url, str(base["href"]).strip())
    return page_url


async def _fetch_stylesheet(url: str, timeout: float) -> Optional[ExternalSource]:
    try:
        text = await fetch_url(url, timeout=timeout, accept=ACCEPT_CSS)
    except (ValueError, httpx.HTTPError, RuntimeError) as exc:
        logger.warning("Skipping stylesheet %s – %s", url, exc)
        return None
    return ExternalSource(url, text)


async def fetch_stylesheets(urls: List[str], timeout: float = STYLESHEET_TIMEOUT) -> List[ExternalSource]:
    """Fetch every stylesheet concurrently, keeping document order.

    A stylesheet that cannot be fetched contributes nothing; it never fails
    the batch.  Cancelling the caller cancels every pending fetch.
    """
    results = await asyncio.gather(
        *(_fetch_stylesheet(url, timeout) for url in urls), return_exceptions=True
    )
    sources: List[ExternalSource] = []
    for url, result in zip(urls, results):
        if isinstance(result, BaseException):
            logger.warning("Skipping stylesheet %s – %s", url, result)
        elif result is not None:
            sources.append(result)
    return sources


def colors_from_sources(sources, options: ExtractionOptions = ExtractionOptions()) -> List[CanonicalColor]:
    """Run the declaration stream of *sources* through the aggregator.

    With ``resolve_forward_references`` every custom property is collected
    before any color is resolved; otherwise a ``var()`` only sees variables
    defined earlier in source order.
    """
    declarations = iter_source_declarations(sources)
    if not options.resolve_forward_references:
        return aggregate(declarations, options)

    declarations = list(declarations)
    variables = collect_variables(declarations)
    return aggregate(declarations, options, variables)


async def extract_colors(
    url: str,
    options: ExtractionOptions = ExtractionOptions(),
    *,
    page_timeout: float = 10,
    stylesheet_timeout: float = STYLESHEET_TIMEOUT,
    max_stylesheets: int = MAX_STYLESHEETS,
) -> List[CanonicalColor]:
    """Fetch *url* and return the distinct colors used by its styles.

    Sources are processed as: linked stylesheets (document order), then
    ``<style>`` blocks, then inline ``style`` attributes.

    Raises:
        ValueError: if the page URL fails validation.
        httpx.HTTPError: if the page itself cannot be fetched.
        RuntimeError: if the page is too large or redirects too often.
    """
    html = await fetch_url(url, timeout=page_timeout)
    soup = BeautifulSoup(html, "lxml")

    links = find_stylesheet_links(soup, _base_url(soup, url))
    if len(links) > max_stylesheets:
        logger.info("Limiting %s to %d of %d stylesheets", url, max_stylesheets, len(links))
        links = links[:max_stylesheets]

    external = await fetch_stylesheets(links, timeout=stylesheet_timeout)
    inline = collect_inline_sources(soup)
    logger.info(
        "Collected style sources",
        extra={"url": url, "stylesheets": len(external), "inline_sources": len(inline)},
    )

    return colors_from_sources([*external, *inline], options)
