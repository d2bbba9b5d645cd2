import asyncio
import logging
from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import Settings, get_settings
from app.models.request import ColorRequest
from app.models.response import ColorModel, ColorsResponse, ErrorResponse
from app.services.cache import ResponseCache
from app.services.extractor import extract_colors, options_from_settings

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

NO_COLORS_MESSAGE = "No colors found or website is protected"
PROTECTED_SITE_ERROR = "This website is protected and cannot be accessed directly"
PROTECTED_SITE_HINT = "Try a different website or contact the website administrator"


def _get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _rate_limit() -> str:
    return get_settings().rate_limit


def _normalise(url: str) -> str:
    """Strip the fragment so http://x.com/page#a and http://x.com/page share a cache entry."""
    return urlparse(url)._replace(fragment="").geturl()


def _error(status_code: int, error: str, message: str | None = None) -> HTTPException:
    detail = {"error": error}
    if message:
        detail["message"] = message
    return HTTPException(status_code=status_code, detail=detail)


@router.options("/colors", include_in_schema=False)
async def colors_preflight() -> Response:
    """Plain OPTIONS requests succeed with no body; CORS preflights never reach here."""
    return Response(status_code=200)


@router.post(
    "/colors",
    response_model=ColorsResponse,
    response_model_exclude_none=True,
    summary="Extract the colors used by a web page",
    description=(
        "Fetches the page, its linked stylesheets, `<style>` blocks and inline "
        "`style` attributes, and returns every distinct solid color as hex, "
        "RGB and HSB, optionally with the nearest named color."
    ),
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
@limiter.limit(_rate_limit)
async def get_colors(
    request: Request,
    body: ColorRequest,
    cache: ResponseCache = Depends(_get_cache),
    settings: Settings = Depends(_get_settings),
) -> ColorsResponse:
    url = _normalise(str(body.url))
    options = options_from_settings(settings, include_names=body.include_names, sort=body.sort)
    logger.info("Color request received", extra={"url": url, "sort": options.sort})

    cache_key = (url, options)
    if settings.cache_enabled:
        cached = cache.get(cache_key)
        if cached is not None:
            logger.info("Serving cached colors for %s", url)
            return cached

    try:
        colors = await asyncio.wait_for(
            extract_colors(
                url,
                options,
                page_timeout=settings.page_timeout,
                stylesheet_timeout=settings.stylesheet_timeout,
                max_stylesheets=settings.max_stylesheets,
            ),
            timeout=settings.request_timeout,
        )
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise _error(400, "Invalid URL provided", str(exc))
    except asyncio.TimeoutError:
        logger.error("Extraction timed out for %s", url)
        raise _error(504, "The request timed out.")
    except httpx.TimeoutException:
        logger.error("Timeout fetching URL: %s", url)
        raise _error(504, "The target URL timed out.")
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status in (401, 403):
            logger.warning("Protected site %s answered HTTP %d", url, status)
            raise _error(400, PROTECTED_SITE_ERROR, PROTECTED_SITE_HINT)
        logger.error("HTTP error fetching URL %s: %s", url, exc)
        raise _error(502, "Failed to fetch URL", f"Target URL returned HTTP {status}.")
    except (httpx.RequestError, RuntimeError) as exc:
        logger.error("Error fetching URL %s: %s", url, exc)
        raise _error(502, "Failed to fetch URL", str(exc))

    if not colors:
        logger.info("No colors found for %s", url)
        return ColorsResponse(colors=[], message=NO_COLORS_MESSAGE)

    response = ColorsResponse(colors=[ColorModel.from_canonical(color) for color in colors])
    if settings.cache_enabled:
        cache.set(cache_key, response)
    logger.info("Extracted %d colors from %s", len(colors), url)
    return response
