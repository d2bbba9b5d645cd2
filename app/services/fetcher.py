import asyncio
import ipaddress
import socket
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
TIMEOUT = 10  # seconds
MAX_REDIRECTS = 5
ALLOWED_SCHEMES = {"http", "https"}

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_CSS = "text/css,*/*;q=0.1"


async def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address.

    Resolution runs in the event loop's executor so a slow resolver never
    blocks other requests.
    """
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        raw_ip = info[4][0]
        # Strip IPv6 zone IDs (e.g. "fe80::1%eth0" → "fe80::1")
        raw_ip = raw_ip.split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


async def validate_url(url: str) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise ValueError("URL must have a valid hostname.")

    if await _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


def _declared_length(response: httpx.Response) -> Optional[int]:
    content_length = response.headers.get("content-length")
    if not content_length:
        return None
    try:
        return int(content_length)
    except ValueError:
        raise RuntimeError("Invalid Content-Length header.") from None


async def fetch_url(url: str, *, timeout: float = TIMEOUT, accept: Optional[str] = None) -> str:
    """Fetch *url* and return the response body as a string.

    Redirects are followed manually so that every redirect destination is
    validated against the SSRF rules before the next request is made.
    *timeout* bounds the whole call, DNS checks and redirects included.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        httpx.HTTPError: on network or HTTP errors (``httpx.TimeoutException``
            when *timeout* elapses).
        RuntimeError: if the response body exceeds MAX_CONTENT_SIZE or
            declares a malformed Content-Length.
    """
    try:
        return await asyncio.wait_for(_fetch(url, timeout, accept), timeout)
    except asyncio.TimeoutError:
        raise httpx.TimeoutException(f"Fetching {url} took longer than {timeout}s.") from None


async def _fetch(url: str, timeout: float, accept: Optional[str]) -> str:
    await validate_url(url)

    headers = {
        "User-Agent": USER_AGENT,
        "Accept": accept or ACCEPT_HTML,
        "Accept-Language": "en-US,en;q=0.9",
    }

    current_url = url
    async with httpx.AsyncClient(follow_redirects=False, timeout=timeout, headers=headers) as client:
        for _ in range(MAX_REDIRECTS + 1):
            async with client.stream("GET", current_url) as response:
                if response.is_redirect:
                    location = response.headers.get("location", "")
                    next_url = urljoin(current_url, location)
                    await validate_url(next_url)
                    current_url = next_url
                    continue

                response.raise_for_status()

                declared = _declared_length(response)
                if declared is not None and declared > MAX_CONTENT_SIZE:
                    raise RuntimeError("Response body exceeds the maximum allowed size.")

                chunks = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > MAX_CONTENT_SIZE:
                        raise RuntimeError("Response body exceeds the maximum allowed size.")
                    chunks.append(chunk)

                return b"".join(chunks).decode(errors="replace")

    raise RuntimeError("Too many redirects.")
