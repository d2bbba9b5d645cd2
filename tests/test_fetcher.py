"""Tests for URL validation and fetching in app.services.fetcher.

HTTP traffic goes through ``httpx.MockTransport``; only IP literals are
validated so no real DNS lookup happens.
"""

import asyncio
import time
from unittest.mock import patch

import httpx
import pytest

from app.services.extractor import fetch_stylesheets
from app.services.fetcher import fetch_url, validate_url

_PUBLIC_URL = "http://93.184.216.34/"


def _client_with(handler):
    """Build an ``AsyncClient`` replacement that answers every request with *handler*."""
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    return patch("app.services.fetcher.httpx.AsyncClient", side_effect=factory)


def _slow_getaddrinfo(*args, **kwargs):
    time.sleep(1)
    return []


class TestValidateUrl:
    @pytest.mark.parametrize("url", ["ftp://example.com/file", "file:///etc/passwd", "javascript:alert(1)"])
    def test_rejects_non_http_schemes(self, url):
        with pytest.raises(ValueError, match="not allowed"):
            asyncio.run(validate_url(url))

    def test_rejects_missing_hostname(self):
        with pytest.raises(ValueError, match="hostname"):
            asyncio.run(validate_url("http://"))

    @pytest.mark.parametrize("url", ["http://127.0.0.1/", "http://10.0.0.1/", "http://192.168.1.20:8080/"])
    def test_rejects_private_addresses(self, url):
        with pytest.raises(ValueError, match="private"):
            asyncio.run(validate_url(url))

    def test_accepts_public_address(self):
        asyncio.run(validate_url(_PUBLIC_URL))


class TestFetchUrl:
    def test_blocked_url_raises_before_any_request(self):
        with pytest.raises(ValueError):
            asyncio.run(fetch_url("http://127.0.0.1/styles.css"))

    def test_returns_body(self):
        def handler(request):
            assert request.headers["accept"].startswith("text/css")
            return httpx.Response(200, text="a { color: #fff }")

        with _client_with(handler):
            body = asyncio.run(fetch_url(_PUBLIC_URL, accept="text/css,*/*;q=0.1"))
        assert body == "a { color: #fff }"

    def test_redirect_to_private_address_blocked(self):
        def handler(request):
            return httpx.Response(302, headers={"location": "http://127.0.0.1/admin"})

        with _client_with(handler):
            with pytest.raises(ValueError, match="private"):
                asyncio.run(fetch_url(_PUBLIC_URL))

    def test_malformed_content_length(self):
        def handler(request):
            return httpx.Response(200, headers={"content-length": "abc"}, content=b"x")

        with _client_with(handler):
            with pytest.raises(RuntimeError, match="Content-Length"):
                asyncio.run(fetch_url(_PUBLIC_URL))

    def test_oversized_content_length(self):
        def handler(request):
            return httpx.Response(200, headers={"content-length": str(11 * 1024 * 1024)}, content=b"x")

        with _client_with(handler):
            with pytest.raises(RuntimeError, match="maximum"):
                asyncio.run(fetch_url(_PUBLIC_URL))


class TestSlowResolver:
    def test_timeout_covers_dns_lookup(self):
        with patch("socket.getaddrinfo", side_effect=_slow_getaddrinfo):
            with pytest.raises(httpx.TimeoutException):
                asyncio.run(fetch_url("https://slow-dns.example/site.css", timeout=0.2))

    def test_slow_lookups_do_not_serialize_stylesheet_fetches(self):
        urls = [f"https://slow-dns.example/{name}.css" for name in "abc"]

        async def run():
            started = time.monotonic()
            sources = await asyncio.wait_for(fetch_stylesheets(urls, timeout=0.2), 0.9)
            return sources, time.monotonic() - started

        with patch("socket.getaddrinfo", side_effect=_slow_getaddrinfo):
            sources, elapsed = asyncio.run(run())

        assert sources == []
        assert elapsed < 0.9
