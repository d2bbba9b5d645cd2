"""Tests for app.services.sources."""

from bs4 import BeautifulSoup

from app.services.css_parser import Declaration
from app.services.sources import (
    ExternalSource,
    InlineAttribute,
    InlineBlock,
    collect_inline_sources,
    find_stylesheet_links,
    iter_source_declarations,
    source_declarations,
)

_PAGE = """
<html>
<head>
  <link rel="stylesheet" href="/css/main.css">
  <link rel="preload stylesheet" href="https://cdn.example.com/theme.css">
  <link rel="alternate stylesheet" href="/css/dark.css">
  <link rel="icon" href="/favicon.ico">
  <link rel="stylesheet" href="/css/main.css">
  <link rel="stylesheet" href="data:text/css,p{color:red}">
  <style>body { color: #111111; }</style>
</head>
<body>
  <p style="color: #222222">Hi</p>
  <div style="">Empty</div>
</body>
</html>
"""


def _soup(html: str = _PAGE) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestFindStylesheetLinks:
    def test_resolves_and_filters_links(self):
        links = find_stylesheet_links(_soup(), "https://example.com/page/")
        assert links == [
            "https://example.com/css/main.css",
            "https://cdn.example.com/theme.css",
        ]

    def test_relative_to_page_path(self):
        html = '<link rel="stylesheet" href="style.css">'
        assert find_stylesheet_links(_soup(html), "https://example.com/blog/post") == [
            "https://example.com/blog/style.css"
        ]

    def test_no_links(self):
        assert find_stylesheet_links(_soup("<p>plain</p>"), "https://example.com") == []


class TestCollectInlineSources:
    def test_blocks_then_attributes(self):
        sources = collect_inline_sources(_soup())
        assert sources == [
            InlineBlock("body { color: #111111; }"),
            InlineAttribute("color: #222222"),
        ]

    def test_empty_style_block_skipped(self):
        assert collect_inline_sources(_soup("<style>   </style>")) == []


class TestSourceDeclarations:
    def test_external_source(self):
        source = ExternalSource("https://example.com/a.css", "a { color: #123 }")
        assert source_declarations(source) == [Declaration("color", "#123")]

    def test_inline_attribute(self):
        assert source_declarations(InlineAttribute("color: #123")) == [Declaration("color", "#123")]

    def test_order_is_preserved_across_sources(self):
        sources = [
            ExternalSource("https://example.com/a.css", ":root { --x: #000 }"),
            InlineBlock("p { color: var(--x) }"),
            InlineAttribute("background-color: #fff"),
        ]
        assert [d.property for d in iter_source_declarations(sources)] == [
            "--x",
            "color",
            "background-color",
        ]
