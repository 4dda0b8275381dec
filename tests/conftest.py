"""Shared fixtures: an in-memory documentation site standing in for the network."""

import asyncio
from typing import Dict, List, Union
from unittest.mock import AsyncMock, patch

import pytest

from doc_compiler.services.errors import HttpStatusError

# Every module that binds ``fetch_page`` at import time
_FETCH_TARGETS = (
    "doc_compiler.services.aggregator.fetch_page",
    "doc_compiler.services.sitemap.fetch_page",
    "doc_compiler.services.navigation.fetch_page",
)


class FakeWeb:
    """Maps URLs to markup (or to an exception to raise) and records every fetch.

    ``delays`` holds per-URL latencies in seconds, so tests can make fetches
    complete out of order.
    """

    def __init__(self):
        self.pages: Dict[str, Union[str, BaseException]] = {}
        self.requested: List[str] = []
        self.delays: Dict[str, float] = {}

    def add(self, url: str, content: Union[str, BaseException]) -> None:
        self.pages[url] = content

    async def fetch(self, url: str, timeout: float = 10, transport=None) -> str:
        self.requested.append(url)
        await asyncio.sleep(self.delays.get(url, 0))
        content = self.pages.get(url)
        if content is None:
            raise HttpStatusError(404, "Not Found")
        if isinstance(content, BaseException):
            raise content
        return content


@pytest.fixture
def web():
    fake = FakeWeb()
    patches = [patch(target, new=AsyncMock(side_effect=fake.fetch)) for target in _FETCH_TARGETS]
    for p in patches:
        p.start()
    yield fake
    for p in patches:
        p.stop()


def page_html(title: str, body: str = "", description: str = "") -> str:
    meta = f'<meta name="description" content="{description}">' if description else ""
    return (
        f"<!DOCTYPE html><html><head><title>{title}</title>{meta}</head>"
        f"<body><h1>{title}</h1>{body}</body></html>"
    )


def sitemap_xml(*urls: str) -> str:
    entries = "".join(f"<url><loc>{url}</loc></url>" for url in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def sitemap_index_xml(*urls: str) -> str:
    entries = "".join(f"<sitemap><loc>{url}</loc></sitemap>" for url in urls)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )
