"""Navigation-region URL discovery strategy."""

import logging
from typing import Awaitable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from doc_compiler.services.errors import DocCompilerError
from doc_compiler.services.fetcher import fetch_page

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT = 10

_REGION_TAGS = ("nav", "header")

# Class fragments marking a navigation container
_REGION_CLASS_KEYWORDS = ("nav", "menu")

# Link text must mention one of these to count as documentation
_LINK_TEXT_KEYWORDS = (
    "guide",
    "api",
    "reference",
    "example",
    "tutorial",
    "docs",
    "documentation",
)

_SKIP_HREF_PREFIXES = ("#", "mailto:", "tel:", "javascript:")


def _is_navigation_region(tag: Tag) -> bool:
    if tag.name in _REGION_TAGS:
        return True
    classes = [cls.lower() for cls in tag.get("class", [])]
    return any(keyword in cls for cls in classes for keyword in _REGION_CLASS_KEYWORDS)


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def extract_navigation_links(html: str, base_url: str) -> List[str]:
    """Return same-origin documentation links found in navigation regions.

    Regions are ``<nav>``, ``<header>`` and any element whose class mentions
    ``nav`` or ``menu``.  Relative hrefs resolve against the origin of
    *base_url*; fragments are dropped.  Order is document order, without
    duplicates.
    """
    soup = BeautifulSoup(html, "lxml")
    origin = _origin(base_url)
    base_netloc = urlparse(base_url).netloc.lower()

    seen: set = set()
    links: List[str] = []
    for region in soup.find_all(_is_navigation_region):
        for a in region.find_all("a", href=True):
            href = str(a["href"]).strip()
            if not href or href.lower().startswith(_SKIP_HREF_PREFIXES):
                continue

            text = a.get_text(" ", strip=True).lower()
            if not any(keyword in text for keyword in _LINK_TEXT_KEYWORDS):
                continue

            abs_url = urlparse(urljoin(origin, href))._replace(fragment="")
            if abs_url.scheme not in ("http", "https") or abs_url.netloc.lower() != base_netloc:
                continue

            url = abs_url.geturl()
            if url not in seen:
                seen.add(url)
                links.append(url)
    return links


async def discover_urls_via_navigation(
    base_url: str,
    timeout: float = NAVIGATION_TIMEOUT,
    page: Optional[Awaitable[str]] = None,
) -> List[str]:
    """Return the documentation links in the navigation of *base_url*.

    *page*, when given, supplies the markup of *base_url* from a fetch the
    caller already has in flight; otherwise the page is fetched here.  A
    failed fetch yields an empty list.
    """
    try:
        html = await (page if page is not None else fetch_page(base_url, timeout=timeout))
    except DocCompilerError as exc:
        logger.warning("Navigation scan of %s failed: %s", base_url, exc)
        return []

    links = extract_navigation_links(html, base_url)
    logger.info("Navigation of %s yielded %d documentation links", base_url, len(links))
    return links
