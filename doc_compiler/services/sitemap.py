"""Sitemap-based URL discovery strategy."""

import asyncio
import html as html_lib
import logging
import re
from typing import List, Tuple
from urllib.parse import urljoin, urlparse
from xml.etree import ElementTree

from doc_compiler.services.errors import DocCompilerError
from doc_compiler.services.fetcher import fetch_page

logger = logging.getLogger(__name__)

SITEMAP_TIMEOUT = 10

# Upper bound on sitemap files read per discovery, the top-level one included
MAX_SITEMAP_FILES = 10

# Tried in order; the first one answering 2xx is the only one read
_SITEMAP_PATHS = (
    "/sitemap.xml",
    "/sitemap_index.xml",
    "/docs/sitemap.xml",
)

# A path containing any of these is documentation regardless of the blocklist
_DOC_PATH_MARKERS = (
    "/docs",
    "/api",
    "/guide",
    "/reference",
    "/tutorial",
    "/examples",
    "/ref/",
    "/documentation",
)

# Clearly non-documentation site sections
_BLOCKED_PATH_MARKERS = (
    "/blog",
    "/changelog",
    "/careers",
    "/about",
    "/contact",
    "/privacy",
    "/terms",
)

_LOC_RE = re.compile(r"<loc>\s*([^<]+?)\s*</loc>", re.IGNORECASE)
_SITEMAP_SUFFIXES = (".xml", ".xml.gz")


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def parse_sitemap(xml_text: str) -> List[str]:
    """Extract all ``<loc>`` values from a sitemap or sitemap-index XML.

    Malformed XML falls back to a plain ``<loc>`` scan so a single broken
    entry does not lose the whole file.
    """
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as exc:
        logger.debug("Sitemap XML did not parse (%s), scanning for <loc> tags", exc)
        return [html_lib.unescape(loc) for loc in _LOC_RE.findall(xml_text)]

    ns = root.tag.split("}")[0] + "}" if root.tag.startswith("{") else ""
    return [elem.text.strip() for elem in root.iter(f"{ns}loc") if elem.text and elem.text.strip()]


def is_documentation_url(url: str) -> bool:
    """Return *True* unless *url* sits in a clearly non-documentation section.

    Permissive by default: documentation markers win over the blocklist, and
    anything matching neither list is kept.
    """
    path = urlparse(url).path.lower()
    if any(marker in path for marker in _DOC_PATH_MARKERS):
        return True
    return not any(marker in path for marker in _BLOCKED_PATH_MARKERS)


def _split_locs(xml_text: str, origin: str) -> Tuple[List[str], List[str]]:
    """Return ``(pages, sitemaps)`` from the absolutized ``<loc>`` values of *xml_text*."""
    pages: List[str] = []
    sitemaps: List[str] = []
    for loc in parse_sitemap(xml_text):
        url = urljoin(origin + "/", loc)
        if urlparse(url).path.lower().endswith(_SITEMAP_SUFFIXES):
            sitemaps.append(url)
        else:
            pages.append(url)
    return pages, sitemaps


async def _read_sitemap_tree(sitemap_url: str, xml_text: str, origin: str, timeout: float) -> List[str]:
    """Return the page URLs of *xml_text*, following sub-sitemaps breadth first.

    A sitemap index lists further sitemap files instead of pages.  Those are
    fetched level by level, each level concurrently, until
    :data:`MAX_SITEMAP_FILES` files have been requested.  Sub-sitemaps on
    another host are not followed; a sub-sitemap that fails is skipped.
    """
    netloc = urlparse(origin).netloc
    seen = {sitemap_url}
    budget = MAX_SITEMAP_FILES - 1

    pages, queue = _split_locs(xml_text, origin)
    while queue and budget > 0:
        batch = [url for url in dict.fromkeys(queue) if url not in seen and urlparse(url).netloc == netloc]
        batch = batch[:budget]
        seen.update(batch)
        budget -= len(batch)
        queue = []

        results = await asyncio.gather(
            *(fetch_page(url, timeout=timeout) for url in batch),
            return_exceptions=True,
        )
        for url, result in zip(batch, results):
            if isinstance(result, DocCompilerError):
                logger.debug("Sub-sitemap %s failed: %s", url, result)
                continue
            if isinstance(result, BaseException):
                raise result
            child_pages, child_sitemaps = _split_locs(result, origin)
            pages.extend(child_pages)
            queue.extend(child_sitemaps)

    return list(dict.fromkeys(pages))


async def discover_urls_via_sitemap(base_url: str, timeout: float = SITEMAP_TIMEOUT) -> List[str]:
    """Return documentation URLs listed in the site's sitemap.

    Tries the well-known sitemap locations under the origin of *base_url* and
    reads only the first one that answers with a 2xx status, together with the
    sub-sitemaps it indexes.  Failures and timeouts advance to the next
    candidate; when none answers the result is an empty list.
    """
    origin = _origin(base_url)

    for path in _SITEMAP_PATHS:
        sitemap_url = origin + path
        try:
            xml_text = await fetch_page(sitemap_url, timeout=timeout)
        except DocCompilerError as exc:
            logger.debug("Sitemap %s unavailable: %s", sitemap_url, exc)
            continue

        locs = await _read_sitemap_tree(sitemap_url, xml_text, origin, timeout)
        urls = [url for url in locs if is_documentation_url(url)]
        logger.info(
            "Sitemap %s lists %d URLs, %d kept as documentation",
            sitemap_url,
            len(locs),
            len(urls),
        )
        return urls

    logger.info("No sitemap found for %s", origin)
    return []
