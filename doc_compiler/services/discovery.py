"""Candidate-URL discovery: runs the strategies side by side and merges their output."""

import asyncio
import logging
from typing import Awaitable, Iterable, List, Optional

from doc_compiler.services.navigation import NAVIGATION_TIMEOUT, discover_urls_via_navigation
from doc_compiler.services.sitemap import SITEMAP_TIMEOUT, discover_urls_via_sitemap

logger = logging.getLogger(__name__)


def merge_candidates(seed_url: str, *groups: Iterable[str]) -> List[str]:
    """Return ``[seed_url, *groups...]`` without duplicates, seed first.

    Identity is exact string equality; first occurrence keeps its position.
    """
    merged = dict.fromkeys([seed_url])
    for group in groups:
        merged.update(dict.fromkeys(group))
    return list(merged)


async def discover_candidate_urls(
    seed_url: str,
    include_navigation: bool = True,
    sitemap_timeout: float = SITEMAP_TIMEOUT,
    navigation_timeout: float = NAVIGATION_TIMEOUT,
    seed_page: Optional[Awaitable[str]] = None,
) -> List[str]:
    """Discover documentation URLs reachable from *seed_url*.

    The sitemap and (optionally) navigation strategies run concurrently.  A
    strategy that fails contributes nothing; discovery itself never fails.
    *seed_page* is handed to the navigation scan so the seed is not fetched
    a second time.
    """
    strategies = [discover_urls_via_sitemap(seed_url, timeout=sitemap_timeout)]
    if include_navigation:
        strategies.append(discover_urls_via_navigation(seed_url, timeout=navigation_timeout, page=seed_page))

    results = await asyncio.gather(*strategies, return_exceptions=True)

    groups: List[List[str]] = []
    for result in results:
        if isinstance(result, BaseException):
            logger.warning("Discovery strategy failed for %s: %s", seed_url, result)
            continue
        groups.append(result)

    candidates = merge_candidates(seed_url, *groups)
    logger.info("Discovered %d candidate URLs for %s", len(candidates), seed_url)
    return candidates
