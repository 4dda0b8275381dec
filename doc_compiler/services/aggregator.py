"""Discovery and compilation orchestration.

Both operations follow the same shape: discover candidate URLs while fetching
the main page, cap the candidate list, then fetch and extract every remaining
candidate concurrently.  A page that fails is dropped and logged; only a
failure of the main page aborts the request.
"""

import asyncio
import logging
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin

from doc_compiler.models.category import Category
from doc_compiler.models.page import PageRecord
from doc_compiler.services.assembler import build_document
from doc_compiler.services.categorizer import categorize_pages, categorize_url
from doc_compiler.services.discovery import discover_candidate_urls, merge_candidates
from doc_compiler.services.extractor import (
    DEFAULT_TITLE,
    extract_page,
    extract_title,
    format_size,
    parse_size,
)
from doc_compiler.services.fetcher import fetch_page
from doc_compiler.services.normalizer import format_timestamp

logger = logging.getLogger(__name__)

DISCOVERY_PAGE_LIMIT = 50
DISCOVERY_SITEMAP_TIMEOUT = 8
DISCOVERY_PAGE_TIMEOUT = 10

COMPILE_PAGE_LIMIT = 15
COMPILE_SITEMAP_TIMEOUT = 10
COMPILE_PAGE_TIMEOUT = 15
COMPILED_TITLE_FALLBACK = "Documentation"


class PageFailure(NamedTuple):
    url: str
    error: BaseException


class DiscoveryReport(NamedTuple):
    base_url: str
    title: str
    total_pages: int
    categories: Dict[Category, List[PageRecord]]
    estimated_total_size: str


class CompiledDocument(NamedTuple):
    title: str
    source_url: str
    compiled_at: str
    total_pages: int
    body_text: str


def _build_record(url: str, html: str, structured: bool, title_fallback: str) -> PageRecord:
    extracted = extract_page(html, structured=structured, title_fallback=title_fallback)
    return PageRecord(
        url=url,
        title=extracted.title,
        description=extracted.description,
        category=categorize_url(url),
        size_estimate=extracted.size_estimate,
        body_text=extracted.body,
        headings=extracted.headings,
        code_blocks=extracted.code_blocks,
    )


async def _process_page(url: str, structured: bool, timeout: float, title_fallback: str) -> PageRecord:
    html = await fetch_page(url, timeout=timeout)
    return _build_record(url, html, structured, title_fallback)


def _require_main_page(url: str, result: Union[str, BaseException]) -> str:
    if isinstance(result, BaseException):
        logger.warning("Main page %s unreachable: %s", url, result)
        raise result
    return result


async def _collect_pages(
    urls: Sequence[str],
    main_html: str,
    structured: bool,
    timeout: float,
    title_fallback: str,
) -> Tuple[List[PageRecord], List[PageFailure]]:
    """Fetch and extract *urls* concurrently, keeping their order.

    ``urls[0]`` is the main page; its already-fetched markup is reused.  The
    remaining URLs are fetched in one batch; ``asyncio.gather`` hands each
    result back in its input slot, so completion order never matters.
    """
    main_url, others = urls[0], urls[1:]
    results = await asyncio.gather(
        *(_process_page(url, structured, timeout, title_fallback) for url in others),
        return_exceptions=True,
    )

    pages = [_build_record(main_url, main_html, structured, title_fallback)]
    failures: List[PageFailure] = []
    for url, result in zip(others, results):
        if isinstance(result, BaseException):
            logger.warning("Skipping %s – %s", url, result)
            failures.append(PageFailure(url, result))
        else:
            pages.append(result)

    logger.info(
        "Processed %d of %d pages for %s (%d failed)",
        len(pages),
        len(urls),
        main_url,
        len(failures),
    )
    return pages, failures


def _total_size(pages: Sequence[PageRecord]) -> str:
    return format_size(sum(parse_size(page.size_estimate) for page in pages))


async def discover_documentation(url: str) -> DiscoveryReport:
    """Analyse the documentation site at *url* without compiling it.

    Sitemap and navigation discovery run alongside the main-page fetch, whose
    markup the navigation scan reuses.  Up to :data:`DISCOVERY_PAGE_LIMIT` pages
    are analysed for metadata and grouped by category.

    Raises:
        FetchError: when the main page cannot be fetched.
        InvalidUrlError: when *url* points at a blocked address.
    """
    main_page = asyncio.ensure_future(fetch_page(url, timeout=DISCOVERY_PAGE_TIMEOUT))
    candidates, main_result = await asyncio.gather(
        discover_candidate_urls(
            url,
            include_navigation=True,
            sitemap_timeout=DISCOVERY_SITEMAP_TIMEOUT,
            seed_page=main_page,
        ),
        main_page,
        return_exceptions=True,
    )
    main_html = _require_main_page(url, main_result)
    if isinstance(candidates, BaseException):
        logger.warning("Discovery failed for %s: %s", url, candidates)
        candidates = []

    urls = merge_candidates(url, candidates)[:DISCOVERY_PAGE_LIMIT]
    logger.info("Analysing %d pages for categorisation", len(urls))

    pages, _failures = await _collect_pages(
        urls,
        main_html,
        structured=False,
        timeout=DISCOVERY_PAGE_TIMEOUT,
        title_fallback=DEFAULT_TITLE,
    )

    return DiscoveryReport(
        base_url=url,
        title=extract_title(main_html),
        total_pages=len(pages),
        categories=categorize_pages(pages),
        estimated_total_size=_total_size(pages),
    )


async def _selected_candidates(url: str, selected_pages: Sequence[str]) -> List[str]:
    selected = [urljoin(url, page.strip()) for page in selected_pages if page.strip()]
    return merge_candidates(url, selected)


async def compile_documentation(
    url: str,
    selected_pages: Optional[Sequence[str]] = None,
) -> CompiledDocument:
    """Compile the documentation site at *url* into one markdown document.

    Candidates come from the sitemap (navigation is not scanned) unless
    *selected_pages* is given, in which case exactly those pages follow the
    main page.  At most :data:`COMPILE_PAGE_LIMIT` pages are compiled.

    Raises:
        FetchError: when the main page cannot be fetched.
        InvalidUrlError: when *url* points at a blocked address.
    """
    if selected_pages:
        discovery = _selected_candidates(url, selected_pages)
    else:
        discovery = discover_candidate_urls(
            url,
            include_navigation=False,
            sitemap_timeout=COMPILE_SITEMAP_TIMEOUT,
        )

    candidates, main_result = await asyncio.gather(
        discovery,
        fetch_page(url, timeout=COMPILE_PAGE_TIMEOUT),
        return_exceptions=True,
    )
    main_html = _require_main_page(url, main_result)
    if isinstance(candidates, BaseException):
        logger.warning("Discovery failed for %s: %s", url, candidates)
        candidates = []

    urls = merge_candidates(url, candidates)[:COMPILE_PAGE_LIMIT]
    logger.info("Found %d pages to compile", len(urls))

    pages, _failures = await _collect_pages(
        urls,
        main_html,
        structured=True,
        timeout=COMPILE_PAGE_TIMEOUT,
        title_fallback=COMPILED_TITLE_FALLBACK,
    )

    compiled_at = format_timestamp()
    content = build_document(pages, url, compiled_at)
    logger.info("Compiled %d pages from %s (%s)", len(pages), url, _total_size(pages))

    return CompiledDocument(
        title=pages[0].title,
        source_url=url,
        compiled_at=compiled_at,
        total_pages=len(pages),
        body_text=content,
    )
