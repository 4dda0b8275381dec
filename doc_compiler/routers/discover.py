import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from doc_compiler.limiter import limiter
from doc_compiler.models.discover_request import DiscoverRequest
from doc_compiler.models.discover_response import DiscoverResponse, DiscoveryData, PageSummary
from doc_compiler.models.page import PageRecord
from doc_compiler.services.aggregator import discover_documentation
from doc_compiler.services.errors import FetchError, FetchTimeoutError, InvalidUrlError
from doc_compiler.services.fetcher import check_request_url

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _summary(page: PageRecord) -> PageSummary:
    return PageSummary(
        url=page.url,
        title=page.title,
        category=page.category.value,
        description=page.description or None,
        estimated_size=page.size_estimate,
    )


@router.post(
    "/discover",
    response_model=DiscoverResponse,
    response_model_exclude_none=True,
    summary="Analyse the structure of a documentation site",
    description=(
        "Finds documentation pages through the site's sitemap and navigation, "
        "analyses up to 50 of them, and returns them grouped by category "
        "together with an estimated total size.  Nothing is compiled."
    ),
)
@limiter.limit("10/minute")
async def discover_endpoint(request: Request, body: DiscoverRequest) -> DiscoverResponse | JSONResponse:
    try:
        url = check_request_url(body.url)
    except InvalidUrlError as exc:
        return _failure(400, str(exc))

    logger.info("Discover request received", extra={"url": url})

    try:
        report = await discover_documentation(url)
    except InvalidUrlError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        return _failure(400, str(exc))
    except FetchTimeoutError as exc:
        logger.error("Timeout fetching main page %s: %s", url, exc)
        return _failure(504, str(exc))
    except FetchError as exc:
        logger.error("Error fetching main page %s: %s", url, exc)
        return _failure(502, str(exc))

    categories = {
        category.value: [_summary(page) for page in pages]
        for category, pages in report.categories.items()
    }
    return DiscoverResponse(
        success=True,
        data=DiscoveryData(
            base_url=report.base_url,
            title=report.title,
            total_pages=report.total_pages,
            categories=categories,
            estimated_total_size=report.estimated_total_size,
        ),
    )
