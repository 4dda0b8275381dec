import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from doc_compiler.limiter import limiter
from doc_compiler.models.compile_request import CompileRequest
from doc_compiler.models.compile_response import CompileMetadata, CompileResponse
from doc_compiler.services.aggregator import compile_documentation
from doc_compiler.services.errors import FetchError, FetchTimeoutError, InvalidUrlError
from doc_compiler.services.fetcher import check_request_url

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post(
    "/compile",
    response_model=CompileResponse,
    response_model_exclude_none=True,
    summary="Compile a documentation site into one markdown document",
    description=(
        "Fetches the main page and up to 14 further pages (from the sitemap, "
        "or `selectedPages` when given) and merges them into a single "
        "markdown document with a table of contents, ready for AI consumption."
    ),
)
@limiter.limit("5/minute")
async def compile_endpoint(request: Request, body: CompileRequest) -> CompileResponse | JSONResponse:
    try:
        url = check_request_url(body.url)
    except InvalidUrlError as exc:
        return _failure(400, str(exc))

    logger.info(
        "Compile request received",
        extra={"url": url, "selected_pages": len(body.selected_pages or [])},
    )

    try:
        document = await compile_documentation(url, selected_pages=body.selected_pages)
    except InvalidUrlError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        return _failure(400, str(exc))
    except FetchTimeoutError as exc:
        logger.error("Timeout fetching main page %s: %s", url, exc)
        return _failure(504, str(exc))
    except FetchError as exc:
        logger.error("Error fetching main page %s: %s", url, exc)
        return _failure(502, str(exc))

    return CompileResponse(
        success=True,
        content=document.body_text,
        metadata=CompileMetadata(
            title=document.title,
            source_url=document.source_url,
            compiled_at=document.compiled_at,
            total_pages=document.total_pages,
        ),
    )
