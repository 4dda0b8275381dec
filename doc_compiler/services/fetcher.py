import asyncio
import ipaddress
import socket
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

from doc_compiler.services.errors import (
    FetchError,
    FetchTimeoutError,
    HttpStatusError,
    InvalidUrlError,
    UnreachableError,
)

MAX_CONTENT_SIZE = 10 * 1024 * 1024  # 10 MB
DEFAULT_TIMEOUT = 10  # seconds
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}
USER_AGENT = "Mozilla/5.0 (compatible; DocCompiler/1.0)"


async def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address.

    Resolution goes through the event loop and runs under the caller's timeout.
    """
    try:
        infos = await asyncio.get_running_loop().getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        raw_ip = info[4][0]
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = raw_ip.split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def check_request_url(url: Optional[str]) -> str:
    """Return the trimmed *url* if it is an absolute http(s) URL with a host.

    Syntax only; no name resolution, so callers can reject bad input before
    any I/O.
    """
    if url is None or not url.strip():
        raise InvalidUrlError("URL is required")
    url = url.strip()
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidUrlError("Invalid URL format") from exc
    if parsed.scheme not in ALLOWED_SCHEMES or not hostname:
        raise InvalidUrlError("Invalid URL format")
    return url


async def validate_url(url: str) -> None:
    """Raise InvalidUrlError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname:
        raise InvalidUrlError("URL must have a valid hostname.")

    if await _is_private_address(hostname):
        raise InvalidUrlError("Requests to private/internal addresses are not allowed.")


async def _get(url: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport]) -> str:
    current_url = url
    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    ) as client:
        for _ in range(MAX_REDIRECTS + 1):
            await validate_url(current_url)
            async with client.stream("GET", current_url) as response:
                if response.is_redirect:
                    location = response.headers.get("location", "")
                    current_url = urljoin(current_url, location)
                    continue

                if not response.is_success:
                    raise HttpStatusError(response.status_code, response.reason_phrase)

                content_length = response.headers.get("content-length")
                if content_length and int(content_length) > MAX_CONTENT_SIZE:
                    raise FetchError("Response body exceeds the maximum allowed size.")

                chunks = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > MAX_CONTENT_SIZE:
                        raise FetchError("Response body exceeds the maximum allowed size.")
                    chunks.append(chunk)

                return b"".join(chunks).decode(errors="replace")

    raise FetchError("Too many redirects.")


async def fetch_page(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Fetch *url* and return the response body as a string.

    The whole exchange, address lookups and redirects included, is bounded
    by *timeout* seconds.
    Redirects are followed manually so that every destination is validated
    against the SSRF rules before the next request is made. No retries.

    Raises:
        InvalidUrlError: if the URL fails SSRF / scheme validation.
        FetchTimeoutError: if *timeout* expires.
        HttpStatusError: on a non-2xx response.
        UnreachableError: on DNS, connection, or TLS errors.
        FetchError: if the body is too large or redirects do not settle.
    """
    try:
        return await asyncio.wait_for(_get(url, timeout, transport), timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise FetchTimeoutError(f"Timed out after {timeout:g}s fetching {url}") from exc
    except httpx.InvalidURL as exc:
        raise InvalidUrlError(str(exc)) from exc
    except httpx.HTTPError as exc:
        raise UnreachableError(f"Could not reach {url}: {exc}") from exc
