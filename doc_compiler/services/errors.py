"""Failure taxonomy shared by the fetcher, the discovery strategies and the routers."""


class DocCompilerError(Exception):
    """Base class for every error raised by the compilation pipeline."""


class InvalidUrlError(DocCompilerError, ValueError):
    """The URL is missing, malformed, or points at a blocked address."""


class FetchError(DocCompilerError):
    """The upstream documentation site could not deliver a page."""


class FetchTimeoutError(FetchError):
    pass


class UnreachableError(FetchError):
    """DNS, connection, or TLS failure."""


class HttpStatusError(FetchError):
    """The upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"HTTP {status_code}: {reason}" if reason else f"HTTP {status_code}")
