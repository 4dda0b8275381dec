"""Text normalisation for the compiled document: anchor slugs, timestamps and header block."""

import re
from datetime import datetime, timezone
from typing import Optional


def anchor_slug(title: str) -> str:
    """Return the markdown anchor for *title*.

    Lowercases, turns each whitespace run into one hyphen, then drops every
    character outside ``[a-z0-9-]``.  Existing hyphens are kept as they are,
    so ``"Overview — Widgets API"`` becomes ``"overview--widgets-api"``.
    """
    slug = re.sub(r"\s+", "-", title.lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_header(title: str, source_url: str, total_pages: int, compiled_at: str) -> str:
    """Return the metadata block that opens a compiled document."""
    lines = [
        f"# {title}",
        "",
        f"**Source:** {source_url}",
        "**Compiled for AI consumption**",
        f"**Pages processed:** {total_pages}",
        f"**Compiled:** {compiled_at}",
    ]
    return "\n".join(lines)
