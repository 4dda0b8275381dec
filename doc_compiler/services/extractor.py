"""Heuristic content extraction from raw documentation markup.

Extraction is a chain of independent string transformations instead of a DOM
walk, so arbitrary or malformed markup degrades gracefully.  The markdown body
is produced by these stages, in order:

``strip_regions``
    Removes HTML comments, then ``script``/``style``/``nav``/``footer``/``header``
    regions including their content, along with ``title``/``noscript``/
    ``template``/``svg`` elements that carry no readable body text.

``flatten_whitespace``
    Source whitespace is insignificant in HTML; every run becomes one space so
    that only the line breaks emitted by the next stage survive.

``convert_to_markdown``
    Headings, paragraphs, list items, line breaks and bold/italic/inline-code
    tags become their markdown equivalents.

``strip_tags``
    Drops every remaining tag and decodes character entities.

``collapse_whitespace``
    Collapses space runs, trims around line breaks and limits blank lines to
    one in a row.

The plain-text body used for discovery sizing skips the markdown stage.
"""

import html as html_lib
import math
import re
from typing import Dict, List, NamedTuple

from doc_compiler.models.page import Heading

DEFAULT_TITLE = "Documentation Page"

# Scales plain-text length to the approximate size of the rendered markdown
STRUCTURED_SIZE_FACTOR = 0.7

# Code samples shorter than this are almost always inline identifiers
MIN_CODE_BLOCK_LENGTH = 10

_DESCRIPTION_MIN_LENGTH = 50
_DESCRIPTION_MAX_LENGTH = 200

# A lazy span is tempered so that it never crosses another opening tag of the
# same kind; an unclosed tag then fails or ends early instead of rescanning
# the rest of the document once per occurrence.
_COMMENT_RE = re.compile(r"<!--(?:(?!<!--).)*?-->", re.DOTALL)
_REGION_RE = re.compile(
    r"<(script|style|nav|footer|header|title|noscript|template|svg)\b[^>]*>"
    r"(?:(?!<\1\b).)*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)

_TITLE_RE = re.compile(r"<title\b[^>]*>((?:(?!<title\b).)*?)</title\s*>", re.IGNORECASE | re.DOTALL)
_H1_RE = re.compile(r"<h1\b[^>]*>((?:(?!<h1\b).)*?)</h1\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_RE = re.compile(
    r"<h([1-6])\b[^>]*>((?:(?!<h[1-6]\b).)*?)</h\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_META_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_ATTR_RE = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")

# </p> and </li> are optional in HTML; an open paragraph or item also ends at
# the next one of its kind, at an enclosing block boundary, or at the end
_PARAGRAPH_RE = re.compile(
    r"<p\b[^>]*>(.*?)(?:</p\s*>|(?=<p\b|$|"
    r"</?(?:div|section|article|main|aside|body|table|form|blockquote)\b))",
    re.IGNORECASE | re.DOTALL,
)
_LIST_ITEM_RE = re.compile(
    r"<li\b[^>]*>(.*?)(?:</li\s*>|(?=<li\b|</[ou]l\s*>|$))",
    re.IGNORECASE | re.DOTALL,
)
_LIST_RE = re.compile(r"</?(?:ul|ol)\b[^>]*>", re.IGNORECASE)
_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BOLD_RE = re.compile(r"<(strong|b)\b[^>]*>((?:(?!<\1\b).)*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_ITALIC_RE = re.compile(r"<(em|i)\b[^>]*>((?:(?!<\1\b).)*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_INLINE_CODE_RE = re.compile(r"<code\b[^>]*>([^<]*)</code\s*>", re.IGNORECASE)
_CODE_BLOCK_RE = re.compile(r"<(pre|code)\b[^>]*>((?:(?!<\1\b).)*?)</\1\s*>", re.IGNORECASE | re.DOTALL)

# Phrasing tags vanish without a gap so "<a>link</a>." stays "link."
_INLINE_TAG_RE = re.compile(
    r"</?(?:a|span|abbr|kbd|sup|sub|small|mark|u|s|del|ins|q|cite|var|samp|time|label)\b[^>]*>",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^<>]+>")

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)(k?)\s*chars\s*$")


class ExtractedPage(NamedTuple):
    title: str
    description: str
    body: str
    headings: List[Heading]
    code_blocks: List[str]
    size_estimate: str


# ---------------------------------------------------------------------------
# Size formatting
# ---------------------------------------------------------------------------

def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_size(chars: int) -> str:
    """Render a character count as a short human string.

    ``950`` → ``"950 chars"``, ``4500`` → ``"4.5k chars"``,
    ``125000`` → ``"125k chars"``.  Whole thousands below 10k drop the
    fractional digit (``"4k chars"``).
    """
    if chars < 1000:
        return f"{chars} chars"
    if chars < 10000:
        whole, tenth = divmod(_round_half_up(chars / 100), 10)
        return f"{whole}k chars" if tenth == 0 else f"{whole}.{tenth}k chars"
    return f"{_round_half_up(chars / 1000)}k chars"


def parse_size(text: str) -> int:
    """Invert :func:`format_size` back to a character count at its display precision."""
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Unrecognised size string: {text!r}")
    value = float(match.group(1))
    if match.group(2):
        value *= 1000
    return int(round(value))


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------

def strip_regions(html: str) -> str:
    """Remove comments and non-content regions (scripts, styles, site chrome)."""
    return _REGION_RE.sub("", _COMMENT_RE.sub("", html))


def flatten_whitespace(html: str) -> str:
    return re.sub(r"\s+", " ", html)


def _inline_text(fragment: str) -> str:
    """Text of *fragment* on a single line, tags removed and entities decoded."""
    text = html_lib.unescape(_TAG_RE.sub(" ", fragment))
    return re.sub(r"\s+", " ", text).strip()


def _wrap(marker: str):
    def replace(match: re.Match) -> str:
        inner = match.group(match.lastindex)
        if not inner.strip():
            return inner
        return f"{marker}{inner.strip()}{marker}"

    return replace


def _heading_to_markdown(match: re.Match) -> str:
    level = int(match.group(1))
    return f"\n\n{'#' * level} {_inline_text(match.group(2))}\n\n"


def convert_to_markdown(html: str) -> str:
    """Rewrite structural tags as markdown; expects flattened whitespace."""
    text = _HEADING_RE.sub(_heading_to_markdown, html)
    text = _BOLD_RE.sub(_wrap("**"), text)
    text = _ITALIC_RE.sub(_wrap("*"), text)
    text = _INLINE_CODE_RE.sub(_wrap("`"), text)
    text = _LIST_ITEM_RE.sub(lambda m: f"- {m.group(1).strip()}\n", text)
    text = _LIST_RE.sub("\n", text)
    text = _PARAGRAPH_RE.sub(lambda m: f"{m.group(1).strip()}\n\n", text)
    return _BREAK_RE.sub("\n", text)


def strip_tags(html: str) -> str:
    text = _INLINE_TAG_RE.sub("", html)
    text = _TAG_RE.sub(" ", text)
    return html_lib.unescape(text)


def collapse_whitespace(text: str) -> str:
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


# ---------------------------------------------------------------------------
# Public extractors
# ---------------------------------------------------------------------------

def extract_title(html: str, fallback: str = DEFAULT_TITLE) -> str:
    """Return the ``<title>`` text, else the first ``<h1>``, else *fallback*."""
    for pattern in (_TITLE_RE, _H1_RE):
        match = pattern.search(html)
        if match:
            text = _inline_text(match.group(1))
            if text:
                return text
    return fallback


def _parse_attrs(tag: str) -> Dict[str, str]:
    attrs: Dict[str, str] = {}
    for name, double_quoted, single_quoted in _ATTR_RE.findall(tag):
        attrs.setdefault(name.lower(), double_quoted or single_quoted)
    return attrs


def extract_description(html: str) -> str:
    """Return the meta description, else the first paragraph of 50–200 characters."""
    for tag in _META_RE.findall(html):
        attrs = _parse_attrs(tag)
        content = attrs.get("content", "").strip()
        if attrs.get("name", "").lower() == "description" and content:
            return html_lib.unescape(content)

    for match in _PARAGRAPH_RE.finditer(_COMMENT_RE.sub("", html)):
        text = _inline_text(match.group(1))
        if _DESCRIPTION_MIN_LENGTH <= len(text) <= _DESCRIPTION_MAX_LENGTH:
            return text
    return ""


def extract_plain_text(html: str) -> str:
    text = _TAG_RE.sub(" ", strip_regions(html))
    return re.sub(r"\s+", " ", html_lib.unescape(text)).strip()


def extract_markdown(html: str) -> str:
    text = strip_regions(html)
    text = flatten_whitespace(text)
    text = convert_to_markdown(text)
    text = strip_tags(text)
    return collapse_whitespace(text)


def extract_headings(html: str) -> List[Heading]:
    """Return every ``<h1>``–``<h6>`` in document order, skipping empty ones."""
    headings: List[Heading] = []
    for match in _HEADING_RE.finditer(_COMMENT_RE.sub("", html)):
        text = _inline_text(match.group(2))
        if text:
            headings.append(Heading(level=int(match.group(1)), text=text))
    return headings


def extract_code_blocks(html: str) -> List[str]:
    """Return the trimmed text of ``<pre>``/``<code>`` regions worth showing.

    An outer ``<pre>`` consumes any ``<code>`` nested inside it, so a
    highlighted block is reported once.
    """
    blocks: List[str] = []
    for match in _CODE_BLOCK_RE.finditer(_COMMENT_RE.sub("", html)):
        code = html_lib.unescape(_TAG_RE.sub("", match.group(2))).strip()
        if len(code) >= MIN_CODE_BLOCK_LENGTH:
            blocks.append(code)
    return blocks


def estimate_size(html: str, structured: bool = False) -> str:
    chars = len(extract_plain_text(html))
    if structured:
        chars = int(chars * STRUCTURED_SIZE_FACTOR)
    return format_size(chars)


def extract_page(html: str, structured: bool = False, title_fallback: str = DEFAULT_TITLE) -> ExtractedPage:
    """Run every extractor over *html*.

    *structured* selects the markdown body (compilation) over the plain-text
    body (discovery) and scales the size estimate accordingly.
    """
    body = extract_markdown(html) if structured else extract_plain_text(html)
    return ExtractedPage(
        title=extract_title(html, title_fallback),
        description=extract_description(html),
        body=body,
        headings=extract_headings(html),
        code_blocks=extract_code_blocks(html),
        size_estimate=estimate_size(html, structured),
    )
