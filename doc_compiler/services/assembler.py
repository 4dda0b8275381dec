"""Deterministic assembly of compiled pages into one markdown document.

Output is a pure function of the page order and the timestamp passed in; the
order in which concurrent fetches completed never leaks into it.
"""

import re
from typing import List, Sequence

from doc_compiler.models.page import PageRecord
from doc_compiler.services.normalizer import anchor_slug, make_header

TOC_HEADINGS_PER_PAGE = 5
FOOTER = "*Compiled with Doc Compiler for AI-friendly format*"

_BACKTICK_RUN_RE = re.compile(r"`+")


def _toc_title(page: PageRecord, index: int) -> str:
    if index == 0:
        return "Overview"
    return page.title or f"Page {index + 1}"


def _section_title(page: PageRecord, index: int, main_title: str) -> str:
    if index == 0:
        return "Overview"
    return page.title.replace(main_title, "", 1).strip() or f"Page {index + 1}"


def _fence(code: str) -> str:
    # The fence must be longer than any backtick run inside the sample
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    marker = "`" * max(3, longest + 1)
    return f"{marker}\n{code}\n{marker}"


def build_table_of_contents(pages: Sequence[PageRecord]) -> str:
    """One numbered entry per page plus up to five of its headings, indented by level.

    Entries show the full page title but link to the section heading, which
    has the main title stripped.
    """
    main_title = pages[0].title if pages else ""
    lines: List[str] = []
    for index, page in enumerate(pages):
        anchor = anchor_slug(_section_title(page, index, main_title))
        lines.append(f"{index + 1}. [{_toc_title(page, index)}](#{anchor})")
        for heading in page.headings[:TOC_HEADINGS_PER_PAGE]:
            lines.append(f"{'  ' * (heading.level - 1)}- {heading.text}")
    return "\n".join(lines)


def render_section(page: PageRecord, index: int, main_title: str) -> str:
    parts = [f"## {_section_title(page, index, main_title)}"]
    if index > 0:
        parts.append(f"**Source:** {page.url}")
    if page.body_text:
        parts.append(page.body_text)
    if page.code_blocks:
        parts.append("### Code Examples")
        parts.extend(_fence(code) for code in page.code_blocks)
    parts.append("---")
    return "\n\n".join(parts)


def build_document(pages: Sequence[PageRecord], source_url: str, compiled_at: str) -> str:
    """Assemble header, table of contents and one section per page.

    ``pages[0]`` is the main page and is rendered as the Overview section.
    """
    if not pages:
        raise ValueError("Cannot assemble a document without pages.")

    main_title = pages[0].title
    blocks = [
        make_header(main_title, source_url, len(pages), compiled_at),
        f"## Table of Contents\n\n{build_table_of_contents(pages)}",
        "---",
    ]
    blocks.extend(render_section(page, index, main_title) for index, page in enumerate(pages))
    blocks.append(FOOTER)
    return "\n\n".join(blocks) + "\n"
