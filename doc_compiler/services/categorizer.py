"""URL-shape categorisation and priority-ordered grouping of documentation pages."""

from typing import Dict, Iterable, List, Tuple
from urllib.parse import urlparse

from doc_compiler.models.category import CATEGORY_PRIORITY, Category
from doc_compiler.models.page import PageRecord

# (category, substrings, suffixes) – evaluated top to bottom, first hit wins.
# Matching runs on the lowercased path only, so hosts such as
# "docs.example.com" never count as an "example".
_RULES: Tuple[Tuple[Category, Tuple[str, ...], Tuple[str, ...]], ...] = (
    (
        Category.API_REFERENCE,
        ("/api/", "/reference/", "/ref/", "reference"),
        ("/api",),
    ),
    (
        Category.EXAMPLES,
        ("/example/", "/examples/", "/sample/", "example"),
        (),
    ),
    (
        Category.GUIDES,
        ("/guide/", "/guides/", "/tutorial/", "/tutorials/", "guide", "tutorial"),
        (),
    ),
    (
        Category.GETTING_STARTED,
        ("/quick", "/start", "/getting", "quickstart", "introduction", "/intro/"),
        ("/intro",),
    ),
    (
        Category.CONCEPTS,
        ("/concept/", "/concepts/", "/overview/", "concept", "overview"),
        (),
    ),
)


def categorize_url(url: str) -> Category:
    """Assign *url* to exactly one :class:`Category`."""
    path = urlparse(url.lower()).path
    for category, substrings, suffixes in _RULES:
        if any(s in path for s in substrings) or path.endswith(suffixes):
            return category
    return Category.GENERAL


def categorize_pages(pages: Iterable[PageRecord]) -> Dict[Category, List[PageRecord]]:
    """Group *pages* by category.

    Keys follow the fixed priority order for the categories present, then
    any other category in first-seen order.  Pages keep their input order
    inside each group.
    """
    grouped: Dict[Category, List[PageRecord]] = {}
    for page in pages:
        grouped.setdefault(page.category, []).append(page)

    ordered = {category: grouped[category] for category in CATEGORY_PRIORITY if category in grouped}
    for category, members in grouped.items():
        ordered.setdefault(category, members)
    return ordered
