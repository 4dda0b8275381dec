from enum import Enum


class Category(str, Enum):
    """Closed set of topical buckets, declared in display priority order."""

    GETTING_STARTED = "Getting Started"
    API_REFERENCE = "API Reference"
    GUIDES = "Guides & Tutorials"
    EXAMPLES = "Examples"
    CONCEPTS = "Concepts"
    GENERAL = "General Documentation"


CATEGORY_PRIORITY = tuple(Category)
