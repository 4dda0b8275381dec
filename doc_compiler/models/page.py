from typing import List

from pydantic import BaseModel, ConfigDict, Field

from doc_compiler.models.category import Category


class Heading(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int = Field(ge=1, le=6)
    text: str


class PageRecord(BaseModel):
    """One fetched and extracted documentation page, immutable once built."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    description: str = ""
    category: Category
    size_estimate: str  # human-formatted, see extractor.format_size
    body_text: str  # plain text (discovery) or markdown (compilation)
    headings: List[Heading] = Field(default_factory=list)
    code_blocks: List[str] = Field(default_factory=list)
