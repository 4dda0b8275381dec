from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CompileMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    source_url: str
    compiled_at: str  # ISO-8601, UTC
    total_pages: int


class CompileResponse(BaseModel):
    success: bool
    content: Optional[str] = None
    metadata: Optional[CompileMetadata] = None
    error: Optional[str] = None
