from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PageSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    title: str
    category: str
    description: Optional[str] = None
    estimated_size: str


class DiscoveryData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    base_url: str
    title: str
    total_pages: int
    categories: Dict[str, List[PageSummary]]
    """Category name → pages, in category priority order."""
    estimated_total_size: str


class DiscoverResponse(BaseModel):
    success: bool
    data: Optional[DiscoveryData] = None
    error: Optional[str] = None
