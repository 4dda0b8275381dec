from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CompileRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: Optional[str] = None
    selected_pages: Optional[List[str]] = Field(
        default=None,
        description="Pages to compile after the main page instead of the sitemap's (max 14 used).",
    )
