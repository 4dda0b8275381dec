from typing import Optional

from pydantic import BaseModel


class DiscoverRequest(BaseModel):
    # Optional so that a missing URL gets the service's own error message
    url: Optional[str] = None
