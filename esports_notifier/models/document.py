from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class UpstreamDocument(BaseModel):
    """Raw upstream payload: either page text or a list of match-like records."""

    base_url: str
    text: Optional[str] = None
    records: Optional[List[Dict[str, Any]]] = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> "UpstreamDocument":
        if (self.text is None) == (self.records is None):
            raise ValueError("UpstreamDocument needs exactly one of 'text' or 'records'")
        return self
