from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from .enums import DeliveryStatus


class DeliveryResult(BaseModel):
    """Outcome of one (subscription, match) delivery attempt."""

    webhook: str
    team: str
    match_id: str
    status: DeliveryStatus
    status_code: Optional[int] = None
    error: Optional[str] = None
    attempted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.DELIVERED
