from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Subscription(BaseModel):
    """A recipient endpoint interested in matches of one team."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    team: str  # Display string as given by the subscriber
    webhook: str  # Opaque delivery target
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    @field_validator("team", "webhook")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()
