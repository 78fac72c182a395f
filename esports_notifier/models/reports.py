from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from .delivery import DeliveryResult


class TeamPollResult(BaseModel):
    """What one team's pipeline did during a poll cycle."""

    team: str
    team_key: str
    fetched: bool = False
    candidates: int = 0  # Candidates in the upstream document
    matched: int = 0  # Candidates matching this team
    new_match_ids: List[str] = []
    deliveries: List[DeliveryResult] = []
    persisted: bool = True  # False if any commit failed to reach disk
    error: Optional[str] = None


class CycleReport(BaseModel):
    """Summary of one full poll cycle over all watched teams."""

    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    teams: List[TeamPollResult] = []

    @computed_field  # type: ignore[misc]
    @property
    def polled(self) -> int:
        return len(self.teams)

    @computed_field  # type: ignore[misc]
    @property
    def new_matches(self) -> int:
        return sum(len(result.new_match_ids) for result in self.teams)

    @computed_field  # type: ignore[misc]
    @property
    def deliveries(self) -> int:
        return sum(len(result.deliveries) for result in self.teams)

    @computed_field  # type: ignore[misc]
    @property
    def failed_deliveries(self) -> int:
        return sum(
            1 for result in self.teams for delivery in result.deliveries if not delivery.ok
        )
