from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field


class MatchCandidate(BaseModel):
    """A tentative match record extracted from one upstream document.

    Candidates are rebuilt on every poll cycle and never persisted. Team names
    may be empty when the upstream fragment could not be parsed.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str  # Upstream match id, the dedup identity
    team1: str = ""
    team2: str = ""
    event: str = ""
    link: str
    raw: str = ""  # Whitespace-collapsed context the teams were parsed from
    starts_at: Optional[datetime] = None

    @computed_field  # type: ignore[misc]
    @property
    def description(self) -> str:
        """A human-readable team pair, with placeholders for missing names."""
        return f"{self.team1 or '—'} vs {self.team2 or '—'}"

    @property
    def has_teams(self) -> bool:
        return bool(self.team1 or self.team2)
