from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .subscription import Subscription


class WatchState(BaseModel):
    """Everything the service persists: subscriptions and per-team seen ids.

    Serialized with aliases so the file keeps the ``seenMatches``/``createdAt``
    keys used by earlier deployments.
    """

    model_config = ConfigDict(populate_by_name=True)

    subscriptions: List[Subscription] = []
    # Key: normalized team name, Value: match ids in the order they were committed
    seen_matches: Dict[str, List[str]] = Field(default_factory=dict, alias="seenMatches")

    @field_validator("subscriptions", mode="before")
    @classmethod
    def _accept_grouped_subscriptions(cls, value: Any) -> Any:
        # Older files stored {"TEAM": ["webhook", ...]}
        if isinstance(value, dict) and all(isinstance(v, list) for v in value.values()):
            return [
                {"team": team, "webhook": webhook}
                for team, webhooks in value.items()
                for webhook in webhooks
            ]
        return value

    @field_validator("seen_matches", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        # Anything but lists of ids is left for pydantic to reject
        if isinstance(value, dict) and all(isinstance(ids, list) for ids in value.values()):
            return {
                key: [str(match_id) if isinstance(match_id, int) else match_id for match_id in ids]
                for key, ids in value.items()
            }
        return value
