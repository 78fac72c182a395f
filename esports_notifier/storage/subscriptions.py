from typing import Dict, List, Tuple

from loguru import logger

from esports_notifier.models.subscription import Subscription
from esports_notifier.normalization.normalizer import normalize_team_name
from .state_store import StateStore


class SubscriptionRegistry:
    """Add/remove/list (team, webhook) subscriptions on top of a StateStore.

    Team identity uses the normalized key, so "FURIA" and " furia " are the same
    team; the display string of the first subscription is kept for messages.
    Every mutation is saved immediately and may raise PersistenceError.
    """

    def __init__(self, store: StateStore):
        self._store = store

    @property
    def _subscriptions(self) -> List[Subscription]:
        return self._store.state.subscriptions

    def add(self, team: str, webhook: str) -> Tuple[Subscription, bool]:
        """Subscribe a webhook to a team. Returns (subscription, created)."""
        team, webhook = (team or "").strip(), (webhook or "").strip()
        if not team or not webhook:
            raise ValueError("Both 'team' and 'webhook' are required.")

        key = normalize_team_name(team)
        for existing in self._subscriptions:
            if normalize_team_name(existing.team) == key and existing.webhook == webhook:
                logger.debug(f"Subscription for '{team}' already present, nothing to add.")
                return existing, False

        subscription = Subscription(team=team, webhook=webhook)
        self._subscriptions.append(subscription)
        self._store.save()
        logger.info(f"Subscribed {webhook} to team '{team}'")
        return subscription, True

    def remove(self, team: str, webhook: str) -> int:
        """Unsubscribe a webhook from a team. Returns how many entries were removed."""
        key = normalize_team_name(team)
        webhook = (webhook or "").strip()
        kept = [
            s
            for s in self._subscriptions
            if not (normalize_team_name(s.team) == key and s.webhook == webhook)
        ]
        removed = len(self._subscriptions) - len(kept)
        if removed:
            self._store.state.subscriptions = kept
            self._store.save()
            logger.info(f"Unsubscribed {webhook} from team '{team}'")
        return removed

    def list(self) -> List[Subscription]:
        return list(self._subscriptions)

    def grouped(self) -> Dict[str, List[str]]:
        """Webhooks per team, keyed by the first display name seen for the team."""
        display: Dict[str, str] = {}
        groups: Dict[str, List[str]] = {}
        for s in self._subscriptions:
            key = normalize_team_name(s.team)
            name = display.setdefault(key, s.team)
            groups.setdefault(name, []).append(s.webhook)
        return groups

    def watched_teams(self) -> List[str]:
        """Distinct watched teams (display names), in subscription order."""
        return list(self.grouped().keys())

    def for_team(self, team: str) -> List[Subscription]:
        key = normalize_team_name(team)
        return [s for s in self._subscriptions if normalize_team_name(s.team) == key]

    def __len__(self) -> int:
        return len(self._subscriptions)
