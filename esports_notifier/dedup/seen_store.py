from typing import Dict, Set

from loguru import logger

from esports_notifier.normalization.normalizer import normalize_team_name
from esports_notifier.storage.state_store import StateStore


class DedupStore:
    """Per-team record of match ids that have already been notified.

    The persisted form is an ordered, append-only list per team key; a set
    index is kept next to it for membership checks. This class is the only
    writer of ``seen_matches``.
    """

    def __init__(self, store: StateStore):
        self._store = store
        self._index: Dict[str, Set[str]] = {}
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the membership index from the store (after a reload)."""
        self._index = {
            key: set(ids) for key, ids in self._store.state.seen_matches.items()
        }

    def is_new(self, team: str, match_id: str) -> bool:
        """True if the match id was never committed for the team."""
        key = normalize_team_name(team)
        return str(match_id) not in self._index.get(key, ())

    def commit(self, team: str, match_id: str) -> bool:
        """Mark a match id as seen for the team and persist the state.

        Returns False when the id was already committed (nothing is written).
        The in-memory update happens first, so a PersistenceError raised by the
        store leaves the id seen for the rest of this process.
        """
        key = normalize_team_name(team)
        match_id = str(match_id)
        seen = self._index.setdefault(key, set())
        if match_id in seen:
            return False

        seen.add(match_id)
        self._store.state.seen_matches.setdefault(key, []).append(match_id)
        self._store.save()
        logger.debug(f"Committed match {match_id} as seen for '{key}'")
        return True

    def seen_count(self, team: str) -> int:
        return len(self._index.get(normalize_team_name(team), ()))
