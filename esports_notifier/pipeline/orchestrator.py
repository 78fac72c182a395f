"""One discovery-and-notify cycle over all watched teams.

Per team the order is strict:
1) Fetch + extract the upstream document (reused across teams of one cycle)
2) Keep candidates whose team names contain the watched team
3) Skip match ids already committed for the team
4) Notify every current subscriber of the team
5) Commit the match id, whatever the delivery outcomes were

Committing after the delivery attempt means a crash between 4) and 5) can
notify the same match again on the next cycle; a failed delivery is not
retried on later cycles.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from loguru import logger

from esports_notifier.dedup.seen_store import DedupStore
from esports_notifier.extraction.extractor import Extractor
from esports_notifier.models.match import MatchCandidate
from esports_notifier.models.reports import CycleReport, TeamPollResult
from esports_notifier.normalization.normalizer import filter_for_team, normalize_team_name
from esports_notifier.notifications.notifier import Notifier
from esports_notifier.sources.base_source import FetchError, UpstreamSource
from esports_notifier.storage.state_store import PersistenceError
from esports_notifier.storage.subscriptions import SubscriptionRegistry


class PollOrchestrator:
    """Sequences source, extractor, matcher, dedup store and notifier."""

    def __init__(
        self,
        source: UpstreamSource,
        extractor: Extractor,
        registry: SubscriptionRegistry,
        dedup: DedupStore,
        notifier: Notifier,
    ):
        self.source = source
        self.extractor = extractor
        self.registry = registry
        self.dedup = dedup
        self.notifier = notifier
        self._team_locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, team_key: str) -> asyncio.Lock:
        return self._team_locks.setdefault(team_key, asyncio.Lock())

    async def discover(self) -> List[MatchCandidate]:
        """Fetch the upstream document and extract candidates. Raises FetchError."""
        document = await self.source.fetch()
        return self.extractor.extract(document)

    async def run_cycle(self) -> CycleReport:
        """Poll every watched team once, sequentially."""
        report = CycleReport()
        teams = self.registry.watched_teams()
        if not teams:
            logger.info("No subscriptions found, skipping polling.")
            report.finished_at = datetime.now(timezone.utc)
            return report

        logger.info(f"Polling {self.source.name} for: {', '.join(teams)}")
        candidates: Optional[List[MatchCandidate]] = None
        for team in teams:
            result, candidates = await self._poll_team(team, candidates)
            report.teams.append(result)

        report.finished_at = datetime.now(timezone.utc)
        logger.info(
            f"Cycle finished: {report.polled} team(s), {report.new_matches} new match(es), "
            f"{report.deliveries} delivery attempt(s), {report.failed_deliveries} failed."
        )
        return report

    async def poll_team(
        self, team: str, candidates: Optional[List[MatchCandidate]] = None
    ) -> TeamPollResult:
        """Run the pipeline for one team. Never raises; errors land on the result."""
        result, _ = await self._poll_team(team, candidates)
        return result

    async def _poll_team(
        self, team: str, candidates: Optional[List[MatchCandidate]]
    ) -> Tuple[TeamPollResult, Optional[List[MatchCandidate]]]:
        team_key = normalize_team_name(team)
        result = TeamPollResult(team=team, team_key=team_key)
        async with self._lock_for(team_key):
            try:
                candidates = await self._poll_team_locked(team, result, candidates)
            except FetchError as e:
                logger.error(f"Failed to fetch upstream for team '{team}': {e}")
                result.error = f"fetch failed: {e}"
            except Exception as e:
                logger.exception(f"Unexpected error polling team '{team}': {e}")
                result.error = f"unexpected error: {e!r}"
        return result, candidates

    async def _poll_team_locked(
        self,
        team: str,
        result: TeamPollResult,
        candidates: Optional[List[MatchCandidate]],
    ) -> List[MatchCandidate]:
        if candidates is None:
            candidates = await self.discover()
        result.fetched = True
        result.candidates = len(candidates)

        matched = filter_for_team(candidates, team)
        result.matched = len(matched)

        for candidate in matched:
            if not self.dedup.is_new(result.team_key, candidate.source_id):
                continue

            subscriptions = self.registry.for_team(team)
            logger.info(
                f"New match {candidate.source_id} for '{team}': {candidate.description}, "
                f"notifying {len(subscriptions)} subscriber(s)"
            )
            deliveries = await self.notifier.notify_all(subscriptions, candidate)
            result.deliveries.extend(deliveries)
            result.new_match_ids.append(candidate.source_id)

            try:
                self.dedup.commit(result.team_key, candidate.source_id)
            except PersistenceError as e:
                # The in-memory set already holds the id; only a restart can re-notify
                logger.error(
                    f"Seen state for '{team}' not persisted after match {candidate.source_id}: {e}"
                )
                result.persisted = False

        logger.debug(
            f"Team '{team}': {len(result.new_match_ids)} new, "
            f"{self.dedup.seen_count(result.team_key)} seen in total"
        )
        return candidates
