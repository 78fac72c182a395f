from typing import Iterable, List

from loguru import logger

from esports_notifier.models.match import MatchCandidate


def normalize_team_name(name: object) -> str:
    """Canonical team key: trimmed and lowercased, nothing else.

    No accent stripping or locale-aware folding is applied, so keys compare
    code point by code point.
    """
    if name is None:
        return ""
    return str(name).strip().lower()


def matches_team(candidate: MatchCandidate, watched_team: str) -> bool:
    """True if the watched team is a substring of either normalized team name.

    Substring matching lets "furia" find "FURIA Esports" or "FURIA fe", at the
    cost of false positives for very short names ("g2" inside "og2 academy").
    """
    key = normalize_team_name(watched_team)
    if not key:
        return False
    for name in (candidate.team1, candidate.team2):
        if name and key in normalize_team_name(name):
            return True
    return False


def filter_for_team(candidates: Iterable[MatchCandidate], watched_team: str) -> List[MatchCandidate]:
    """Keep the candidates that belong to the watched team, preserving order."""
    candidates = list(candidates)
    matched = [candidate for candidate in candidates if matches_team(candidate, watched_team)]
    logger.debug(
        f"{len(matched)} of {len(candidates)} candidate(s) match team '{watched_team}'"
    )
    return matched
