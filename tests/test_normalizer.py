from __future__ import annotations

import pytest

from esports_notifier.models.match import MatchCandidate
from esports_notifier.normalization.normalizer import (
    filter_for_team,
    matches_team,
    normalize_team_name,
)


def _candidate(team1: str = "", team2: str = "", source_id: str = "1") -> MatchCandidate:
    return MatchCandidate(
        source_id=source_id, team1=team1, team2=team2, link=f"https://x/matches/{source_id}/_"
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("FURIA", "furia"),
        ("  Team Liquid ", "team liquid"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_team_name(raw, expected) -> None:
    assert normalize_team_name(raw) == expected


def test_matching_is_case_insensitive_substring() -> None:
    candidate = _candidate("FURIA Esports", "Imperial")
    assert matches_team(candidate, "furia")
    assert matches_team(candidate, "FURIA")
    assert matches_team(candidate, "impe")
    assert not matches_team(candidate, "navi")


def test_matching_checks_both_sides() -> None:
    assert matches_team(_candidate("NAVI", "FURIA"), "furia")


def test_empty_watched_team_never_matches() -> None:
    assert not matches_team(_candidate("FURIA", "NAVI"), "")
    assert not matches_team(_candidate("FURIA", "NAVI"), "   ")


def test_candidate_without_teams_never_matches() -> None:
    assert not matches_team(_candidate(), "furia")


def test_filter_preserves_order() -> None:
    candidates = [
        _candidate("FURIA", "NAVI", "1"),
        _candidate("MIBR", "paiN", "2"),
        _candidate("Imperial", "FURIA fe", "3"),
    ]
    assert [c.source_id for c in filter_for_team(candidates, "Furia")] == ["1", "3"]
