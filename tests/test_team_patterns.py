from __future__ import annotations

from esports_notifier.extraction.team_patterns import (
    DASH_PATTERN,
    VS_PATTERN,
    LeadingWordsPattern,
    SeparatorPattern,
    parse_event_label,
    parse_team_pair,
)


def test_vs_separator_splits_teams() -> None:
    pair = parse_team_pair("Team A vs Team B")
    assert (pair.team1, pair.team2) == ("Team A", "Team B")
    assert pair.pattern == "versus"


def test_vs_variants() -> None:
    assert parse_team_pair("FURIA vs. NAVI")[:2] == ("FURIA", "NAVI")
    assert parse_team_pair("FURIA v. NAVI")[:2] == ("FURIA", "NAVI")
    assert parse_team_pair("FURIA v NAVI")[:2] == ("FURIA", "NAVI")
    assert parse_team_pair("FURIA VS NAVI")[:2] == ("FURIA", "NAVI")


def test_team_name_starting_with_v_is_not_a_separator() -> None:
    pair = parse_team_pair("Team Vitality vs NAVI")
    assert (pair.team1, pair.team2) == ("Team Vitality", "NAVI")


def test_dash_separator_splits_teams() -> None:
    pair = parse_team_pair("Team A - Team B")
    assert (pair.team1, pair.team2) == ("Team A", "Team B")
    assert pair.pattern == "dash"

    en_dash = parse_team_pair("paiN – MIBR")
    assert (en_dash.team1, en_dash.team2) == ("paiN", "MIBR")


def test_vs_is_tried_before_dash() -> None:
    pair = parse_team_pair("Team A vs Team B - Bo3")
    assert pair.pattern == "versus"
    assert pair.team1 == "Team A"


def test_second_team_stops_at_pipe_separator() -> None:
    pair = parse_team_pair("FURIA vs Imperial | ESL Pro League")
    assert pair.team2 == "Imperial"


def test_fallback_takes_leading_words() -> None:
    pair = parse_team_pair("FURIA upcoming match 14:00 today")
    assert pair.team1 == "FURIA upcoming match"
    assert pair.team2 == ""
    assert pair.pattern == "leading-words"


def test_fallback_clips_to_twenty_characters() -> None:
    pair = parse_team_pair("Supercalifragilisticexpialidocious Gaming")
    assert len(pair.team1) == 20
    assert pair.team2 == ""


def test_whitespace_is_collapsed_before_matching() -> None:
    pair = parse_team_pair("  Team A \n\t vs   Team B  ")
    assert (pair.team1, pair.team2) == ("Team A", "Team B")


def test_empty_text_yields_empty_pair() -> None:
    pair = parse_team_pair("   ")
    assert (pair.team1, pair.team2) == ("", "")


def test_chain_is_extensible() -> None:
    at_pattern = SeparatorPattern("at", r"^(?P<team1>.+?)\s+@\s+(?P<team2>.+)$")
    patterns = (VS_PATTERN, DASH_PATTERN, at_pattern, LeadingWordsPattern())
    pair = parse_team_pair("Liquid @ Cloud9", patterns)
    assert (pair.team1, pair.team2, pair.pattern) == ("Liquid", "Cloud9", "at")


def test_event_label_is_extracted() -> None:
    text = "14:00\nFURIA vs NAVI\nEvent: IEM Katowice 2025\nBo3"
    assert parse_event_label(text) == "IEM Katowice 2025"


def test_event_label_variants_and_absence() -> None:
    assert parse_event_label("tournament: BLAST Premier") == "BLAST Premier"
    assert parse_event_label("Stage : Playoffs") == "Playoffs"
    assert parse_event_label("no label here") == ""
