"""Ordered team-pair parsing strategies.

Upstream text around a match link is free-form ("FURIA vs Imperial",
"paiN – MIBR", or just a team name and a time). Each strategy either returns a
TeamPair or None, and the first strategy that answers wins.
"""

import re
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional, Sequence

# Trailing separators that end the second team name in collapsed context text
_TAIL = r"(?:\s+[|•·]\s+|$)"

FALLBACK_MAX_WORDS = 6
FALLBACK_MAX_CHARS = 20


class TeamPair(NamedTuple):
    team1: str
    team2: str
    pattern: str  # Name of the strategy that produced the pair


class TeamPairPattern(ABC):
    """One strategy in the team-pair chain."""

    name: str = "pattern"

    @abstractmethod
    def parse(self, text: str) -> Optional[TeamPair]:
        pass


class SeparatorPattern(TeamPairPattern):
    """Splits "<team1> <separator> <team2>" using a compiled regex."""

    def __init__(self, name: str, regex: str):
        self.name = name
        self._regex = re.compile(regex, re.IGNORECASE)

    def parse(self, text: str) -> Optional[TeamPair]:
        match = self._regex.search(text)
        if not match:
            return None
        team1 = match.group("team1").strip()
        team2 = match.group("team2").strip()
        if not team1 or not team2:
            return None
        return TeamPair(team1, team2, self.name)


class LeadingWordsPattern(TeamPairPattern):
    """Last resort: first few words become team1, team2 stays empty."""

    name = "leading-words"

    def __init__(self, max_words: int = FALLBACK_MAX_WORDS, max_chars: int = FALLBACK_MAX_CHARS):
        self.max_words = max_words
        self.max_chars = max_chars

    def parse(self, text: str) -> Optional[TeamPair]:
        window = " ".join(text.split(" ")[: self.max_words])
        team1 = window[: self.max_chars].strip()
        if not team1:
            return None
        return TeamPair(team1, "", self.name)


VS_PATTERN = SeparatorPattern(
    "versus", rf"^(?P<team1>.+?)\s+v(?:s\.?|\.)?\s+(?P<team2>.+?){_TAIL}"
)
DASH_PATTERN = SeparatorPattern(
    "dash", rf"^(?P<team1>.+?)\s+[-–—]\s+(?P<team2>.+?){_TAIL}"
)

DEFAULT_TEAM_PATTERNS: Sequence[TeamPairPattern] = (
    VS_PATTERN,
    DASH_PATTERN,
    LeadingWordsPattern(),
)

EMPTY_PAIR = TeamPair("", "", "none")


def parse_team_pair(
    text: str, patterns: Sequence[TeamPairPattern] = DEFAULT_TEAM_PATTERNS
) -> TeamPair:
    """Run the strategy chain over whitespace-collapsed text."""
    collapsed = re.sub(r"\s+", " ", text or "").strip()
    if not collapsed:
        return EMPTY_PAIR
    for pattern in patterns:
        pair = pattern.parse(collapsed)
        if pair is not None:
            return pair
    return EMPTY_PAIR


EVENT_LABEL_PATTERN = re.compile(
    r"(?:Event|Tournament|Liga|League|Stage)\s*:\s*([^\n\r]+)", re.IGNORECASE
)


def parse_event_label(text: str) -> str:
    """Return the value of the first "Event:"-style labeled field, or ''."""
    match = EVENT_LABEL_PATTERN.search(text or "")
    if not match:
        return ""
    return re.sub(r"\s+", " ", match.group(1)).strip()
