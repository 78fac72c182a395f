import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag
from loguru import logger

from esports_notifier.models.document import UpstreamDocument
from esports_notifier.models.match import MatchCandidate
from .team_patterns import (
    DEFAULT_TEAM_PATTERNS,
    TeamPairPattern,
    parse_event_label,
    parse_team_pair,
)

MATCH_HREF_PATTERN = re.compile(r"/matches/(\d+)/")


class ParseAnomaly(Exception):
    """A single upstream fragment does not fit any known shape.

    Never escapes the Extractor: the fragment is degraded or dropped instead.
    """

    pass


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse epoch milliseconds/seconds or an ISO string into an aware datetime."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)) or str(value).isdigit():
            number = float(value)
            # Upstream uses milliseconds; anything this large cannot be seconds
            if number > 1e11:
                number /= 1000
            return datetime.fromtimestamp(number, tz=timezone.utc)
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.debug(f"Ignoring unparseable timestamp: {value!r}")
        return None


def _name_of(value: Any) -> str:
    """Team/event fields come either as plain strings or as {"name": ...}."""
    if isinstance(value, dict):
        value = value.get("name") or value.get("title") or ""
    if value is None:
        return ""
    return _collapse(str(value))


class Extractor:
    """Turns an upstream document into deduplicated MatchCandidates."""

    def __init__(self, team_patterns: Sequence[TeamPairPattern] = DEFAULT_TEAM_PATTERNS):
        self.team_patterns = list(team_patterns)

    def extract(self, document: UpstreamDocument) -> List[MatchCandidate]:
        """Dispatch on the document shape. Never raises for malformed fragments."""
        if document.records is not None:
            candidates = self.extract_from_records(document.records, document.base_url)
        else:
            candidates = self.extract_from_html(document.text or "", document.base_url)
        logger.info(f"Extracted {len(candidates)} match candidate(s) from upstream document")
        return candidates

    # --- HTML documents ---

    def extract_from_html(self, html: str, base_url: str) -> List[MatchCandidate]:
        if not html.strip():
            return []

        soup = BeautifulSoup(html, "html.parser")
        found: Dict[str, MatchCandidate] = {}

        for anchor in soup.select('a[href*="/matches/"]'):
            href = anchor.get("href")
            if not href:
                continue
            id_match = MATCH_HREF_PATTERN.search(href)
            if not id_match:
                continue
            source_id = id_match.group(1)
            if source_id in found:
                continue  # First occurrence wins
            found[source_id] = self._candidate_from_anchor(anchor, source_id, href, base_url)

        return list(found.values())

    def _candidate_from_anchor(
        self, anchor: Tag, source_id: str, href: str, base_url: str
    ) -> MatchCandidate:
        container = anchor.find_parent("div")
        context = _collapse(container.get_text(" ") if container else "") or _collapse(
            anchor.get_text(" ")
        )

        pair = parse_team_pair(context, self.team_patterns)
        candidate = MatchCandidate(
            source_id=source_id,
            team1=pair.team1,
            team2=pair.team2,
            event=self._event_for_anchor(anchor, container),
            link=href if href.startswith("http") else f"{base_url.rstrip('/')}{href}",
            raw=context,
            starts_at=self._start_for_anchor(anchor),
        )
        if not candidate.has_teams:
            logger.debug(f"Match {source_id}: no team names in fragment, kept unmatched")
        elif not pair.team2:
            logger.debug(
                f"Match {source_id}: no team separator in context, used '{pair.pattern}' pattern"
            )
        return candidate

    def _event_for_anchor(self, anchor: Tag, container: Optional[Tag]) -> str:
        # Labeled field in the block around the match ("Event: IEM Katowice")
        block = container.parent if container is not None else None
        if isinstance(block, Tag):
            event = parse_event_label(block.get_text("\n"))
            if event:
                return event

        # Otherwise an element styled as the event name inside the fragment
        for scope in (anchor, container):
            if scope is None:
                continue
            node = scope.find(class_=lambda css_class: bool(css_class) and "event" in css_class.lower())
            if node is not None:
                event = _collapse(node.get_text(" "))
                if event:
                    return event
        return ""

    def _start_for_anchor(self, anchor: Tag) -> Optional[datetime]:
        node = anchor if anchor.has_attr("data-unix") else anchor.find(attrs={"data-unix": True})
        if node is None:
            return None
        return _parse_timestamp(node.get("data-unix"))

    # --- Structured records ---

    def extract_from_records(
        self, records: List[Dict[str, Any]], base_url: str
    ) -> List[MatchCandidate]:
        found: Dict[str, MatchCandidate] = {}
        for record in records:
            try:
                candidate = self._candidate_from_record(record, base_url)
            except ParseAnomaly as e:
                logger.debug(f"Dropping upstream record: {e}")
                continue
            if candidate.source_id not in found:
                found[candidate.source_id] = candidate
        return list(found.values())

    def _candidate_from_record(self, record: Dict[str, Any], base_url: str) -> MatchCandidate:
        raw_id = record.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raise ParseAnomaly(f"record without id (keys: {sorted(record.keys())})")
        source_id = str(raw_id).strip()

        team1 = _name_of(record.get("team1"))
        team2 = _name_of(record.get("team2"))
        title = _collapse(str(record.get("title") or ""))
        if not team1 and not team2 and title:
            # Some feeds only carry a free-text title; reuse the HTML heuristics
            pair = parse_team_pair(title, self.team_patterns)
            team1, team2 = pair.team1, pair.team2

        link = record.get("link") or record.get("url")
        if not link:
            link = f"{base_url.rstrip('/')}/matches/{source_id}/_"

        return MatchCandidate(
            source_id=source_id,
            team1=team1,
            team2=team2,
            event=_name_of(record.get("event")),
            link=str(link),
            raw=title,
            starts_at=_parse_timestamp(record.get("date")),
        )
