"""Notification message formatting.

Kept apart from delivery so every transport sends the same text.
"""

from typing import Any, Dict

from esports_notifier.models.enums import NotificationStyle
from esports_notifier.models.match import MatchCandidate

PLACEHOLDER = "—"
EMBED_COLOR = 0xF5A623


def _escape_md(value: str) -> str:
    for ch in ("*", "_", "`", "~", "|"):
        value = value.replace(ch, f"\\{ch}")
    return value


def format_title(team: str) -> str:
    return f"🔥 New match for {team}!"


def format_body(candidate: MatchCandidate) -> str:
    """Team pair, event and start time, one per line (no link)."""
    team1 = _escape_md(candidate.team1) or PLACEHOLDER
    team2 = _escape_md(candidate.team2) or PLACEHOLDER
    lines = [
        f"**{team1} vs {team2}**",
        f"Event: {_escape_md(candidate.event) or PLACEHOLDER}",
    ]
    if candidate.starts_at is not None:
        lines.append(f"Starts: {candidate.starts_at.strftime('%Y-%m-%d %H:%M')} UTC")
    return "\n".join(lines)


def format_message(team: str, candidate: MatchCandidate) -> str:
    """Plain text message: title, body and the match link."""
    return "\n".join([f"**{format_title(team)}**", format_body(candidate), f"🔗 {candidate.link}"])


def build_payload(team: str, candidate: MatchCandidate, style: NotificationStyle) -> Dict[str, Any]:
    """Return the JSON body posted to the webhook for the requested style."""
    if style == NotificationStyle.CONTENT:
        return {"content": format_message(team, candidate)}
    if style == NotificationStyle.EMBED:
        embed: Dict[str, Any] = {
            "title": format_title(team),
            "description": f"{format_body(candidate)}\n🔗 {candidate.link}",
            "url": candidate.link,
            "color": EMBED_COLOR,
            "footer": {"text": f"Match {candidate.source_id}"},
        }
        if candidate.starts_at is not None:
            embed["timestamp"] = candidate.starts_at.isoformat()
        return {"embeds": [embed]}
    raise ValueError(f"Unsupported notification style: {style}")
