from __future__ import annotations

from typing import Any, Optional

import pytest

from esports_notifier.dedup.seen_store import DedupStore
from esports_notifier.extraction.extractor import Extractor
from esports_notifier.models.document import UpstreamDocument
from esports_notifier.models.enums import NotificationStyle
from esports_notifier.notifications.notifier import Notifier
from esports_notifier.notifications.transport import DeliveryError, DeliveryTransport
from esports_notifier.pipeline.orchestrator import PollOrchestrator
from esports_notifier.sources.base_source import FetchError
from esports_notifier.storage.state_store import InMemoryStateStore, PersistenceError
from esports_notifier.storage.subscriptions import SubscriptionRegistry

R1 = "https://discord.com/api/webhooks/1/r1-token"
R2 = "https://discord.com/api/webhooks/2/r2-token"


def match_html(*fragments: str) -> str:
    """Wrap match fragments the way the upstream page nests them."""
    body = "".join(f"<div class='match-wrapper'>{fragment}</div>" for fragment in fragments)
    return f"<html><body><div class='matches'>{body}</div></body></html>"


def match_anchor(match_id: str, text: str, slug: str = "x-vs-y") -> str:
    return f"<a href='/matches/{match_id}/{slug}'>{text}</a>"


class FakeSource:
    """Upstream source returning scripted documents or raising FetchError."""

    name = "fake"

    def __init__(self, html: str = "", fail: bool = False) -> None:
        self.html = html
        self.records: Optional[list[dict[str, Any]]] = None
        self.fail = fail
        self.fetch_count = 0
        self.fail_on_calls: set[int] = set()

    async def fetch(self) -> UpstreamDocument:
        self.fetch_count += 1
        if self.fail or self.fetch_count in self.fail_on_calls:
            raise FetchError("upstream unreachable")
        if self.records is not None:
            return UpstreamDocument(base_url="https://www.hltv.org", records=self.records)
        return UpstreamDocument(base_url="https://www.hltv.org", text=self.html)

    async def aclose(self) -> None:
        pass


class RecordingTransport(DeliveryTransport):
    """Records every post; URLs in ``failing`` raise DeliveryError."""

    def __init__(self, failing: Optional[set[str]] = None) -> None:
        self.posts: list[tuple[str, dict[str, Any]]] = []
        self.failing = failing or set()

    async def post(self, url: str, payload: dict[str, Any]) -> None:
        self.posts.append((url, payload))
        if url in self.failing:
            raise DeliveryError("webhook answered HTTP 404", status_code=404)

    def posts_to(self, url: str) -> list[dict[str, Any]]:
        return [payload for posted_url, payload in self.posts if posted_url == url]


class FailingSaveStore(InMemoryStateStore):
    """In-memory store whose saves start failing once ``broken`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def save(self) -> None:
        if self.broken:
            raise PersistenceError("disk full")
        super().save()


@pytest.fixture
def store() -> InMemoryStateStore:
    s = InMemoryStateStore()
    s.load()
    return s


@pytest.fixture
def registry(store: InMemoryStateStore) -> SubscriptionRegistry:
    return SubscriptionRegistry(store)


@pytest.fixture
def dedup(store: InMemoryStateStore) -> DedupStore:
    return DedupStore(store)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def orchestrator(
    source: FakeSource,
    registry: SubscriptionRegistry,
    dedup: DedupStore,
    transport: RecordingTransport,
) -> PollOrchestrator:
    return PollOrchestrator(
        source=source,  # type: ignore[arg-type]
        extractor=Extractor(),
        registry=registry,
        dedup=dedup,
        notifier=Notifier(transport, style=NotificationStyle.CONTENT),
    )
