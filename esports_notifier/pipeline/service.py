from dataclasses import dataclass
from typing import Optional

from loguru import logger

from esports_notifier.config.settings import AppSettings, settings as default_settings
from esports_notifier.dedup.seen_store import DedupStore
from esports_notifier.extraction.extractor import Extractor
from esports_notifier.models.enums import NotificationStyle, UpstreamKind
from esports_notifier.notifications.notifier import Notifier
from esports_notifier.notifications.transport import DeliveryTransport, HttpxWebhookTransport
from esports_notifier.sources.base_source import UpstreamSource
from esports_notifier.sources.hltv_api_source import HltvApiSource
from esports_notifier.sources.hltv_html_source import HltvHtmlSource
from esports_notifier.storage.state_store import JsonFileStateStore, StateStore
from esports_notifier.storage.subscriptions import SubscriptionRegistry
from .orchestrator import PollOrchestrator
from .scheduler import PollScheduler


@dataclass
class NotifierService:
    """All long-lived components, wired once and shared by the API and CLI."""

    store: StateStore
    registry: SubscriptionRegistry
    dedup: DedupStore
    source: UpstreamSource
    transport: DeliveryTransport
    orchestrator: PollOrchestrator
    scheduler: PollScheduler

    async def aclose(self) -> None:
        if self.scheduler.running:
            await self.scheduler.stop()
        await self.source.aclose()
        await self.transport.aclose()


def build_source(app_settings: AppSettings) -> UpstreamSource:
    kind = UpstreamKind(app_settings.upstream_kind)
    source_cls = HltvApiSource if kind == UpstreamKind.API else HltvHtmlSource
    return source_cls(url=app_settings.upstream_url, base_url=app_settings.upstream_base_url)


def build_service(
    app_settings: Optional[AppSettings] = None,
    store: Optional[StateStore] = None,
    source: Optional[UpstreamSource] = None,
    transport: Optional[DeliveryTransport] = None,
) -> NotifierService:
    """Load persisted state and wire every component.

    Any collaborator can be passed in to replace the default (tests use an
    in-memory store, a fake source and a recording transport).
    """
    app_settings = app_settings or default_settings

    store = store or JsonFileStateStore(app_settings.state_file)
    store.load()
    registry = SubscriptionRegistry(store)
    dedup = DedupStore(store)

    source = source or build_source(app_settings)
    transport = transport or HttpxWebhookTransport(max_attempts=app_settings.delivery_max_attempts)
    notifier = Notifier(transport, style=NotificationStyle(app_settings.notification_style))

    orchestrator = PollOrchestrator(
        source=source,
        extractor=Extractor(),
        registry=registry,
        dedup=dedup,
        notifier=notifier,
    )
    scheduler = PollScheduler(
        orchestrator,
        interval_seconds=app_settings.poll_interval_minutes * 60,
        run_on_start=app_settings.poll_on_startup,
    )
    logger.info(
        f"Service ready: source={source.name}, {len(registry)} subscription(s), "
        f"{len(registry.watched_teams())} watched team(s)"
    )
    return NotifierService(
        store=store,
        registry=registry,
        dedup=dedup,
        source=source,
        transport=transport,
        orchestrator=orchestrator,
        scheduler=scheduler,
    )
