import asyncio
from typing import Iterable, List, Optional

from loguru import logger

from esports_notifier.config.settings import settings
from esports_notifier.models.delivery import DeliveryResult
from esports_notifier.models.enums import DeliveryStatus, NotificationStyle
from esports_notifier.models.match import MatchCandidate
from esports_notifier.models.subscription import Subscription
from .formatting import build_payload
from .transport import DeliveryError, DeliveryTransport


class Notifier:
    """Formats and delivers one message per (subscription, match) pair.

    Delivery failures are turned into failed DeliveryResults; nothing raised by
    a single recipient reaches the caller.
    """

    def __init__(
        self,
        transport: DeliveryTransport,
        style: Optional[NotificationStyle] = None,
    ):
        self.transport = transport
        self.style = NotificationStyle(style or settings.notification_style)

    async def notify(self, subscription: Subscription, candidate: MatchCandidate) -> DeliveryResult:
        payload = build_payload(subscription.team, candidate, self.style)
        try:
            await self.transport.post(subscription.webhook, payload)
        except DeliveryError as e:
            logger.warning(
                f"Delivery of match {candidate.source_id} to {subscription.webhook} failed: {e}"
            )
            return DeliveryResult(
                webhook=subscription.webhook,
                team=subscription.team,
                match_id=candidate.source_id,
                status=DeliveryStatus.FAILED,
                status_code=e.status_code,
                error=str(e),
            )
        except Exception as e:
            logger.exception(
                f"Unexpected error delivering match {candidate.source_id} to {subscription.webhook}: {e}"
            )
            return DeliveryResult(
                webhook=subscription.webhook,
                team=subscription.team,
                match_id=candidate.source_id,
                status=DeliveryStatus.FAILED,
                error=repr(e),
            )

        logger.info(f"Notified {subscription.webhook} -> {subscription.team} ({candidate.description})")
        return DeliveryResult(
            webhook=subscription.webhook,
            team=subscription.team,
            match_id=candidate.source_id,
            status=DeliveryStatus.DELIVERED,
        )

    async def notify_all(
        self, subscriptions: Iterable[Subscription], candidate: MatchCandidate
    ) -> List[DeliveryResult]:
        """Deliver to every subscription concurrently; results keep input order."""
        subscriptions = list(subscriptions)
        if not subscriptions:
            return []
        return list(
            await asyncio.gather(*(self.notify(s, candidate) for s in subscriptions))
        )
