from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from esports_notifier.config.settings import settings

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class DeliveryError(Exception):
    """A webhook rejected the message or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code in RETRYABLE_STATUS_CODES


class DeliveryTransport(ABC):
    """Posts a JSON payload to a destination URL."""

    @abstractmethod
    async def post(self, url: str, payload: Dict[str, Any]) -> None:
        """Deliver the payload. Raises DeliveryError on any failure."""
        pass

    async def aclose(self) -> None:
        pass


class HttpxWebhookTransport(DeliveryTransport):
    """Webhook transport over httpx with optional exponential-backoff retries."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
    ):
        self.max_attempts = max_attempts or settings.delivery_max_attempts
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.delivery_timeout_seconds),
            headers={"User-Agent": settings.user_agent},
        )

    async def post(self, url: str, payload: Dict[str, Any]) -> None:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(
                lambda e: isinstance(e, DeliveryError) and e.retryable
            ),
            reraise=True,
        ):
            with attempt:
                await self._post_once(url, payload)

    async def _post_once(self, url: str, payload: Dict[str, Any]) -> None:
        try:
            response = await self.client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise DeliveryError(f"timed out: {e!r}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"request failed: {e!r}") from e

        if not response.is_success:
            if response.status_code == 429:
                logger.warning(
                    f"Webhook rate limited (429). Retry-After: {response.headers.get('Retry-After')}"
                )
            raise DeliveryError(
                f"webhook answered HTTP {response.status_code}",
                status_code=response.status_code,
            )

    async def aclose(self) -> None:
        await self.client.aclose()
        logger.info("Closed HTTP client for webhook deliveries")
