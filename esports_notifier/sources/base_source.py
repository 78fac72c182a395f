from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from esports_notifier.config.settings import settings
from esports_notifier.models.document import UpstreamDocument

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class FetchError(Exception):
    """Upstream document could not be fetched (network, timeout or non-2xx)."""

    pass


class RetryableStatusError(FetchError):
    """Non-2xx status that is worth another attempt."""

    pass


class UpstreamSource(ABC):
    """Abstract base class for match schedule sources."""

    name: str = "upstream"

    def __init__(
        self,
        url: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
    ):
        self.url = url or settings.upstream_url
        self.base_url = (base_url or settings.upstream_base_url).rstrip("/")
        self.max_attempts = max_attempts or settings.fetch_max_attempts
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.fetch_timeout_seconds),
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
        )

    @abstractmethod
    async def fetch(self) -> UpstreamDocument:
        """Fetch the current upstream document.

        Returns:
            An UpstreamDocument carrying either page text or structured records.

        Raises:
            FetchError: the upstream is unreachable, timed out or answered non-2xx.
        """
        pass

    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Makes an HTTP request with retry logic, raising FetchError on failure."""
        logger.debug(f"Making request to {self.name}: {method} {url}")
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type((httpx.TransportError, RetryableStatusError)),
                reraise=True,
            ):
                with attempt:
                    return await self._attempt(method, url, headers=headers, params=params)
        except FetchError:
            raise
        except httpx.TransportError as e:
            # Network errors and timeouts, after all attempts
            logger.error(f"Request to {self.name} failed after {self.max_attempts} attempt(s): {e!r}")
            raise FetchError(f"{self.name} unreachable: {e!r}") from e
        except httpx.HTTPError as e:
            logger.error(f"Unexpected HTTP error during request to {self.name}: {e!r}")
            raise FetchError(f"{self.name} request failed: {e!r}") from e
        raise FetchError(f"{self.name} request made no attempt")  # pragma: no cover

    async def _attempt(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        response = await self.client.request(method, url, headers=headers, params=params)

        if response.status_code in RETRYABLE_STATUS_CODES:
            retry_after = response.headers.get("Retry-After")
            logger.warning(
                f"{self.name} answered {response.status_code} for {url}. Retry-After: {retry_after}"
            )
            raise RetryableStatusError(f"{self.name} answered HTTP {response.status_code}")

        if not response.is_success:
            logger.error(f"{self.name} answered {response.status_code} for {url}")
            raise FetchError(f"{self.name} answered HTTP {response.status_code}")

        logger.debug(f"Request successful: {response.status_code} for {url}")
        return response

    async def aclose(self):
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.info(f"Closed HTTP client for {self.name}")
