from loguru import logger

from esports_notifier.models.document import UpstreamDocument
from .base_source import FetchError, UpstreamSource

# HLTV may answer 200 with a Cloudflare challenge instead of the matches page
CHALLENGE_MARKERS = ("cf-chl", "attention required")


class HltvHtmlSource(UpstreamSource):
    """Fetches the HLTV matches page as raw HTML."""

    name = "hltv-html"

    async def fetch(self) -> UpstreamDocument:
        response = await self._make_request(
            method="GET",
            url=self.url,
            headers={"Accept": "text/html,application/xhtml+xml"},
        )
        html = response.text
        lowered = html.lower()
        if any(marker in lowered for marker in CHALLENGE_MARKERS):
            logger.error(f"{self.name} returned a bot challenge page instead of matches")
            raise FetchError(f"{self.name} blocked by bot challenge")

        logger.info(f"Fetched {len(html)} characters of HTML from {self.name}")
        return UpstreamDocument(base_url=self.base_url, text=html)
