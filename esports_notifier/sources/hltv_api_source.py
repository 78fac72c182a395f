from typing import Any, Dict, List

from loguru import logger

from esports_notifier.models.document import UpstreamDocument
from .base_source import FetchError, UpstreamSource


class HltvApiSource(UpstreamSource):
    """Fetches a structured match list from a JSON endpoint.

    The endpoint is expected to return either a list of match objects or an
    object wrapping that list under ``matches``/``data``. Each match looks like
    ``{"id": 2370001, "team1": {"name": "FURIA"}, "team2": {"name": "NAVI"},
    "event": {"name": "IEM"}, "date": 1700000000000}``.
    """

    name = "hltv-api"

    async def fetch(self) -> UpstreamDocument:
        response = await self._make_request(
            method="GET", url=self.url, headers={"Accept": "application/json"}
        )
        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"{self.name} returned a body that is not JSON: {e}")
            raise FetchError(f"{self.name} returned invalid JSON") from e

        records = self._unwrap(payload)
        logger.info(f"Fetched {len(records)} raw match records from {self.name}")
        return UpstreamDocument(base_url=self.base_url, records=records)

    def _unwrap(self, payload: Any) -> List[Dict[str, Any]]:
        if isinstance(payload, dict):
            for key in ("matches", "data", "results"):
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break
        if not isinstance(payload, list):
            logger.warning(
                f"Expected a list of matches from {self.name}, got {type(payload).__name__}. Using empty list."
            )
            return []
        records = [item for item in payload if isinstance(item, dict)]
        if len(records) != len(payload):
            logger.debug(
                f"Skipped {len(payload) - len(records)} non-dictionary item(s) in {self.name} payload"
            )
        return records
