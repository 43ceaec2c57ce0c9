# app/api/news/client.py
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 5


class NewsApiClient:
    """NewsAPI ``/top-headlines`` queried by category.

    ``fetch_by_category`` returns the raw article dicts (possibly ``[]``) or
    raises ``UpstreamError``; an empty result is never used to signal failure.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.NEWS_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.NEWS_API_BASE_URL).rstrip("/")
        self.timeout = settings.NEWS_API_TIMEOUT if timeout is None else timeout
        self._transport = transport

    async def fetch_by_category(self, category: str, page_size: int = DEFAULT_PAGE_SIZE) -> List[Dict[str, Any]]:
        if not self.api_key:
            raise UpstreamError("NEWS_API_KEY is not configured")

        url = f"{self.base_url}/top-headlines"
        params = {"category": category, "pageSize": page_size, "apiKey": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(url, params=params)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            # timeout / HTTP status / network / bad JSON
            logger.warning("news api request failed for category %s: %s", category, e)
            raise UpstreamError(f"Failed to fetch news for category: {category}") from e

        if not isinstance(data, dict) or data.get("status") == "error":
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning("news api returned an error for category %s: %s", category, message)
            raise UpstreamError(f"Failed to fetch news for category: {category}")

        articles = data.get("articles") or []
        return [a for a in articles if isinstance(a, dict)][:page_size]
