"""Motivational quote lookup via ZenQuotes."""
import logging
from typing import Optional

import httpx

from workout_plan_api.config import settings
from workout_plan_api.models import QuoteResult

logger = logging.getLogger(__name__)

EMPTY_QUOTE = QuoteResult(quote="", author="")


class QuoteService:
    """Fetches a random quote. Never fails: errors yield an empty quote."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.ZENQUOTES_URL
        self.timeout = timeout or settings.PROVIDER_TIMEOUT
        self._transport = transport

    async def fetch_quote(self) -> QuoteResult:
        logger.info("Fetching motivational quote...")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url)

            if response.is_success:
                data = response.json()
                if isinstance(data, list) and data and isinstance(data[0], dict):
                    first = data[0]
                    logger.info("Successfully fetched quote")
                    return QuoteResult(
                        quote=str(first.get("q") or ""),
                        author=str(first.get("a") or "Unknown"),
                    )

            logger.warning(
                f"Quote API returned empty or invalid data (status {response.status_code})"
            )
        except Exception as e:
            logger.error(f"Quote fetch error: {e!r}")

        return EMPTY_QUOTE
