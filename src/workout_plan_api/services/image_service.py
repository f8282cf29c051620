"""Motivational image lookup via Unsplash."""
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from workout_plan_api.config import settings
from workout_plan_api.credentials import get_credentials
from workout_plan_api.models import ImageResult

logger = logging.getLogger(__name__)

FALLBACK_IMAGE = ImageResult(
    imageUrl=(
        "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b"
        "?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&q=60"
    ),
    alt="Fitness motivation - person exercising",
    photographer="Fallback Image",
    photographerUrl="",
)

IMAGE_QUERIES = ("fitness-workout", "gym-motivation", "exercise", "fitness-training")


def image_from_photo(photo: Mapping[str, Any]) -> Optional[ImageResult]:
    """Shape an Unsplash photo payload; None when it has no usable URL."""
    urls = photo.get("urls") or {}
    image_url = urls.get("regular") or urls.get("small") or urls.get("thumb")
    if not image_url:
        return None

    user = photo.get("user") or {}
    links = user.get("links") or {}
    return ImageResult(
        imageUrl=image_url,
        alt=photo.get("alt_description") or "Motivational fitness image",
        photographer=user.get("name") or "Unknown",
        photographerUrl=links.get("html") or "",
    )


class ImageService:
    """Fetches a random fitness photo. Never fails: errors yield FALLBACK_IMAGE."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        credentials: Callable[[], Awaitable[Mapping[str, str]]] = get_credentials,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        choose: Callable[[Any], str] = random.choice,
    ):
        self.base_url = (base_url or settings.UNSPLASH_API_URL).rstrip("/")
        self.timeout = timeout or settings.PROVIDER_TIMEOUT
        self._credentials = credentials
        self._transport = transport
        self._choose = choose

    async def fetch_image(self) -> ImageResult:
        logger.info("Fetching motivational image...")
        try:
            credentials = await self._credentials()
            access_key = credentials.get("UNSPLASH_ACCESS_KEY")
            if not access_key:
                logger.warning("Unsplash access key not found, using fallback image")
                return FALLBACK_IMAGE

            params: Dict[str, str] = {
                "query": self._choose(IMAGE_QUERIES),
                "orientation": "landscape",
            }
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/photos/random",
                    params=params,
                    headers={"Authorization": f"Client-ID {access_key}"},
                )

            if response.is_success:
                photo = response.json()
                image = image_from_photo(photo) if isinstance(photo, dict) else None
                if image is not None:
                    logger.info("Successfully fetched image from Unsplash")
                    return image

            logger.warning(
                f"Unsplash API failed (status {response.status_code}), using fallback image"
            )
        except Exception as e:
            logger.error(f"Image fetch error: {e!r}")

        return FALLBACK_IMAGE
