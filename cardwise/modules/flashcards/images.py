"""Background image lookup through the Unsplash random-photo endpoint."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from cardwise.core.config import UnsplashSettings
from cardwise.core.logging import get_logger

logger = get_logger(__name__)


def _first_image_url(payload: Any) -> str:
    """Return ``urls.regular`` of the first photo, whether the payload is a list or a single photo."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, dict):
        return ""
    urls = payload.get("urls") or {}
    return str(urls.get("regular") or "")


class ImageSearchClient:
    """Looks up one portrait background image per query.

    The ``httpx.AsyncClient`` is owned by the caller (the application lifespan
    or a test) and is never closed here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        access_key: Optional[str],
        base_url: str = "https://api.unsplash.com",
    ) -> None:
        self.client = client
        self.access_key = access_key
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(
        cls, client: httpx.AsyncClient, conf: UnsplashSettings
    ) -> "ImageSearchClient":
        return cls(client, access_key=conf.access_key, base_url=conf.base_url)

    async def fetch_background_image(self, query: str) -> str:
        """Return an image URL for ``query``, or an empty string on any failure."""
        if not self.access_key:
            logger.warning("Unsplash access key not configured; skipping image lookup")
            return ""

        headers = {
            "Authorization": f"Client-ID {self.access_key}",
            "Accept-Version": "v1",
        }
        params = {"query": query, "featured": "true", "orientation": "portrait"}

        try:
            response = await self.client.get(
                f"{self.base_url}/photos/random", headers=headers, params=params
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Unsplash lookup failed for {query!r}: {e}")
            return ""
        except ValueError as e:
            logger.warning(f"Unsplash returned a non-JSON body for {query!r}: {e}")
            return ""

        url = _first_image_url(payload)
        if not url:
            logger.warning(f"No image URL found for {query!r}")
        return url
