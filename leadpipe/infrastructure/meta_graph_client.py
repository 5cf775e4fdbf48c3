"""Facebook Graph API client for Lead Ads.

Lead Ads webhooks only carry a leadgen id; the submitted field data is
read from the Graph API with a page access token.

API docs: https://developers.facebook.com/docs/marketing-api/guides/lead-ads/retrieving
"""

import logging

import httpx

from leadpipe.settings import settings

logger = logging.getLogger(__name__)

BASE_URL = "https://graph.facebook.com"


class MetaGraphError(Exception):
    """Raised when a lead cannot be fetched from the Graph API."""


class MetaGraphClient:
    """Fetches Lead Ads leads by leadgen id."""

    def __init__(
        self,
        graph_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.graph_version = graph_version or settings.meta_graph_version
        self.timeout = timeout if timeout is not None else settings.meta_graph_timeout_seconds
        self._transport = transport

    def lead_url(self, leadgen_id: str) -> str:
        return f"{BASE_URL}/{self.graph_version}/{leadgen_id}"

    async def fetch_lead(self, leadgen_id: str, access_token: str) -> dict:
        """Fetch a lead's field data.

        Returns:
            Graph API JSON, including ``field_data`` and ``created_time``

        Raises:
            MetaGraphError: On missing token, timeout, HTTP error or an
                error object in the response body
        """
        if not access_token:
            raise MetaGraphError("No Meta access token configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(
                    self.lead_url(leadgen_id),
                    params={"access_token": access_token},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as e:
            raise MetaGraphError(f"Timeout fetching lead {leadgen_id}") from e
        except httpx.HTTPStatusError as e:
            raise MetaGraphError(
                f"HTTP {e.response.status_code} fetching lead {leadgen_id}: {e.response.text[:200]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise MetaGraphError(f"Error fetching lead {leadgen_id}: {e}") from e

        if "error" in data:
            message = data["error"].get("message", "unknown error") if isinstance(data["error"], dict) else data["error"]
            raise MetaGraphError(f"Graph API error for lead {leadgen_id}: {message}")

        logger.info("Fetched Meta lead", extra={"leadgen_id": leadgen_id})
        return data
