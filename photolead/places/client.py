"""
Google Places client for business discovery.

Wraps the Text Search and Place Details JSON endpoints.
"""

import logging
import os
from typing import Optional, Protocol

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from ..config import PLACE_DETAIL_FIELDS

logger = logging.getLogger(__name__)


class PlacesSearch(Protocol):
    """Search capability the candidate selector depends on."""

    def text_search(self, query: str) -> list[dict]:
        ...

    def get_details(self, place_id: str) -> Optional[dict]:
        ...


class PlacesAPIError(Exception):
    """Base exception for Places API errors."""
    pass


class AuthenticationError(PlacesAPIError):
    """Invalid or missing API key."""
    pass


class RateLimitError(PlacesAPIError):
    """API rate limit or daily quota exceeded."""
    pass


class GooglePlacesClient:
    """
    Client for the Google Places web service.

    Usage:
        with GooglePlacesClient(api_key="your_key") as client:
            for place in client.text_search("wedding venue Austin"):
                details = client.get_details(place["place_id"])
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://maps.googleapis.com/maps/api/place",
        timeout: int = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize Places client.

        Args:
            api_key: Google Places API key (required)
            base_url: Places web service root URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not api_key:
            api_key = os.environ.get("GOOGLE_PLACES_API_KEY")

        if not api_key:
            raise AuthenticationError(
                "Google Places API key not configured. "
                "Set GOOGLE_PLACES_API_KEY environment variable or pass api_key parameter."
            )

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._client = httpx.Client(timeout=self.timeout, transport=transport)
        logger.debug("Places client initialized (base_url=%s)", self.base_url)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    def text_search(self, query: str) -> list[dict]:
        """
        Run a Places Text Search.

        Args:
            query: Free-text phrase (e.g., "wedding venue Austin, TX")

        Returns:
            Raw place results, possibly empty
        """
        logger.info("Places text search: %s", query)

        data = self._get("textsearch", {"query": query})
        results = data.get("results") or []

        logger.info("Places returned %d results for '%s'", len(results), query)
        return results

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    def get_details(self, place_id: str) -> Optional[dict]:
        """
        Fetch contact details for a single place.

        Args:
            place_id: Places identifier from a text search hit

        Returns:
            Place details dict, or None if the place has no result
        """
        data = self._get(
            "details",
            {"place_id": place_id, "fields": ",".join(PLACE_DETAIL_FIELDS)},
        )
        return data.get("result") or None

    def _get(self, endpoint: str, params: dict) -> dict:
        response = self._client.get(
            f"{self.base_url}/{endpoint}/json",
            params={**params, "key": self.api_key},
        )
        self._handle_errors(response)

        data = response.json()
        self._handle_status(data)
        return data

    def _handle_errors(self, response: httpx.Response) -> None:
        """Handle HTTP-level error responses."""
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid Google Places API key")
        elif response.status_code == 429:
            raise RateLimitError("Google Places rate limit exceeded")
        elif response.status_code >= 500:
            raise PlacesAPIError(f"Google Places server error: {response.status_code}")
        elif response.status_code >= 400:
            raise PlacesAPIError(f"Google Places error: {response.status_code} {response.text[:200]}")

    def _handle_status(self, data: dict) -> None:
        """Handle API-level status codes carried in a 200 response."""
        api_status = data.get("status", "OK")

        if api_status in ("OK", "ZERO_RESULTS", "NOT_FOUND"):
            return

        message = data.get("error_message", api_status)
        if api_status == "OVER_QUERY_LIMIT":
            raise RateLimitError(f"Google Places quota exceeded: {message}")
        if api_status == "REQUEST_DENIED":
            raise AuthenticationError(f"Google Places request denied: {message}")
        raise PlacesAPIError(f"Google Places status {api_status}: {message}")

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
