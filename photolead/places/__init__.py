"""Places search module."""

from .client import (
    GooglePlacesClient,
    PlacesSearch,
    PlacesAPIError,
    AuthenticationError,
    RateLimitError,
)
from .queries import build_search_queries, get_search_terms

__all__ = [
    "GooglePlacesClient",
    "PlacesSearch",
    "PlacesAPIError",
    "AuthenticationError",
    "RateLimitError",
    "build_search_queries",
    "get_search_terms",
]
