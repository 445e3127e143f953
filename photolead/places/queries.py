"""Search query building utilities."""

from typing import Optional, Sequence

from ..config import SEARCH_TERMS


def get_search_terms(niche: str, terms_table: Optional[dict] = None) -> list[str]:
    """
    Look up the places search terms for a niche.

    Unrecognized niches fall back to the table's "default" entry.
    """
    table = terms_table or SEARCH_TERMS
    return list(table.get(niche.lower(), table["default"]))


def build_search_queries(
    niche: str,
    locations: Sequence[str],
    terms_table: Optional[dict] = None,
    max_locations: Optional[int] = None,
    max_terms: Optional[int] = None,
) -> list[str]:
    """
    Cross the niche's search terms with each target location.

    Args:
        niche: Photographer niche (e.g., "wedding")
        locations: Target locations, in the user's order
        terms_table: niche -> terms mapping (defaults to SEARCH_TERMS)
        max_locations: Only use the first N locations
        max_terms: Only use the first N terms per location

    Returns:
        Phrases like "wedding venue Austin", grouped by location
    """
    terms = get_search_terms(niche, terms_table)
    if max_terms is not None:
        terms = terms[:max_terms]

    if max_locations is not None:
        locations = locations[:max_locations]

    return [f"{term} {location}" for location in locations for term in terms]
