"""
Candidate selection: bounded places searches, dedup, scoring and top-N.

Used both by on-demand lead generation and by the daily autonomous run,
each with its own SelectionBudget.
"""

import logging
from typing import Iterable, Optional, Sequence

from .config import (
    DEFAULT_NICHE,
    INTERACTIVE_BUDGET,
    MAX_LEADS_PER_RUN,
    TERM_TABLES,
    ScoringConfig,
    SelectionBudget,
)
from .dedup import dedupe_by_external_id, exclude_known
from .models import CandidateLead, ScoringContext
from .places.client import PlacesSearch
from .places.queries import build_search_queries
from .scoring import score_leads

logger = logging.getLogger(__name__)


class LeadGenerationError(Exception):
    """Base exception for user-facing lead generation failures."""
    pass


class ConfigurationError(LeadGenerationError):
    """The user's settings do not allow a selection run."""
    pass


def parse_locations(text: Optional[str]) -> list[str]:
    """
    Parse the comma-separated target locations field.

    Examples:
        "Austin, TX, Dallas" -> ["Austin", "TX", "Dallas"]
        " Austin ,, " -> ["Austin"]
    """
    if not text:
        return []
    return [loc.strip() for loc in text.split(",") if loc.strip()]


def resolve_niche(niche: Optional[str]) -> str:
    """Lower-case the niche, defaulting to wedding when unset."""
    niche = (niche or "").strip().lower()
    return niche or DEFAULT_NICHE


def clamp_desired_count(desired_count: int, ceiling: int = MAX_LEADS_PER_RUN) -> int:
    """Validate the requested pack size and cap it at the hard ceiling."""
    if desired_count is None or desired_count <= 0:
        raise ConfigurationError(f"Desired lead count must be positive, got {desired_count}")
    return min(desired_count, ceiling)


class CandidateSelector:
    """
    Gathers, deduplicates and ranks new candidate leads for one user.

    External calls are strictly sequential. A failed search or details call
    counts as zero results for that call and never aborts the run.

    Usage:
        selector = CandidateSelector(places_client)
        leads = selector.select("wedding", ["Austin"], 5, known_ids)
    """

    def __init__(
        self,
        client: PlacesSearch,
        budget: SelectionBudget = INTERACTIVE_BUDGET,
        scoring_config: Optional[ScoringConfig] = None,
        max_leads: int = MAX_LEADS_PER_RUN,
    ):
        self.client = client
        self.budget = budget
        self.scoring_config = scoring_config
        self.max_leads = max_leads

    def build_queries(self, niche: str, locations: Sequence[str]) -> list[str]:
        """Search phrases for this budget, capped at max_queries."""
        queries = build_search_queries(
            niche,
            locations,
            terms_table=TERM_TABLES[self.budget.terms_table],
            max_locations=self.budget.max_locations,
            max_terms=self.budget.max_terms_per_location,
        )
        return queries[: self.budget.max_queries]

    def gather(self, queries: Iterable[str], desired_count: int) -> list[CandidateLead]:
        """
        Collect raw candidates across queries, in the order they arrive.

        Stops issuing queries once the number of unique place ids seen
        reaches desired_count. The result may still contain duplicates.
        """
        raw: list[CandidateLead] = []
        seen: set[str] = set()

        for query in queries:
            if self.budget.stop_at_desired and len(seen) >= desired_count:
                break

            try:
                hits = self.client.text_search(query)
            except Exception as e:
                logger.warning("Places search failed for '%s': %s", query, e)
                continue

            for hit in hits[: self.budget.results_per_query]:
                if self.budget.stop_within_query and len(seen) >= desired_count:
                    break

                candidate = self._fetch_candidate(hit)
                if candidate:
                    raw.append(candidate)
                    seen.add(candidate.external_id)

        logger.info("Gathered %d raw candidates (%d unique)", len(raw), len(seen))
        return raw

    def select(
        self,
        niche: Optional[str],
        locations: Sequence[str],
        desired_count: int,
        known_external_ids: Iterable[str] = (),
    ) -> list[CandidateLead]:
        """
        Produce up to desired_count new, scored candidates, best first.

        Args:
            niche: Photographer niche (defaults to "wedding")
            locations: Parsed target locations
            desired_count: Requested pack size (clamped to max_leads)
            known_external_ids: Place ids already stored for the user

        Returns:
            Scored candidates sorted by score descending

        Raises:
            ConfigurationError: No locations, or a non-positive count
        """
        if not locations:
            raise ConfigurationError("No target locations configured")

        niche = resolve_niche(niche)
        desired_count = clamp_desired_count(desired_count, self.max_leads)

        queries = self.build_queries(niche, locations)
        raw = self.gather(queries, desired_count)

        unique = dedupe_by_external_id(raw)
        fresh = exclude_known(unique, known_external_ids)

        context = ScoringContext(target_locations=list(locations), niche=niche)
        ranked = score_leads(fresh, context, self.scoring_config)

        selected = ranked[:desired_count]
        logger.info(
            "Selected %d of %d new candidates (%d already known)",
            len(selected),
            len(fresh),
            len(unique) - len(fresh),
        )
        return selected

    def _fetch_candidate(self, hit: dict) -> Optional[CandidateLead]:
        place_id = hit.get("place_id")
        if not place_id:
            logger.debug("Skipping search hit without place_id: %s", hit.get("name"))
            return None

        try:
            details = self.client.get_details(place_id)
        except Exception as e:
            logger.warning("Place details failed for %s: %s", place_id, e)
            return None

        if not details:
            return None

        details.setdefault("place_id", place_id)
        if not details.get("name"):
            details["name"] = hit.get("name", "")
        return CandidateLead.from_place(details)
