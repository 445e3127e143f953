"""On-demand lead generation for a single user."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .config import Settings
from .database import (
    Lead,
    LeadRepository,
    get_settings,
    get_or_create_subscription,
    record_lead_usage,
)
from .places.client import PlacesSearch
from .plans import QuotaStatus, needs_reset
from .selector import (
    CandidateSelector,
    ConfigurationError,
    LeadGenerationError,
    parse_locations,
    resolve_niche,
)

logger = logging.getLogger(__name__)

NO_NEW_LEADS_MESSAGE = "No new leads found. Try expanding your search locations."


class QuotaExceededError(LeadGenerationError):
    """The user's plan has no leads left this month."""
    pass


@dataclass
class GenerationResult:
    leads_added: int
    message: str
    leads: list[Lead] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "leads_added": self.leads_added,
            "leads": [lead.to_dict() for lead in self.leads],
        }


def current_quota(subscription, now: Optional[datetime] = None) -> QuotaStatus:
    """Quota for a subscription, treating a due monthly reset as zero usage."""
    used = subscription.leads_used_this_month or 0
    if needs_reset(subscription.leads_reset_date, now):
        used = 0
    return QuotaStatus.for_usage(subscription.plan, used)


def generate_leads(
    db: Session,
    user_id: str,
    client: PlacesSearch,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> GenerationResult:
    """
    Find, score and store a fresh pack of leads for a user.

    Args:
        db: Database session
        user_id: Owner of the leads
        client: Places search capability
        settings: Application settings (uses defaults if not provided)
        now: Clock override for usage accounting

    Returns:
        GenerationResult with the stored leads, best score first

    Raises:
        ConfigurationError: Missing settings or target locations
        QuotaExceededError: Monthly plan limit reached
    """
    settings = settings or Settings()

    user_settings = get_settings(db, user_id)
    if user_settings is None or not user_settings.target_locations:
        raise ConfigurationError("Please configure your target locations in Settings first")

    locations = parse_locations(user_settings.target_locations)
    if not locations:
        raise ConfigurationError("No target locations configured")

    subscription = get_or_create_subscription(db, user_id)
    quota = current_quota(subscription, now)
    if not quota.can_generate:
        raise QuotaExceededError(
            f"Monthly lead limit reached ({quota.leads_limit} on the {quota.plan} plan)"
        )

    desired = quota.allowance(settings.max_leads_per_run)

    repository = LeadRepository(db)
    selector = CandidateSelector(
        client,
        budget=settings.interactive_budget,
        scoring_config=settings.scoring,
        max_leads=settings.max_leads_per_run,
    )
    candidates = selector.select(
        resolve_niche(user_settings.photographer_niche),
        locations,
        desired,
        repository.known_place_ids(user_id),
    )

    if not candidates:
        logger.info("No new leads for user %s", user_id)
        return GenerationResult(leads_added=0, message=NO_NEW_LEADS_MESSAGE)

    leads = repository.add_candidates(user_id, candidates)
    record_lead_usage(db, subscription, len(leads), now)

    logger.info("Stored %d new leads for user %s", len(leads), user_id)
    return GenerationResult(
        leads_added=len(leads),
        message=f"Found {len(leads)} new leads!",
        leads=leads,
    )
