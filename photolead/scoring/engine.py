"""Lead score calculation - How promising is this business for a photographer?"""

from typing import Iterable, Optional, Sequence

from ..config import (
    ScoringConfig,
    WEBSITE_KEYWORDS,
    BUSINESS_TYPE_KEYWORDS,
    WEDDING_NICHE_KEYWORDS,
    CORPORATE_NICHE_KEYWORDS,
    PORTRAIT_NICHE_KEYWORDS,
)
from ..models import CandidateLead, ScoringContext, RuleResult, ScoreResult


def _lower(value: Optional[str]) -> str:
    return value.lower() if value else ""


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _in_target_location(address: str, locations: Sequence[str]) -> bool:
    return any(loc.lower() in address for loc in locations)


def explain(
    lead: CandidateLead,
    context: Optional[ScoringContext] = None,
    config: Optional[ScoringConfig] = None,
) -> ScoreResult:
    """
    Score a lead and return the rule-by-rule breakdown.

    Every rule is evaluated in a fixed order and is additive; several rules
    may fire for the same lead. The niche bonuses are evaluated independently,
    so a niche such as "wedding portrait" earns both bonuses when both keyword
    sets match.

    Args:
        lead: Candidate to score
        context: Target locations and niche (optional)
        config: Rule point values (uses defaults if not provided)

    Returns:
        ScoreResult with the capped total and all nine rules
    """
    config = config or ScoringConfig()

    name = _lower(lead.name)
    website = _lower(lead.website)
    address = _lower(lead.address)
    locations = context.target_locations if context and context.target_locations else []
    niche = _lower(context.niche) if context else ""

    name_or_site = (name, website)

    def niche_match(keywords: Sequence[str]) -> bool:
        return any(_contains_any(text, keywords) for text in name_or_site)

    breakdown = [
        RuleResult("Base score", config.base_score, True),
        RuleResult(
            "Website contains wedding/event keywords",
            config.website_keyword_weight,
            _contains_any(website, WEBSITE_KEYWORDS),
        ),
        RuleResult(
            "Name contains venue/studio keywords",
            config.name_keyword_weight,
            _contains_any(name, BUSINESS_TYPE_KEYWORDS),
        ),
        RuleResult(
            "In target location",
            config.target_location_weight,
            bool(locations) and _in_target_location(address, locations),
        ),
        RuleResult("Has phone number", config.phone_weight, bool(lead.phone)),
        RuleResult("Has website", config.website_weight, bool(lead.website)),
        RuleResult(
            "Wedding niche match",
            config.niche_bonus_weight,
            "wedding" in niche and niche_match(WEDDING_NICHE_KEYWORDS),
        ),
        RuleResult(
            "Corporate/event niche match",
            config.niche_bonus_weight,
            ("corporate" in niche or "event" in niche) and niche_match(CORPORATE_NICHE_KEYWORDS),
        ),
        RuleResult(
            "Portrait niche match",
            config.niche_bonus_weight,
            "portrait" in niche and niche_match(PORTRAIT_NICHE_KEYWORDS),
        ),
    ]

    total = sum(r.points for r in breakdown if r.applied)

    # Cap at 100
    return ScoreResult(total=min(total, config.max_score), breakdown=breakdown)


def score(
    lead: CandidateLead,
    context: Optional[ScoringContext] = None,
    config: Optional[ScoringConfig] = None,
) -> int:
    """
    Calculate the quality score for a lead.

    Args:
        lead: Candidate to score
        context: Target locations and niche (optional)
        config: Rule point values (uses defaults if not provided)

    Returns:
        Score from 0-100
    """
    return explain(lead, context, config).total


def score_leads(
    leads: Iterable[CandidateLead],
    context: Optional[ScoringContext] = None,
    config: Optional[ScoringConfig] = None,
) -> list[CandidateLead]:
    """
    Score every lead and return them sorted by score, highest first.

    Sets ``score`` on each lead. Ties keep their input order.
    """
    scored = []
    for lead in leads:
        lead.score = score(lead, context, config)
        scored.append(lead)

    scored.sort(key=lambda l: l.score, reverse=True)
    return scored
