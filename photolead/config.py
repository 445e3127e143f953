"""Configuration settings for PhotoLead Agent."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

load_dotenv()


# Hard ceiling on leads produced by one selection run (interactive or cron)
MAX_LEADS_PER_RUN = 10

# Niche used when the user has not configured one
DEFAULT_NICHE = "wedding"


@dataclass
class ScoringConfig:
    """Point values for each lead scoring rule."""

    base_score: int = 50
    website_keyword_weight: int = 20
    name_keyword_weight: int = 15
    target_location_weight: int = 10
    phone_weight: int = 5
    website_weight: int = 5
    niche_bonus_weight: int = 10

    # Upper bound for the final score
    max_score: int = 100


@dataclass
class SelectionBudget:
    """
    Bounds on external calls made by one selection run.

    The places API is rate-limited and billed per call, so every run issues
    a small, fixed number of searches and detail lookups.
    """

    # Maximum number of text-search phrases issued
    max_queries: int = 3
    # Top hits per phrase for which details are fetched
    results_per_query: int = 5
    # Only the first N configured locations are searched (None = all)
    max_locations: Optional[int] = None
    # Only the first N niche terms are used per location (None = all)
    max_terms_per_location: Optional[int] = None
    # Stop issuing queries once the desired number of unique candidates is gathered
    stop_at_desired: bool = True
    # Also stop fetching details mid-query once the desired count is reached
    stop_within_query: bool = False
    # Which niche -> query-terms table to use
    terms_table: str = "interactive"


# On-demand generation from the dashboard
INTERACTIVE_BUDGET = SelectionBudget(
    max_queries=3,
    results_per_query=5,
    terms_table="interactive",
)

# Unattended daily cron run: 2 locations x 2 terms, 3 hits each
AUTONOMOUS_BUDGET = SelectionBudget(
    max_queries=4,
    results_per_query=3,
    max_locations=2,
    max_terms_per_location=2,
    stop_within_query=True,
    terms_table="autonomous",
)


@dataclass
class Settings:
    """Unified settings with YAML override support."""

    # API keys (from environment)
    google_places_api_key: str = field(
        default_factory=lambda: os.environ.get("GOOGLE_PLACES_API_KEY", "")
    )
    sendgrid_api_key: str = field(default_factory=lambda: os.environ.get("SENDGRID_API_KEY", ""))
    sendgrid_from_email: str = field(default_factory=lambda: os.environ.get("SENDGRID_FROM_EMAIL", ""))

    # Cron endpoint shared secret
    cron_secret: str = field(default_factory=lambda: os.environ.get("CRON_SECRET", ""))
    environment: str = field(default_factory=lambda: os.environ.get("ENVIRONMENT", "production"))

    database_url: str = field(
        default_factory=lambda: os.environ.get("DATABASE_URL", "sqlite:///./photolead.db")
    )

    # Selection limits
    max_leads_per_run: int = MAX_LEADS_PER_RUN
    default_outreach_limit: int = 5
    interactive_budget: SelectionBudget = field(default_factory=lambda: replace(INTERACTIVE_BUDGET))
    autonomous_budget: SelectionBudget = field(default_factory=lambda: replace(AUTONOMOUS_BUDGET))

    # Scoring weights
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    # HTTP
    request_timeout: int = 30


_NESTED = {
    "scoring": ScoringConfig,
    "interactive_budget": SelectionBudget,
    "autonomous_budget": SelectionBudget,
}


def load_config(path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML file with environment overrides.

    Priority: environment > config file > defaults

    Args:
        path: Path to YAML config file (optional)

    Returns:
        Settings instance with merged configuration
    """
    settings = Settings()

    if path:
        config_path = Path(path)
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            for key, value in data.items():
                if not hasattr(settings, key):
                    continue
                if key in _NESTED and isinstance(value, dict):
                    current = getattr(settings, key)
                    merged = {**current.__dict__, **value}
                    setattr(settings, key, _NESTED[key](**merged))
                else:
                    setattr(settings, key, value)

    # Environment overrides (always win)
    env_map = {
        "GOOGLE_PLACES_API_KEY": "google_places_api_key",
        "SENDGRID_API_KEY": "sendgrid_api_key",
        "SENDGRID_FROM_EMAIL": "sendgrid_from_email",
        "CRON_SECRET": "cron_secret",
        "DATABASE_URL": "database_url",
    }
    for env_var, attr in env_map.items():
        if os.environ.get(env_var):
            setattr(settings, attr, os.environ[env_var])

    return settings


# Places text-search phrases per niche, used by on-demand generation
SEARCH_TERMS = {
    "wedding": ["wedding venue", "event venue", "wedding planner", "bridal shop"],
    "portrait": ["photo studio", "photography studio", "modeling agency"],
    "event": ["event venue", "conference center", "banquet hall", "event planner"],
    "corporate": ["corporate office", "conference center", "coworking space"],
    "real_estate": ["real estate agency", "property management", "luxury homes"],
    "default": ["wedding venue", "event venue", "photography studio"],
}

# Smaller table used by the daily autonomous run
AUTONOMOUS_SEARCH_TERMS = {
    "wedding": ["wedding venue", "event venue", "wedding planner"],
    "portrait": ["photo studio", "photography studio"],
    "event": ["event venue", "conference center", "banquet hall"],
    "corporate": ["corporate office", "conference center"],
    "default": ["wedding venue", "event venue"],
}

TERM_TABLES = {
    "interactive": SEARCH_TERMS,
    "autonomous": AUTONOMOUS_SEARCH_TERMS,
}

# Scoring keyword lists (matched as lower-case substrings)
WEBSITE_KEYWORDS = ("wedding", "event", "bridal", "celebration", "reception", "ceremony")

BUSINESS_TYPE_KEYWORDS = (
    "venue",
    "studio",
    "planner",
    "coordinator",
    "hall",
    "ballroom",
    "estate",
    "manor",
    "garden",
)

WEDDING_NICHE_KEYWORDS = ("wedding", "bridal", "bride", "groom", "chapel", "ceremony")
CORPORATE_NICHE_KEYWORDS = ("conference", "corporate", "business", "meeting", "convention")
PORTRAIT_NICHE_KEYWORDS = ("studio", "portrait", "headshot", "photo")

# Fields requested from the Place Details endpoint
PLACE_DETAIL_FIELDS = [
    "place_id",
    "name",
    "formatted_address",
    "formatted_phone_number",
    "website",
]
