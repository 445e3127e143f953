"""
PhotoLead Agent - Lead discovery for photographers.

Find venues, planners and studios near you, score them for fit with your
niche, and work through them in an outreach pipeline.

CLI Usage:
    photolead score "Rosewood Venue" --website rosewoodweddingvenue.com --location Austin
    photolead generate user-123
    photolead web  # Start API server

Library Usage:
    from photolead import CandidateLead, ScoringContext, score, explain

    lead = CandidateLead(external_id="abc", name="Sunset Studio", website="sunsetstudio.com")
    print(score(lead, ScoringContext(niche="portrait")))  # 80
"""

__version__ = "1.0.0"


def get_version() -> str:
    """Get full version string."""
    return __version__


from photolead.models import CandidateLead, ScoringContext, ScoreResult, LeadStatus
from photolead.scoring import score, score_leads, explain
from photolead.selector import CandidateSelector, ConfigurationError

__all__ = [
    "CandidateLead",
    "ScoringContext",
    "ScoreResult",
    "LeadStatus",
    "CandidateSelector",
    "ConfigurationError",
    "score",
    "score_leads",
    "explain",
    "__version__",
    "get_version",
]
