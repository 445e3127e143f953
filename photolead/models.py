"""Data models for lead selection and scoring."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class LeadStatus(str, Enum):
    """Outreach pipeline status of a stored lead."""

    NEW = "new"
    CONTACTED = "contacted"
    REPLIED = "replied"
    CONVERTED = "converted"
    REJECTED = "rejected"


@dataclass
class CandidateLead:
    """A business record fetched from the places search, not yet stored."""

    external_id: str
    name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    # Assigned once by the scoring engine
    score: int = 0

    @classmethod
    def from_place(cls, place: dict) -> "CandidateLead":
        """Build a candidate from a Place Details (or Text Search) payload."""
        return cls(
            external_id=place.get("place_id", ""),
            name=place.get("name", ""),
            website=place.get("website") or None,
            phone=place.get("formatted_phone_number") or None,
            address=place.get("formatted_address") or None,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "place_id": self.external_id,
            "name": self.name,
            "website": self.website,
            "phone": self.phone,
            "address": self.address,
            "score": self.score,
        }


@dataclass
class ScoringContext:
    """User preferences that steer location and niche bonuses."""

    target_locations: list[str] = field(default_factory=list)
    niche: str = ""


@dataclass
class RuleResult:
    """One line of a score breakdown."""

    rule: str
    points: int
    applied: bool

    def to_dict(self) -> dict:
        return {"rule": self.rule, "points": self.points, "applied": self.applied}


@dataclass
class ScoreResult:
    """Total score plus the ordered per-rule trace."""

    total: int
    breakdown: list[RuleResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "breakdown": [r.to_dict() for r in self.breakdown],
        }
