"""Scoring module for lead prioritization."""

from .engine import score, score_leads, explain

__all__ = [
    "score",
    "score_leads",
    "explain",
]
