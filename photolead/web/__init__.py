"""Web API for PhotoLead Agent."""

from .app import create_app

__all__ = ["create_app"]
