"""Shared fixtures: fake places search, fake email sender, in-memory database."""

import os

# Keep the module-level engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest

from photolead.database import make_session_factory
from photolead.outreach import SendError
from photolead.places.client import PlacesAPIError


def place(place_id, name, website=None, phone=None, address=None):
    """Build a Place Details payload."""
    data = {"place_id": place_id, "name": name}
    if website:
        data["website"] = website
    if phone:
        data["formatted_phone_number"] = phone
    if address:
        data["formatted_address"] = address
    return data


class FakePlaces:
    """In-memory stand-in for the places search collaborator."""

    def __init__(self, searches=None, details=None, fail_search=(), fail_details=(), fail_all=False):
        self.searches = searches or {}
        self.details = {d["place_id"]: d for d in (details or [])}
        self.fail_search = set(fail_search)
        self.fail_details = set(fail_details)
        self.fail_all = fail_all
        self.search_calls = []
        self.detail_calls = []

    def text_search(self, query):
        self.search_calls.append(query)
        if self.fail_all or query in self.fail_search:
            raise PlacesAPIError(f"search failed: {query}")
        return [
            {"place_id": pid, "name": self.details.get(pid, {}).get("name", pid)}
            for pid in self.searches.get(query, [])
        ]

    def get_details(self, place_id):
        self.detail_calls.append(place_id)
        if self.fail_all or place_id in self.fail_details:
            raise httpx.ConnectError("details unavailable")
        found = self.details.get(place_id)
        return dict(found) if found else None


class FakeSender:
    """Records messages instead of sending them."""

    def __init__(self, from_email="agent@photolead.test", fail_for=()):
        self.from_email = from_email
        self.fail_for = set(fail_for)
        self.sent = []

    def send(self, to, content, from_email=None, from_name=None, reply_to=None):
        if to in self.fail_for:
            raise SendError(f"HTTP 400: rejected {to}")
        self.sent.append({
            "to": to,
            "subject": content.subject,
            "from_email": from_email,
            "from_name": from_name,
            "reply_to": reply_to,
        })
        return f"msg-{len(self.sent)}"

    def close(self):
        pass


@pytest.fixture
def db():
    """Fresh in-memory database session."""
    session_factory = make_session_factory("sqlite://")
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        session_factory.kw["bind"].dispose()


@pytest.fixture
def sender():
    return FakeSender()
