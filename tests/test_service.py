"""Tests for on-demand lead generation."""

from datetime import datetime

import pytest

from photolead.config import Settings
from photolead.database import (
    Lead,
    LeadRepository,
    UserSettings,
    UserSubscription,
    get_or_create_subscription,
    record_lead_usage,
)
from photolead.selector import ConfigurationError
from photolead.service import NO_NEW_LEADS_MESSAGE, QuotaExceededError, generate_leads
from tests.conftest import FakePlaces, place

NOW = datetime(2024, 6, 15, 12, 0)

PLACES = [
    place("p1", "Rosewood Venue", website="rosewoodweddingvenue.com", phone="555-0001",
          address="123 Main St, Austin, TX"),
    place("p2", "Oak Hall", website="oakhall.com", address="9 Elm St, Austin, TX"),
    place("p3", "Joe's Pizza", address="1 Pizza Way, Austin, TX"),
]


def add_user(db, user_id="user-1", locations="Austin", niche="wedding"):
    db.add(UserSettings(user_id=user_id, email=f"{user_id}@example.com",
                        photographer_niche=niche, target_locations=locations))
    db.commit()


def settings():
    return Settings(google_places_api_key="test")


def places():
    return FakePlaces(searches={"wedding venue Austin": ["p3", "p1", "p2"]}, details=PLACES)


class TestGenerateLeads:
    """Interactive generation."""

    def test_stores_scored_leads(self, db):
        add_user(db)

        result = generate_leads(db, "user-1", places(), settings(), now=NOW)

        assert result.leads_added == 3
        assert result.message == "Found 3 new leads!"
        assert [l.place_id for l in result.leads] == ["p1", "p2", "p3"]
        assert [l.score for l in result.leads] == [100, 80, 60]
        assert all(l.status == "new" for l in result.leads)
        assert db.query(Lead).filter(Lead.user_id == "user-1").count() == 3

    def test_records_usage(self, db):
        add_user(db)
        generate_leads(db, "user-1", places(), settings(), now=NOW)

        subscription = get_or_create_subscription(db, "user-1")
        assert subscription.leads_used_this_month == 3

    def test_second_run_finds_nothing_new(self, db):
        add_user(db)
        generate_leads(db, "user-1", places(), settings(), now=NOW)

        result = generate_leads(db, "user-1", places(), settings(), now=NOW)

        assert result.leads_added == 0
        assert result.message == NO_NEW_LEADS_MESSAGE
        assert db.query(Lead).count() == 3

    def test_leads_are_per_user(self, db):
        add_user(db, "user-1")
        add_user(db, "user-2")
        generate_leads(db, "user-1", places(), settings(), now=NOW)

        result = generate_leads(db, "user-2", places(), settings(), now=NOW)
        assert result.leads_added == 3

    def test_to_dict(self, db):
        add_user(db)
        data = generate_leads(db, "user-1", places(), settings(), now=NOW).to_dict()
        assert data["leads_added"] == 3
        assert data["leads"][0]["place_id"] == "p1"
        assert data["leads"][0]["source"] == "google_places"


class TestGenerateLeadsErrors:
    """Settings and quota failures."""

    def test_no_settings(self, db):
        with pytest.raises(ConfigurationError, match="target locations"):
            generate_leads(db, "nobody", places(), settings(), now=NOW)

    def test_blank_locations(self, db):
        add_user(db, locations=" , ")
        with pytest.raises(ConfigurationError):
            generate_leads(db, "user-1", places(), settings(), now=NOW)

    def test_quota_exhausted(self, db):
        add_user(db)
        subscription = get_or_create_subscription(db, "user-1")
        subscription.leads_used_this_month = 10
        subscription.leads_reset_date = datetime(2024, 6, 1)
        db.commit()

        client = places()
        with pytest.raises(QuotaExceededError):
            generate_leads(db, "user-1", client, settings(), now=NOW)
        assert client.search_calls == []

    def test_quota_caps_pack_size(self, db):
        add_user(db)
        subscription = get_or_create_subscription(db, "user-1")
        subscription.leads_used_this_month = 8
        subscription.leads_reset_date = datetime(2024, 6, 1)
        db.commit()

        result = generate_leads(db, "user-1", places(), settings(), now=NOW)

        assert [l.place_id for l in result.leads] == ["p1", "p2"]
        assert get_or_create_subscription(db, "user-1").leads_used_this_month == 10

    def test_stale_usage_is_reset(self, db):
        add_user(db)
        subscription = get_or_create_subscription(db, "user-1")
        subscription.leads_used_this_month = 10
        subscription.leads_reset_date = datetime(2024, 4, 1)
        db.commit()

        result = generate_leads(db, "user-1", places(), settings(), now=NOW)

        assert result.leads_added == 3
        subscription = get_or_create_subscription(db, "user-1")
        assert subscription.leads_used_this_month == 3
        assert subscription.leads_reset_date == NOW


class TestLeadRepository:
    """Lead persistence."""

    def test_top_new_leads_ordering(self, db):
        add_user(db)
        generate_leads(db, "user-1", places(), settings(), now=NOW)
        repository = LeadRepository(db)

        top = repository.top_new_leads("user-1", 2)
        assert [l.place_id for l in top] == ["p1", "p2"]

        repository.mark_contacted(top[0], "sent")
        assert [l.place_id for l in repository.top_new_leads("user-1", 2)] == ["p2", "p3"]

    def test_get_is_scoped_to_owner(self, db):
        add_user(db)
        result = generate_leads(db, "user-1", places(), settings(), now=NOW)
        lead_id = result.leads[0].id

        repository = LeadRepository(db)
        assert repository.get("user-1", lead_id) is not None
        assert repository.get("user-2", lead_id) is None

    def test_record_usage_accumulates(self, db):
        subscription = UserSubscription(user_id="u", plan="pro", leads_used_this_month=5,
                                        leads_reset_date=datetime(2024, 6, 1))
        db.add(subscription)
        db.commit()

        record_lead_usage(db, subscription, 4, now=NOW)
        assert subscription.leads_used_this_month == 9
