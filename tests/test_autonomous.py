"""Tests for the daily autonomous run."""

from datetime import date, datetime

from photolead.config import Settings
from photolead.database import (
    AutonomousRunLog,
    Lead,
    UserSettings,
    get_or_create_subscription,
)
from photolead.autonomous import run_daily
from tests.conftest import FakePlaces, FakeSender, place

TODAY = date(2024, 6, 15)

PLACES = [
    place("p1", "Rosewood Venue", website="rosewoodweddingvenue.com", phone="555-0001",
          address="123 Main St, Austin, TX"),
    place("p2", "Oak Hall", website="oakhall.com", address="9 Elm St, Austin, TX"),
    place("p3", "Joe's Pizza", address="1 Pizza Way, Austin, TX"),
]


def add_user(db, user_id="user-1", email="jamie@example.com", locations="Austin",
             autonomous=True, outreach_limit=5):
    user = UserSettings(
        user_id=user_id,
        email=email,
        photographer_niche="wedding",
        target_locations=locations,
        email_signature="Jamie Lee\nLee Photography",
        autonomous_mode=autonomous,
        daily_lead_target=10,
        daily_outreach_limit=outreach_limit,
    )
    db.add(user)
    db.commit()
    return user


def places():
    return FakePlaces(searches={"wedding venue Austin": ["p3", "p1", "p2"]}, details=PLACES)


def settings():
    return Settings(google_places_api_key="test")


class TestDailyRun:
    """Lead finding, outreach and summaries."""

    def test_finds_leads_and_sends_outreach(self, db):
        add_user(db)
        sender = FakeSender()
        client = places()

        result = run_daily(db, client, sender, settings(), today=TODAY)

        assert result.users_processed == 1
        assert result.total_leads_found == 3
        assert result.total_outreach_sent == 2
        assert result.errors == []
        assert client.search_calls == ["wedding venue Austin", "event venue Austin"]

        recipients = [m["to"] for m in sender.sent]
        assert recipients == [
            "info@rosewoodweddingvenue.com",
            "info@oakhall.com",
            "jamie@example.com",
        ]
        assert sender.sent[0]["from_name"] == "Jamie Lee"
        assert sender.sent[0]["reply_to"] == "jamie@example.com"
        assert sender.sent[2]["subject"] == "Daily report: 3 new leads, 2 contacted"

        statuses = {l.place_id: l.status for l in db.query(Lead).all()}
        assert statuses == {"p1": "contacted", "p2": "contacted", "p3": "new"}

        log = db.query(AutonomousRunLog).one()
        assert log.run_date == TODAY
        assert (log.leads_found, log.leads_contacted, log.summary_sent) == (3, 2, True)

    def test_records_usage(self, db):
        add_user(db)
        run_daily(db, places(), FakeSender(), settings(), today=TODAY)
        assert get_or_create_subscription(db, "user-1").leads_used_this_month == 3

    def test_outreach_limit(self, db):
        add_user(db, outreach_limit=1)
        sender = FakeSender()

        result = run_daily(db, places(), sender, settings(), today=TODAY)

        assert result.total_outreach_sent == 1
        assert sender.sent[0]["to"] == "info@rosewoodweddingvenue.com"

    def test_runs_once_per_day(self, db):
        add_user(db)
        run_daily(db, places(), FakeSender(), settings(), today=TODAY)

        client = places()
        result = run_daily(db, client, FakeSender(), settings(), today=TODAY)

        assert result.users_processed == 0
        assert client.search_calls == []

    def test_next_day_runs_again(self, db):
        add_user(db)
        run_daily(db, places(), FakeSender(), settings(), today=TODAY)

        result = run_daily(db, places(), FakeSender(), settings(), today=date(2024, 6, 16))

        assert result.users_processed == 1
        assert result.total_leads_found == 0
        assert db.query(AutonomousRunLog).count() == 2

    def test_without_sender(self, db):
        add_user(db)

        result = run_daily(db, places(), None, settings(), today=TODAY)

        assert result.total_leads_found == 3
        assert result.total_outreach_sent == 0
        assert db.query(AutonomousRunLog).one().summary_sent is False

    def test_send_failure_skips_lead(self, db):
        add_user(db)
        sender = FakeSender(fail_for={"info@rosewoodweddingvenue.com"})

        result = run_daily(db, places(), sender, settings(), today=TODAY)

        assert result.total_outreach_sent == 1
        statuses = {l.place_id: l.status for l in db.query(Lead).all()}
        assert statuses["p1"] == "new"
        assert statuses["p2"] == "contacted"

    def test_no_locations(self, db):
        add_user(db, locations="")
        client = places()

        result = run_daily(db, client, FakeSender(), settings(), today=TODAY)

        assert result.users_processed == 1
        assert result.total_leads_found == 0
        assert client.search_calls == []

    def test_each_user_gets_own_leads(self, db):
        add_user(db, "user-1")
        add_user(db, "user-2", email="sam@example.com")
        client = places()

        result = run_daily(db, client, FakeSender(), settings(), today=TODAY)

        assert result.users_processed == 2
        assert result.total_leads_found == 6


class TestDailyRunSkips:
    """Users that are not processed."""

    def test_autonomous_mode_off(self, db):
        add_user(db, autonomous=False)
        client = places()

        result = run_daily(db, client, FakeSender(), settings(), today=TODAY)

        assert result.users_processed == 0
        assert client.search_calls == []

    def test_no_email(self, db):
        add_user(db, email=None)

        result = run_daily(db, places(), FakeSender(), settings(), today=TODAY)

        assert result.errors == ["User user-1: No email found"]
        assert result.users_processed == 0

    def test_monthly_limit_reached(self, db):
        add_user(db)
        subscription = get_or_create_subscription(db, "user-1")
        subscription.leads_used_this_month = 10
        subscription.leads_reset_date = datetime.utcnow()
        db.commit()

        result = run_daily(db, places(), FakeSender(), settings(), today=TODAY)

        assert result.errors == ["User user-1: Monthly limit reached"]
        assert db.query(Lead).count() == 0
