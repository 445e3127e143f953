"""Database models for users, leads and autonomous run history."""

import os
from datetime import datetime, date
from typing import Generator, Iterable, List, Optional

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Boolean,
    Date,
    DateTime,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import StaticPool

from .models import CandidateLead, LeadStatus
from .plans import needs_reset


def get_database_url() -> str:
    """Database URL from DATABASE_URL, or a local SQLite file."""
    return os.environ.get("DATABASE_URL", "sqlite:///./photolead.db")


def make_engine(url: str):
    """Create an engine, handling SQLite-specific settings."""
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        # In-memory databases must share one connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, connect_args=connect_args, **kwargs)


def make_session_factory(url: str) -> sessionmaker:
    """Create tables at url and return a session factory bound to it."""
    bind = make_engine(url)
    Base.metadata.create_all(bind=bind)
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


DATABASE_URL = get_database_url()

engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class UserSettings(Base):
    """Per-user lead generation preferences."""
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)

    photographer_niche = Column(String(100), nullable=True)
    target_locations = Column(Text, nullable=True)  # comma-separated
    ideal_client_description = Column(Text, nullable=True)
    email_signature = Column(Text, nullable=True)

    daily_lead_target = Column(Integer, default=10)
    daily_outreach_limit = Column(Integer, default=5)
    autonomous_mode = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class UserSubscription(Base):
    """Plan and monthly lead usage for a user."""
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    plan = Column(String(20), default="free")
    subscription_status = Column(String(20), default="active")
    leads_used_this_month = Column(Integer, default=0)
    leads_reset_date = Column(DateTime, default=datetime.utcnow)


class Lead(Base):
    """A stored lead, owned by one user."""
    __tablename__ = "leads"
    __table_args__ = (UniqueConstraint("user_id", "place_id", name="uq_lead_user_place"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    # Identity (places external id, used for deduplication)
    place_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)

    website = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)

    source = Column(String(50), default="google_places")
    score = Column(Integer, default=0)
    status = Column(String(20), default=LeadStatus.NEW.value)
    notes = Column(Text, nullable=True)
    contacted_at = Column(DateTime, nullable=True)
    follow_ups_sent = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_candidate(self) -> CandidateLead:
        return CandidateLead(
            external_id=self.place_id,
            name=self.name,
            website=self.website,
            phone=self.phone,
            address=self.address,
            score=self.score or 0,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "place_id": self.place_id,
            "name": self.name,
            "website": self.website,
            "phone": self.phone,
            "address": self.address,
            "source": self.source,
            "score": self.score,
            "status": self.status,
            "notes": self.notes,
            "contacted_at": self.contacted_at.isoformat() if self.contacted_at else None,
            "follow_ups_sent": self.follow_ups_sent or 0,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class AutonomousRunLog(Base):
    """One row per user per day the autonomous run processed them."""
    __tablename__ = "autonomous_run_logs"
    __table_args__ = (UniqueConstraint("user_id", "run_date", name="uq_run_user_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    run_date = Column(Date, nullable=False)
    leads_found = Column(Integer, default=0)
    leads_contacted = Column(Integer, default=0)
    summary_sent = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


def init_db():
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI routes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class LeadRepository:
    """Lead persistence for one session."""

    def __init__(self, db: Session):
        self.db = db

    def known_place_ids(self, user_id: str) -> set[str]:
        rows = self.db.query(Lead.place_id).filter(Lead.user_id == user_id).all()
        return {row[0] for row in rows}

    def add_candidates(self, user_id: str, candidates: Iterable[CandidateLead]) -> List[Lead]:
        """
        Store scored candidates as new leads.

        Candidates whose place id is already stored for the user are skipped.
        """
        known = self.known_place_ids(user_id)
        leads = []
        for c in candidates:
            if c.external_id in known:
                continue
            lead = Lead(
                user_id=user_id,
                place_id=c.external_id,
                name=c.name,
                website=c.website,
                phone=c.phone,
                address=c.address,
                source="google_places",
                score=c.score,
                status=LeadStatus.NEW.value,
            )
            self.db.add(lead)
            leads.append(lead)
            known.add(c.external_id)

        self.db.commit()
        return leads

    def get(self, user_id: str, lead_id: int) -> Optional[Lead]:
        return self.db.query(Lead).filter(Lead.id == lead_id, Lead.user_id == user_id).first()

    def top_new_leads(self, user_id: str, limit: int) -> List[Lead]:
        """Stored leads still in 'new' status, best score first."""
        return (
            self.db.query(Lead)
            .filter(Lead.user_id == user_id, Lead.status == LeadStatus.NEW.value)
            .order_by(Lead.score.desc(), Lead.id.asc())
            .limit(limit)
            .all()
        )

    def mark_contacted(self, lead: Lead, note: str, now: Optional[datetime] = None) -> Lead:
        lead.status = LeadStatus.CONTACTED.value
        lead.notes = note
        lead.contacted_at = now or datetime.utcnow()
        self.db.commit()
        return lead

    def record_follow_up(self, lead: Lead, note: str) -> Lead:
        """Count a follow-up; the lead stays contacted."""
        lead.follow_ups_sent = (lead.follow_ups_sent or 0) + 1
        lead.notes = f"{lead.notes}\n{note}" if lead.notes else note
        self.db.commit()
        return lead


def get_settings(db: Session, user_id: str) -> Optional[UserSettings]:
    return db.query(UserSettings).filter(UserSettings.user_id == user_id).first()


def get_or_create_subscription(db: Session, user_id: str) -> UserSubscription:
    """Get the user's subscription, creating a free one if missing."""
    subscription = db.query(UserSubscription).filter(UserSubscription.user_id == user_id).first()

    if subscription is None:
        subscription = UserSubscription(
            user_id=user_id,
            plan="free",
            subscription_status="active",
            leads_used_this_month=0,
            leads_reset_date=datetime.utcnow(),
        )
        db.add(subscription)
        db.commit()
        db.refresh(subscription)

    return subscription


def record_lead_usage(
    db: Session,
    subscription: UserSubscription,
    count: int,
    now: Optional[datetime] = None,
) -> UserSubscription:
    """Add count to the monthly usage, resetting it first if a month has passed."""
    now = now or datetime.utcnow()

    if needs_reset(subscription.leads_reset_date, now):
        subscription.leads_used_this_month = count
        subscription.leads_reset_date = now
    else:
        subscription.leads_used_this_month = (subscription.leads_used_this_month or 0) + count

    db.commit()
    db.refresh(subscription)
    return subscription


def get_run_log(db: Session, user_id: str, run_date: date) -> Optional[AutonomousRunLog]:
    return (
        db.query(AutonomousRunLog)
        .filter(AutonomousRunLog.user_id == user_id, AutonomousRunLog.run_date == run_date)
        .first()
    )
