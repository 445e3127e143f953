"""Lead API endpoints."""

import logging
from typing import Generator, List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from photolead.autonomous import run_daily
from photolead.config import Settings
from photolead.database import LeadRepository, get_db, get_settings
from photolead.models import CandidateLead, ScoringContext
from photolead.outreach import (
    OutreachError,
    SendError,
    SendGridSender,
    send_follow_up,
    send_outreach,
)
from photolead.places.client import AuthenticationError, GooglePlacesClient
from photolead.scoring import explain
from photolead.selector import ConfigurationError, parse_locations, resolve_niche
from photolead.service import QuotaExceededError, generate_leads
from photolead.web.auth import TokenData, get_current_user, verify_cron_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["leads"])


class ScoreRequest(BaseModel):
    """Ad-hoc candidate to score."""
    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Rosewood Venue",
                "website": "rosewoodweddingvenue.com",
                "phone": "555-1234",
                "address": "123 Main St, Austin, TX",
                "target_locations": ["Austin"],
                "niche": "wedding",
            }
        }
    }

    name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    target_locations: List[str] = Field(default_factory=list)
    niche: str = ""


class RuleResponse(BaseModel):
    rule: str
    points: int
    applied: bool


class ScoreResponse(BaseModel):
    total: int
    breakdown: List[RuleResponse]


class GenerateResponse(BaseModel):
    message: str
    leads_added: int
    leads: List[dict] = Field(default_factory=list)


class OutreachResponse(BaseModel):
    success: bool
    message: str
    to: str


def get_app_settings() -> Settings:
    return Settings()


def get_places_client() -> Generator[GooglePlacesClient, None, None]:
    """Dependency providing a Places client, closed after the request."""
    try:
        client = GooglePlacesClient()
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Google Places API key not configured",
        )
    try:
        yield client
    finally:
        client.close()


def get_sender() -> Generator[Optional[SendGridSender], None, None]:
    """Dependency providing the email sender, or None when not configured."""
    try:
        sender = SendGridSender()
    except SendError:
        yield None
        return
    try:
        yield sender
    finally:
        sender.close()


@router.post("/leads/generate", response_model=GenerateResponse)
def generate(
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: GooglePlacesClient = Depends(get_places_client),
    settings: Settings = Depends(get_app_settings),
):
    """Find, score and store a new pack of leads for the current user."""
    try:
        result = generate_leads(db, current_user.user_id, client, settings)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except QuotaExceededError as e:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(e))

    return result.to_dict()


def _send_for_lead(send, lead_id: int, current_user: TokenData, db: Session, sender) -> str:
    """Run an email send for one of the current user's leads, mapping failures to HTTP errors."""
    if sender is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="SendGrid API key not configured",
        )

    repository = LeadRepository(db)
    lead = repository.get(current_user.user_id, lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    user_settings = get_settings(db, current_user.user_id)
    user_email = current_user.email or (user_settings.email if user_settings else None)
    if not user_email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No email on account")

    try:
        return send(repository, lead, user_settings, sender, user_email)
    except OutreachError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (SendError, httpx.HTTPError) as e:
        logger.error("Send email error for lead %s: %s", lead_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send email",
        )


@router.post("/leads/{lead_id}/outreach", response_model=OutreachResponse)
def outreach(
    lead_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
    sender: Optional[SendGridSender] = Depends(get_sender),
):
    """Send the first-touch email for one lead."""
    recipient = _send_for_lead(send_outreach, lead_id, current_user, db, sender)
    return OutreachResponse(success=True, message=f"Outreach email sent to {recipient}", to=recipient)


@router.post("/leads/{lead_id}/follow-up", response_model=OutreachResponse)
def follow_up(
    lead_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
    sender: Optional[SendGridSender] = Depends(get_sender),
):
    """Send a follow-up to a contacted lead."""
    recipient = _send_for_lead(send_follow_up, lead_id, current_user, db, sender)
    return OutreachResponse(success=True, message=f"Follow-up email sent to {recipient}", to=recipient)


@router.get("/leads/{lead_id}/score", response_model=ScoreResponse)
def lead_score(
    lead_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Rule-by-rule breakdown for a stored lead, using current preferences."""
    lead = LeadRepository(db).get(current_user.user_id, lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    user_settings = get_settings(db, current_user.user_id)
    context = ScoringContext(
        target_locations=parse_locations(user_settings.target_locations if user_settings else None),
        niche=resolve_niche(user_settings.photographer_niche if user_settings else None),
    )
    return explain(lead.to_candidate(), context, settings.scoring).to_dict()


@router.post("/score", response_model=ScoreResponse)
def score_candidate(request: ScoreRequest, settings: Settings = Depends(get_app_settings)):
    """Score an ad-hoc candidate without storing it."""
    candidate = CandidateLead(
        external_id="",
        name=request.name,
        website=request.website,
        phone=request.phone,
        address=request.address,
    )
    context = ScoringContext(target_locations=request.target_locations, niche=request.niche)
    return explain(candidate, context, settings.scoring).to_dict()


@router.get("/cron/daily-leads", dependencies=[Depends(verify_cron_secret)])
def daily_leads(
    db: Session = Depends(get_db),
    client: GooglePlacesClient = Depends(get_places_client),
    sender: Optional[SendGridSender] = Depends(get_sender),
    settings: Settings = Depends(get_app_settings),
):
    """Daily autonomous run, triggered by the scheduler."""
    result = run_daily(db, client, sender, settings)
    return {
        "success": True,
        "message": "Daily autonomous run completed",
        "results": result.to_dict(),
    }
