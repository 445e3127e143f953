"""Outreach email content and delivery."""

import html
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from .dedup import normalize_domain
from .models import LeadStatus

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

VENUE_PATTERN = re.compile(r"venue|hall|estate|manor|garden|ballroom", re.IGNORECASE)
PLANNER_PATTERN = re.compile(r"planner|coordinator|planning", re.IGNORECASE)

# Leads in these states never get another first-touch email
ALREADY_CONTACTED = {
    LeadStatus.CONTACTED.value,
    LeadStatus.REPLIED.value,
    LeadStatus.CONVERTED.value,
}


class OutreachError(Exception):
    """Outreach cannot be sent for this lead."""
    pass


class SendError(Exception):
    """The email provider rejected the message."""
    pass


@dataclass
class EmailContent:
    subject: str
    text: str
    html: str


def recipient_for_website(website: Optional[str]) -> Optional[str]:
    """
    Guess a contact address from the lead's website.

    Examples:
        "https://www.rosewoodvenue.com/about" -> "info@rosewoodvenue.com"
    """
    domain = normalize_domain(website)
    if not domain:
        return None
    return f"info@{domain}"


def _to_html(paragraphs: list[str], signature: str) -> str:
    body = "\n".join(f"<p>{html.escape(p)}</p>" for p in paragraphs if p)
    sig = html.escape(signature).replace("\n", "<br>")
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; color: #333;">\n'
        f"{body}\n<p>{sig}</p>\n</div>"
    )


def _signature(email_signature: Optional[str], sender_name: str) -> str:
    return email_signature or f"Best,\n{sender_name}"


def outreach_email(
    lead_name: str,
    lead_website: Optional[str] = None,
    photographer_niche: str = "wedding",
    ideal_client_description: Optional[str] = None,
    email_signature: Optional[str] = None,
    sender_name: str = "A local photographer",
) -> EmailContent:
    """
    First-touch collaboration email, tailored to venues and planners.

    Args:
        lead_name: Business name
        lead_website: Business website (changes the opening line)
        photographer_niche: Sender's niche, used in the pitch
        ideal_client_description: Optional paragraph about the sender's work
        email_signature: Multi-line signature; replaces the default sign-off
        sender_name: Used in the default sign-off

    Returns:
        Subject, plain text and HTML bodies
    """
    is_venue = bool(VENUE_PATTERN.search(lead_name))
    is_planner = bool(PLANNER_PATTERN.search(lead_name))

    if lead_website:
        kind = "venues" if is_venue else "planners" if is_planner else "businesses"
        opening = (
            f"I came across {lead_name} while researching local {kind} "
            "and was impressed by what you've built."
        )
    else:
        opening = (
            f"I've heard great things about {lead_name} from others in the "
            f"{photographer_niche} community and wanted to reach out."
        )

    if is_venue:
        pitch = (
            f"I specialize in {photographer_niche} photography and love capturing spaces "
            "like yours. I'd be glad to explore being a recommended vendor, a styled shoot "
            "to showcase the venue, or simply referring clients to each other."
        )
    elif is_planner:
        pitch = (
            f"As a {photographer_niche} photographer I value planners who care about "
            "their clients' experience as much as I do, and I'm always looking for "
            "planners to recommend."
        )
    else:
        pitch = (
            f"I'm a local {photographer_niche} photographer looking to connect with "
            "other professionals in the industry. Would you be open to a quick chat "
            "about working together?"
        )

    about = f"A bit about my work: {ideal_client_description}" if ideal_client_description else ""
    call_to_action = (
        f"Would you have 15 minutes for a call or coffee this week? "
        f"I'd love to learn more about {lead_name}."
    )
    signature = _signature(email_signature, sender_name)

    paragraphs = ["Hi there,", opening, pitch, about, call_to_action, "Looking forward to connecting!"]
    text = "\n\n".join(p for p in paragraphs if p) + f"\n\n{signature}"

    return EmailContent(
        subject=f"Loved {lead_name}'s work - collaboration idea",
        text=text,
        html=_to_html(paragraphs, signature),
    )


def follow_up_email(
    lead_name: str,
    days_since_first: int,
    email_signature: Optional[str] = None,
    sender_name: str = "A local photographer",
) -> EmailContent:
    """Short nudge sent after an unanswered first email."""
    when = "last week" if days_since_first == 7 else "a few days ago"
    paragraphs = [
        "Hi there,",
        f"I wanted to follow up on my note from {when}. I know how busy things get!",
        f"I'm still keen to explore a collaboration with {lead_name}. "
        "Even a 10-minute call would be great.",
        "If you're not the right person, I'd appreciate a pointer to who is.",
        "Thanks so much!",
    ]
    signature = _signature(email_signature, sender_name)

    return EmailContent(
        subject=f"Quick follow-up - {lead_name}",
        text="\n\n".join(paragraphs) + f"\n\n{signature}",
        html=_to_html(paragraphs, signature),
    )


def daily_summary_email(leads_found: int, leads_contacted: int, sender_name: str) -> EmailContent:
    """Report sent to the photographer after an autonomous run."""
    paragraphs = [
        f"Hi {sender_name},",
        "Here's what your lead agent did today:",
        f"New leads found: {leads_found}",
        f"Outreach emails sent: {leads_contacted}",
        "Log in to your dashboard to review your leads and follow up on replies.",
    ]
    signature = "PhotoLead Agent"

    return EmailContent(
        subject=f"Daily report: {leads_found} new leads, {leads_contacted} contacted",
        text="\n\n".join(paragraphs) + f"\n\n{signature}",
        html=_to_html(paragraphs, signature),
    )


class SendGridSender:
    """
    Sends email through the SendGrid v3 API.

    Delivery is attempted once; failures raise SendError for the caller
    to log.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        timeout: int = 15,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key or os.environ.get("SENDGRID_API_KEY", "")
        self.from_email = from_email or os.environ.get("SENDGRID_FROM_EMAIL", "")
        if not self.api_key:
            raise SendError("SendGrid API key not configured")

        self._client = httpx.Client(timeout=timeout, transport=transport)

    def send(
        self,
        to: str,
        content: EmailContent,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> str:
        """Send one message and return the provider's message id."""
        sender = {"email": from_email or self.from_email}
        if from_name:
            sender["name"] = from_name

        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": sender,
            "subject": content.subject,
            "content": [
                {"type": "text/plain", "value": content.text},
                {"type": "text/html", "value": content.html},
            ],
        }
        if reply_to:
            payload["reply_to"] = {"email": reply_to}

        response = self._client.post(
            SENDGRID_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        if not 200 <= response.status_code < 300:
            raise SendError(f"HTTP {response.status_code}: {response.text[:200]}")

        logger.info("Email sent to %s: %s", to, content.subject)
        return response.headers.get("X-Message-Id") or f"sendgrid-{int(datetime.utcnow().timestamp())}"

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def sender_identity(user_email: str, email_signature: Optional[str]) -> tuple[str, str]:
    """Sender display name and sign-off name for a user."""
    from_name = email_signature.split("\n")[0] if email_signature else "PhotoLead Agent"
    return from_name, user_email.split("@")[0]


def send_outreach(repository, lead, settings, sender: SendGridSender, user_email: str) -> str:
    """
    Send the first-touch email for a stored lead and mark it contacted.

    Args:
        repository: LeadRepository bound to the current session
        lead: Stored Lead
        settings: The owner's UserSettings (may be None)
        sender: Configured email sender
        user_email: Owner's address, used for reply-to and fallback sender

    Returns:
        Recipient address

    Raises:
        OutreachError: Lead was already contacted or has no website
        SendError: Provider rejected the message
    """
    if lead.status in ALREADY_CONTACTED:
        raise OutreachError("This lead has already been contacted")

    recipient = recipient_for_website(lead.website)
    if not recipient:
        raise OutreachError("Lead has no website to derive a contact address from")

    niche = (settings.photographer_niche if settings else None) or "wedding"
    signature = settings.email_signature if settings else None
    from_name, sender_name = sender_identity(user_email, signature)

    content = outreach_email(
        lead_name=lead.name,
        lead_website=lead.website,
        photographer_niche=niche,
        ideal_client_description=settings.ideal_client_description if settings else None,
        email_signature=signature,
        sender_name=sender_name,
    )

    sender.send(
        recipient,
        content,
        from_email=sender.from_email or user_email,
        from_name=from_name,
        reply_to=user_email,
    )

    repository.mark_contacted(
        lead,
        f"Outreach email sent on {datetime.utcnow():%Y-%m-%d} to {recipient}",
    )
    return recipient


def send_follow_up(
    repository,
    lead,
    settings,
    sender: SendGridSender,
    user_email: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Send a follow-up to a lead that was contacted but has not replied.

    Returns:
        Recipient address

    Raises:
        OutreachError: Lead is not in contacted status or has no website
        SendError: Provider rejected the message
    """
    if lead.status != LeadStatus.CONTACTED.value:
        raise OutreachError("Follow-ups are only sent to contacted leads")

    recipient = recipient_for_website(lead.website)
    if not recipient:
        raise OutreachError("Lead has no website to derive a contact address from")

    now = now or datetime.utcnow()
    days_since_first = (now - lead.contacted_at).days if lead.contacted_at else 0

    signature = settings.email_signature if settings else None
    from_name, sender_name = sender_identity(user_email, signature)
    content = follow_up_email(
        lead_name=lead.name,
        days_since_first=days_since_first,
        email_signature=signature,
        sender_name=sender_name,
    )

    sender.send(
        recipient,
        content,
        from_email=sender.from_email or user_email,
        from_name=from_name,
        reply_to=user_email,
    )

    repository.record_follow_up(lead, f"Follow-up sent on {now:%Y-%m-%d} to {recipient}")
    return recipient
