"""Daily autonomous run: find leads and send outreach for opted-in users."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from .config import Settings
from .database import (
    AutonomousRunLog,
    LeadRepository,
    UserSettings,
    get_or_create_subscription,
    get_run_log,
    record_lead_usage,
)
from .outreach import (
    SendError,
    SendGridSender,
    daily_summary_email,
    outreach_email,
    recipient_for_website,
    sender_identity,
)
from .places.client import PlacesSearch
from .selector import CandidateSelector, parse_locations, resolve_niche
from .service import current_quota

logger = logging.getLogger(__name__)


@dataclass
class DailyRunResult:
    users_processed: int = 0
    total_leads_found: int = 0
    total_outreach_sent: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "users_processed": self.users_processed,
            "total_leads_found": self.total_leads_found,
            "total_outreach_sent": self.total_outreach_sent,
            "errors": self.errors,
        }


class AutonomousRunner:
    """
    Processes every user with autonomous mode enabled, once per day.

    Usage:
        runner = AutonomousRunner(db, places_client, sender)
        result = runner.run()
    """

    def __init__(
        self,
        db: Session,
        client: PlacesSearch,
        sender: Optional[SendGridSender] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.client = client
        self.sender = sender
        self.settings = settings or Settings()
        self.repository = LeadRepository(db)

    def run(self, today: Optional[date] = None) -> DailyRunResult:
        """Run the daily pass for all opted-in users."""
        today = today or datetime.utcnow().date()
        result = DailyRunResult()

        users = self.db.query(UserSettings).filter(UserSettings.autonomous_mode.is_(True)).all()
        if not users:
            logger.info("No users with autonomous mode enabled")
            return result

        for user in users:
            try:
                self._process_user(user, today, result)
            except Exception as e:
                logger.exception("Autonomous run failed for user %s", user.user_id)
                self.db.rollback()
                result.errors.append(f"User {user.user_id}: {e}")

        logger.info(
            "Daily run complete: %d users, %d leads, %d emails, %d errors",
            result.users_processed,
            result.total_leads_found,
            result.total_outreach_sent,
            len(result.errors),
        )
        return result

    def _process_user(self, user: UserSettings, today: date, result: DailyRunResult) -> None:
        user_id = user.user_id

        if not user.email:
            result.errors.append(f"User {user_id}: No email found")
            return

        subscription = get_or_create_subscription(self.db, user_id)
        quota = current_quota(subscription)
        if not quota.can_generate:
            result.errors.append(f"User {user_id}: Monthly limit reached")
            return

        if get_run_log(self.db, user_id, today):
            logger.debug("User %s already processed on %s", user_id, today)
            return

        saved = self._find_leads(user, quota.allowance(self.settings.max_leads_per_run))
        if saved:
            record_lead_usage(self.db, subscription, saved)
        result.total_leads_found += saved

        sent = self._send_outreach(user)
        result.total_outreach_sent += sent

        run_log = AutonomousRunLog(
            user_id=user_id,
            run_date=today,
            leads_found=saved,
            leads_contacted=sent,
            summary_sent=False,
        )
        self.db.add(run_log)
        self.db.commit()

        if self.sender and (saved or sent):
            self._send_summary(user, run_log, saved, sent)

        result.users_processed += 1

    def _find_leads(self, user: UserSettings, allowance: int) -> int:
        locations = parse_locations(user.target_locations)
        if not locations:
            logger.info("User %s has no target locations, skipping search", user.user_id)
            return 0

        target = user.daily_lead_target or self.settings.max_leads_per_run
        desired = min(target, allowance)
        if desired <= 0:
            return 0

        selector = CandidateSelector(
            self.client,
            budget=self.settings.autonomous_budget,
            scoring_config=self.settings.scoring,
            max_leads=self.settings.max_leads_per_run,
        )
        candidates = selector.select(
            resolve_niche(user.photographer_niche),
            locations,
            desired,
            self.repository.known_place_ids(user.user_id),
        )
        return len(self.repository.add_candidates(user.user_id, candidates))

    def _send_outreach(self, user: UserSettings) -> int:
        if not self.sender:
            return 0

        limit = user.daily_outreach_limit or self.settings.default_outreach_limit
        from_name, sender_name = sender_identity(user.email, user.email_signature)
        niche = user.photographer_niche or "wedding"
        sent = 0

        for lead in self.repository.top_new_leads(user.user_id, limit):
            if sent >= limit:
                break

            recipient = recipient_for_website(lead.website)
            if not recipient:
                continue

            content = outreach_email(
                lead_name=lead.name,
                lead_website=lead.website,
                photographer_niche=niche,
                ideal_client_description=user.ideal_client_description,
                email_signature=user.email_signature,
                sender_name=sender_name,
            )

            try:
                self.sender.send(
                    recipient,
                    content,
                    from_email=self.sender.from_email or user.email,
                    from_name=from_name,
                    reply_to=user.email,
                )
            except (SendError, httpx.HTTPError) as e:
                logger.warning("Failed to send outreach for lead %s: %s", lead.id, e)
                continue

            self.repository.mark_contacted(
                lead,
                f"Auto-outreach sent on {datetime.utcnow():%Y-%m-%d} to {recipient}",
            )
            sent += 1

        return sent

    def _send_summary(self, user: UserSettings, run_log: AutonomousRunLog, saved: int, sent: int) -> None:
        content = daily_summary_email(saved, sent, user.email.split("@")[0])
        try:
            self.sender.send(
                user.email,
                content,
                from_email=self.sender.from_email or "noreply@photoleadagent.com",
                from_name="PhotoLead Agent",
            )
        except (SendError, httpx.HTTPError) as e:
            logger.warning("Failed to send summary to %s: %s", user.email, e)
            return

        run_log.summary_sent = True
        self.db.commit()


def run_daily(
    db: Session,
    client: PlacesSearch,
    sender: Optional[SendGridSender] = None,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> DailyRunResult:
    """Convenience wrapper around AutonomousRunner.run."""
    return AutonomousRunner(db, client, sender, settings).run(today)
