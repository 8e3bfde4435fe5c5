"""Director review queues, aging banners and review decisions."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from talentdesk.core.config import get_settings
from talentdesk.core.errors import BackendMutationError, MissingInformation, TalentDeskError, ValidationFailed
from talentdesk.core.roles import Capability
from talentdesk.services import comments as comment_service
from talentdesk.services.backend import Backend
from talentdesk.services.dates import as_utc, utcnow
from talentdesk.services.notifications import NotificationOutbox
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()
settings = get_settings()

DECISIONS = ("Hold", "Reject", "Submit to Client", "Comment Only")
COMMENT_REQUIRED = frozenset({"Hold", "Reject"})

COMMENT_TEMPLATES = (
    "Needs more relevant experience in core technology stack",
    "Salary expectations exceed budget range",
    "Location requirements don't align with position",
    "Qualifications don't match minimum requirements",
    "Strong candidate - moving forward to client",
    "Need additional information before decision",
)


def age_in_days(created_at, now: datetime | None = None) -> int:
    now = now or utcnow()
    return int(abs(now - as_utc(created_at)).total_seconds() // 86400)


def screening_queue(pipeline: list[dict]) -> list[dict]:
    entries = [p for p in pipeline if p["stage"] == "Screening" and p["status"] != "Hold"]
    return sorted(entries, key=lambda p: as_utc(p["created_at"]))


def hold_queue(pipeline: list[dict]) -> list[dict]:
    return [p for p in pipeline if p["status"] == "Hold"]


@dataclass
class AgingBanner:
    severity: str  # high or medium
    candidate_names: list[str] = field(default_factory=list)


def aging_banner(
    entries: list[dict],
    now: datetime | None = None,
    high_days: int | None = None,
    medium_days: int | None = None,
) -> AgingBanner | None:
    """High severity wins whenever any entry is older than ``high_days``."""
    high_days = settings.REVIEW_AGING_HIGH_DAYS if high_days is None else high_days
    medium_days = settings.REVIEW_AGING_MEDIUM_DAYS if medium_days is None else medium_days
    high, medium = [], []
    for entry in entries:
        days = age_in_days(entry["created_at"], now)
        name = entry.get("candidate_name") or "Unknown"
        if days > high_days:
            high.append(name)
        elif days > medium_days:
            medium.append(name)
    if high:
        return AgingBanner("high", high)
    if medium:
        return AgingBanner("medium", medium)
    return None


def _excerpt(text: str, limit: int = 50) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


def notification_for(action: str, entry: dict, comment: str) -> tuple[str, str] | None:
    """Message and type for a director decision, or None when nothing is sent."""
    name = entry.get("candidate_name")
    title = entry.get("position_title")
    if action in COMMENT_REQUIRED and comment:
        return (
            f'Director action on **{name}**: {action}. Feedback: "{_excerpt(comment)}"',
            "status_change",
        )
    if action == "Submit to Client":
        return f"Director moved **{name}** to **Submit to Client** for {title}.", "stage_change_director"
    if action == "Comment Only" and comment:
        return f'Director added a comment on **{name}** for {title}: "{_excerpt(comment)}"', "new_comment"
    return None


@dataclass
class ReviewOutcome:
    action: str
    entry_id: object
    comment_saved: bool = False
    pipeline_updated: bool = False
    notified: bool = False


class DirectorReview:
    def __init__(self, store: AppStore, outbox: NotificationOutbox | None = None):
        self.store = store
        self.backend: Backend = store.backend
        self.outbox = outbox or NotificationOutbox(store.backend)

    def queues(self) -> dict[str, list[dict]]:
        pipeline = self.store.collections["pipeline"]
        return {"screening": screening_queue(pipeline), "hold": hold_queue(pipeline)}

    def under_review(self) -> list[dict]:
        queues = self.queues()
        return queues["screening"] + queues["hold"]

    def banner(self, now: datetime | None = None) -> AgingBanner | None:
        return aging_banner(self.under_review(), now)

    async def comments_for(self, candidate_ids: list) -> dict:
        if not candidate_ids:
            return {}
        try:
            rows = await self.backend.select(
                "comments", in_={"candidate_id": candidate_ids}, order_by="created_at", descending=True
            )
        except TalentDeskError as e:
            self.store.overlay.show_error(e)
            return {}
        grouped: dict = {}
        for row in rows:
            grouped.setdefault(row["candidate_id"], []).append(row)
        return grouped

    @surfaces_errors
    async def decide(self, entry_id, action: str, comment: str | None = None) -> ReviewOutcome:
        if action not in DECISIONS:
            raise ValidationFailed(f"Unknown review decision '{action}'")
        entry = self.store.require("pipeline", entry_id)
        text = (comment or "").strip()
        outcome = ReviewOutcome(action, entry_id)

        if action in COMMENT_REQUIRED and not text:
            raise MissingInformation(f"A comment is required to {action.lower()} this candidate.")
        if action == "Comment Only" and not text:
            self.store.overlay.show_alert("info", "Nothing to Save", "Type a comment first.")
            return outcome

        try:
            if text:
                await comment_service.add_comment(
                    self.backend, self.store.identity, entry["candidate_id"], text, self.store.user_profile
                )
                outcome.comment_saved = True

            updates = self._pipeline_updates(action, entry)
            if updates:
                updated = await self.backend.update(
                    "pipeline", {**updates, "updated_at": utcnow()}, eq={"id": entry_id}
                )
                if not updated:
                    raise BackendMutationError("Pipeline entry no longer exists")
                outcome.pipeline_updated = True
        except TalentDeskError as e:
            logger.warning("review_decision_failed", entry_id=str(entry_id), action=action, error=e.message)
            raise

        logger.info("review_decision_saved", entry_id=str(entry_id), action=action)

        if self.store.identity.can(Capability.NOTIFY_ON_REVIEW):
            outcome.notified = await self._notify(action, entry, text)

        await self.store.refresh()
        self.store.overlay.show_alert("success", "Decision Saved", f"{action} recorded for {entry.get('candidate_name')}.")
        return outcome

    @staticmethod
    def _pipeline_updates(action: str, entry: dict) -> dict:
        if action == "Hold":
            return {"status": "Hold"}
        if action == "Reject":
            updates = {"status": "Reject"}
            if entry["stage"] == "Screening":
                updates["stage"] = "Reject"
            return updates
        if action == "Submit to Client":
            return {"stage": "Submit to Client", "status": "Active"}
        return {}

    async def _notify(self, action: str, entry: dict, text: str) -> bool:
        notification = notification_for(action, entry, text)
        if notification is None:
            return False
        recipient = entry.get("recruiter_email")
        if not recipient:
            self.store.overlay.show_alert(
                "warning", "Recruiter Not Notified", "No email on file for the owning recruiter."
            )
            return False
        message, type_ = notification
        return await self.outbox.enqueue(recipient, message, type_)

    async def recent_decisions(self, days: int | None = None, limit: int = 50) -> list[dict]:
        since = utcnow() - timedelta(days=days or settings.RECENT_DECISIONS_DAYS)
        return await self.backend.select(
            "pipeline",
            in_={"stage": ["Submit to Client", "Reject"]},
            gte={"updated_at": since},
            order_by="updated_at",
            descending=True,
            limit=limit,
        )

    def stats(self, decisions: list[dict], now: datetime | None = None) -> dict:
        total = len(decisions)
        approved = sum(1 for d in decisions if d["stage"] == "Submit to Client")
        rejected = sum(1 for d in decisions if d["stage"] == "Reject")
        reviewing = self.under_review()
        ages = [age_in_days(e["created_at"], now) for e in reviewing]
        return {
            "total_reviewed": total,
            "approved": approved,
            "rejected": rejected,
            "approval_rate": round(approved / total * 100, 1) if total else 0.0,
            "average_review_days": round(sum(ages) / len(ages), 1) if ages else 0.0,
            "pending": len(reviewing),
        }
