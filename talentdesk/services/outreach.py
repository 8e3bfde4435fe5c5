"""Recruiter outreach activity: LinkedIn sourcing records and their archival."""

import re
from collections import Counter
from datetime import datetime, timedelta
from typing import Any

import structlog

from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.services.backend import Backend
from talentdesk.services.dates import as_utc, utcnow
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()

OUTREACH_STATUSES = {
    "outreach_sent": "Outreach Sent",
    "reply_received": "Reply Received",
    "call_scheduled": "Call Scheduled",
    "ready_for_submission": "Ready for Submission",
    "cold": "Cold",
    "gone_cold": "Gone Cold",
    "completed": "Completed",
}
INACTIVE_STATUSES = frozenset({"cold", "gone_cold"})
UPPERCASE_SUFFIXES = frozenset({"mba", "phd", "md", "cpa", "cfa"})

_PROFILE_SLUG = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)


def normalize_linkedin_url(url: str | None) -> str:
    """Canonical key for a LinkedIn URL: no scheme, no www, no query/fragment, no trailing slash."""
    if not url:
        return ""
    normalized = url.strip().lower()
    normalized = re.sub(r"^https?://", "", normalized)
    normalized = re.sub(r"^www\.", "", normalized)
    normalized = normalized.split("?", 1)[0].split("#", 1)[0]
    return normalized.rstrip("/")


def extract_name_from_linkedin_url(url: str | None) -> str | None:
    match = _PROFILE_SLUG.search(url or "")
    if not match:
        return None
    parts = [p for p in match.group(1).strip("/").split("-") if p]
    if parts and parts[-1].isdigit():
        parts.pop()
    if not parts:
        return None
    return " ".join(p.upper() if p.lower() in UPPERCASE_SUFFIXES else p.capitalize() for p in parts)


def parse_bulk_urls(text: str) -> list[dict[str, Any]]:
    """One contact per line that mentions linkedin.com, with a best-guess name."""
    contacts = []
    for line in (text or "").splitlines():
        url = line.strip()
        if "linkedin.com" not in url.lower():
            continue
        name = extract_name_from_linkedin_url(url)
        contacts.append({"url": url, "name": name or "Unknown Name", "editable": name is None})
    return contacts


def _validate_status(status: str | None) -> None:
    if status is not None and status not in OUTREACH_STATUSES:
        raise ValidationFailed(f"Unknown outreach status '{status}'")


def _validate_rating(rating) -> None:
    if rating is not None and not 0 <= int(rating) <= 5:
        raise ValidationFailed("Rating must be between 0 and 5.")


@surfaces_errors
async def add_outreach(store: AppStore, values: dict[str, Any]) -> dict:
    profile = store.user_profile
    if profile is None:
        raise MissingInformation("Your recruiter profile could not be found.")
    if not values.get("linkedin_url"):
        raise MissingInformation("A LinkedIn URL is required.")
    _validate_status(values.get("activity_status"))
    _validate_rating(values.get("rating"))
    row = {"activity_status": "outreach_sent", "rating": 0, **values, "recruiter_id": profile["id"]}
    if not row.get("candidate_name"):
        row["candidate_name"] = extract_name_from_linkedin_url(row["linkedin_url"])
    [record] = await store.backend.insert("recruiter_outreach", row)
    logger.info("outreach_added", outreach_id=str(record["id"]), recruiter_id=str(profile["id"]))
    await store.refresh()
    return record


@surfaces_errors
async def bulk_add_outreach(store: AppStore, position_id, contacts: list[dict[str, Any]]) -> list[dict]:
    profile = store.user_profile
    if profile is None:
        raise MissingInformation("Your recruiter profile could not be found.")
    if not position_id:
        raise MissingInformation("Please select a position for these contacts.")
    if not contacts:
        raise MissingInformation("No LinkedIn URLs found.")
    rows = [
        {
            "recruiter_id": profile["id"],
            "position_id": position_id,
            "linkedin_url": c["url"],
            "candidate_name": c.get("name"),
            "activity_status": "outreach_sent",
            "rating": 0,
        }
        for c in contacts
    ]
    records = await store.backend.insert("recruiter_outreach", rows)
    logger.info("outreach_bulk_added", count=len(records), position_id=str(position_id))
    await store.refresh()
    return records


@surfaces_errors
async def update_outreach(store: AppStore, outreach_id, changes: dict[str, Any]) -> dict:
    _validate_status(changes.get("activity_status"))
    _validate_rating(changes.get("rating"))
    updated = await store.backend.update(
        "recruiter_outreach", {**changes, "updated_at": utcnow()}, eq={"id": outreach_id}
    )
    if not updated:
        raise NotFound("Outreach activity not found")
    await store.refresh()
    return updated[0]


@surfaces_errors
async def delete_outreach(store: AppStore, outreach_id) -> None:
    if not await store.backend.delete("recruiter_outreach", eq={"id": outreach_id}):
        raise NotFound("Outreach activity not found")
    logger.info("outreach_deleted", outreach_id=str(outreach_id))
    await store.refresh()


async def fetch_my_outreach(backend: Backend, recruiter_id) -> list[dict]:
    rows = await backend.select(
        "recruiter_outreach",
        eq={"recruiter_id": recruiter_id, "is_archived": False},
        order_by="created_at",
        descending=True,
    )
    return [r for r in rows if r["activity_status"] not in INACTIVE_STATUSES]


def filter_outreach(
    records: list[dict],
    *,
    position_id=None,
    status: str | None = None,
    min_rating: int | None = None,
    recruiter_id=None,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[dict]:
    result = records
    if position_id:
        result = [r for r in result if r.get("position_id") == position_id]
    if status:
        result = [r for r in result if r.get("activity_status") == status]
    if min_rating:
        result = [r for r in result if (r.get("rating") or 0) >= min_rating]
    if recruiter_id:
        result = [r for r in result if r.get("recruiter_id") == recruiter_id]
    if since:
        result = [r for r in result if as_utc(r["created_at"]) >= since]
    if until:
        result = [r for r in result if as_utc(r["created_at"]) <= until]
    return result


def date_window(name: str | None, now: datetime | None = None) -> datetime | None:
    """Start of the named window: today, week (7 days) or month (30 days)."""
    now = now or utcnow()
    if name == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if name == "week":
        return now - timedelta(days=7)
    if name == "month":
        return now - timedelta(days=30)
    return None


def team_summary(records: list[dict], recruiters: list[dict]) -> list[dict]:
    """Per-recruiter outreach counts by status for the director/manager dashboard."""
    names = {r["id"]: r["name"] for r in recruiters}
    by_recruiter: dict[Any, Counter] = {}
    for record in records:
        by_recruiter.setdefault(record.get("recruiter_id"), Counter())[record["activity_status"]] += 1
    summary = []
    for recruiter_id, counts in by_recruiter.items():
        total = sum(counts.values())
        summary.append(
            {
                "recruiter_id": recruiter_id,
                "recruiter_name": names.get(recruiter_id, "Unknown"),
                "total": total,
                "by_status": dict(counts),
                "reply_rate": round(counts["reply_received"] / total * 100, 1) if total else 0.0,
            }
        )
    return sorted(summary, key=lambda s: s["total"], reverse=True)


async def archive_outreach_for_position(backend: Backend, position_id) -> dict:
    """Turn a position's outreach into shell candidate profiles and flag it archived.

    Records marked ready for submission or with an unusable URL are left alone.
    Profiles whose normalized URL already exists are not duplicated.
    """
    records = await backend.select(
        "recruiter_outreach", eq={"position_id": position_id, "is_archived": False}
    )
    candidates = await backend.select("candidates")
    known = {normalize_linkedin_url(c.get("linkedin_url")) for c in candidates if c.get("linkedin_url")}

    shells, archived_ids, skipped = [], [], 0
    for record in records:
        if record["activity_status"] == "ready_for_submission":
            skipped += 1
            continue
        key = normalize_linkedin_url(record.get("linkedin_url"))
        if not key:
            skipped += 1
            continue
        archived_ids.append(record["id"])
        if key in known:
            skipped += 1
            continue
        known.add(key)
        shells.append(
            {
                "name": record.get("candidate_name") or "Archived Candidate",
                "linkedin_url": record["linkedin_url"],
                "linkedin_key": key,
                "phone": record.get("candidate_phone") if record["activity_status"] == "call_scheduled" else None,
                "profile_type": "shell",
                "created_by_recruiter": "System Archive",
                "status": "Archived",
            }
        )

    if shells:
        await backend.insert("candidates", shells)
    if archived_ids:
        await backend.update(
            "recruiter_outreach", {"is_archived": True, "updated_at": utcnow()}, in_={"id": archived_ids}
        )

    logger.info(
        "outreach_archived",
        position_id=str(position_id),
        new_profiles=len(shells),
        skipped=skipped,
        archived=len(archived_ids),
    )
    return {"success": True, "new_profiles_created": len(shells), "existing_profiles_skipped": skipped}
