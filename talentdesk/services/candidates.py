import re
import time
from typing import Any

import structlog

from talentdesk.core.config import get_settings
from talentdesk.core.errors import (
    BackendMutationError,
    DuplicateCandidate,
    MissingInformation,
    NotFound,
    ValidationFailed,
)
from talentdesk.services.backend import Backend
from talentdesk.services.dates import utcnow
from talentdesk.services.outreach import normalize_linkedin_url
from talentdesk.services.store import AppStore, surfaces_errors
from talentdesk.services.talent_pool import split_skills

logger = structlog.get_logger()
settings = get_settings()

EDITABLE_FIELDS = ("name", "email", "phone", "location", "linkedin_url", "resume_url", "skills", "notes")


def normalize_email(email: str | None) -> str | None:
    email = (email or "").strip().lower()
    return email or None


def skills_text(skills: str | list | None) -> str:
    return ", ".join(split_skills(skills))


def _clean(values: dict[str, Any]) -> dict[str, Any]:
    row = {k: values[k] for k in EDITABLE_FIELDS if k in values}
    if "name" in row:
        row["name"] = (row["name"] or "").strip()
    if "email" in row:
        row["email"] = normalize_email(row["email"])
    if "linkedin_url" in row:
        row["linkedin_url"] = (row["linkedin_url"] or "").strip() or None
        row["linkedin_key"] = normalize_linkedin_url(row["linkedin_url"]) or None
    if "skills" in row:
        row["skills"] = skills_text(row["skills"])
    return row


def _require_identity_fields(row: dict[str, Any]) -> None:
    if not row.get("name"):
        raise MissingInformation("Candidate name is required.")
    if not row.get("email") and not row.get("linkedin_url"):
        raise MissingInformation("Please provide an email address or a LinkedIn URL.")


async def find_duplicate(backend: Backend, email: str | None, linkedin_key: str | None, exclude_id=None) -> dict | None:
    """Single-row lookups on the email and on the normalized LinkedIn URL."""
    for column, value in (("email", email), ("linkedin_key", linkedin_key)):
        if not value:
            continue
        rows = await backend.select("candidates", ieq={column: value}, limit=2)
        for row in rows:
            if row["id"] != exclude_id:
                return row
    return None


async def _check_duplicate(backend: Backend, row: dict[str, Any], exclude_id=None) -> None:
    existing = await find_duplicate(backend, row.get("email"), row.get("linkedin_key"), exclude_id)
    if existing is not None:
        raise DuplicateCandidate(
            f"{existing['name']} already exists with this email or LinkedIn profile.",
            details={"candidate_id": str(existing["id"])},
        )


def _translate_conflict(e: BackendMutationError) -> None:
    if e.details.get("constraint") == "unique":
        raise DuplicateCandidate("A candidate with this email or LinkedIn profile already exists.") from e


@surfaces_errors
async def create_candidate(store: AppStore, values: dict[str, Any]) -> dict:
    row = _clean(values)
    _require_identity_fields(row)
    await _check_duplicate(store.backend, row)
    row.setdefault("skills", "")
    row["profile_type"] = "full"
    row["created_by_recruiter"] = store.identity.name
    try:
        [candidate] = await store.backend.insert("candidates", row)
    except BackendMutationError as e:
        _translate_conflict(e)
        raise
    logger.info("candidate_created", candidate_id=str(candidate["id"]))
    await store.refresh()
    return candidate


@surfaces_errors
async def update_candidate(store: AppStore, candidate_id, changes: dict[str, Any]) -> dict:
    current = await store.backend.select_one("candidates", id=candidate_id)
    if current is None:
        raise NotFound("Candidate not found")
    row = _clean(changes)
    _require_identity_fields({**current, **row})
    await _check_duplicate(store.backend, row, exclude_id=candidate_id)
    try:
        [candidate] = await store.backend.update(
            "candidates", {**row, "updated_at": utcnow()}, eq={"id": candidate_id}
        )
    except BackendMutationError as e:
        _translate_conflict(e)
        raise
    logger.info("candidate_updated", candidate_id=str(candidate_id), fields=sorted(row))
    await store.refresh()
    return candidate


@surfaces_errors
async def promote_shell(store: AppStore, candidate_id, values: dict[str, Any]) -> dict:
    """Turn an auto-created shell profile into a full profile."""
    current = await store.backend.select_one("candidates", id=candidate_id)
    if current is None:
        raise NotFound("Candidate not found")
    if current["profile_type"] != "shell":
        raise ValidationFailed("Only shell profiles can be promoted.")
    row = _clean(values)
    _require_identity_fields({**current, **row})
    await _check_duplicate(store.backend, row, exclude_id=candidate_id)
    row.update({"profile_type": "full", "status": None, "updated_at": utcnow()})
    [candidate] = await store.backend.update("candidates", row, eq={"id": candidate_id})
    logger.info("shell_profile_promoted", candidate_id=str(candidate_id))
    await store.refresh()
    return candidate


@surfaces_errors
async def delete_candidate(store: AppStore, candidate_id) -> None:
    """Delete a candidate and, first, everything that references it."""
    backend = store.backend
    if await backend.select_one("candidates", id=candidate_id) is None:
        raise NotFound("Candidate not found")
    await backend.delete("comments", eq={"candidate_id": candidate_id})
    await backend.delete("pipeline", eq={"candidate_id": candidate_id})
    await backend.delete("interviews", eq={"candidate_id": candidate_id})
    await backend.delete("candidates", eq={"id": candidate_id})
    store.clear_comment_notifications(candidate_id)
    logger.info("candidate_deleted", candidate_id=str(candidate_id))
    await store.refresh()


def storage_filename(filename: str) -> str:
    """``{millis}_{name}`` with whitespace runs replaced by underscores."""
    name = re.sub(r"\s+", "_", filename.strip())
    return f"{int(time.time() * 1000)}_{name}"


async def upload_resume(backend: Backend, filename: str, content: bytes, content_type: str | None) -> str:
    if not filename:
        raise MissingInformation("Please choose a file to upload.")
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise ValidationFailed(f"Files must be smaller than {settings.MAX_UPLOAD_SIZE_MB} MB.")
    return await backend.upload(settings.S3_BUCKET_RESUMES, storage_filename(filename), content, content_type)


def resume_viewer(url: str | None) -> str | None:
    """Which viewer a resume opens in: ``docx`` for Word files, ``pdf`` otherwise."""
    if not url:
        return None
    return "docx" if ".docx" in url.lower() else "pdf"
