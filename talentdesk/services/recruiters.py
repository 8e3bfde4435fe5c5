import structlog

from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.core.roles import Role
from talentdesk.core.security import hash_password
from talentdesk.services.backend import Backend
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()


def _role_label(value: str | None) -> str:
    if value is None:
        return Role.RECRUITER.value
    try:
        return Role(value.strip().lower()).value
    except ValueError as e:
        raise ValidationFailed(f"Unknown role '{value}'") from e


async def _ensure_single_director(backend: Backend, exclude_id=None) -> None:
    directors = await backend.select("recruiters", eq={"role": Role.DIRECTOR.value})
    if any(d["id"] != exclude_id for d in directors):
        raise ValidationFailed("There can only be one Director.")


def _row(values: dict) -> dict:
    row = {k: values[k] for k in ("name", "email", "phone", "role") if k in values}
    if "email" in row:
        row["email"] = (row["email"] or "").strip().lower()
    if "role" in row:
        row["role"] = _role_label(row["role"])
    if values.get("password"):
        row["password_hash"] = hash_password(values["password"])
    return row


@surfaces_errors
async def create_recruiter(store: AppStore, values: dict) -> dict:
    row = _row(values)
    if not (row.get("name") or "").strip() or not row.get("email"):
        raise MissingInformation("Recruiter name and email are required.")
    row.setdefault("role", Role.RECRUITER.value)
    if row["role"] == Role.DIRECTOR.value:
        await _ensure_single_director(store.backend)
    [recruiter] = await store.backend.insert("recruiters", row)
    logger.info("recruiter_created", recruiter_id=str(recruiter["id"]), role=recruiter["role"])
    await store.refresh()
    return recruiter


@surfaces_errors
async def update_recruiter(store: AppStore, recruiter_id, changes: dict) -> dict:
    row = _row(changes)
    if "name" in row and not (row["name"] or "").strip():
        raise MissingInformation("Recruiter name is required.")
    if row.get("role") == Role.DIRECTOR.value:
        await _ensure_single_director(store.backend, exclude_id=recruiter_id)
    updated = await store.backend.update("recruiters", row, eq={"id": recruiter_id})
    if not updated:
        raise NotFound("Recruiter not found")
    logger.info("recruiter_updated", recruiter_id=str(recruiter_id), fields=sorted(row))
    await store.refresh()
    return updated[0]


@surfaces_errors
async def delete_recruiter(store: AppStore, recruiter_id) -> None:
    """Pipeline entries and commissions keep existing with the recruiter cleared."""
    if recruiter_id == store.identity.id:
        raise ValidationFailed("You cannot delete your own account.")
    if not await store.backend.delete("recruiters", eq={"id": recruiter_id}):
        raise NotFound("Recruiter not found")
    logger.info("recruiter_deleted", recruiter_id=str(recruiter_id))
    await store.refresh()
