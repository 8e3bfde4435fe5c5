"""Delete requests that go through the session overlay's confirmation prompt."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from talentdesk.core.errors import NotFound, ValidationFailed
from talentdesk.services import candidates as candidate_service
from talentdesk.services import clients as client_service
from talentdesk.services import comments as comment_service
from talentdesk.services import commissions as commission_service
from talentdesk.services import company_documents as document_service
from talentdesk.services import outreach as outreach_service
from talentdesk.services import positions as position_service
from talentdesk.services.overlay import Prompt
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()


@dataclass(frozen=True)
class DeletableKind:
    noun: str
    table: str
    label: Callable[[dict], str]
    delete: Callable[[AppStore, object], Awaitable[None]]
    warning: str | None = None


def _commission_label(row: dict) -> str:
    return f"{row['commission_type']} commission of {row['calculated_amount']:.2f}"


KINDS: dict[str, DeletableKind] = {
    "client": DeletableKind(
        "client",
        "clients",
        lambda row: row["company_name"],
        client_service.delete_client,
        "The client will be permanently removed.",
    ),
    "position": DeletableKind(
        "position",
        "positions",
        lambda row: row["title"],
        position_service.delete_position,
        "This will also remove all associated pipeline entries and interviews.",
    ),
    "candidate": DeletableKind(
        "candidate",
        "candidates",
        lambda row: row["name"],
        candidate_service.delete_candidate,
        "The candidate and all associated data will be permanently removed.",
    ),
    "outreach": DeletableKind(
        "outreach",
        "recruiter_outreach",
        lambda row: row.get("candidate_name") or row.get("linkedin_url") or "Outreach record",
        outreach_service.delete_outreach,
    ),
    "commission": DeletableKind(
        "commission",
        "commissions",
        _commission_label,
        lambda store, entity_id: commission_service.delete_commission(store.backend, entity_id),
        "The commission record will be permanently removed.",
    ),
    "document": DeletableKind(
        "document",
        "company_documents",
        lambda row: row["file_name"],
        lambda store, entity_id: document_service.delete_document(store.backend, entity_id),
    ),
    "comment": DeletableKind(
        "comment",
        "comments",
        lambda row: f"Comment by {row['author_name']}",
        lambda store, entity_id: comment_service.delete_comment(store.backend, store.identity, entity_id),
        "The comment will be permanently removed.",
    ),
}


@surfaces_errors
async def request_delete(store: AppStore, kind: str, entity_id) -> Prompt:
    """Open a delete prompt for one record; nothing is removed until it is confirmed."""
    spec = KINDS.get(kind)
    if spec is None:
        raise ValidationFailed(f"Cannot delete '{kind}' records")
    row = await store.backend.select_one(spec.table, id=entity_id)
    if row is None:
        raise NotFound(f"{spec.noun.capitalize()} not found")

    prompt = await store.overlay.confirm_delete(
        noun=spec.noun,
        label=spec.label(row),
        on_delete=lambda: spec.delete(store, entity_id),
        warning=spec.warning,
    )
    logger.info("delete_requested", kind=kind, entity_id=str(entity_id))
    return prompt
