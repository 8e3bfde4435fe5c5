import re
import time

import structlog

from talentdesk.core.config import get_settings
from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.core.roles import Identity
from talentdesk.services.backend import Backend

logger = structlog.get_logger()
settings = get_settings()

CATEGORIES: dict[str, tuple[str, ...]] = {
    "Internal HR / Policy Documents": (
        "Company Handbooks",
        "Onboarding Checklists (for new recruiters)",
        "Internal Communications / Memos",
        "Employee Benefits Information",
    ),
    "Training & Development Materials": (
        "Recruitment Training Manuals",
        "Software / ATS Guides",
        "Interviewing Best Practices (internal)",
    ),
    "Process & Procedure Guides": (
        "Sourcing Strategies",
        "Candidate Screening Workflows",
        "Client Intake Forms (internal templates)",
        "Offer Letter Templates (internal blank versions)",
        "Background Check Procedures",
        "Reference Check Procedures",
    ),
    "Financial & Billing Documents": ("Invoice Templates",),
}

_VALID_FILENAME = re.compile(r"^[a-zA-Z0-9 ._-]+$")


def is_valid_filename(filename: str | None) -> bool:
    return bool(filename) and bool(_VALID_FILENAME.match(filename))


def validate_category(category: str | None, sub_category: str | None) -> None:
    if not category or not sub_category:
        raise MissingInformation("Please select both a category and a sub-category.")
    if category not in CATEGORIES:
        raise ValidationFailed(f"Unknown category '{category}'")
    if sub_category not in CATEGORIES[category]:
        raise ValidationFailed(f"'{sub_category}' is not a sub-category of '{category}'")


async def list_documents(backend: Backend, category: str | None = None) -> list[dict]:
    return await backend.select(
        "company_documents",
        eq={"category": category} if category else None,
        order_by="uploaded_at",
        descending=True,
    )


async def upload_document(
    backend: Backend,
    identity: Identity,
    *,
    filename: str,
    content: bytes,
    content_type: str | None,
    category: str | None,
    sub_category: str | None,
) -> dict:
    validate_category(category, sub_category)
    if not is_valid_filename(filename):
        raise ValidationFailed(
            "File names may only contain letters, numbers, spaces, dots, dashes and underscores."
        )
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise ValidationFailed(f"Files must be smaller than {settings.MAX_UPLOAD_SIZE_MB} MB.")

    key = f"{identity.id}/{int(time.time() * 1000)}_{filename.replace(' ', '_')}"
    url = await backend.upload(settings.S3_BUCKET_COMPANY_DOCUMENTS, key, content, content_type)
    [document] = await backend.insert(
        "company_documents",
        {
            "file_name": filename,
            "file_url": url,
            "file_type": content_type,
            "uploaded_by_id": identity.id,
            "category": category,
            "sub_category": sub_category,
        },
    )
    logger.info("company_document_uploaded", document_id=str(document["id"]), category=category)
    return document


async def update_document_category(backend: Backend, document_id, category: str, sub_category: str) -> dict:
    validate_category(category, sub_category)
    updated = await backend.update(
        "company_documents", {"category": category, "sub_category": sub_category}, eq={"id": document_id}
    )
    if not updated:
        raise NotFound("Document not found")
    return updated[0]


async def delete_document(backend: Backend, document_id) -> None:
    document = await backend.select_one("company_documents", id=document_id)
    if document is None:
        raise NotFound("Document not found")
    await backend.delete("company_documents", eq={"id": document_id})
    bucket = settings.S3_BUCKET_COMPANY_DOCUMENTS
    key = backend.key_from_public_url(bucket, document["file_url"])
    if key:
        await backend.remove(bucket, [key])
    else:
        logger.warning("company_document_key_unknown", document_id=str(document_id), url=document["file_url"])
    logger.info("company_document_deleted", document_id=str(document_id))
