import structlog

from talentdesk.core.errors import MissingInformation, NotFound, PermissionDenied
from talentdesk.core.roles import Identity
from talentdesk.services.backend import Backend
from talentdesk.services.dates import utcnow

logger = structlog.get_logger()


def author_name_for(identity: Identity, profile: dict | None = None) -> str:
    """Recruiter name, else the email local part title-cased ("jane.doe" -> "Jane Doe")."""
    if profile and profile.get("name"):
        return profile["name"]
    if identity.name:
        return identity.name
    local = identity.email.split("@", 1)[0]
    return " ".join(part.capitalize() for part in local.split(".") if part)


async def list_comments(backend: Backend, candidate_id) -> list[dict]:
    return await backend.select(
        "comments", eq={"candidate_id": candidate_id}, order_by="created_at", descending=True
    )


async def add_comment(
    backend: Backend, identity: Identity, candidate_id, text: str, profile: dict | None = None
) -> dict:
    text = (text or "").strip()
    if not text:
        raise MissingInformation("Comment cannot be empty.")
    [comment] = await backend.insert(
        "comments",
        {
            "candidate_id": candidate_id,
            "comment_text": text,
            "user_id": identity.id,
            "author_name": author_name_for(identity, profile),
        },
    )
    logger.info("comment_added", comment_id=str(comment["id"]), candidate_id=str(candidate_id))
    return comment


async def _own_comment(backend: Backend, identity: Identity, comment_id) -> dict:
    comment = await backend.select_one("comments", id=comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    if comment["user_id"] != identity.id:
        raise PermissionDenied("Only the author can change this comment.")
    return comment


async def edit_comment(backend: Backend, identity: Identity, comment_id, text: str) -> dict:
    text = (text or "").strip()
    if not text:
        raise MissingInformation("Comment cannot be empty.")
    await _own_comment(backend, identity, comment_id)
    [comment] = await backend.update(
        "comments", {"comment_text": text, "updated_at": utcnow()}, eq={"id": comment_id}
    )
    logger.info("comment_edited", comment_id=str(comment_id))
    return comment


async def delete_comment(backend: Backend, identity: Identity, comment_id) -> None:
    await _own_comment(backend, identity, comment_id)
    await backend.delete("comments", eq={"id": comment_id})
    logger.info("comment_deleted", comment_id=str(comment_id))
