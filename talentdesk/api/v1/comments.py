from uuid import UUID

from fastapi import APIRouter, Depends, status

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.candidate import CommentCreate, CommentResponse
from talentdesk.services import comments as comment_service
from talentdesk.services.store import AppStore

router = APIRouter(tags=["comments"])


@router.get("/candidates/{candidate_id}/comments", response_model=list[CommentResponse])
async def list_comments(candidate_id: UUID, store: AppStore = Depends(get_store)):
    """Opening a candidate's comments marks them as read."""
    store.require("candidates", candidate_id)
    comments = await comment_service.list_comments(store.backend, candidate_id)
    store.clear_comment_notifications(candidate_id)
    return comments


@router.post(
    "/candidates/{candidate_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(candidate_id: UUID, data: CommentCreate, store: AppStore = Depends(get_store)):
    store.require("candidates", candidate_id)
    return await comment_service.add_comment(
        store.backend, store.identity, candidate_id, data.comment_text, store.user_profile
    )


@router.get("/comments/unread", response_model=list[UUID])
async def unread_comment_candidates(store: AppStore = Depends(get_store)):
    return sorted(store.unread_comment_candidate_ids, key=str)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(comment_id: UUID, data: CommentCreate, store: AppStore = Depends(get_store)):
    return await comment_service.edit_comment(store.backend, store.identity, comment_id, data.comment_text)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: UUID, store: AppStore = Depends(get_store)):
    await comment_service.delete_comment(store.backend, store.identity, comment_id)
