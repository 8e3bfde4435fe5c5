from uuid import UUID

from fastapi import APIRouter, Depends

from talentdesk.core.dependencies import get_store, require_capability
from talentdesk.core.roles import Capability, Identity
from talentdesk.schemas.review import (
    AgingBannerResponse,
    RecentDecision,
    ReviewDecisionRequest,
    ReviewItem,
    ReviewOutcomeResponse,
    ReviewQueues,
    ReviewStats,
)
from talentdesk.services.dates import utcnow
from talentdesk.services.director_review import COMMENT_TEMPLATES, DirectorReview, age_in_days
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/review", tags=["director-review"])

reviewer = require_capability(Capability.REVIEW_CANDIDATES)


def _build_review_item(entry: dict, comments: dict, now) -> ReviewItem:
    return ReviewItem(
        **entry,
        age_days=age_in_days(entry["created_at"], now),
        comments=comments.get(entry["candidate_id"], []),
    )


@router.get("/queues", response_model=ReviewQueues)
async def queues(_: Identity = Depends(reviewer), store: AppStore = Depends(get_store)):
    review = DirectorReview(store)
    queued = review.queues()
    comments = await review.comments_for(list({e["candidate_id"] for e in review.under_review()}))
    now = utcnow()
    return ReviewQueues(
        screening=[_build_review_item(e, comments, now) for e in queued["screening"]],
        hold=[_build_review_item(e, comments, now) for e in queued["hold"]],
    )


@router.get("/banner", response_model=AgingBannerResponse | None)
async def banner(_: Identity = Depends(reviewer), store: AppStore = Depends(get_store)):
    return DirectorReview(store).banner()


@router.get("/templates", response_model=list[str])
async def templates(_: Identity = Depends(reviewer)):
    return list(COMMENT_TEMPLATES)


@router.post("/{entry_id}/decision", response_model=ReviewOutcomeResponse)
async def decide(
    entry_id: UUID,
    data: ReviewDecisionRequest,
    _: Identity = Depends(reviewer),
    store: AppStore = Depends(get_store),
):
    return await DirectorReview(store).decide(entry_id, data.action, data.comment)


@router.get("/recent", response_model=list[RecentDecision])
async def recent_decisions(
    days: int | None = None,
    _: Identity = Depends(reviewer),
    store: AppStore = Depends(get_store),
):
    return await DirectorReview(store).recent_decisions(days)


@router.get("/stats", response_model=ReviewStats)
async def stats(
    days: int | None = None,
    _: Identity = Depends(reviewer),
    store: AppStore = Depends(get_store),
):
    review = DirectorReview(store)
    return review.stats(await review.recent_decisions(days))
