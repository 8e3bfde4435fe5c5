from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from talentdesk.schemas.candidate import CommentResponse
from talentdesk.schemas.pipeline import PipelineEntryResponse


class ReviewItem(PipelineEntryResponse):
    age_days: int
    comments: list[CommentResponse] = []


class ReviewQueues(BaseModel):
    screening: list[ReviewItem]
    hold: list[ReviewItem]


class AgingBannerResponse(BaseModel):
    severity: str
    candidate_names: list[str]

    model_config = {"from_attributes": True}


class ReviewDecisionRequest(BaseModel):
    action: str
    comment: str | None = None


class ReviewOutcomeResponse(BaseModel):
    action: str
    entry_id: UUID
    comment_saved: bool
    pipeline_updated: bool
    notified: bool

    model_config = {"from_attributes": True}


class ReviewStats(BaseModel):
    total_reviewed: int
    approved: int
    rejected: int
    approval_rate: float
    average_review_days: float
    pending: int


class RecentDecision(BaseModel):
    id: UUID
    candidate_id: UUID
    position_id: UUID
    stage: str
    status: str
    updated_at: datetime | None
