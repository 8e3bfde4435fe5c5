from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class PipelineEntryResponse(BaseModel):
    id: UUID
    candidate_id: UUID
    position_id: UUID
    recruiter_id: UUID | None
    stage: str
    status: str
    candidate_name: str | None = None
    position_title: str | None = None
    recruiter_name: str | None = None
    recruiter_email: str | None = None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class PipelineCreate(BaseModel):
    candidate_id: UUID
    position_id: UUID | None = None
    recruiter_id: UUID | None = None


class StageChangeRequest(BaseModel):
    stage: str


class StageDragRequest(BaseModel):
    source_stage: str
    destination_stage: str


class StatusChangeRequest(BaseModel):
    status: str


class StageChangeResponse(BaseModel):
    outcome: str
    entry_id: UUID
    stage: str
    previous_stage: str
    prompt_id: UUID | None = None
    notified: bool = False

    model_config = {"from_attributes": True}


class MutationResult(BaseModel):
    success: bool
