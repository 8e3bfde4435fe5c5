from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class InterviewCreate(BaseModel):
    candidate_id: UUID
    position_id: UUID
    interview_date: datetime
    interview_type: str | None = None
    interviewer_name: str | None = None


class InterviewResponse(BaseModel):
    id: UUID
    candidate_id: UUID
    position_id: UUID
    interview_date: datetime
    interview_type: str | None
    interviewer_name: str | None
    feedback: str | None
    outcome: str | None
    candidate_name: str | None = None
    position_title: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InterviewSchedule(BaseModel):
    upcoming: list[InterviewResponse]
    past: list[InterviewResponse]


class InterviewDecisionRequest(BaseModel):
    decision: str
    feedback: str | None = None


class InterviewDecisionResponse(BaseModel):
    interview: InterviewResponse
    pipeline_update: dict | None
