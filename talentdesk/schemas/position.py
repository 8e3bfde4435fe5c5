from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class PositionCreate(BaseModel):
    title: str
    client_id: UUID | None = None
    status: str = "Open"
    description: str = ""
    salary_range: str | None = None


class PositionUpdate(BaseModel):
    title: str | None = None
    client_id: UUID | None = None
    status: str | None = None
    description: str | None = None
    salary_range: str | None = None


class PositionResponse(BaseModel):
    id: UUID
    client_id: UUID | None
    client_name: str | None = None
    title: str
    status: str
    description: str
    salary_range: str | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class InterviewCounts(BaseModel):
    interview1: int
    interview2: int
    interview3: int
    offer: int
    hired: int


class PositionStats(BaseModel):
    total_candidates: int
    active_candidates: int
    submitted_count: int
    interview_counts: InterviewCounts
    total_interviews: int
    health_status: str
    priority: str


class PositionWithStats(PositionResponse):
    stats: PositionStats


class ArchiveOutreachResponse(BaseModel):
    success: bool
    new_profiles_created: int
    existing_profiles_skipped: int


class RecruiterContribution(BaseModel):
    recruiter_id: UUID
    recruiter_name: str
    total_candidates: int
    candidates: list[dict]
    highest_stage: str | None
    commission: int
    commission_reason: str
    interview1_count: int
    interview2_count: int
    interview3_count: int


class RoleHistoryEntry(BaseModel):
    position_id: UUID
    title: str
    client_name: str | None
    total_candidates: int
    hired_candidate: str | None
    recruiters: list[RecruiterContribution]
