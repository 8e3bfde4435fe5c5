from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class OutreachCreate(BaseModel):
    linkedin_url: str
    position_id: UUID | None = None
    candidate_name: str | None = None
    candidate_phone: str | None = None
    activity_status: str = "outreach_sent"
    rating: int = Field(0, ge=0, le=5)
    notes: str | None = None
    scheduled_call_date: datetime | None = None


class OutreachUpdate(BaseModel):
    position_id: UUID | None = None
    candidate_name: str | None = None
    candidate_phone: str | None = None
    activity_status: str | None = None
    rating: int | None = Field(None, ge=0, le=5)
    notes: str | None = None
    scheduled_call_date: datetime | None = None


class OutreachResponse(BaseModel):
    id: UUID
    recruiter_id: UUID | None
    position_id: UUID | None
    linkedin_url: str
    candidate_name: str | None
    candidate_phone: str | None
    activity_status: str
    rating: int
    notes: str | None
    scheduled_call_date: datetime | None
    is_archived: bool
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class BulkParseRequest(BaseModel):
    text: str


class BulkContact(BaseModel):
    url: str
    name: str
    editable: bool = False


class BulkAddRequest(BaseModel):
    position_id: UUID | None = None
    contacts: list[BulkContact]


class TeamSummaryEntry(BaseModel):
    recruiter_id: UUID | None
    recruiter_name: str
    total: int
    by_status: dict[str, int]
    reply_rate: float
