from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class CandidateCreate(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin_url: str | None = None
    resume_url: str | None = None
    skills: str | list[str] = ""
    notes: str = ""


class CandidateUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin_url: str | None = None
    resume_url: str | None = None
    skills: str | list[str] | None = None
    notes: str | None = None


class CandidateResponse(BaseModel):
    id: UUID
    name: str
    email: str | None
    phone: str | None
    location: str | None
    linkedin_url: str | None
    resume_url: str | None
    skills: str
    notes: str
    profile_type: str
    status: str | None
    created_by_recruiter: str | None
    created_at: datetime
    updated_at: datetime | None
    has_unread_comments: bool = False

    model_config = {"from_attributes": True}


class PaginatedCandidates(BaseModel):
    items: list[CandidateResponse]
    total: int
    page: int
    page_size: int


class TalentPoolFacets(BaseModel):
    skills: list[str]
    locations: list[str]


class CommentCreate(BaseModel):
    comment_text: str


class CommentResponse(BaseModel):
    id: UUID
    candidate_id: UUID
    user_id: UUID | None
    author_name: str
    comment_text: str
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class ResumeUploadResponse(BaseModel):
    resume_url: str
    viewer: str | None


class DocumentPreviewResponse(BaseModel):
    html: str
    download_url: str
