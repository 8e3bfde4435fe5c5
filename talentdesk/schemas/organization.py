from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ClientCreate(BaseModel):
    company_name: str
    contact_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None


class ClientUpdate(BaseModel):
    company_name: str | None = None
    contact_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None


class ClientResponse(BaseModel):
    id: UUID
    company_name: str
    contact_name: str | None
    email: str | None
    phone: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RecruiterCreate(BaseModel):
    name: str
    email: EmailStr
    phone: str | None = None
    role: str = "recruiter"
    password: str | None = Field(None, min_length=8)


class RecruiterUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    role: str | None = None
    password: str | None = Field(None, min_length=8)


class RecruiterResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str | None
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}
