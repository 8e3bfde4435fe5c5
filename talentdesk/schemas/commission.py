from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel


class CommissionInput(BaseModel):
    commission_type: str | None = None
    placement_fee: float | str | None = 0.0
    commission_rate: float | str | None = 0.0
    client_rate: float | str | None = 0.0
    contractor_rate: float | str | None = 0.0
    source_fee: float | str | None = 0.0
    stage_percentage: float | str | None = 0.0


class CommissionCreate(CommissionInput):
    recruiter_id: UUID | None = None
    position_id: UUID | None = None
    candidate_id: UUID | None = None
    status: str = "Pending"
    placement_date: date | None = None
    notes: str | None = None


class CommissionUpdate(BaseModel):
    recruiter_id: UUID | None = None
    position_id: UUID | None = None
    candidate_id: UUID | None = None
    commission_type: str | None = None
    placement_fee: float | str | None = None
    commission_rate: float | str | None = None
    client_rate: float | str | None = None
    contractor_rate: float | str | None = None
    source_fee: float | str | None = None
    stage_percentage: float | str | None = None
    status: str | None = None
    placement_date: date | None = None
    notes: str | None = None


class CommissionPreview(BaseModel):
    calculated_amount: float


class CommissionResponse(BaseModel):
    id: UUID
    recruiter_id: UUID | None
    position_id: UUID | None
    candidate_id: UUID | None
    commission_type: str
    placement_fee: float
    commission_rate: float
    client_rate: float
    contractor_rate: float
    source_fee: float
    stage_percentage: float
    calculated_amount: float
    status: str
    placement_date: date | None
    notes: str | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class CommissionSummary(BaseModel):
    total: float
    pending: float
    ready_to_invoice: float
    invoiced: float
    paid: float
