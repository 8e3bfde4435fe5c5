from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from talentdesk.core.dependencies import get_backend, get_current_identity
from talentdesk.core.roles import Identity
from talentdesk.schemas.commission import (
    CommissionCreate,
    CommissionInput,
    CommissionPreview,
    CommissionResponse,
    CommissionSummary,
    CommissionUpdate,
)
from talentdesk.services import commissions as commission_service
from talentdesk.services.backend import Backend

router = APIRouter(prefix="/commissions", tags=["commissions"])


@router.post("/calculate", response_model=CommissionPreview)
async def calculate(data: CommissionInput, _: Identity = Depends(get_current_identity)):
    return CommissionPreview(
        calculated_amount=commission_service.calculate_commission(data.commission_type, data.model_dump())
    )


@router.get("", response_model=list[CommissionResponse])
async def list_commissions(
    commission_status: str | None = Query(None, alias="status"),
    commission_type: str | None = None,
    recruiter_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return await commission_service.list_commissions(
        backend,
        status=commission_status,
        commission_type=commission_type,
        recruiter_id=recruiter_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/summary", response_model=CommissionSummary)
async def summary(
    recruiter_id: UUID | None = None,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return commission_service.summarize(
        await commission_service.list_commissions(backend, recruiter_id=recruiter_id)
    )


@router.post("", response_model=CommissionResponse, status_code=status.HTTP_201_CREATED)
async def create_commission(
    data: CommissionCreate,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return await commission_service.create_commission(backend, data.model_dump())


@router.patch("/{commission_id}", response_model=CommissionResponse)
async def update_commission(
    commission_id: UUID,
    data: CommissionUpdate,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    return await commission_service.update_commission(
        backend, commission_id, data.model_dump(exclude_unset=True)
    )


@router.delete("/{commission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_commission(
    commission_id: UUID,
    _: Identity = Depends(get_current_identity),
    backend: Backend = Depends(get_backend),
):
    await commission_service.delete_commission(backend, commission_id)
