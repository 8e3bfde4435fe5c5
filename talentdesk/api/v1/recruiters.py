from uuid import UUID

from fastapi import APIRouter, Depends, status

from talentdesk.core.dependencies import get_store, require_capability
from talentdesk.core.roles import Capability, Identity
from talentdesk.schemas.organization import RecruiterCreate, RecruiterResponse, RecruiterUpdate
from talentdesk.services import recruiters as recruiter_service
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/recruiters", tags=["recruiters"])


@router.get("", response_model=list[RecruiterResponse])
async def list_recruiters(store: AppStore = Depends(get_store)):
    return store.collections["recruiters"]


@router.post("", response_model=RecruiterResponse, status_code=status.HTTP_201_CREATED)
async def create_recruiter(
    data: RecruiterCreate,
    _: Identity = Depends(require_capability(Capability.MANAGE_RECRUITERS)),
    store: AppStore = Depends(get_store),
):
    return await recruiter_service.create_recruiter(store, data.model_dump())


@router.patch("/{recruiter_id}", response_model=RecruiterResponse)
async def update_recruiter(
    recruiter_id: UUID,
    data: RecruiterUpdate,
    _: Identity = Depends(require_capability(Capability.MANAGE_RECRUITERS)),
    store: AppStore = Depends(get_store),
):
    return await recruiter_service.update_recruiter(store, recruiter_id, data.model_dump(exclude_unset=True))


@router.delete("/{recruiter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recruiter(
    recruiter_id: UUID,
    _: Identity = Depends(require_capability(Capability.MANAGE_RECRUITERS)),
    store: AppStore = Depends(get_store),
):
    await recruiter_service.delete_recruiter(store, recruiter_id)
