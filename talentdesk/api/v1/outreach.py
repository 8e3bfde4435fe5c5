from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from talentdesk.core.dependencies import get_store, require_capability
from talentdesk.core.errors import MissingInformation
from talentdesk.core.roles import Capability, Identity
from talentdesk.schemas.outreach import (
    BulkAddRequest,
    BulkContact,
    BulkParseRequest,
    OutreachCreate,
    OutreachResponse,
    OutreachUpdate,
    TeamSummaryEntry,
)
from talentdesk.services import outreach as outreach_service
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/outreach", tags=["outreach"])


@router.get("", response_model=list[OutreachResponse])
async def list_outreach(
    position_id: UUID | None = None,
    activity_status: str | None = Query(None, alias="status"),
    min_rating: int | None = Query(None, ge=0, le=5),
    recruiter_id: UUID | None = None,
    window: str | None = Query(None, pattern="^(today|week|month)$"),
    since: datetime | None = None,
    until: datetime | None = None,
    store: AppStore = Depends(get_store),
):
    return outreach_service.filter_outreach(
        store.collections["outreach"],
        position_id=position_id,
        status=activity_status,
        min_rating=min_rating,
        recruiter_id=recruiter_id,
        since=since or outreach_service.date_window(window),
        until=until,
    )


@router.get("/mine", response_model=list[OutreachResponse])
async def my_outreach(store: AppStore = Depends(get_store)):
    profile = store.user_profile
    if profile is None:
        raise MissingInformation("Your recruiter profile could not be found.")
    return await outreach_service.fetch_my_outreach(store.backend, profile["id"])


@router.get("/team-summary", response_model=list[TeamSummaryEntry])
async def team_summary(
    _: Identity = Depends(require_capability(Capability.VIEW_TEAM_ACTIVITY)),
    store: AppStore = Depends(get_store),
):
    return outreach_service.team_summary(store.collections["outreach"], store.collections["recruiters"])


@router.post("", response_model=OutreachResponse, status_code=status.HTTP_201_CREATED)
async def add_outreach(data: OutreachCreate, store: AppStore = Depends(get_store)):
    return await outreach_service.add_outreach(store, data.model_dump(exclude_none=True))


@router.post("/bulk/parse", response_model=list[BulkContact])
async def parse_bulk(data: BulkParseRequest):
    return outreach_service.parse_bulk_urls(data.text)


@router.post("/bulk", response_model=list[OutreachResponse], status_code=status.HTTP_201_CREATED)
async def bulk_add(data: BulkAddRequest, store: AppStore = Depends(get_store)):
    contacts = [c.model_dump() for c in data.contacts]
    return await outreach_service.bulk_add_outreach(store, data.position_id, contacts)


@router.patch("/{outreach_id}", response_model=OutreachResponse)
async def update_outreach(outreach_id: UUID, data: OutreachUpdate, store: AppStore = Depends(get_store)):
    return await outreach_service.update_outreach(store, outreach_id, data.model_dump(exclude_unset=True))


@router.delete("/{outreach_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_outreach(outreach_id: UUID, store: AppStore = Depends(get_store)):
    await outreach_service.delete_outreach(store, outreach_id)
