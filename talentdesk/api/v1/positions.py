from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.position import (
    ArchiveOutreachResponse,
    PositionCreate,
    PositionResponse,
    PositionUpdate,
    PositionWithStats,
)
from talentdesk.services import positions as position_service
from talentdesk.services.outreach import archive_outreach_for_position
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/positions", tags=["positions"])


def _build_position_response(position: dict, pipeline: list[dict]) -> PositionWithStats:
    return PositionWithStats(
        **position,
        stats=position_service.position_stats(position, pipeline),
    )


@router.get("", response_model=list[PositionWithStats])
async def list_positions(
    position_status: str | None = Query(None, alias="status"),
    client_id: UUID | None = None,
    store: AppStore = Depends(get_store),
):
    positions = store.collections["positions"]
    if position_status:
        positions = [p for p in positions if p["status"] == position_status]
    if client_id:
        positions = [p for p in positions if p["client_id"] == client_id]
    pipeline = store.collections["pipeline"]
    return [_build_position_response(p, pipeline) for p in positions]


@router.post("", response_model=PositionResponse, status_code=status.HTTP_201_CREATED)
async def create_position(data: PositionCreate, store: AppStore = Depends(get_store)):
    return await position_service.create_position(store, data.model_dump())


@router.get("/{position_id}", response_model=PositionWithStats)
async def get_position(position_id: UUID, store: AppStore = Depends(get_store)):
    position = store.require("positions", position_id)
    return _build_position_response(position, store.collections["pipeline"])


@router.patch("/{position_id}", response_model=PositionResponse)
async def update_position(position_id: UUID, data: PositionUpdate, store: AppStore = Depends(get_store)):
    return await position_service.update_position(store, position_id, data.model_dump(exclude_unset=True))


@router.delete("/{position_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_position(position_id: UUID, store: AppStore = Depends(get_store)):
    await position_service.delete_position(store, position_id)


@router.post("/{position_id}/archive-outreach", response_model=ArchiveOutreachResponse)
async def archive_outreach(position_id: UUID, store: AppStore = Depends(get_store)):
    store.require("positions", position_id)
    result = await archive_outreach_for_position(store.backend, position_id)
    await store.refresh()
    return result
