from uuid import UUID

from fastapi import APIRouter, Depends, status

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.pipeline import (
    MutationResult,
    PipelineCreate,
    PipelineEntryResponse,
    StageChangeRequest,
    StageChangeResponse,
    StageDragRequest,
    StatusChangeRequest,
)
from talentdesk.services.pipeline import PipelineBoard
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("", response_model=list[PipelineEntryResponse])
async def list_pipeline(
    position_id: UUID | None = None,
    candidate_id: UUID | None = None,
    store: AppStore = Depends(get_store),
):
    entries = store.collections["pipeline"]
    if position_id:
        entries = [e for e in entries if e["position_id"] == position_id]
    if candidate_id:
        entries = [e for e in entries if e["candidate_id"] == candidate_id]
    return entries


@router.get("/board", response_model=dict[str, list[PipelineEntryResponse]])
async def board(store: AppStore = Depends(get_store)):
    return PipelineBoard(store).board()


@router.post("", response_model=PipelineEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_to_pipeline(data: PipelineCreate, store: AppStore = Depends(get_store)):
    entry = await PipelineBoard(store).add_to_pipeline(data.candidate_id, data.position_id, data.recruiter_id)
    return store.get("pipeline", entry["id"]) or entry


@router.post("/{entry_id}/stage", response_model=StageChangeResponse)
async def change_stage(entry_id: UUID, data: StageChangeRequest, store: AppStore = Depends(get_store)):
    return await PipelineBoard(store).move_by_dropdown(entry_id, data.stage)


@router.post("/{entry_id}/move", response_model=StageChangeResponse)
async def drag_stage(entry_id: UUID, data: StageDragRequest, store: AppStore = Depends(get_store)):
    return await PipelineBoard(store).move_by_drag(entry_id, data.source_stage, data.destination_stage)


@router.post("/{entry_id}/status", response_model=MutationResult)
async def change_status(entry_id: UUID, data: StatusChangeRequest, store: AppStore = Depends(get_store)):
    return MutationResult(success=await PipelineBoard(store).change_status(entry_id, data.status))


@router.post("/{entry_id}/archive", response_model=MutationResult)
async def archive(entry_id: UUID, store: AppStore = Depends(get_store)):
    return MutationResult(success=await PipelineBoard(store).archive(entry_id))
