from uuid import UUID

from fastapi import APIRouter, Depends, status

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.interview import (
    InterviewCreate,
    InterviewDecisionRequest,
    InterviewDecisionResponse,
    InterviewResponse,
    InterviewSchedule,
)
from talentdesk.services import interviews as interview_service
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/interviews", tags=["interviews"])


@router.get("", response_model=InterviewSchedule)
async def list_interviews(store: AppStore = Depends(get_store)):
    return interview_service.split_by_date(store.collections["interviews"])


@router.post("", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
async def schedule_interview(data: InterviewCreate, store: AppStore = Depends(get_store)):
    interview = await interview_service.schedule_interview(store, data.model_dump())
    return store.get("interviews", interview["id"]) or interview


@router.get("/history", response_model=list[InterviewResponse])
async def interview_history(candidate_id: UUID, position_id: UUID, store: AppStore = Depends(get_store)):
    return await interview_service.interview_history(store, candidate_id, position_id)


@router.post("/{interview_id}/decision", response_model=InterviewDecisionResponse)
async def record_decision(
    interview_id: UUID,
    data: InterviewDecisionRequest,
    store: AppStore = Depends(get_store),
):
    return await interview_service.record_decision(store, interview_id, data.decision, data.feedback)
