import asyncio
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from talentdesk.core.dependencies import get_store
from talentdesk.core.rate_limit import limiter
from talentdesk.schemas.candidate import (
    CandidateCreate,
    CandidateResponse,
    CandidateUpdate,
    PaginatedCandidates,
    ResumeUploadResponse,
    TalentPoolFacets,
)
from talentdesk.services import candidates as candidate_service
from talentdesk.services.resume_parser import ResumeData, parse_resume_file
from talentdesk.services.store import AppStore
from talentdesk.services.talent_pool import (
    TalentPoolFilters,
    filter_candidates,
    paginate,
    unique_locations,
    unique_skills,
)

router = APIRouter(prefix="/candidates", tags=["candidates"])


def _build_candidate_response(candidate: dict, store: AppStore) -> CandidateResponse:
    return CandidateResponse(
        **candidate,
        has_unread_comments=candidate["id"] in store.unread_comment_candidate_ids,
    )


@router.get("", response_model=PaginatedCandidates)
async def talent_pool(
    search: str | None = None,
    skills: list[str] = Query([]),
    location: str | None = None,
    created_from: date | None = None,
    created_to: date | None = None,
    has_resume: bool | None = None,
    has_linkedin: bool | None = None,
    in_pipeline: bool | None = None,
    added_this_week: bool = False,
    linkedin_only: bool = False,
    sourcing_position_id: UUID | None = None,
    sourcing_status: str | None = None,
    sourcing_min_rating: int | None = Query(None, ge=0, le=5),
    sourcing_recruiter_id: UUID | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    store: AppStore = Depends(get_store),
):
    filters = TalentPoolFilters(
        search=search,
        skills=skills,
        location=location,
        created_from=created_from,
        created_to=created_to,
        has_resume=has_resume,
        has_linkedin=has_linkedin,
        in_pipeline=in_pipeline,
        added_this_week=added_this_week,
        linkedin_only=linkedin_only,
        sourcing_position_id=sourcing_position_id,
        sourcing_status=sourcing_status,
        sourcing_min_rating=sourcing_min_rating,
        sourcing_recruiter_id=sourcing_recruiter_id,
    )
    matches = filter_candidates(
        store.collections["candidates"],
        filters,
        pipeline=store.collections["pipeline"],
        outreach=store.collections["outreach"],
    )
    return PaginatedCandidates(
        items=[_build_candidate_response(c, store) for c in paginate(matches, page, page_size)],
        total=len(matches),
        page=page,
        page_size=page_size,
    )


@router.get("/facets", response_model=TalentPoolFacets)
async def talent_pool_facets(store: AppStore = Depends(get_store)):
    candidates = store.collections["candidates"]
    return TalentPoolFacets(skills=unique_skills(candidates), locations=unique_locations(candidates))


@router.post("", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
async def create_candidate(data: CandidateCreate, store: AppStore = Depends(get_store)):
    candidate = await candidate_service.create_candidate(store, data.model_dump())
    return _build_candidate_response(candidate, store)


@router.post("/resume", response_model=ResumeUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_resume(file: UploadFile = File(...), store: AppStore = Depends(get_store)):
    content = await file.read()
    url = await candidate_service.upload_resume(store.backend, file.filename, content, file.content_type)
    return ResumeUploadResponse(resume_url=url, viewer=candidate_service.resume_viewer(url))


@router.post("/parse-resume", response_model=ResumeData)
@limiter.limit("10/minute")
async def parse_resume(request: Request, file: UploadFile = File(...), store: AppStore = Depends(get_store)):
    content = await file.read()
    return await asyncio.to_thread(parse_resume_file, content, file.filename or "")


@router.get("/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(candidate_id: UUID, store: AppStore = Depends(get_store)):
    return _build_candidate_response(store.require("candidates", candidate_id), store)


@router.patch("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(candidate_id: UUID, data: CandidateUpdate, store: AppStore = Depends(get_store)):
    candidate = await candidate_service.update_candidate(
        store, candidate_id, data.model_dump(exclude_unset=True)
    )
    return _build_candidate_response(candidate, store)


@router.post("/{candidate_id}/promote", response_model=CandidateResponse)
async def promote_shell(candidate_id: UUID, data: CandidateUpdate, store: AppStore = Depends(get_store)):
    candidate = await candidate_service.promote_shell(
        store, candidate_id, data.model_dump(exclude_unset=True)
    )
    return _build_candidate_response(candidate, store)


@router.post("/{candidate_id}/resume", response_model=ResumeUploadResponse)
async def attach_resume(candidate_id: UUID, file: UploadFile = File(...), store: AppStore = Depends(get_store)):
    """Upload a resume for an existing candidate and fill empty fields from it in the background."""
    store.require("candidates", candidate_id)
    content = await file.read()
    url = await candidate_service.upload_resume(store.backend, file.filename, content, file.content_type)
    await candidate_service.update_candidate(store, candidate_id, {"resume_url": url})

    from talentdesk.workers.celery_app import celery_app  # noqa: F401
    from talentdesk.workers.resume_processing import process_resume

    process_resume.delay(str(candidate_id))
    return ResumeUploadResponse(resume_url=url, viewer=candidate_service.resume_viewer(url))


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_candidate(candidate_id: UUID, store: AppStore = Depends(get_store)):
    await candidate_service.delete_candidate(store, candidate_id)
