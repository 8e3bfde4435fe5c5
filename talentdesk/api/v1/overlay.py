from dataclasses import asdict, is_dataclass
from uuid import UUID

from fastapi import APIRouter, Depends

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.overlay import AlertResponse, OverlayState, PromptResponse
from talentdesk.services import deletions as deletion_service
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/overlay", tags=["overlay"])


def _result(value):
    return asdict(value) if is_dataclass(value) else value


@router.get("", response_model=OverlayState)
async def overlay_state(store: AppStore = Depends(get_store)):
    """Pending prompt plus the alerts raised since the last poll; alerts are consumed."""
    prompt = store.overlay.prompt
    return OverlayState(
        prompt=PromptResponse.model_validate(prompt) if prompt else None,
        alerts=[AlertResponse.model_validate(a) for a in store.overlay.drain_alerts()],
    )


@router.post("/confirm")
async def confirm(store: AppStore = Depends(get_store)):
    return {"result": _result(await store.overlay.confirm())}


@router.post("/cancel")
async def cancel(store: AppStore = Depends(get_store)):
    return {"result": _result(await store.overlay.cancel())}


@router.post("/delete/{kind}/{entity_id}", response_model=PromptResponse)
async def request_delete(kind: str, entity_id: UUID, store: AppStore = Depends(get_store)):
    """Open a delete confirmation; POST /overlay/confirm performs it."""
    return await deletion_service.request_delete(store, kind, entity_id)
