from fastapi import APIRouter, Depends

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.dashboard import DashboardResponse
from talentdesk.services.dashboard import Dashboard
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def dashboard(refresh: bool = False, store: AppStore = Depends(get_store)):
    """Team overview; ``refresh`` reloads the session's collections first."""
    if refresh:
        await store.refresh()
    return await Dashboard(store).summary()
