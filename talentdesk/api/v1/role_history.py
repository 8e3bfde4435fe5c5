from fastapi import APIRouter, Depends

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.position import RoleHistoryEntry
from talentdesk.services.role_history import role_history
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/role-history", tags=["role-history"])


@router.get("", response_model=list[RoleHistoryEntry])
async def closed_roles(store: AppStore = Depends(get_store)):
    return role_history(store.collections["positions"], store.collections["pipeline"])
