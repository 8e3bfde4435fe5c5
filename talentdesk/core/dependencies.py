from collections.abc import AsyncIterator
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from talentdesk.core.database import async_session
from talentdesk.core.errors import TalentDeskError
from talentdesk.core.roles import Capability, Identity, parse_role
from talentdesk.core.security import decode_token
from talentdesk.services.backend import Backend
from talentdesk.services.store import AppStore, StoreRegistry

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

backend = Backend(async_session)
registry = StoreRegistry(backend)


def get_backend() -> Backend:
    return backend


def get_registry() -> StoreRegistry:
    return registry


async def get_current_identity(
    token: str = Depends(oauth2_scheme),
    backend: Backend = Depends(get_backend),
) -> Identity:
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    try:
        recruiter_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    recruiter = await backend.select_one("recruiters", id=recruiter_id)
    if recruiter is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Recruiter not found",
        )

    return Identity(
        id=recruiter["id"],
        email=recruiter["email"],
        name=recruiter["name"],
        role=parse_role(recruiter["role"]),
    )


async def get_store(
    identity: Identity = Depends(get_current_identity),
    registry: StoreRegistry = Depends(get_registry),
) -> AsyncIterator[AppStore]:
    """The caller's session store; errors raised by the endpoint also land on its overlay."""
    store = await registry.get(identity)
    try:
        yield store
    except TalentDeskError as e:
        store.overlay.show_error(e)
        raise


def require_capability(*capabilities: Capability):
    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        missing = [c.value for c in capabilities if not identity.can(c)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{identity.role.value}' is not allowed. "
                f"Missing: {', '.join(missing)}",
            )
        return identity

    return dependency
