from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from talentdesk.core.dependencies import get_backend, get_current_identity, get_registry
from talentdesk.core.rate_limit import limiter
from talentdesk.core.roles import ROLE_CAPABILITIES, Identity, parse_role
from talentdesk.core.security import create_access_token, create_refresh_token, decode_token
from talentdesk.schemas.auth import IdentityResponse, LoginRequest, RefreshRequest, TokenResponse
from talentdesk.services.backend import Backend
from talentdesk.services.store import StoreRegistry

router = APIRouter(prefix="/auth", tags=["auth"])


def _tokens_for(recruiter: dict) -> TokenResponse:
    token_data = {"sub": str(recruiter["id"]), "role": parse_role(recruiter["role"]).value}
    return TokenResponse(
        access_token=create_access_token(token_data),
        refresh_token=create_refresh_token(token_data),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute")
async def login(request: Request, data: LoginRequest, backend: Backend = Depends(get_backend)):
    recruiter = await backend.authenticate(data.email, data.password)
    if recruiter is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _tokens_for(recruiter)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(data: RefreshRequest, backend: Backend = Depends(get_backend)):
    payload = decode_token(data.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    try:
        recruiter_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    recruiter = await backend.select_one("recruiters", id=recruiter_id)
    if recruiter is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Recruiter not found")
    return _tokens_for(recruiter)


@router.get("/me", response_model=IdentityResponse)
async def me(identity: Identity = Depends(get_current_identity)):
    return IdentityResponse(
        id=identity.id,
        email=identity.email,
        name=identity.name,
        role=identity.role.value,
        capabilities=sorted(c.value for c in ROLE_CAPABILITIES[identity.role]),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    identity: Identity = Depends(get_current_identity),
    registry: StoreRegistry = Depends(get_registry),
):
    registry.discard(identity.id)
