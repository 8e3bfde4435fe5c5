from uuid import UUID

from fastapi import APIRouter, Depends, status

from talentdesk.core.dependencies import get_store
from talentdesk.schemas.organization import ClientCreate, ClientResponse, ClientUpdate
from talentdesk.services import clients as client_service
from talentdesk.services.store import AppStore

router = APIRouter(prefix="/clients", tags=["clients"])


@router.get("", response_model=list[ClientResponse])
async def list_clients(store: AppStore = Depends(get_store)):
    return store.collections["clients"]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(data: ClientCreate, store: AppStore = Depends(get_store)):
    return await client_service.create_client(store, data.model_dump())


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(client_id: UUID, data: ClientUpdate, store: AppStore = Depends(get_store)):
    return await client_service.update_client(store, client_id, data.model_dump(exclude_unset=True))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: UUID, store: AppStore = Depends(get_store)):
    await client_service.delete_client(store, client_id)
