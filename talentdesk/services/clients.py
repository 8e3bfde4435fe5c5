import structlog

from talentdesk.core.errors import MissingInformation, NotFound
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()


def _validate(values: dict) -> None:
    if "company_name" in values and not (values["company_name"] or "").strip():
        raise MissingInformation("Company name is required.")


@surfaces_errors
async def create_client(store: AppStore, values: dict) -> dict:
    if not values.get("company_name"):
        raise MissingInformation("Company name is required.")
    [client] = await store.backend.insert("clients", values)
    logger.info("client_created", client_id=str(client["id"]))
    await store.refresh()
    return client


@surfaces_errors
async def update_client(store: AppStore, client_id, changes: dict) -> dict:
    _validate(changes)
    updated = await store.backend.update("clients", changes, eq={"id": client_id})
    if not updated:
        raise NotFound("Client not found")
    logger.info("client_updated", client_id=str(client_id), fields=sorted(changes))
    await store.refresh()
    return updated[0]


@surfaces_errors
async def delete_client(store: AppStore, client_id) -> None:
    """Positions keep existing with their client cleared."""
    if not await store.backend.delete("clients", eq={"id": client_id}):
        raise NotFound("Client not found")
    logger.info("client_deleted", client_id=str(client_id))
    await store.refresh()
