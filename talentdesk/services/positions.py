import structlog

from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.services.dates import utcnow
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()

POSITION_STATUSES = ("Open", "Closed")
SOURCING_TARGET = 8


def position_stats(position: dict, pipeline: list[dict]) -> dict:
    """Pipeline counts for one position plus its sourcing health label."""
    entries = [p for p in pipeline if p["position_id"] == position["id"]]
    by_stage = {}
    for entry in entries:
        by_stage[entry["stage"]] = by_stage.get(entry["stage"], 0) + 1
    interviews = {
        "interview1": by_stage.get("Interview 1", 0),
        "interview2": by_stage.get("Interview 2", 0),
        "interview3": by_stage.get("Interview 3", 0),
        "offer": by_stage.get("Offer", 0),
        "hired": by_stage.get("Hired", 0),
    }
    submitted = by_stage.get("Submit to Client", 0)
    is_open = position["status"] == "Open"

    health, priority = "Healthy", "green"
    if submitted == 0 and is_open:
        health, priority = "NEEDS SOURCING", "red"
    elif submitted < SOURCING_TARGET and is_open:
        health, priority = "NEEDS SOURCING", "orange"
    elif interviews["offer"] or interviews["hired"]:
        health, priority = "PIPELINE HEALTHY", "green"

    return {
        "total_candidates": len(entries),
        "active_candidates": sum(1 for e in entries if e["status"] == "Active"),
        "submitted_count": submitted,
        "interview_counts": interviews,
        "total_interviews": interviews["interview1"] + interviews["interview2"] + interviews["interview3"],
        "health_status": health,
        "priority": priority,
    }


def _validate(values: dict) -> None:
    if "title" in values and not (values["title"] or "").strip():
        raise MissingInformation("Position title is required.")
    if values.get("status") is not None and values["status"] not in POSITION_STATUSES:
        raise ValidationFailed(f"Unknown position status '{values['status']}'")


@surfaces_errors
async def create_position(store: AppStore, values: dict) -> dict:
    if not values.get("title"):
        raise MissingInformation("Position title is required.")
    _validate(values)
    [position] = await store.backend.insert("positions", values)
    logger.info("position_created", position_id=str(position["id"]), title=position["title"])
    await store.refresh()
    return position


@surfaces_errors
async def update_position(store: AppStore, position_id, changes: dict) -> dict:
    _validate(changes)
    updated = await store.backend.update(
        "positions", {**changes, "updated_at": utcnow()}, eq={"id": position_id}
    )
    if not updated:
        raise NotFound("Position not found")
    logger.info("position_updated", position_id=str(position_id), fields=sorted(changes))
    await store.refresh()
    return updated[0]


@surfaces_errors
async def delete_position(store: AppStore, position_id) -> None:
    """Delete a position after its pipeline rows and interviews."""
    backend = store.backend
    if await backend.select_one("positions", id=position_id) is None:
        raise NotFound("Position not found")
    await backend.delete("pipeline", eq={"position_id": position_id})
    await backend.delete("interviews", eq={"position_id": position_id})
    await backend.delete("positions", eq={"id": position_id})
    logger.info("position_deleted", position_id=str(position_id))
    await store.refresh()
