from datetime import datetime

import structlog

from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.services.dates import as_utc, utcnow
from talentdesk.services.pipeline import next_stage
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()

OUTCOMES = {"advance": "Passed", "hold": "Hold", "reject": "Failed", "save": None}


def split_by_date(interviews: list[dict], now: datetime | None = None) -> dict[str, list[dict]]:
    now = now or utcnow()
    upcoming = [i for i in interviews if as_utc(i["interview_date"]) >= now]
    past = [i for i in interviews if as_utc(i["interview_date"]) < now]
    past.sort(key=lambda i: as_utc(i["interview_date"]), reverse=True)
    return {"upcoming": upcoming, "past": past}


@surfaces_errors
async def schedule_interview(store: AppStore, values: dict) -> dict:
    missing = [k for k in ("candidate_id", "position_id", "interview_date") if not values.get(k)]
    if missing:
        raise MissingInformation(f"Please fill in: {', '.join(missing)}.")
    [interview] = await store.backend.insert("interviews", values)
    logger.info(
        "interview_scheduled",
        interview_id=str(interview["id"]),
        candidate_id=str(values["candidate_id"]),
    )
    await store.refresh()
    return interview


@surfaces_errors
async def record_decision(store: AppStore, interview_id, decision: str, feedback: str | None = None) -> dict:
    """Save feedback and, unless only saving, move the matching pipeline entry."""
    if decision not in OUTCOMES:
        raise ValidationFailed(f"Unknown interview decision '{decision}'")
    backend = store.backend
    interview = await backend.select_one("interviews", id=interview_id)
    if interview is None:
        raise NotFound("Interview not found")

    values = {"feedback": feedback}
    if OUTCOMES[decision]:
        values["outcome"] = OUTCOMES[decision]
    [interview] = await backend.update("interviews", values, eq={"id": interview_id})

    pipeline_update = None
    if decision != "save":
        entries = await backend.select(
            "pipeline",
            eq={"candidate_id": interview["candidate_id"], "position_id": interview["position_id"]},
            limit=1,
        )
        if entries:
            entry = entries[0]
            if decision == "advance":
                pipeline_update = {"stage": next_stage(entry["stage"]), "status": "Active"}
            elif decision == "hold":
                pipeline_update = {"status": "Hold"}
            else:
                pipeline_update = {"status": "Reject"}
            await backend.update(
                "pipeline", {**pipeline_update, "updated_at": utcnow()}, eq={"id": entry["id"]}
            )
        else:
            logger.warning("interview_decision_no_pipeline_entry", interview_id=str(interview_id))

    logger.info("interview_decision_recorded", interview_id=str(interview_id), decision=decision)
    await store.refresh()
    return {"interview": interview, "pipeline_update": pipeline_update}


async def interview_history(store: AppStore, candidate_id, position_id) -> list[dict]:
    return await store.backend.select(
        "interviews",
        eq={"candidate_id": candidate_id, "position_id": position_id},
        order_by="interview_date",
        descending=True,
    )
