"""Pipeline stage state machine.

Any stage may move to any other; what differs is the protocol around the move.
Recruiters persist right away with rollback on failure. An identity holding
``APPROVE_STAGE_CHANGES`` only applies the move locally and opens an approval
prompt: approving persists and notifies the owning recruiter, dismissing
reverts. Drag-and-drop and dropdown moves both go through
``request_stage_change``.
"""

from dataclasses import dataclass

import structlog

from talentdesk.core.errors import BackendMutationError, MissingInformation, ValidationFailed
from talentdesk.core.roles import Capability
from talentdesk.services.dates import utcnow
from talentdesk.services.notifications import NotificationOutbox
from talentdesk.services.optimistic import Attempt, OptimisticUpdater
from talentdesk.services.store import AppStore, surfaces_errors

logger = structlog.get_logger()

STAGES = ("Screening", "Submit to Client", "Interview 1", "Interview 2", "Interview 3", "Offer", "Hired")
SIDE_STAGES = ("Reject", "Archived")
ALL_STAGES = STAGES + SIDE_STAGES
TERMINAL_STAGES = frozenset({"Hired", "Reject", "Archived"})
STATUSES = ("Active", "Hold", "Reject")


def next_stage(stage: str) -> str:
    """The stage after ``stage`` in the workflow; Offer when there is none."""
    if stage in STAGES[:-1]:
        return STAGES[STAGES.index(stage) + 1]
    return "Offer"


@dataclass
class StageChange:
    outcome: str  # persisted, reverted, pending_approval, dismissed, unchanged
    entry_id: object
    stage: str
    previous_stage: str
    prompt_id: object = None
    notified: bool = False


class PipelineBoard:
    def __init__(self, store: AppStore, outbox: NotificationOutbox | None = None):
        self.store = store
        self.backend = store.backend
        self.outbox = outbox or NotificationOutbox(store.backend)
        self.updater = OptimisticUpdater(store, "pipeline")

    def entry(self, entry_id) -> dict:
        return self.store.require("pipeline", entry_id)

    def board(self) -> dict[str, list[dict]]:
        columns: dict[str, list[dict]] = {stage: [] for stage in STAGES}
        for entry in self.store.collections["pipeline"]:
            if entry["stage"] in columns:
                columns[entry["stage"]].append(entry)
        return columns

    async def _persist(self, entry_id, values: dict) -> None:
        updated = await self.backend.update(
            "pipeline", {**values, "updated_at": utcnow()}, eq={"id": entry_id}
        )
        if not updated:
            raise BackendMutationError("Pipeline entry no longer exists")

    # --- stage ---

    async def move_by_dropdown(self, entry_id, new_stage: str) -> StageChange:
        return await self.request_stage_change(entry_id, new_stage)

    async def move_by_drag(self, entry_id, source_stage: str, destination_stage: str) -> StageChange:
        if source_stage == destination_stage:
            entry = self.entry(entry_id)
            return StageChange("unchanged", entry_id, entry["stage"], entry["stage"])
        return await self.request_stage_change(entry_id, destination_stage)

    @surfaces_errors
    async def request_stage_change(self, entry_id, new_stage: str) -> StageChange:
        if new_stage not in ALL_STAGES:
            raise ValidationFailed(f"Unknown stage '{new_stage}'")
        entry = self.entry(entry_id)
        old_stage = entry["stage"]
        if new_stage == old_stage:
            return StageChange("unchanged", entry_id, old_stage, old_stage)

        if self.store.identity.can(Capability.APPROVE_STAGE_CHANGES):
            return await self._open_approval(entry, old_stage, new_stage)

        ok = await self.updater.attempt(
            entry_id, "stage", new_stage, lambda: self._persist(entry_id, {"stage": new_stage})
        )
        logger.info(
            "stage_change_requested",
            entry_id=str(entry_id),
            old_stage=old_stage,
            new_stage=new_stage,
            persisted=ok,
        )
        stage = new_stage if ok else old_stage
        return StageChange("persisted" if ok else "reverted", entry_id, stage, old_stage)

    async def _open_approval(self, entry: dict, old_stage: str, new_stage: str) -> StageChange:
        attempt = self.updater.apply(entry["id"], "stage", new_stage)
        context = {
            "pipeline_id": str(entry["id"]),
            "candidate_name": entry.get("candidate_name"),
            "recruiter_name": entry.get("recruiter_name"),
            "recruiter_email": entry.get("recruiter_email"),
            "position_title": entry.get("position_title"),
            "old_stage": old_stage,
            "new_stage": new_stage,
        }
        prompt = await self.store.overlay.show_confirm(
            type="info",
            title="Confirm Stage Change",
            message=f'Move {context["candidate_name"]} from "{old_stage}" to "{new_stage}"?',
            context_info=context,
            confirm_text="Approve",
            cancel_text="Dismiss",
            on_confirm=lambda: self._approve(attempt, context),
            on_cancel=lambda: self._dismiss(attempt),
        )
        logger.info(
            "stage_change_pending_approval",
            entry_id=str(entry["id"]),
            old_stage=old_stage,
            new_stage=new_stage,
        )
        return StageChange("pending_approval", entry["id"], new_stage, old_stage, prompt_id=prompt.id)

    async def _approve(self, attempt: Attempt, context: dict) -> StageChange:
        entry_id = attempt.entity_id
        ok = await self.updater.settle(
            attempt, lambda: self._persist(entry_id, {"stage": attempt.proposed})
        )
        if not ok:
            return StageChange("reverted", entry_id, attempt.prior, attempt.prior)

        message = (
            f'Director moved {context["candidate_name"]} from "{attempt.prior}" '
            f'to "{attempt.proposed}" for {context["position_title"]}.'
        )
        notified = await self.outbox.enqueue(
            context["recruiter_email"], message, "stage_change_director"
        )
        if not notified:
            self.store.overlay.show_alert(
                "warning", "Notification Not Sent", "Stage updated, but the recruiter could not be notified."
            )
        logger.info("stage_change_approved", entry_id=str(entry_id), new_stage=attempt.proposed)
        return StageChange("persisted", entry_id, attempt.proposed, attempt.prior, notified=notified)

    async def _dismiss(self, attempt: Attempt) -> StageChange:
        self.updater.revert(attempt)
        logger.info("stage_change_dismissed", entry_id=str(attempt.entity_id))
        return StageChange("dismissed", attempt.entity_id, attempt.prior, attempt.prior)

    # --- status ---

    @surfaces_errors
    async def change_status(self, entry_id, new_status: str) -> bool:
        if new_status not in STATUSES:
            raise ValidationFailed(f"Unknown status '{new_status}'")
        return await self.updater.attempt(
            entry_id, "status", new_status, lambda: self._persist(entry_id, {"status": new_status})
        )

    @surfaces_errors
    async def archive(self, entry_id) -> bool:
        return await self.updater.attempt(
            entry_id, "stage", "Archived", lambda: self._persist(entry_id, {"stage": "Archived"})
        )

    @surfaces_errors
    async def add_to_pipeline(self, candidate_id, position_id, recruiter_id, stage: str = "Screening") -> dict:
        if not candidate_id or not position_id or not recruiter_id:
            raise MissingInformation("Please select a position and a recruiter.")
        if stage not in ALL_STAGES:
            raise ValidationFailed(f"Unknown stage '{stage}'")
        [entry] = await self.backend.insert(
            "pipeline",
            {
                "candidate_id": candidate_id,
                "position_id": position_id,
                "recruiter_id": recruiter_id,
                "stage": stage,
                "status": "Active",
            },
        )
        logger.info("pipeline_entry_created", entry_id=str(entry["id"]), candidate_id=str(candidate_id))
        await self.store.refresh()
        return entry
