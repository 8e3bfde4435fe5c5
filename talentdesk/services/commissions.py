"""Commission arithmetic and persistence.

The stored ``calculated_amount`` is always recomputed from the rate fields at
write time; a client-supplied amount is ignored.
"""

import math
from datetime import date
from typing import Any

import structlog

from talentdesk.core.errors import MissingInformation, NotFound, ValidationFailed
from talentdesk.services.backend import Backend
from talentdesk.services.dates import utcnow

logger = structlog.get_logger()

COMMISSION_TYPES = ("Placement", "Contract", "Team Interview")
COMMISSION_STATUSES = ("Pending", "Ready to Invoice", "Invoiced", "Paid")
RATE_FIELDS = (
    "placement_fee",
    "commission_rate",
    "client_rate",
    "contractor_rate",
    "source_fee",
    "stage_percentage",
)


def to_number(value: Any) -> float:
    """Lenient numeric parse: anything malformed counts as zero."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def calculate_commission(commission_type: str | None, inputs: dict[str, Any]) -> float:
    if commission_type == "Placement":
        amount = to_number(inputs.get("placement_fee")) * to_number(inputs.get("commission_rate")) / 100
    elif commission_type == "Contract":
        margin = to_number(inputs.get("client_rate")) - to_number(inputs.get("contractor_rate"))
        amount = margin * to_number(inputs.get("commission_rate")) / 100
    elif commission_type == "Team Interview":
        amount = to_number(inputs.get("source_fee")) * to_number(inputs.get("stage_percentage")) / 100
    else:
        amount = 0.0
    return round(max(0.0, amount), 2)


class CommissionForm:
    """Form state that keeps ``calculated_amount`` in step with every field change."""

    def __init__(self, **values):
        self.values: dict[str, Any] = {
            "recruiter_id": None,
            "position_id": None,
            "candidate_id": None,
            "commission_type": None,
            "status": "Pending",
            "placement_date": None,
            "notes": None,
            **{name: 0 for name in RATE_FIELDS},
        }
        self.values.update(values)
        self.calculated_amount = self._recalculate()

    def _recalculate(self) -> float:
        return calculate_commission(self.values.get("commission_type"), self.values)

    def set_field(self, name: str, value) -> float:
        self.values[name] = value
        self.calculated_amount = self._recalculate()
        return self.calculated_amount

    def validate(self) -> None:
        if self.values.get("commission_type") not in COMMISSION_TYPES:
            raise MissingInformation("Please select a commission type.")
        missing = [k for k in ("recruiter_id", "position_id", "candidate_id") if not self.values.get(k)]
        if missing:
            raise MissingInformation(f"Please fill in: {', '.join(missing)}.")
        if self.values.get("status") not in COMMISSION_STATUSES:
            raise ValidationFailed(f"Unknown commission status '{self.values.get('status')}'")
        if self.calculated_amount <= 0:
            raise ValidationFailed("The calculated commission must be greater than zero.")

    def to_row(self) -> dict[str, Any]:
        row = {k: self.values.get(k) for k in (
            "recruiter_id", "position_id", "candidate_id", "commission_type",
            "status", "placement_date", "notes",
        )}
        row.update({name: to_number(self.values.get(name)) for name in RATE_FIELDS})
        row["calculated_amount"] = self.calculated_amount
        return row


async def create_commission(backend: Backend, values: dict[str, Any]) -> dict:
    form = CommissionForm(**values)
    form.validate()
    [row] = await backend.insert("commissions", form.to_row())
    logger.info(
        "commission_created",
        commission_id=str(row["id"]),
        commission_type=row["commission_type"],
        amount=row["calculated_amount"],
    )
    return row


async def update_commission(backend: Backend, commission_id, changes: dict[str, Any]) -> dict:
    current = await backend.select_one("commissions", id=commission_id)
    if current is None:
        raise NotFound("Commission not found")
    merged = {k: v for k, v in current.items() if k not in ("id", "created_at", "updated_at", "calculated_amount")}
    merged.update(changes)
    form = CommissionForm(**merged)
    form.validate()
    [row] = await backend.update(
        "commissions", {**form.to_row(), "updated_at": utcnow()}, eq={"id": commission_id}
    )
    logger.info("commission_updated", commission_id=str(commission_id), amount=row["calculated_amount"])
    return row


async def delete_commission(backend: Backend, commission_id) -> None:
    if not await backend.delete("commissions", eq={"id": commission_id}):
        raise NotFound("Commission not found")
    logger.info("commission_deleted", commission_id=str(commission_id))


async def list_commissions(
    backend: Backend,
    *,
    status: str | None = None,
    commission_type: str | None = None,
    recruiter_id=None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[dict]:
    eq = {}
    if status:
        eq["status"] = status
    if commission_type:
        eq["commission_type"] = commission_type
    if recruiter_id:
        eq["recruiter_id"] = recruiter_id
    return await backend.select(
        "commissions",
        eq=eq,
        gte={"placement_date": date_from} if date_from else None,
        lte={"placement_date": date_to} if date_to else None,
        order_by="created_at",
        descending=True,
    )


def summarize(commissions: list[dict]) -> dict[str, float]:
    totals = {"total": 0.0, "pending": 0.0, "ready_to_invoice": 0.0, "invoiced": 0.0, "paid": 0.0}
    for commission in commissions:
        amount = to_number(commission.get("calculated_amount"))
        totals["total"] += amount
        key = (commission.get("status") or "").lower().replace(" ", "_")
        if key in totals:
            totals[key] += amount
    return {k: round(v, 2) for k, v in totals.items()}
