import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from talentdesk.core.database import Base


class PipelineEntry(Base):
    __tablename__ = "pipeline"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    candidate_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("candidates.id"))
    position_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("positions.id"))
    recruiter_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("recruiters.id", ondelete="SET NULL"), nullable=True
    )
    stage: Mapped[str] = mapped_column(String(50), default="Screening")
    status: Mapped[str] = mapped_column(String(20), default="Active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
