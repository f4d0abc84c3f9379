import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AssignmentAction(str, Enum):
    auto_assign = "auto_assign"
    manual_assign = "manual_assign"
    reassign = "reassign"
    redistribute = "redistribute"
    bulk_assign = "bulk_assign"
    start_review = "start_review"
    evaluate = "evaluate"


class AssignmentLog(Base):
    """Append-only provenance entry. Rows are inserted, never updated or deleted."""

    __tablename__ = "assignment_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submission_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    from_faculty_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    to_faculty_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    admin_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    actor_role: Mapped[str] = mapped_column(String(20), nullable=False, default="system")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
