import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class AssignmentStatus(str, Enum):
    pending = "pending"
    assigned = "assigned"
    in_progress = "in_progress"
    evaluated = "evaluated"


# Statuses that occupy a reviewer's capacity.
ACTIVE_ASSIGNMENT_STATUSES = (
    AssignmentStatus.pending,
    AssignmentStatus.assigned,
    AssignmentStatus.in_progress,
)
# Not yet opened by the reviewer; eligible for redistribution.
WAITING_ASSIGNMENT_STATUSES = (
    AssignmentStatus.pending,
    AssignmentStatus.assigned,
)


class SubmissionAssignment(Base):
    __tablename__ = "submission_assignments"
    __table_args__ = (
        Index("idx_sa_faculty_status", "faculty_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submission_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    faculty_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[AssignmentStatus] = mapped_column(
        SAEnum(AssignmentStatus, name="assignment_status"),
        nullable=False,
        default=AssignmentStatus.pending,
        index=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # Advisory claim, informational only: never enforced and never expired.
    locked_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reallocation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reallocated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submission_weight: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
