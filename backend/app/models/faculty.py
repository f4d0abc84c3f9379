import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.config import get_settings
from app.db.base import Base


class Faculty(Base):
    """Reviewer account. `current_load` is a cache of the ledger, refreshed inside mutating transactions."""

    __tablename__ = "faculty"
    __table_args__ = (
        CheckConstraint("max_capacity >= 1 AND max_capacity <= 100", name="ck_faculty_max_capacity_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_capacity: Mapped[int] = mapped_column(
        Integer, nullable=False, default=lambda: get_settings().default_faculty_capacity
    )
    current_load: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
