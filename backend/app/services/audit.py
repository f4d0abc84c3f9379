from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.models.assignment_log import AssignmentAction, AssignmentLog
from app.models.user import User


def record_assignment_event(
    db: Session,
    *,
    submission_id: str,
    action: AssignmentAction,
    from_faculty_id: str | None = None,
    to_faculty_id: str | None = None,
    actor: User | None = None,
    actor_role: str | None = None,
    notes: str | None = None,
    details: dict | None = None,
) -> AssignmentLog:
    """Append a provenance entry. Callers add it inside the transaction of the mutation it documents."""
    if actor_role is None:
        actor_role = actor.role.value if actor is not None else "system"
    record = AssignmentLog(
        submission_id=submission_id,
        action_type=action.value,
        from_faculty_id=from_faculty_id,
        to_faculty_id=to_faculty_id,
        admin_id=actor.id if actor is not None else None,
        actor_role=actor_role,
        notes=notes,
        details=details or {},
    )
    db.add(record)
    return record


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def search_assignment_logs(
    db: Session,
    *,
    faculty_id: str | None = None,
    action_type: str | None = None,
    submission_id: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[AssignmentLog], dict]:
    conditions = []
    if faculty_id:
        conditions.append(
            or_(AssignmentLog.from_faculty_id == faculty_id, AssignmentLog.to_faculty_id == faculty_id)
        )
    if action_type:
        conditions.append(AssignmentLog.action_type == action_type)
    if submission_id:
        conditions.append(AssignmentLog.submission_id == submission_id)
    if from_date is not None:
        conditions.append(AssignmentLog.created_at >= _day_start(from_date))
    if to_date is not None:
        # Inclusive of the whole end day.
        conditions.append(AssignmentLog.created_at < _day_start(to_date + timedelta(days=1)))

    page = max(1, page)
    limit = max(1, limit)
    total = db.execute(select(func.count()).select_from(AssignmentLog).where(*conditions)).scalar_one()
    rows = list(
        db.execute(
            select(AssignmentLog)
            .where(*conditions)
            .order_by(AssignmentLog.created_at.desc(), AssignmentLog.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).scalars()
    )
    return rows, pagination_meta(page=page, limit=limit, total=total)


def pagination_meta(*, page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if total else 0,
    }
