from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.assignment import ACTIVE_ASSIGNMENT_STATUSES, SubmissionAssignment
from app.models.faculty import Faculty


def live_loads(db: Session, faculty_ids: Iterable[str]) -> dict[str, int]:
    """Load per faculty straight from the ledger: summed weight of active assignments."""
    ids = sorted(set(faculty_ids))
    if not ids:
        return {}
    rows = db.execute(
        select(
            SubmissionAssignment.faculty_id,
            func.coalesce(func.sum(SubmissionAssignment.submission_weight), 0),
        )
        .where(
            SubmissionAssignment.faculty_id.in_(ids),
            SubmissionAssignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
        )
        .group_by(SubmissionAssignment.faculty_id)
    ).all()
    loads = {faculty_id: 0 for faculty_id in ids}
    for faculty_id, load in rows:
        loads[faculty_id] = int(load or 0)
    return loads


def live_load(db: Session, faculty_id: str) -> int:
    return live_loads(db, [faculty_id]).get(faculty_id, 0)


def refresh_cached_loads(db: Session, faculty_ids: Iterable[str]) -> dict[str, int]:
    """Write the ledger-derived load back to `faculty.current_load`.

    Must run in the same transaction that mutated the ledger.
    """
    db.flush()
    loads = live_loads(db, faculty_ids)
    for faculty_id, load in loads.items():
        db.execute(update(Faculty).where(Faculty.id == faculty_id).values(current_load=load))
    return loads
