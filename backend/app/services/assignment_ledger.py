from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.assignment import (
    AssignmentStatus,
    SubmissionAssignment,
    WAITING_ASSIGNMENT_STATUSES,
)
from app.models.submission import ASSIGNABLE_SUBMISSION_STATUSES, Submission


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_assignment(db: Session, submission_id: str) -> SubmissionAssignment | None:
    return db.execute(
        select(SubmissionAssignment).where(SubmissionAssignment.submission_id == submission_id)
    ).scalar_one_or_none()


def current_owners(db: Session, submission_ids: Iterable[str]) -> dict[str, str]:
    """Unlocked read of submission id -> faculty id for submissions that already have a row."""
    ids = list(set(submission_ids))
    if not ids:
        return {}
    rows = db.execute(
        select(SubmissionAssignment.submission_id, SubmissionAssignment.faculty_id).where(
            SubmissionAssignment.submission_id.in_(ids)
        )
    ).all()
    return {submission_id: faculty_id for submission_id, faculty_id in rows}


def lock_assignments(db: Session, submission_ids: Iterable[str]) -> dict[str, SubmissionAssignment]:
    """Row-lock existing assignments for the given submissions, in submission id order."""
    ids = sorted(set(submission_ids))
    if not ids:
        return {}
    rows = db.execute(
        select(SubmissionAssignment)
        .where(SubmissionAssignment.submission_id.in_(ids))
        .order_by(SubmissionAssignment.submission_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalars()
    return {row.submission_id: row for row in rows}


def lock_waiting_assignments(db: Session, faculty_id: str) -> list[SubmissionAssignment]:
    """Row-lock a reviewer's not-yet-opened assignments (submission id order) and return them oldest-first."""
    rows = list(
        db.execute(
            select(SubmissionAssignment)
            .where(
                SubmissionAssignment.faculty_id == faculty_id,
                SubmissionAssignment.status.in_(WAITING_ASSIGNMENT_STATUSES),
            )
            .order_by(SubmissionAssignment.submission_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars()
    )
    submitted = submission_times(db, [row.submission_id for row in rows])
    rows.sort(
        key=lambda row: (
            submitted.get(row.submission_id) is None,
            submitted.get(row.submission_id) or datetime.min,
            row.assigned_at or datetime.min,
        )
    )
    return rows


def submission_times(db: Session, submission_ids: Iterable[str]) -> dict[str, datetime]:
    ids = list(set(submission_ids))
    if not ids:
        return {}
    rows = db.execute(select(Submission.id, Submission.submitted_at).where(Submission.id.in_(ids))).all()
    return {submission_id: submitted_at for submission_id, submitted_at in rows}


def existing_submission_ids(db: Session, submission_ids: Iterable[str]) -> set[str]:
    ids = list(set(submission_ids))
    if not ids:
        return set()
    return set(db.execute(select(Submission.id).where(Submission.id.in_(ids))).scalars())


def unassigned_submissions(db: Session, *, course_id: str | None = None, limit: int | None = None) -> list[Submission]:
    """Assignable submissions with no ledger row, oldest first."""
    has_assignment = select(SubmissionAssignment.id).where(SubmissionAssignment.submission_id == Submission.id)
    query = (
        select(Submission)
        .where(Submission.status.in_(ASSIGNABLE_SUBMISSION_STATUSES), ~has_assignment.exists())
        .order_by(Submission.submitted_at.asc(), Submission.id.asc())
    )
    if course_id:
        query = query.where(Submission.course_id == course_id)
    if limit is not None:
        query = query.limit(limit)
    return list(db.execute(query).scalars())


def insert_assignment(
    db: Session,
    *,
    submission_id: str,
    faculty_id: str,
    weight: int = 1,
    status: AssignmentStatus = AssignmentStatus.pending,
) -> SubmissionAssignment:
    assignment = SubmissionAssignment(
        submission_id=submission_id,
        faculty_id=faculty_id,
        status=status,
        assigned_at=utcnow(),
        version=1,
        reallocation_count=0,
        submission_weight=max(1, weight),
    )
    db.add(assignment)
    db.flush()
    return assignment


def apply_versioned_update(
    db: Session,
    assignment: SubmissionAssignment,
    *,
    expected_version: int,
    **values,
) -> bool:
    """Conditional write: succeeds only while the stored version still equals `expected_version`.

    On success the row's version becomes `expected_version + 1`. Returns False, writing
    nothing, when another writer moved the version first.
    """
    db.flush()
    table = SubmissionAssignment.__table__
    values["version"] = expected_version + 1
    values["updated_at"] = utcnow()
    result = db.execute(
        update(table)
        .where(table.c.id == assignment.id, table.c.version == expected_version)
        .values(**values)
    )
    db.expire(assignment)
    return result.rowcount == 1


def move_values(to_faculty_id: str, *, reallocation_count: int) -> dict:
    """Column values for rebinding an existing assignment to another reviewer."""
    now = utcnow()
    return {
        "faculty_id": to_faculty_id,
        "status": AssignmentStatus.pending,
        "assigned_at": now,
        "locked_by": None,
        "locked_at": None,
        "reallocation_count": reallocation_count + 1,
        "last_reallocated_at": now,
    }
