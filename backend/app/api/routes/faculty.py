from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_faculty, get_db, require_roles
from app.core.exceptions import AppError
from app.models.faculty import Faculty
from app.models.user import User, UserRole
from app.schemas.assignment import CompleteReviewRequest, ReviewStateOut
from app.schemas.faculty import (
    AvailabilityOut,
    AvailabilityUpdate,
    CapacityOut,
    CapacityUpdate,
    FacultyLoadOut,
    FacultyStatsOut,
)
from app.schemas.submission import HistoryItemOut, QueueItemOut
from app.services import faculty_registry
from app.services.assignment_coordinator import AssignmentCoordinator, ReviewState
from app.services.reports import faculty_history, faculty_load_report, faculty_queue, faculty_stats

router = APIRouter()


def _review_out(state: ReviewState) -> ReviewStateOut:
    return ReviewStateOut(
        submission_id=state.submission_id,
        faculty_id=state.faculty_id,
        status=state.status.value,
        version=state.version,
        locked_by=state.locked_by,
    )


@router.get("/load", response_model=list[FacultyLoadOut])
def faculty_load(
    course_id: str | None = Query(default=None, alias="courseId"),
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[dict]:
    return faculty_load_report(db, course_id=course_id)


@router.patch("/{faculty_id}/availability", response_model=AvailabilityOut)
def update_availability(
    faculty_id: str,
    payload: AvailabilityUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    try:
        faculty = faculty_registry.set_availability(db, faculty_id, payload.is_available)
        db.commit()
    except AppError:
        db.rollback()
        raise
    return AvailabilityOut(faculty_id=faculty.id, is_available=faculty.is_available)


@router.patch("/{faculty_id}/capacity", response_model=CapacityOut)
def update_capacity(
    faculty_id: str,
    payload: CapacityUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> CapacityOut:
    try:
        faculty = faculty_registry.set_capacity(db, faculty_id, payload.max_capacity)
        db.commit()
    except AppError:
        db.rollback()
        raise
    return CapacityOut(faculty_id=faculty.id, max_capacity=faculty.max_capacity)


@router.get("/me/queue", response_model=list[QueueItemOut])
def my_queue(
    faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> list[dict]:
    return faculty_queue(db, faculty.id)


@router.get("/me/stats", response_model=FacultyStatsOut)
def my_stats(
    faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> dict:
    return faculty_stats(db, faculty)


@router.get("/me/history", response_model=list[HistoryItemOut])
def my_history(
    limit: int = Query(default=50, ge=1, le=200),
    faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> list[dict]:
    return faculty_history(db, faculty.id, limit=limit)


@router.post("/me/assignments/{submission_id}/start", response_model=ReviewStateOut)
def start_review(
    submission_id: str,
    faculty: Faculty = Depends(get_current_faculty),
    current_user: User = Depends(require_roles(UserRole.faculty)),
    db: Session = Depends(get_db),
) -> ReviewStateOut:
    state = AssignmentCoordinator(db).start_review(submission_id=submission_id, faculty=faculty, actor=current_user)
    return _review_out(state)


@router.post("/me/assignments/{submission_id}/complete", response_model=ReviewStateOut)
def complete_review(
    submission_id: str,
    payload: CompleteReviewRequest | None = None,
    faculty: Faculty = Depends(get_current_faculty),
    current_user: User = Depends(require_roles(UserRole.faculty)),
    db: Session = Depends(get_db),
) -> ReviewStateOut:
    state = AssignmentCoordinator(db).complete_review(
        submission_id=submission_id,
        faculty=faculty,
        actor=current_user,
        notes=payload.notes if payload is not None else None,
    )
    return _review_out(state)
