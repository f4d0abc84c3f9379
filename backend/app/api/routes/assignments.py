from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.core.config import get_settings
from app.models.assignment_log import AssignmentAction
from app.models.user import User, UserRole
from app.schemas.assignment import (
    AutoAssignOut,
    BulkAssignError,
    BulkAssignOut,
    BulkAssignRequest,
    ConsistencyRowOut,
    ManualAssignOut,
    ManualAssignRequest,
    ReassignOut,
    ReassignRequest,
    RedistributeOut,
    RedistributeRequest,
)
from app.schemas.audit import AssignmentLogOut, AssignmentLogPageOut
from app.schemas.submission import SubmissionPageOut, SubmissionSummaryOut
from app.services.assignment_coordinator import AssignmentCoordinator
from app.services.audit import search_assignment_logs
from app.services.reports import ledger_consistency_report, submissions_with_assignments, unassigned_queue

router = APIRouter()
settings = get_settings()

require_admin = require_roles(UserRole.admin)

AssignmentStatusFilter = Literal["unassigned", "pending", "assigned", "in_progress", "evaluated"]


@router.post("/auto-assign", response_model=AutoAssignOut)
def auto_assign(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AutoAssignOut:
    result = AssignmentCoordinator(db).auto_assign(admin=current_user)
    return AutoAssignOut(assigned_count=result.assigned_count, skipped=result.skipped_count, message=result.message)


@router.post("/manual", response_model=ManualAssignOut)
def manual_assign(
    payload: ManualAssignRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ManualAssignOut:
    outcome = AssignmentCoordinator(db).manual_assign(
        submission_id=payload.submission_id,
        faculty_id=payload.faculty_id,
        admin=current_user,
        notes=payload.notes,
    )
    return ManualAssignOut(
        submission_id=outcome.submission_id,
        faculty_id=outcome.faculty_id,
        from_faculty_id=outcome.from_faculty_id,
        version=outcome.version,
    )


@router.post("/reassign", response_model=ReassignOut)
def reassign(
    payload: ReassignRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ReassignOut:
    outcome = AssignmentCoordinator(db).reassign(
        submission_id=payload.submission_id,
        new_faculty_id=payload.new_faculty_id,
        expected_version=payload.expected_version,
        admin=current_user,
        notes=payload.notes,
    )
    return ReassignOut(
        submission_id=outcome.submission_id,
        from_faculty_id=outcome.from_faculty_id,
        new_faculty_id=outcome.faculty_id,
        version=outcome.version,
    )


@router.post("/redistribute", response_model=RedistributeOut)
def redistribute(
    payload: RedistributeRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> RedistributeOut:
    result = AssignmentCoordinator(db).redistribute(from_faculty_id=payload.from_faculty_id, admin=current_user)
    return RedistributeOut(
        redistributed_count=result.redistributed_count,
        skipped=result.skipped_count,
        message=result.message,
    )


@router.post("/bulk", response_model=BulkAssignOut, responses={207: {"model": BulkAssignOut}})
def bulk_assign(
    payload: BulkAssignRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> JSONResponse:
    result = AssignmentCoordinator(db).bulk_assign(
        submission_ids=payload.submission_ids,
        faculty_id=payload.faculty_id,
        admin=current_user,
    )
    body = BulkAssignOut(
        assigned=len(result.assigned_ids),
        skipped=len(result.errors),
        assigned_ids=result.assigned_ids,
        errors=[BulkAssignError(submission_id=item.submission_id, reason=item.reason) for item in result.errors],
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.fully_succeeded else status.HTTP_207_MULTI_STATUS,
        content=body.model_dump(by_alias=True),
    )


@router.get("/unassigned", response_model=list[SubmissionSummaryOut])
def list_unassigned(
    course_id: str | None = Query(default=None, alias="courseId"),
    limit: int = Query(default=100, ge=1),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[dict]:
    return unassigned_queue(db, course_id=course_id, limit=min(limit, settings.unassigned_queue_max_items))


@router.get("/submissions", response_model=SubmissionPageOut)
def list_submissions(
    status_filter: AssignmentStatusFilter | None = Query(default=None, alias="status"),
    faculty_id: str | None = Query(default=None, alias="facultyId"),
    course_id: str | None = Query(default=None, alias="courseId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    data, pagination = submissions_with_assignments(
        db,
        status=status_filter,
        faculty_id=faculty_id,
        course_id=course_id,
        page=page,
        limit=limit,
    )
    return {"data": data, "pagination": pagination}


@router.get("/logs", response_model=AssignmentLogPageOut)
def list_assignment_logs(
    faculty_id: str | None = Query(default=None, alias="facultyId"),
    action_type: AssignmentAction | None = Query(default=None, alias="actionType"),
    submission_id: str | None = Query(default=None, alias="submissionId"),
    from_date: date | None = Query(default=None, alias="fromDate"),
    to_date: date | None = Query(default=None, alias="toDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    rows, pagination = search_assignment_logs(
        db,
        faculty_id=faculty_id,
        action_type=action_type.value if action_type is not None else None,
        submission_id=submission_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        limit=min(limit, settings.audit_log_max_page_size),
    )
    return {"data": [AssignmentLogOut.model_validate(row) for row in rows], "pagination": pagination}


@router.get("/consistency", response_model=list[ConsistencyRowOut])
def ledger_consistency(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[dict]:
    return ledger_consistency_report(db)
