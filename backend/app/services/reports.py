from __future__ import annotations

from collections import defaultdict

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.models.assignment import ACTIVE_ASSIGNMENT_STATUSES, AssignmentStatus, SubmissionAssignment
from app.models.course import Course
from app.models.faculty import Faculty
from app.models.submission import Submission
from app.services.assignment_ledger import unassigned_submissions
from app.services.audit import pagination_meta
from app.services.workload import live_loads


def _course_titles(db: Session, course_ids: set[str]) -> dict[str, str]:
    if not course_ids:
        return {}
    rows = db.execute(select(Course.id, Course.title).where(Course.id.in_(course_ids))).all()
    return {course_id: title for course_id, title in rows}


def faculty_load_report(db: Session, *, course_id: str | None = None) -> list[dict]:
    active = SubmissionAssignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES)
    evaluated = SubmissionAssignment.status == AssignmentStatus.evaluated
    counts_query = (
        select(
            SubmissionAssignment.faculty_id,
            func.sum(case((active, 1), else_=0)),
            func.sum(case((evaluated, 1), else_=0)),
            func.count(SubmissionAssignment.id),
        )
        .join(Submission, Submission.id == SubmissionAssignment.submission_id)
        .group_by(SubmissionAssignment.faculty_id)
    )
    courses_query = (
        select(SubmissionAssignment.faculty_id, Submission.course_id)
        .join(Submission, Submission.id == SubmissionAssignment.submission_id)
        .where(Submission.course_id.is_not(None))
        .distinct()
    )
    if course_id:
        counts_query = counts_query.where(Submission.course_id == course_id)
        courses_query = courses_query.where(Submission.course_id == course_id)

    counts = {
        faculty_id: (int(pending or 0), int(completed or 0), int(total or 0))
        for faculty_id, pending, completed, total in db.execute(counts_query).all()
    }
    courses_by_faculty: dict[str, set[str]] = defaultdict(set)
    for faculty_id, item_course_id in db.execute(courses_query).all():
        courses_by_faculty[faculty_id].add(item_course_id)
    titles = _course_titles(db, {cid for ids in courses_by_faculty.values() for cid in ids})

    faculty = list(db.execute(select(Faculty).order_by(Faculty.name, Faculty.id)).scalars())
    loads = live_loads(db, [item.id for item in faculty])
    report: list[dict] = []
    for item in faculty:
        pending, completed, total = counts.get(item.id, (0, 0, 0))
        report.append(
            {
                "id": item.id,
                "name": item.name,
                "email": item.email,
                "is_available": item.is_available,
                "max_capacity": item.max_capacity,
                "pending": pending,
                "completed": completed,
                "total": total,
                "current_load": item.current_load,
                "live_load": loads.get(item.id, 0),
                "courses": sorted(titles.get(cid, cid) for cid in courses_by_faculty.get(item.id, set())),
            }
        )
    return report


def _submission_summary(submission: Submission, titles: dict[str, str]) -> dict:
    return {
        "id": submission.id,
        "user_id": submission.user_id,
        "course_id": submission.course_id,
        "course_title": titles.get(submission.course_id) if submission.course_id else None,
        "challenge_id": submission.challenge_id,
        "level": submission.level,
        "status": submission.status,
        "submitted_at": submission.submitted_at,
    }


def unassigned_queue(db: Session, *, course_id: str | None = None, limit: int = 100) -> list[dict]:
    submissions = unassigned_submissions(db, course_id=course_id, limit=limit)
    titles = _course_titles(db, {item.course_id for item in submissions if item.course_id})
    return [_submission_summary(item, titles) for item in submissions]


def submissions_with_assignments(
    db: Session,
    *,
    status: str | None = None,
    faculty_id: str | None = None,
    course_id: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[dict], dict]:
    """Submissions left-joined to their assignment and reviewer; `status="unassigned"` selects rows without one."""
    conditions = []
    if status == "unassigned":
        conditions.append(SubmissionAssignment.id.is_(None))
    elif status:
        conditions.append(SubmissionAssignment.status == AssignmentStatus(status))
    if faculty_id:
        conditions.append(SubmissionAssignment.faculty_id == faculty_id)
    if course_id:
        conditions.append(Submission.course_id == course_id)

    base = (
        select(Submission, SubmissionAssignment, Faculty)
        .outerjoin(SubmissionAssignment, SubmissionAssignment.submission_id == Submission.id)
        .outerjoin(Faculty, Faculty.id == SubmissionAssignment.faculty_id)
        .where(*conditions)
    )
    total = db.execute(
        select(func.count(Submission.id))
        .select_from(Submission)
        .outerjoin(SubmissionAssignment, SubmissionAssignment.submission_id == Submission.id)
        .where(*conditions)
    ).scalar_one()

    page = max(1, page)
    limit = max(1, limit)
    rows = db.execute(
        base.order_by(Submission.submitted_at.desc(), Submission.id).offset((page - 1) * limit).limit(limit)
    ).all()
    titles = _course_titles(db, {submission.course_id for submission, _, _ in rows if submission.course_id})

    data: list[dict] = []
    for submission, assignment, faculty in rows:
        item = _submission_summary(submission, titles)
        item["assignment"] = (
            {
                "faculty_id": assignment.faculty_id,
                "faculty_name": faculty.name if faculty is not None else None,
                "status": assignment.status.value,
                "assigned_at": assignment.assigned_at,
                "version": assignment.version,
                "locked_by": assignment.locked_by,
                "locked_at": assignment.locked_at,
                "reallocation_count": assignment.reallocation_count,
            }
            if assignment is not None
            else None
        )
        data.append(item)
    return data, pagination_meta(page=page, limit=limit, total=total)


def faculty_queue(db: Session, faculty_id: str) -> list[dict]:
    rows = db.execute(
        select(Submission, SubmissionAssignment)
        .join(SubmissionAssignment, SubmissionAssignment.submission_id == Submission.id)
        .where(
            SubmissionAssignment.faculty_id == faculty_id,
            SubmissionAssignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
        )
        .order_by(Submission.submitted_at.asc(), Submission.id)
    ).all()
    titles = _course_titles(db, {submission.course_id for submission, _ in rows if submission.course_id})
    queue: list[dict] = []
    for submission, assignment in rows:
        item = _submission_summary(submission, titles)
        item["assignment_status"] = assignment.status.value
        item["version"] = assignment.version
        queue.append(item)
    return queue


def ledger_consistency_report(db: Session) -> list[dict]:
    """Compare each reviewer's cached load and capacity against the ledger."""
    faculty = list(db.execute(select(Faculty).order_by(Faculty.id)).scalars())
    loads = live_loads(db, [item.id for item in faculty])
    report: list[dict] = []
    for item in faculty:
        live = loads.get(item.id, 0)
        report.append(
            {
                "faculty_id": item.id,
                "name": item.name,
                "cached_load": item.current_load,
                "live_load": live,
                "max_capacity": item.max_capacity,
                "cache_drift": item.current_load - live,
                "over_capacity": live > item.max_capacity,
            }
        )
    return report


def faculty_stats(db: Session, faculty: Faculty) -> dict:
    """Per-status counts of one reviewer's ledger rows plus their live load."""
    rows = db.execute(
        select(SubmissionAssignment.status, func.count(SubmissionAssignment.id))
        .where(SubmissionAssignment.faculty_id == faculty.id)
        .group_by(SubmissionAssignment.status)
    ).all()
    counts = {status: int(count) for status, count in rows}
    waiting = counts.get(AssignmentStatus.pending, 0) + counts.get(AssignmentStatus.assigned, 0)
    return {
        "faculty_id": faculty.id,
        "pending": waiting,
        "in_progress": counts.get(AssignmentStatus.in_progress, 0),
        "evaluated": counts.get(AssignmentStatus.evaluated, 0),
        "total": sum(counts.values()),
        "live_load": live_loads(db, [faculty.id]).get(faculty.id, 0),
        "max_capacity": faculty.max_capacity,
        "is_available": faculty.is_available,
    }


def faculty_history(db: Session, faculty_id: str, *, limit: int = 50) -> list[dict]:
    """Submissions this reviewer finished, most recently evaluated first."""
    evaluated_at = func.coalesce(SubmissionAssignment.updated_at, SubmissionAssignment.assigned_at)
    rows = db.execute(
        select(Submission, SubmissionAssignment)
        .join(SubmissionAssignment, SubmissionAssignment.submission_id == Submission.id)
        .where(
            SubmissionAssignment.faculty_id == faculty_id,
            SubmissionAssignment.status == AssignmentStatus.evaluated,
        )
        .order_by(evaluated_at.desc(), Submission.id)
        .limit(max(1, limit))
    ).all()
    titles = _course_titles(db, {submission.course_id for submission, _ in rows if submission.course_id})
    history: list[dict] = []
    for submission, assignment in rows:
        item = _submission_summary(submission, titles)
        item["assignment_status"] = assignment.status.value
        item["version"] = assignment.version
        item["evaluated_at"] = assignment.updated_at or assignment.assigned_at
        history.append(item)
    return history
