from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import (
    AppError,
    AssignmentOwnershipError,
    AssignmentStateError,
    CapacityExceededError,
    FacultyUnavailableError,
    NoCapacityAnywhereError,
    NoOpError,
    ResourceNotFoundError,
    VersionConflictError,
)
from app.models.assignment import AssignmentStatus, SubmissionAssignment
from app.models.assignment_log import AssignmentAction
from app.models.faculty import Faculty
from app.models.submission import Submission
from app.models.user import User
from app.services.assignment_ledger import (
    apply_versioned_update,
    current_owners,
    existing_submission_ids,
    get_assignment,
    insert_assignment,
    lock_assignments,
    lock_waiting_assignments,
    move_values,
    submission_times,
    unassigned_submissions,
    utcnow,
)
from app.services.audit import record_assignment_event
from app.services.faculty_registry import capacity_snapshot, lock_available_faculty, lock_faculty
from app.services.load_balancer import WorkItem, order_oldest_first, plan_least_loaded
from app.services.workload import live_load, refresh_cached_loads

logger = logging.getLogger(__name__)

T = TypeVar("T")

REASON_NOT_FOUND = "Submission not found"
REASON_EVALUATED = "Already evaluated"
REASON_SAME_FACULTY = "Already assigned to this faculty"
REASON_AT_CAPACITY = "Faculty at max capacity"
REASON_VERSION_CONFLICT = "Version conflict"


@dataclass
class AutoAssignResult:
    assigned_count: int = 0
    skipped_count: int = 0
    assignments: dict[str, str] = field(default_factory=dict)
    message: str | None = None


@dataclass
class AssignmentOutcome:
    submission_id: str
    faculty_id: str
    from_faculty_id: str | None
    version: int


@dataclass
class RedistributeResult:
    redistributed_count: int = 0
    skipped_count: int = 0
    moves: dict[str, str] = field(default_factory=dict)
    message: str | None = None


@dataclass
class BulkItemError:
    submission_id: str
    reason: str


@dataclass
class BulkAssignResult:
    assigned_ids: list[str] = field(default_factory=list)
    errors: list[BulkItemError] = field(default_factory=list)

    @property
    def fully_succeeded(self) -> bool:
        return not self.errors


@dataclass
class ReviewState:
    submission_id: str
    faculty_id: str
    status: AssignmentStatus
    version: int
    locked_by: str | None


class AssignmentCoordinator:
    """Runs every assignment mutation as one transaction.

    Lock order is fixed for all operations: faculty rows by id, then assignment rows
    by submission id. Every assignment update is additionally guarded by its version.
    """

    def __init__(self, db: Session, *, max_retries: int | None = None) -> None:
        self.db = db
        if max_retries is None:
            max_retries = get_settings().assignment_transaction_retries
        self.max_retries = max(0, max_retries)

    def _run(self, operation: str, work: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                result = work()
                self.db.commit()
                return result
            except AppError:
                self.db.rollback()
                raise
            except OperationalError:
                self.db.rollback()
                if attempt >= self.max_retries:
                    logger.exception("%s failed after %d attempt(s)", operation, attempt + 1)
                    raise
                attempt += 1
                logger.warning(
                    "%s hit a transient database error; retrying (%d/%d)",
                    operation,
                    attempt,
                    self.max_retries,
                )
            except Exception:
                self.db.rollback()
                logger.exception("%s failed", operation)
                raise

    def _require_target(self, locked: dict[str, Faculty], faculty_id: str) -> Faculty:
        faculty = locked.get(faculty_id)
        if faculty is None:
            raise ResourceNotFoundError("Faculty", faculty_id)
        if not faculty.is_available:
            raise FacultyUnavailableError(faculty_id)
        return faculty

    def _require_spare_capacity(self, faculty: Faculty, weight: int) -> None:
        load = live_load(self.db, faculty.id)
        if load + weight > faculty.max_capacity:
            raise CapacityExceededError(faculty.id, load, faculty.max_capacity)

    def auto_assign(self, *, admin: User | None) -> AutoAssignResult:
        def work() -> AutoAssignResult:
            faculty = lock_available_faculty(self.db)
            submissions = unassigned_submissions(self.db)
            if not submissions:
                return AutoAssignResult(message="No unassigned submissions")
            slots = capacity_snapshot(self.db, faculty)
            if not slots:
                raise NoCapacityAnywhereError()

            items = order_oldest_first(
                WorkItem(submission_id=item.id, submitted_at=item.submitted_at) for item in submissions
            )
            plan = plan_least_loaded(items, slots)
            for submission_id, faculty_id in plan.assignments.items():
                insert_assignment(self.db, submission_id=submission_id, faculty_id=faculty_id)
                record_assignment_event(
                    self.db,
                    submission_id=submission_id,
                    action=AssignmentAction.auto_assign,
                    to_faculty_id=faculty_id,
                    actor=admin,
                    notes="Least-loaded auto-assign",
                )
            refresh_cached_loads(self.db, [slot.faculty_id for slot in slots])
            return AutoAssignResult(
                assigned_count=plan.assigned_count,
                skipped_count=plan.skipped_count,
                assignments=dict(plan.assignments),
            )

        result = self._run("auto_assign", work)
        logger.info("Auto-assign placed %d submission(s), skipped %d", result.assigned_count, result.skipped_count)
        return result

    def manual_assign(
        self,
        *,
        submission_id: str,
        faculty_id: str,
        admin: User | None,
        notes: str | None = None,
    ) -> AssignmentOutcome:
        def work() -> AssignmentOutcome:
            current = get_assignment(self.db, submission_id)
            observed_version = current.version if current is not None else None
            previous_faculty_id = current.faculty_id if current is not None else None

            locked = lock_faculty(self.db, [fid for fid in (faculty_id, previous_faculty_id) if fid])
            faculty = self._require_target(locked, faculty_id)
            if self.db.get(Submission, submission_id) is None:
                raise ResourceNotFoundError("Submission", submission_id)

            assignment = lock_assignments(self.db, [submission_id]).get(submission_id)
            actual_version = assignment.version if assignment is not None else None
            if actual_version != observed_version:
                raise VersionConflictError(submission_id, observed_version or 0, actual_version)
            if assignment is not None:
                if assignment.status == AssignmentStatus.evaluated:
                    raise AssignmentStateError(
                        f"Submission {submission_id} is already evaluated",
                        details={"submission_id": submission_id},
                    )
                if assignment.faculty_id == faculty_id:
                    raise NoOpError(
                        f"Submission {submission_id} is already assigned to faculty {faculty_id}",
                        details={"submission_id": submission_id, "faculty_id": faculty_id},
                    )

            self._require_spare_capacity(faculty, assignment.submission_weight if assignment is not None else 1)

            if assignment is None:
                assignment = insert_assignment(self.db, submission_id=submission_id, faculty_id=faculty_id)
            else:
                written = apply_versioned_update(
                    self.db,
                    assignment,
                    expected_version=actual_version,
                    **move_values(faculty_id, reallocation_count=assignment.reallocation_count),
                )
                if not written:
                    raise VersionConflictError(submission_id, actual_version)

            record_assignment_event(
                self.db,
                submission_id=submission_id,
                action=AssignmentAction.manual_assign,
                from_faculty_id=previous_faculty_id,
                to_faculty_id=faculty_id,
                actor=admin,
                notes=notes or "Manual assignment",
            )
            refresh_cached_loads(self.db, locked.keys())
            return AssignmentOutcome(
                submission_id=submission_id,
                faculty_id=faculty_id,
                from_faculty_id=previous_faculty_id,
                version=assignment.version,
            )

        result = self._run("manual_assign", work)
        logger.info("Submission %s manually assigned to faculty %s", submission_id, faculty_id)
        return result

    def reassign(
        self,
        *,
        submission_id: str,
        new_faculty_id: str,
        admin: User | None,
        expected_version: int | None = None,
        notes: str | None = None,
    ) -> AssignmentOutcome:
        def work() -> AssignmentOutcome:
            current = get_assignment(self.db, submission_id)
            if current is None:
                raise ResourceNotFoundError("Assignment", submission_id)
            from_faculty_id = current.faculty_id
            observed_version = current.version
            if from_faculty_id == new_faculty_id:
                raise NoOpError(
                    f"Submission {submission_id} is already assigned to faculty {new_faculty_id}",
                    details={"submission_id": submission_id, "faculty_id": new_faculty_id},
                )
            if expected_version is not None and expected_version != observed_version:
                raise VersionConflictError(submission_id, expected_version, observed_version)
            if current.status == AssignmentStatus.evaluated:
                raise AssignmentStateError(
                    f"Submission {submission_id} is already evaluated",
                    details={"submission_id": submission_id},
                )

            locked = lock_faculty(self.db, [from_faculty_id, new_faculty_id])
            target = self._require_target(locked, new_faculty_id)

            assignment = lock_assignments(self.db, [submission_id]).get(submission_id)
            if assignment is None or assignment.version != observed_version:
                raise VersionConflictError(
                    submission_id,
                    observed_version,
                    assignment.version if assignment is not None else None,
                )
            self._require_spare_capacity(target, assignment.submission_weight)

            written = apply_versioned_update(
                self.db,
                assignment,
                expected_version=observed_version,
                **move_values(new_faculty_id, reallocation_count=assignment.reallocation_count),
            )
            if not written:
                raise VersionConflictError(submission_id, observed_version)

            record_assignment_event(
                self.db,
                submission_id=submission_id,
                action=AssignmentAction.reassign,
                from_faculty_id=from_faculty_id,
                to_faculty_id=new_faculty_id,
                actor=admin,
                notes=notes or "Reassigned by administrator",
            )
            refresh_cached_loads(self.db, [from_faculty_id, new_faculty_id])
            return AssignmentOutcome(
                submission_id=submission_id,
                faculty_id=new_faculty_id,
                from_faculty_id=from_faculty_id,
                version=assignment.version,
            )

        result = self._run("reassign", work)
        logger.info(
            "Submission %s reassigned from faculty %s to %s",
            submission_id,
            result.from_faculty_id,
            new_faculty_id,
        )
        return result

    def redistribute(self, *, from_faculty_id: str, admin: User | None) -> RedistributeResult:
        def work() -> RedistributeResult:
            faculty = lock_available_faculty(self.db, include_ids=[from_faculty_id])
            if not any(item.id == from_faculty_id for item in faculty):
                raise ResourceNotFoundError("Faculty", from_faculty_id)

            waiting = lock_waiting_assignments(self.db, from_faculty_id)
            if not waiting:
                return RedistributeResult(message="No pending assignments to redistribute")
            slots = capacity_snapshot(self.db, [item for item in faculty if item.id != from_faculty_id])
            if not slots:
                return RedistributeResult(skipped_count=len(waiting), message=NoCapacityAnywhereError().message)

            submitted = submission_times(self.db, [row.submission_id for row in waiting])
            items = [
                WorkItem(
                    submission_id=row.submission_id,
                    submitted_at=submitted.get(row.submission_id),
                    weight=row.submission_weight,
                )
                for row in waiting
            ]
            plan = plan_least_loaded(items, slots)
            rows = {row.submission_id: row for row in waiting}
            result = RedistributeResult(skipped_count=plan.skipped_count)
            for submission_id, target_id in plan.assignments.items():
                row = rows[submission_id]
                written = apply_versioned_update(
                    self.db,
                    row,
                    expected_version=row.version,
                    **move_values(target_id, reallocation_count=row.reallocation_count),
                )
                if not written:
                    logger.warning("Version moved on submission %s during redistribute; left in place", submission_id)
                    result.skipped_count += 1
                    continue
                record_assignment_event(
                    self.db,
                    submission_id=submission_id,
                    action=AssignmentAction.redistribute,
                    from_faculty_id=from_faculty_id,
                    to_faculty_id=target_id,
                    actor=admin,
                    notes=f"Redistributed from faculty {from_faculty_id}",
                )
                result.moves[submission_id] = target_id
                result.redistributed_count += 1

            refresh_cached_loads(self.db, [from_faculty_id, *(slot.faculty_id for slot in slots)])
            return result

        result = self._run("redistribute", work)
        logger.info(
            "Redistributed %d submission(s) away from faculty %s, %d left in place",
            result.redistributed_count,
            from_faculty_id,
            result.skipped_count,
        )
        return result

    def bulk_assign(
        self,
        *,
        submission_ids: Sequence[str],
        faculty_id: str,
        admin: User | None,
    ) -> BulkAssignResult:
        ordered_ids = list(dict.fromkeys(item for item in submission_ids if item))

        def work() -> BulkAssignResult:
            # Previous owners are locked together with the target before any assignment row.
            owners = current_owners(self.db, ordered_ids)
            locked = lock_faculty(self.db, [faculty_id, *owners.values()])
            faculty = self._require_target(locked, faculty_id)
            load = live_load(self.db, faculty_id)

            existing = lock_assignments(self.db, ordered_ids)
            versions = {submission_id: row.version for submission_id, row in existing.items()}
            known = existing_submission_ids(self.db, ordered_ids)

            result = BulkAssignResult()
            touched = {faculty_id}
            for submission_id in ordered_ids:
                if submission_id not in known:
                    result.errors.append(BulkItemError(submission_id, REASON_NOT_FOUND))
                    continue
                row: SubmissionAssignment | None = existing.get(submission_id)
                if row is not None and row.status == AssignmentStatus.evaluated:
                    result.errors.append(BulkItemError(submission_id, REASON_EVALUATED))
                    continue
                if row is not None and row.faculty_id == faculty_id:
                    result.errors.append(BulkItemError(submission_id, REASON_SAME_FACULTY))
                    continue
                if row is not None and row.faculty_id not in locked:
                    # Moved to an unlocked reviewer between the owner read and the row lock.
                    result.errors.append(BulkItemError(submission_id, REASON_VERSION_CONFLICT))
                    continue
                weight = row.submission_weight if row is not None else 1
                if load + weight > faculty.max_capacity:
                    result.errors.append(BulkItemError(submission_id, REASON_AT_CAPACITY))
                    continue

                previous_faculty_id = None
                if row is None:
                    insert_assignment(self.db, submission_id=submission_id, faculty_id=faculty_id)
                else:
                    previous_faculty_id = row.faculty_id
                    written = apply_versioned_update(
                        self.db,
                        row,
                        expected_version=versions[submission_id],
                        **move_values(faculty_id, reallocation_count=row.reallocation_count),
                    )
                    if not written:
                        result.errors.append(BulkItemError(submission_id, REASON_VERSION_CONFLICT))
                        continue
                    touched.add(previous_faculty_id)

                load += weight
                record_assignment_event(
                    self.db,
                    submission_id=submission_id,
                    action=AssignmentAction.bulk_assign,
                    from_faculty_id=previous_faculty_id,
                    to_faculty_id=faculty_id,
                    actor=admin,
                    notes="Bulk assignment",
                )
                result.assigned_ids.append(submission_id)

            refresh_cached_loads(self.db, touched)
            return result

        result = self._run("bulk_assign", work)
        logger.info(
            "Bulk assign to faculty %s: %d assigned, %d rejected",
            faculty_id,
            len(result.assigned_ids),
            len(result.errors),
        )
        return result

    def start_review(self, *, submission_id: str, faculty: Faculty, actor: User | None) -> ReviewState:
        def work() -> ReviewState:
            assignment = lock_assignments(self.db, [submission_id]).get(submission_id)
            if assignment is None:
                raise ResourceNotFoundError("Assignment", submission_id)
            if assignment.faculty_id != faculty.id:
                raise AssignmentOwnershipError(submission_id)
            if assignment.status == AssignmentStatus.in_progress:
                raise NoOpError(
                    f"Review of submission {submission_id} is already in progress",
                    details={"submission_id": submission_id},
                )
            if assignment.status == AssignmentStatus.evaluated:
                raise AssignmentStateError(
                    f"Submission {submission_id} is already evaluated",
                    details={"submission_id": submission_id},
                )
            version = assignment.version
            written = apply_versioned_update(
                self.db,
                assignment,
                expected_version=version,
                status=AssignmentStatus.in_progress,
                locked_by=faculty.id,
                locked_at=utcnow(),
            )
            if not written:
                raise VersionConflictError(submission_id, version)
            record_assignment_event(
                self.db,
                submission_id=submission_id,
                action=AssignmentAction.start_review,
                to_faculty_id=faculty.id,
                actor=actor,
                notes="Review started",
            )
            return self._review_state(assignment)

        return self._run("start_review", work)

    def complete_review(
        self,
        *,
        submission_id: str,
        faculty: Faculty,
        actor: User | None,
        notes: str | None = None,
    ) -> ReviewState:
        def work() -> ReviewState:
            lock_faculty(self.db, [faculty.id])
            assignment = lock_assignments(self.db, [submission_id]).get(submission_id)
            if assignment is None:
                raise ResourceNotFoundError("Assignment", submission_id)
            if assignment.faculty_id != faculty.id:
                raise AssignmentOwnershipError(submission_id)
            if assignment.status == AssignmentStatus.evaluated:
                raise AssignmentStateError(
                    f"Submission {submission_id} is already evaluated",
                    details={"submission_id": submission_id},
                )
            version = assignment.version
            written = apply_versioned_update(
                self.db,
                assignment,
                expected_version=version,
                status=AssignmentStatus.evaluated,
                locked_by=None,
                locked_at=None,
            )
            if not written:
                raise VersionConflictError(submission_id, version)
            record_assignment_event(
                self.db,
                submission_id=submission_id,
                action=AssignmentAction.evaluate,
                to_faculty_id=faculty.id,
                actor=actor,
                notes=notes or "Evaluation completed",
            )
            refresh_cached_loads(self.db, [faculty.id])
            return self._review_state(assignment)

        return self._run("complete_review", work)

    @staticmethod
    def _review_state(assignment: SubmissionAssignment) -> ReviewState:
        return ReviewState(
            submission_id=assignment.submission_id,
            faculty_id=assignment.faculty_id,
            status=assignment.status,
            version=assignment.version,
            locked_by=assignment.locked_by,
        )
