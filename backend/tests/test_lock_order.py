from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from app.models.faculty import Faculty
from app.services import assignment_coordinator
from app.services.assignment_coordinator import AssignmentCoordinator


class StatementLog:
    """Records ORM statements issued by one session, compiled for PostgreSQL so `FOR UPDATE` is visible."""

    def __init__(self, db):
        self.entries: list[tuple[str, str, list[str]]] = []
        event.listen(db, "do_orm_execute", self._record)

    def _record(self, state):
        compiled = state.statement.compile(dialect=postgresql.dialect())
        sql = " ".join(str(compiled).split())
        params = compiled.params
        if sql.startswith("UPDATE faculty "):
            ids = [value for key, value in params.items() if key.startswith("id") and isinstance(value, str)]
            self.entries.append(("faculty_update", sql, ids))
        elif sql.endswith("FOR UPDATE") and " FROM faculty " in sql:
            ids = [item for value in params.values() if isinstance(value, list) for item in value]
            self.entries.append(("faculty_lock", sql, ids))
        elif sql.endswith("FOR UPDATE") and " FROM submission_assignments " in sql:
            self.entries.append(("assignment_lock", sql, []))

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.entries]


def assert_faculty_locked_before_assignments(log: StatementLog, *, available: set[str] = frozenset()) -> None:
    kinds = log.kinds()
    assert "assignment_lock" in kinds
    first_assignment_lock = kinds.index("assignment_lock")

    locked: set[str] = set()
    for index, (kind, sql, ids) in enumerate(log.entries):
        if kind == "faculty_lock":
            assert index < first_assignment_lock, sql
            assert "ORDER BY faculty.id" in sql
            assert ids == sorted(ids)
            locked.update(ids)
            if "is_available IS true" in sql:
                locked.update(available)
        elif kind == "faculty_update":
            assert set(ids) <= locked, f"faculty {ids} written without a row lock"
    assert locked


def test_bulk_assign_locks_previous_owners_before_assignment_rows(seed, session_factory):
    for faculty_id in ("f1", "f2", "f3"):
        seed.faculty(faculty_id)
    seed.submissions("s3")
    seed.assignment("s1", "f2")
    seed.assignment("s2", "f3")

    with session_factory() as db:
        log = StatementLog(db)
        result = AssignmentCoordinator(db).bulk_assign(submission_ids=["s1", "s2", "s3"], faculty_id="f1", admin=None)

    assert result.assigned_ids == ["s1", "s2", "s3"]
    assert_faculty_locked_before_assignments(log)
    (first_lock,) = [ids for kind, _, ids in log.entries if kind == "faculty_lock"]
    assert first_lock == ["f1", "f2", "f3"]
    assert seed.get_faculty("f2").current_load == 0
    assert seed.get_faculty("f3").current_load == 0
    assert seed.get_faculty("f1").current_load == 3


def test_bulk_assign_rejects_rows_whose_owner_moved_before_the_lock(seed, session_factory, monkeypatch):
    seed.faculty("f1")
    seed.faculty("f2")
    seed.assignment("s1", "f2")
    # Stale owner read: s1 looks unassigned, so f2 never gets locked.
    monkeypatch.setattr(assignment_coordinator, "current_owners", lambda db, submission_ids: {})

    with session_factory() as db:
        result = AssignmentCoordinator(db).bulk_assign(submission_ids=["s1"], faculty_id="f1", admin=None)

    assert result.assigned_ids == []
    assert [(item.submission_id, item.reason) for item in result.errors] == [("s1", "Version conflict")]
    assignment = seed.get_assignment("s1")
    assert assignment.faculty_id == "f2"
    assert assignment.version == 1


def test_manual_assign_and_reassign_lock_both_reviewers_first(seed, session_factory):
    for faculty_id in ("f1", "f2", "f3"):
        seed.faculty(faculty_id)
    seed.assignment("s1", "f3")
    seed.assignment("s2", "f1")

    with session_factory() as db:
        log = StatementLog(db)
        AssignmentCoordinator(db).manual_assign(submission_id="s1", faculty_id="f2", admin=None)
    assert_faculty_locked_before_assignments(log)
    assert [ids for kind, _, ids in log.entries if kind == "faculty_lock"] == [["f2", "f3"]]

    with session_factory() as db:
        log = StatementLog(db)
        AssignmentCoordinator(db).reassign(submission_id="s2", new_faculty_id="f3", admin=None, expected_version=1)
    assert_faculty_locked_before_assignments(log)
    assert [ids for kind, _, ids in log.entries if kind == "faculty_lock"] == [["f1", "f3"]]


def test_redistribute_locks_every_candidate_before_waiting_rows(seed, session_factory):
    for faculty_id in ("f1", "f2", "f3"):
        seed.faculty(faculty_id)
    seed.faculty("f4", is_available=False)
    seed.submissions("s1", "s2")
    seed.assignment("s1", "f4")
    seed.assignment("s2", "f4")

    with session_factory() as db:
        log = StatementLog(db)
        result = AssignmentCoordinator(db).redistribute(from_faculty_id="f4", admin=None)

    assert result.redistributed_count == 2
    assert_faculty_locked_before_assignments(log, available={"f1", "f2", "f3"})
    assert seed.get_faculty("f4").current_load == 0


def test_complete_review_locks_reviewer_before_assignment(seed, session_factory):
    seed.faculty("f1")
    seed.assignment("s1", "f1")

    with session_factory() as db:
        log = StatementLog(db)
        coordinator = AssignmentCoordinator(db)
        faculty = db.get(Faculty, "f1")
        coordinator.complete_review(submission_id="s1", faculty=faculty, actor=None)

    assert_faculty_locked_before_assignments(log)
    assert seed.get_faculty("f1").current_load == 0
