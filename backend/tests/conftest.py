import os
import tempfile
from datetime import datetime, timedelta, timezone

# The app lifespan bootstraps the configured engine, so point it at a throwaway SQLite file before importing.
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+pysqlite:///" + os.path.join(tempfile.gettempdir(), "assignment_engine_tests.db"),
)

import pytest
from fastapi.testclient import TestClient  # fake http client that calls the FastAPI routes without a real server
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.assignment import AssignmentStatus, SubmissionAssignment
from app.models.assignment_log import AssignmentLog
from app.models.course import Course
from app.models.faculty import Faculty
from app.models.submission import Submission
from app.models.user import User, UserRole
from app.services.workload import refresh_cached_loads

BASE_TIME = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class Seeder:
    """Writes fixtures straight into the test database, one short session per call."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def user(self, *, name: str, email: str, role: UserRole) -> dict:
        with self.session_factory() as db:
            user = User(name=name, email=email, role=role, is_active=True)
            db.add(user)
            db.commit()
            token = create_access_token(user.id, extra_claims={"role": role.value})
        return {"Authorization": f"Bearer {token}"}

    def admin(self, email: str = "admin@example.com") -> dict:
        return self.user(name="Admin User", email=email, role=UserRole.admin)

    def faculty(
        self,
        faculty_id: str,
        *,
        max_capacity: int = 10,
        is_available: bool = True,
        login: bool = False,
    ) -> dict | None:
        email = f"{faculty_id}@example.com"
        with self.session_factory() as db:
            db.add(
                Faculty(
                    id=faculty_id,
                    name=f"Reviewer {faculty_id}",
                    email=email,
                    department="CSE",
                    max_capacity=max_capacity,
                    is_available=is_available,
                    current_load=0,
                )
            )
            db.commit()
        if login:
            return self.user(name=f"Reviewer {faculty_id}", email=email, role=UserRole.faculty)
        return None

    def course(self, course_id: str, title: str) -> None:
        with self.session_factory() as db:
            db.add(Course(id=course_id, code=course_id.upper(), title=title))
            db.commit()

    def submissions(self, *submission_ids: str, course_id: str | None = None, status: str = "pending") -> None:
        """Create submissions one minute apart, in argument order."""
        with self.session_factory() as db:
            existing = db.execute(select(Submission.id)).scalars().all()
            for index, submission_id in enumerate(submission_ids, start=len(existing)):
                db.add(
                    Submission(
                        id=submission_id,
                        user_id=f"student-{index}",
                        course_id=course_id,
                        challenge_id=f"challenge-{index % 3}",
                        level=1 + index % 4,
                        status=status,
                        submitted_at=BASE_TIME + timedelta(minutes=index),
                    )
                )
            db.commit()

    def assignment(
        self,
        submission_id: str,
        faculty_id: str,
        *,
        status: AssignmentStatus = AssignmentStatus.pending,
        weight: int = 1,
        refresh: bool = True,
    ) -> None:
        with self.session_factory() as db:
            if db.get(Submission, submission_id) is None:
                db.add(Submission(id=submission_id, user_id="student-x", submitted_at=BASE_TIME))
            db.add(
                SubmissionAssignment(
                    submission_id=submission_id,
                    faculty_id=faculty_id,
                    status=status,
                    version=1,
                    submission_weight=weight,
                )
            )
            if refresh:
                refresh_cached_loads(db, [faculty_id])
            db.commit()

    def get_assignment(self, submission_id: str) -> SubmissionAssignment | None:
        with self.session_factory() as db:
            return db.execute(
                select(SubmissionAssignment).where(SubmissionAssignment.submission_id == submission_id)
            ).scalar_one_or_none()

    def get_faculty(self, faculty_id: str) -> Faculty | None:
        with self.session_factory() as db:
            return db.get(Faculty, faculty_id)

    def logs(self, submission_id: str | None = None) -> list[AssignmentLog]:
        with self.session_factory() as db:
            query = select(AssignmentLog).order_by(AssignmentLog.created_at, AssignmentLog.id)
            if submission_id is not None:
                query = query.where(AssignmentLog.submission_id == submission_id)
            return list(db.execute(query).scalars())


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers(seed):
    return seed.admin()
