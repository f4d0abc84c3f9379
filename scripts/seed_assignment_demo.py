"""Seed demo accounts, faculty profiles and queued submissions for the assignment engine.

Run:
  PYTHONPATH=backend python scripts/seed_assignment_demo.py
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy import select

from app.core.config import get_settings
from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.course import Course
from app.models.faculty import Faculty
from app.models.submission import Submission
from app.models.user import User, UserRole

SUBMISSION_COUNT = int(os.getenv("DEMO_SUBMISSION_COUNT", "12"))
FACULTY_CAPACITY = int(os.getenv("DEMO_FACULTY_CAPACITY", str(get_settings().default_faculty_capacity)))


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_ACCOUNTS = {
    "admin": {
        "name": "Demo Admin",
        "email": _env_email("DEMO_ADMIN_EMAIL", "admin.demo@example.com"),
        "role": UserRole.admin,
    },
    "faculty_1": {
        "name": "Demo Reviewer One",
        "email": _env_email("DEMO_FACULTY1_EMAIL", "reviewer1.demo@example.com"),
        "role": UserRole.faculty,
    },
    "faculty_2": {
        "name": "Demo Reviewer Two",
        "email": _env_email("DEMO_FACULTY2_EMAIL", "reviewer2.demo@example.com"),
        "role": UserRole.faculty,
    },
}


def _upsert_user(*, name: str, email: str, role: UserRole) -> User:
    with SessionLocal() as session:
        existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if existing is None:
            existing = User(name=name, email=email, role=role, is_active=True)
            session.add(existing)
        else:
            existing.name = name
            existing.role = role
            existing.is_active = True
        session.commit()
        session.refresh(existing)
        return existing


def _upsert_faculty_profile(*, name: str, email: str) -> Faculty:
    with SessionLocal() as session:
        existing = session.execute(select(Faculty).where(Faculty.email == email)).scalar_one_or_none()
        if existing is None:
            existing = Faculty(
                name=name,
                email=email,
                department="Assessment",
                is_available=True,
                max_capacity=FACULTY_CAPACITY,
                current_load=0,
            )
            session.add(existing)
        else:
            existing.name = name
            existing.is_available = True
        session.commit()
        session.refresh(existing)
        return existing


def _seed_submissions(candidate_id: str) -> int:
    with SessionLocal() as session:
        course = session.execute(select(Course).where(Course.code == "WEB-DEMO")).scalar_one_or_none()
        if course is None:
            course = Course(code="WEB-DEMO", title="Demo Web Fundamentals")
            session.add(course)
            session.flush()
        start = datetime.now(timezone.utc) - timedelta(hours=SUBMISSION_COUNT)
        created = 0
        for index in range(SUBMISSION_COUNT):
            submission_id = f"demo-submission-{index + 1:03d}"
            if session.get(Submission, submission_id) is not None:
                continue
            session.add(
                Submission(
                    id=submission_id,
                    user_id=candidate_id,
                    course_id=course.id,
                    challenge_id=f"demo-challenge-{index % 3 + 1}",
                    level=index % 3 + 1,
                    status="pending",
                    submitted_at=start + timedelta(hours=index),
                )
            )
            created += 1
        session.commit()
        return created


def _print_accounts(items: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready (bearer tokens valid for the configured expiry):")
    for label, user in items:
        print(f"  - {label}: {user.email} | role={user.role.value}")
        print(f"    token: {create_access_token(user.id)}")


def main() -> None:
    ensure_runtime_schema_compatibility()
    created_users: dict[str, User] = {}
    for key, item in DEMO_ACCOUNTS.items():
        created_users[key] = _upsert_user(name=item["name"], email=item["email"], role=item["role"])

    for key in ("faculty_1", "faculty_2"):
        _upsert_faculty_profile(name=created_users[key].name, email=created_users[key].email)

    created = _seed_submissions(candidate_id=created_users["admin"].id)
    print(f"Queued {created} new submission(s) for assignment")
    _print_accounts(created_users.items())


if __name__ == "__main__":
    main()
