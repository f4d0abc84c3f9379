from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import CapacityExceededError, CapacityOutOfRangeError, ResourceNotFoundError
from app.models.faculty import Faculty
from app.services.load_balancer import FacultySlot
from app.services.workload import live_load, live_loads, refresh_cached_loads

logger = logging.getLogger(__name__)

MIN_FACULTY_CAPACITY = 1


def lock_faculty(db: Session, faculty_ids: Iterable[str]) -> dict[str, Faculty]:
    """Row-lock the given faculty accounts, always in id order."""
    ids = sorted(set(faculty_ids))
    if not ids:
        return {}
    rows = db.execute(
        select(Faculty).where(Faculty.id.in_(ids)).order_by(Faculty.id).with_for_update()
    ).scalars()
    return {item.id: item for item in rows}


def lock_available_faculty(db: Session, *, include_ids: Iterable[str] = ()) -> list[Faculty]:
    """Row-lock every available faculty account plus `include_ids`, in id order."""
    extra = sorted(set(include_ids))
    condition = Faculty.is_available.is_(True)
    if extra:
        condition = condition | Faculty.id.in_(extra)
    return list(
        db.execute(select(Faculty).where(condition).order_by(Faculty.id).with_for_update()).scalars()
    )


def capacity_snapshot(db: Session, faculty: Iterable[Faculty]) -> list[FacultySlot]:
    """Available, under-capacity faculty with live loads, ascending by load then id."""
    candidates = [item for item in faculty if item.is_available]
    loads = live_loads(db, [item.id for item in candidates])
    slots = [
        FacultySlot(faculty_id=item.id, max_capacity=item.max_capacity, current_load=loads.get(item.id, 0))
        for item in candidates
        if loads.get(item.id, 0) < item.max_capacity
    ]
    slots.sort(key=lambda slot: (slot.current_load, slot.faculty_id))
    return slots


def list_available_with_capacity(db: Session, *, exclude_ids: Iterable[str] = ()) -> list[FacultySlot]:
    excluded = set(exclude_ids)
    faculty = db.execute(select(Faculty).where(Faculty.is_available.is_(True))).scalars()
    return capacity_snapshot(db, [item for item in faculty if item.id not in excluded])


def set_availability(db: Session, faculty_id: str, is_available: bool) -> Faculty:
    faculty = lock_faculty(db, [faculty_id]).get(faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)
    faculty.is_available = is_available
    logger.info("Faculty %s availability set to %s", faculty_id, is_available)
    return faculty


def set_capacity(db: Session, faculty_id: str, max_capacity: int) -> Faculty:
    maximum = get_settings().max_faculty_capacity
    if max_capacity < MIN_FACULTY_CAPACITY or max_capacity > maximum:
        raise CapacityOutOfRangeError(max_capacity, MIN_FACULTY_CAPACITY, maximum)
    faculty = lock_faculty(db, [faculty_id]).get(faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)
    load = live_load(db, faculty_id)
    if load > max_capacity:
        raise CapacityExceededError(
            faculty_id,
            load,
            max_capacity,
            message=f"Faculty {faculty_id} holds {load} active assignments; capacity cannot drop to {max_capacity}",
        )
    faculty.max_capacity = max_capacity
    refresh_cached_loads(db, [faculty_id])
    logger.info("Faculty %s capacity set to %d (live load %d)", faculty_id, max_capacity, load)
    return faculty
