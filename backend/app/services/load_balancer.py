"""Greedy least-loaded planner for routing submissions to reviewers.

Pure functions over snapshots; the caller owns locking and persistence. Each
item goes to the reviewer with the smallest running load that can still fit it,
ties broken by the lowest faculty id so plans are reproducible. Routing items
one at a time this way keeps the maximum load as low as possible for every
prefix of the input, which is the fairness goal here. It is not a global
optimum when weights vary.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class FacultySlot:
    faculty_id: str
    max_capacity: int
    current_load: int


@dataclass(frozen=True)
class WorkItem:
    submission_id: str
    submitted_at: datetime | None = None
    weight: int = 1


@dataclass
class BalancePlan:
    # Insertion order follows the input order of the work items.
    assignments: dict[str, str] = field(default_factory=dict)
    unassignable: list[str] = field(default_factory=list)
    final_loads: dict[str, int] = field(default_factory=dict)

    @property
    def assigned_count(self) -> int:
        return len(self.assignments)

    @property
    def skipped_count(self) -> int:
        return len(self.unassignable)


def order_oldest_first(items: Iterable[WorkItem]) -> list[WorkItem]:
    # Stable sort: items without a timestamp keep their relative order at the end.
    return sorted(
        items,
        key=lambda item: (item.submitted_at is None, item.submitted_at or datetime.min),
    )


def _pick_least_loaded(loads: dict[str, int], capacities: dict[str, int], weight: int) -> str | None:
    best: tuple[int, str] | None = None
    for faculty_id, load in loads.items():
        if load + weight > capacities[faculty_id]:
            continue
        candidate = (load, faculty_id)
        if best is None or candidate < best:
            best = candidate
    return best[1] if best is not None else None


def plan_least_loaded(items: Sequence[WorkItem], faculty: Sequence[FacultySlot]) -> BalancePlan:
    """Map each item (already ordered oldest-first) to a reviewer without exceeding capacity."""
    loads = {slot.faculty_id: slot.current_load for slot in faculty}
    capacities = {slot.faculty_id: slot.max_capacity for slot in faculty}
    plan = BalancePlan()

    for index, item in enumerate(items):
        if all(loads[faculty_id] >= capacities[faculty_id] for faculty_id in loads):
            plan.unassignable.extend(rest.submission_id for rest in items[index:])
            break
        weight = max(1, item.weight)
        chosen = _pick_least_loaded(loads, capacities, weight)
        if chosen is None:
            plan.unassignable.append(item.submission_id)
            continue
        plan.assignments[item.submission_id] = chosen
        loads[chosen] += weight

    plan.final_loads = loads
    return plan
