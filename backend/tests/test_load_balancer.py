from datetime import datetime, timedelta, timezone

from app.services.load_balancer import FacultySlot, WorkItem, order_oldest_first, plan_least_loaded

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def items(*ids: str, weight: int = 1) -> list[WorkItem]:
    return [WorkItem(submission_id=item, submitted_at=T0 + timedelta(minutes=i), weight=weight) for i, item in enumerate(ids)]


def test_even_loads_stay_even():
    faculty = [
        FacultySlot("f1", max_capacity=10, current_load=2),
        FacultySlot("f2", max_capacity=10, current_load=2),
        FacultySlot("f3", max_capacity=10, current_load=2),
    ]
    plan = plan_least_loaded(items("s1", "s2", "s3"), faculty)

    assert plan.assigned_count == 3
    assert plan.skipped_count == 0
    assert plan.final_loads == {"f1": 3, "f2": 3, "f3": 3}
    assert sorted(plan.assignments.values()) == ["f1", "f2", "f3"]


def test_ties_go_to_lowest_faculty_id():
    faculty = [
        FacultySlot("f2", max_capacity=2, current_load=0),
        FacultySlot("f1", max_capacity=2, current_load=0),
    ]
    plan = plan_least_loaded(items("s1", "s2", "s3"), faculty)

    assert plan.assignments == {"s1": "f1", "s2": "f2", "s3": "f1"}
    assert plan.final_loads == {"f1": 2, "f2": 1}


def test_least_loaded_reviewer_is_filled_first():
    faculty = [
        FacultySlot("f1", max_capacity=10, current_load=4),
        FacultySlot("f2", max_capacity=10, current_load=1),
    ]
    plan = plan_least_loaded(items("s1", "s2", "s3", "s4"), faculty)

    assert [plan.assignments[key] for key in ("s1", "s2", "s3", "s4")] == ["f2", "f2", "f2", "f1"]
    assert plan.final_loads == {"f1": 5, "f2": 4}


def test_items_beyond_total_capacity_are_unassignable():
    faculty = [
        FacultySlot("f1", max_capacity=1, current_load=0),
        FacultySlot("f2", max_capacity=2, current_load=1),
    ]
    plan = plan_least_loaded(items("s1", "s2", "s3", "s4"), faculty)

    assert plan.assignments == {"s1": "f1", "s2": "f2"}
    assert plan.unassignable == ["s3", "s4"]
    assert plan.final_loads == {"f1": 1, "f2": 2}


def test_heavy_item_is_skipped_when_it_fits_nowhere():
    faculty = [FacultySlot("f1", max_capacity=3, current_load=1)]
    work = [
        WorkItem("heavy", submitted_at=T0, weight=3),
        WorkItem("light", submitted_at=T0 + timedelta(minutes=1), weight=1),
    ]
    plan = plan_least_loaded(work, faculty)

    assert plan.assignments == {"light": "f1"}
    assert plan.unassignable == ["heavy"]
    assert plan.final_loads == {"f1": 2}


def test_no_faculty_leaves_everything_unassigned():
    plan = plan_least_loaded(items("s1", "s2"), [])

    assert plan.assignments == {}
    assert plan.unassignable == ["s1", "s2"]


def test_oldest_first_ordering_puts_untimed_items_last():
    work = [
        WorkItem("late", submitted_at=T0 + timedelta(hours=1)),
        WorkItem("untimed"),
        WorkItem("early", submitted_at=T0),
    ]

    assert [item.submission_id for item in order_oldest_first(work)] == ["early", "late", "untimed"]
