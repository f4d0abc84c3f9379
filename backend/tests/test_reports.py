from app.models.assignment import AssignmentStatus


def test_faculty_load_report(client, seed, admin_headers):
    seed.course("c1", "Data Structures")
    seed.faculty("f1", max_capacity=4)
    seed.faculty("f2")
    seed.submissions("s1", "s2", "s3", course_id="c1")
    seed.assignment("s1", "f1")
    seed.assignment("s2", "f1", status=AssignmentStatus.in_progress)
    seed.assignment("s3", "f1", status=AssignmentStatus.evaluated)

    response = client.get("/api/faculty/load", headers=admin_headers)
    assert response.status_code == 200
    rows = {row["id"]: row for row in response.json()}

    f1 = rows["f1"]
    assert f1["pending"] == 2
    assert f1["completed"] == 1
    assert f1["total"] == 3
    assert f1["current_load"] == 2
    assert f1["live_load"] == 2
    assert f1["max_capacity"] == 4
    assert f1["is_available"] is True
    assert f1["courses"] == ["Data Structures"]

    f2 = rows["f2"]
    assert (f2["pending"], f2["completed"], f2["total"], f2["current_load"]) == (0, 0, 0, 0)
    assert f2["courses"] == []


def test_faculty_load_report_by_course(client, seed, admin_headers):
    seed.course("c1", "Data Structures")
    seed.course("c2", "Compilers")
    seed.faculty("f1")
    seed.submissions("s1", course_id="c1")
    seed.submissions("s2", course_id="c2")
    seed.assignment("s1", "f1")
    seed.assignment("s2", "f1")

    response = client.get("/api/faculty/load", headers=admin_headers, params={"courseId": "c2"})
    (row,) = response.json()
    assert row["total"] == 1
    assert row["courses"] == ["Compilers"]
    # Live load is never course-scoped.
    assert row["live_load"] == 2


def test_unassigned_queue_is_oldest_first(client, seed, admin_headers):
    seed.course("c1", "Data Structures")
    seed.faculty("f1")
    seed.submissions("s1", "s2", "s3", course_id="c1")
    seed.submissions("other")
    seed.assignment("s2", "f1")

    response = client.get("/api/assignments/unassigned", headers=admin_headers)
    assert response.status_code == 200
    assert [row["id"] for row in response.json()] == ["s1", "s3", "other"]
    first = response.json()[0]
    assert first["courseTitle"] == "Data Structures"
    assert first["userId"] == "student-0"

    by_course = client.get("/api/assignments/unassigned", headers=admin_headers, params={"courseId": "c1", "limit": 1})
    assert [row["id"] for row in by_course.json()] == ["s1"]


def test_submissions_with_assignments(client, seed, admin_headers):
    seed.faculty("f1")
    seed.faculty("f2")
    seed.submissions("s1", "s2", "s3", "s4")
    seed.assignment("s1", "f1")
    seed.assignment("s2", "f2", status=AssignmentStatus.in_progress)
    seed.assignment("s3", "f1", status=AssignmentStatus.evaluated)

    everything = client.get("/api/assignments/submissions", headers=admin_headers).json()
    assert everything["pagination"]["total"] == 4
    # Newest first.
    assert [row["id"] for row in everything["data"]] == ["s4", "s3", "s2", "s1"]
    assert everything["data"][0]["assignment"] is None
    assigned = everything["data"][2]["assignment"]
    assert assigned["facultyId"] == "f2"
    assert assigned["facultyName"] == "Reviewer f2"
    assert assigned["status"] == "in_progress"
    assert assigned["version"] == 1

    unassigned = client.get("/api/assignments/submissions", headers=admin_headers, params={"status": "unassigned"})
    assert [row["id"] for row in unassigned.json()["data"]] == ["s4"]

    pending = client.get("/api/assignments/submissions", headers=admin_headers, params={"status": "pending"})
    assert [row["id"] for row in pending.json()["data"]] == ["s1"]

    by_faculty = client.get("/api/assignments/submissions", headers=admin_headers, params={"facultyId": "f1"})
    assert [row["id"] for row in by_faculty.json()["data"]] == ["s3", "s1"]

    paged = client.get("/api/assignments/submissions", headers=admin_headers, params={"page": 2, "limit": 3}).json()
    assert paged["pagination"] == {"page": 2, "limit": 3, "total": 4, "totalPages": 2}
    assert [row["id"] for row in paged["data"]] == ["s1"]

    invalid = client.get("/api/assignments/submissions", headers=admin_headers, params={"status": "archived"})
    assert invalid.status_code == 422


def test_consistency_report_flags_cache_drift(client, seed, admin_headers):
    seed.faculty("f1", max_capacity=1)
    seed.faculty("f2")
    seed.assignment("s1", "f1")
    seed.assignment("s2", "f1", refresh=False)
    seed.assignment("s3", "f2")

    response = client.get("/api/assignments/consistency", headers=admin_headers)
    assert response.status_code == 200
    rows = {row["facultyId"]: row for row in response.json()}
    assert rows["f1"] == {
        "facultyId": "f1",
        "name": "Reviewer f1",
        "cachedLoad": 1,
        "liveLoad": 2,
        "maxCapacity": 1,
        "cacheDrift": -1,
        "overCapacity": True,
    }
    assert rows["f2"]["cacheDrift"] == 0
    assert rows["f2"]["overCapacity"] is False


def test_any_mutation_heals_cached_load(client, seed, admin_headers):
    seed.faculty("f1")
    seed.faculty("f2")
    seed.assignment("s1", "f1", refresh=False)
    seed.assignment("s2", "f1", refresh=False)

    client.post("/api/assignments/reassign", headers=admin_headers, json={"submissionId": "s1", "newFacultyId": "f2"})

    assert seed.get_faculty("f1").current_load == 1
    assert seed.get_faculty("f2").current_load == 1
