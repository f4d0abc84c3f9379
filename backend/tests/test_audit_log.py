from datetime import datetime, timedelta, timezone


def _prepare_history(client, seed, admin_headers):
    seed.faculty("f1")
    seed.faculty("f2")
    seed.faculty("f3")
    seed.submissions("s1", "s2", "s3")
    client.post(
        "/api/assignments/bulk",
        headers=admin_headers,
        json={"submissionIds": ["s1", "s2"], "facultyId": "f1"},
    )
    client.post("/api/assignments/manual", headers=admin_headers, json={"submissionId": "s3", "facultyId": "f3"})
    client.post("/api/assignments/reassign", headers=admin_headers, json={"submissionId": "s1", "newFacultyId": "f2"})


def test_logs_are_newest_first_with_camel_case_fields(client, seed, admin_headers):
    _prepare_history(client, seed, admin_headers)

    response = client.get("/api/assignments/logs", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["pagination"] == {"page": 1, "limit": 20, "total": 4, "totalPages": 1}

    newest = body["data"][0]
    assert newest["actionType"] == "reassign"
    assert newest["submissionId"] == "s1"
    assert newest["fromFacultyId"] == "f1"
    assert newest["toFacultyId"] == "f2"
    assert newest["actorRole"] == "admin"
    assert "createdAt" in newest


def test_faculty_filter_matches_either_side(client, seed, admin_headers):
    _prepare_history(client, seed, admin_headers)

    response = client.get("/api/assignments/logs", headers=admin_headers, params={"facultyId": "f1"})
    rows = response.json()["data"]
    assert len(rows) == 3
    assert {row["actionType"] for row in rows} == {"bulk_assign", "reassign"}

    response = client.get("/api/assignments/logs", headers=admin_headers, params={"facultyId": "f2"})
    assert [row["actionType"] for row in response.json()["data"]] == ["reassign"]


def test_action_and_submission_filters(client, seed, admin_headers):
    _prepare_history(client, seed, admin_headers)

    by_action = client.get("/api/assignments/logs", headers=admin_headers, params={"actionType": "manual_assign"})
    assert [row["submissionId"] for row in by_action.json()["data"]] == ["s3"]

    by_submission = client.get("/api/assignments/logs", headers=admin_headers, params={"submissionId": "s1"})
    assert [row["actionType"] for row in by_submission.json()["data"]] == ["reassign", "bulk_assign"]

    invalid = client.get("/api/assignments/logs", headers=admin_headers, params={"actionType": "delete"})
    assert invalid.status_code == 422


def test_date_range_is_inclusive_of_end_day(client, seed, admin_headers):
    _prepare_history(client, seed, admin_headers)
    today = datetime.now(timezone.utc).date()

    same_day = client.get(
        "/api/assignments/logs",
        headers=admin_headers,
        params={"fromDate": today.isoformat(), "toDate": today.isoformat()},
    )
    assert same_day.json()["pagination"]["total"] == 4

    future = client.get(
        "/api/assignments/logs",
        headers=admin_headers,
        params={"fromDate": (today + timedelta(days=1)).isoformat()},
    )
    assert future.json()["pagination"]["total"] == 0

    past = client.get(
        "/api/assignments/logs",
        headers=admin_headers,
        params={"toDate": (today - timedelta(days=1)).isoformat()},
    )
    assert past.json()["data"] == []


def test_pagination(client, seed, admin_headers):
    _prepare_history(client, seed, admin_headers)

    response = client.get("/api/assignments/logs", headers=admin_headers, params={"page": 2, "limit": 3})
    body = response.json()
    assert body["pagination"] == {"page": 2, "limit": 3, "total": 4, "totalPages": 2}
    assert len(body["data"]) == 1

    capped = client.get("/api/assignments/logs", headers=admin_headers, params={"limit": 5000})
    assert capped.json()["pagination"]["limit"] == 100


def test_failed_operations_leave_no_log(client, seed, admin_headers):
    seed.faculty("f1", max_capacity=1)
    seed.assignment("s0", "f1")
    seed.submissions("s1")

    client.post("/api/assignments/manual", headers=admin_headers, json={"submissionId": "s1", "facultyId": "f1"})

    response = client.get("/api/assignments/logs", headers=admin_headers)
    assert response.json()["pagination"]["total"] == 0
