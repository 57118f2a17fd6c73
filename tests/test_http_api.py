from __future__ import annotations

from datetime import datetime

from src.course_attendance.course_attendance.core.enums import Role


def test_requires_login(client):
    resp = client.post("/api/student/courses/enroll", json={"courseId": 1})

    assert resp.status_code == 401
    assert resp.get_json()["kind"] == "Unauthenticated"


def test_student_endpoints_reject_other_roles(login):
    client = login(9, Role.TEACHER)
    resp = client.get("/api/student/hours")

    assert resp.status_code == 403
    body = resp.get_json()
    assert body["success"] is False
    assert body["kind"] == "Forbidden"


def test_enroll_and_list(login, make_course):
    make_course(1, capacity=1)
    client = login(5)

    resp = client.post("/api/student/courses/enroll", json={"courseId": 1})
    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["selection"]["courseId"] == 1
    assert body["selection"]["status"] == "enrolled"

    enrolled = client.get("/api/student/courses/enrolled").get_json()["courses"]
    assert [c["id"] for c in enrolled] == [1]

    available = client.get("/api/student/courses/available").get_json()["courses"]
    assert available[0]["seatsLeft"] == 0


def test_enroll_maps_domain_errors(login, make_course, enrollment_service):
    make_course(1, capacity=1)
    enrollment_service.enroll(99, 1)
    client = login(5)

    full = client.post("/api/student/courses/enroll", json={"courseId": 1})
    assert full.status_code == 409
    assert full.get_json()["kind"] == "CapacityExceeded"

    missing = client.post("/api/student/courses/enroll", json={"courseId": 404})
    assert missing.status_code == 404
    assert missing.get_json()["kind"] == "CourseUnavailable"

    invalid = client.post("/api/student/courses/enroll", json={"courseId": "abc"})
    assert invalid.status_code == 400
    assert invalid.get_json()["kind"] == "InvalidInput"


def test_drop_when_not_enrolled(login, make_course):
    make_course(1)
    resp = login(5).post("/api/student/courses/drop", json={"courseId": 1})

    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "NotEnrolled"


def test_check_in_flow(login, make_course, enrollment_service):
    make_course(1, total_hours=3)
    enrollment_service.enroll(5, 1)
    client = login(5)

    first = client.post("/api/student/check-in", json={"courseId": 1, "location": "Lab A"})
    body = first.get_json()
    assert first.status_code == 200
    assert body["checkIn"]["remainingHours"] == 2
    assert body["checkIn"]["location"] == "Lab A"
    assert body["message"] == "Checked in successfully, 2 hours remaining"

    again = client.post("/api/student/check-in", json={"courseId": 1})
    assert again.status_code == 409
    assert again.get_json()["kind"] == "DuplicateCheckIn"

    hours = client.get("/api/student/hours").get_json()["courses"]
    assert hours == [{"id": 1, "name": "Course 1", "code": "C001", "totalHours": 3, "remainingHours": 2}]

    records = client.get("/api/student/attendance?courseId=1").get_json()["records"]
    assert len(records) == 1


def test_check_in_survives_hours_failure(login, make_course, enrollment_service, enrollments_repo):
    make_course(1)
    enrollment_service.enroll(5, 1)
    enrollments_repo.fail_decrement = True

    resp = login(5).post("/api/student/check-in", json={"courseId": 1})
    body = resp.get_json()

    assert resp.status_code == 200
    assert body["message"] == "Checked in successfully"
    assert body["checkIn"]["remainingHours"] is None


def test_check_in_journal_outage_is_503(login, make_course, enrollment_service, attendance_repo):
    make_course(1)
    enrollment_service.enroll(5, 1)
    attendance_repo.fail_insert = True

    resp = login(5).post("/api/student/check-in", json={"courseId": 1})

    assert resp.status_code == 503
    assert resp.get_json()["kind"] == "PersistenceFailure"


def test_attendance_rejects_bad_dates(login):
    client = login(5)

    assert client.get("/api/student/attendance?startDate=03/01/2024").status_code == 400
    resp = client.get("/api/student/attendance?startDate=2024-03-05&endDate=2024-03-01")
    assert resp.status_code == 400


def test_roster_permissions(login, make_course, enrollment_service):
    make_course(1, teacher_id=42)
    enrollment_service.enroll(5, 1)

    own = login(42, Role.TEACHER).get("/api/courses/1/students")
    assert own.status_code == 200
    assert [s["studentId"] for s in own.get_json()["students"]] == [5]

    other = login(43, Role.TEACHER).get("/api/courses/1/students")
    assert other.status_code == 403

    student = login(5, Role.STUDENT).get("/api/courses/1/students")
    assert student.status_code == 403


def test_malformed_session_identity_is_rejected_as_json(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "not-a-number"
        sess["role"] = Role.STUDENT.value

    resp = client.post("/api/student/check-in", json={"courseId": 1})

    assert resp.status_code == 401
    assert resp.get_json()["kind"] == "Unauthenticated"
    assert client.post("/api/student/courses/enroll", json={"courseId": 1}).status_code == 401


def test_attendance_limit_is_echoed_and_bounded(login, make_course, enrollment_service, check_in_service):
    make_course(1)
    enrollment_service.enroll(5, 1)
    for day in (1, 2, 3):
        check_in_service.check_in(5, 1, now=datetime(2024, 3, day, 9, 0))
    client = login(5)

    page = client.get("/api/student/attendance?limit=2").get_json()
    assert page["limit"] == 2
    assert [r["date"] for r in page["records"]] == ["2024-03-03", "2024-03-02"]

    assert client.get("/api/student/attendance").get_json()["limit"] == 200
    assert client.get("/api/student/attendance?limit=0").status_code == 400
    assert client.get("/api/student/attendance?limit=5000").status_code == 400
