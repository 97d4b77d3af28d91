from datetime import datetime, timedelta

import jwt
import pytest

import auth
import config
from conftest import insert_message, insert_student
from schemas import AdminIdentity


def test_login_requires_both_fields(client):
    resp = client.post("/api/admin/login", json={"username": "admin"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Please provide username and password"


def test_login_rejects_wrong_password(client):
    resp = client.post("/api/admin/login", json={"username": config.ADMIN_USERNAME, "password": "nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Invalid credentials"}


def test_login_issues_seven_day_token(client):
    resp = client.post(
        "/api/admin/login",
        json={"username": config.ADMIN_USERNAME, "password": config.ADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["admin"] == {"username": config.ADMIN_USERNAME, "email": config.ADMIN_EMAIL, "role": "admin"}
    payload = jwt.decode(body["token"], config.JWT_SECRET, algorithms=["HS256"])
    assert payload["role"] == "admin"
    expires_in = datetime.utcfromtimestamp(payload["exp"]) - datetime.utcnow()
    assert timedelta(days=6, hours=23) < expires_in <= timedelta(days=7)


def test_directory_authenticate():
    directory = auth.AdminDirectory()
    directory.add(AdminIdentity(username="registrar", email="registrar@example.com"), "s3cret")
    assert directory.authenticate("registrar", "s3cret").email == "registrar@example.com"
    assert directory.authenticate("registrar", "wrong") is None
    assert directory.authenticate("nobody", "s3cret") is None


@pytest.mark.parametrize(
    "path",
    ["/api/admin/verify", "/api/admin/dashboard/stats", "/api/admin/students", "/api/admin/messages"],
)
def test_admin_routes_need_token(client, path):
    resp = client.get(path)
    assert resp.status_code == 401
    assert resp.json()["message"] == "No authentication token, access denied"


def test_admin_rejects_malformed_token(client):
    resp = client.get("/api/admin/verify", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token is invalid or expired"


def test_admin_rejects_expired_token(client):
    token = jwt.encode(
        {"username": "admin", "email": "a@example.com", "role": "admin", "exp": datetime.utcnow() - timedelta(minutes=1)},
        config.JWT_SECRET,
        algorithm="HS256",
    )
    resp = client.get("/api/admin/verify", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token is invalid or expired"


def test_admin_rejects_foreign_signature(client):
    token = jwt.encode({"username": "admin", "email": "a@example.com", "role": "admin"}, "other-secret", algorithm="HS256")
    resp = client.get("/api/admin/verify", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_verify(client, admin_headers):
    resp = client.get("/api/admin/verify", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["admin"]["username"] == config.ADMIN_USERNAME


def test_dashboard_stats(client, mongo, admin_headers):
    now = datetime.utcnow()
    insert_student(mongo, 1, createdAt=now - timedelta(days=1))
    insert_student(mongo, 2, status="Approved", createdAt=now - timedelta(days=3))
    insert_student(mongo, 3, status="Rejected", createdAt=now - timedelta(days=10))
    insert_student(mongo, 4, status="Approved", createdAt=now - timedelta(days=30))
    insert_message(mongo, 1)
    insert_message(mongo, 2, status="In Progress")
    insert_message(mongo, 3, status="Resolved")
    insert_message(mongo, 4, status="Resolved")

    stats = client.get("/api/admin/dashboard/stats", headers=admin_headers).json()["stats"]
    assert stats["students"] == {"total": 4, "pending": 1, "approved": 2, "rejected": 1, "recent": 2}
    assert stats["messages"] == {"total": 4, "new": 1, "inProgress": 1, "resolved": 2}


def test_students_pagination(client, mongo, admin_headers):
    for i in range(1, 26):
        insert_student(mongo, i)
    body = client.get("/api/admin/students?page=2&limit=10", headers=admin_headers).json()
    assert body["totalPages"] == 3
    assert body["totalStudents"] == 25
    assert body["currentPage"] == 2
    # newest first: page 2 holds the 11th to 20th newest
    assert [s["studentName"] for s in body["students"]] == [f"Student {i}" for i in range(15, 5, -1)]


def test_students_search_matches_any_field(client, mongo, admin_headers):
    insert_student(mongo, 1, studentName="Foo Singh")
    insert_student(mongo, 2, email="xFOOx@example.com")
    insert_student(mongo, 3, registrationNo="CCMFOO00001")
    insert_student(mongo, 4, phone="+91-foo-1234")
    insert_student(mongo, 5)

    body = client.get("/api/admin/students?search=foo", headers=admin_headers).json()
    assert body["totalStudents"] == 4
    assert "Student 5" not in {s["studentName"] for s in body["students"]}


def test_students_search_is_literal(client, mongo, admin_headers):
    insert_student(mongo, 1, studentName="A. (Temp) Kumar")
    insert_student(mongo, 2)
    resp = client.get("/api/admin/students", params={"search": "(temp)"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["totalStudents"] == 1


def test_students_filters(client, mongo, admin_headers):
    insert_student(mongo, 1, course="BCA", status="Approved")
    insert_student(mongo, 2, course="BCA")
    insert_student(mongo, 3, course="BBA", status="Approved")

    body = client.get("/api/admin/students?status=Approved&course=BCA", headers=admin_headers).json()
    assert [s["studentName"] for s in body["students"]] == ["Student 1"]

    body = client.get("/api/admin/students?status=all&course=all", headers=admin_headers).json()
    assert body["totalStudents"] == 3


def test_students_rejects_bad_page(client, admin_headers):
    resp = client.get("/api/admin/students?page=0", headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "page"


def test_admin_get_student(client, mongo, admin_headers):
    student_id = insert_student(mongo, 1)
    resp = client.get(f"/api/admin/students/{student_id}", headers=admin_headers)
    assert resp.json()["student"]["id"] == student_id
    missing = client.get("/api/admin/students/64b7f0c2a1b2c3d4e5f60718", headers=admin_headers)
    assert missing.status_code == 404


def test_admin_student_status(client, mongo, admin_headers):
    student_id = insert_student(mongo, 1)
    resp = client.patch(f"/api/admin/students/{student_id}/status", json={"status": "Rejected"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["student"]["status"] == "Rejected"

    # no transition guard
    resp = client.patch(f"/api/admin/students/{student_id}/status", json={"status": "Pending"}, headers=admin_headers)
    assert resp.json()["student"]["status"] == "Pending"


def test_admin_student_status_invalid(client, mongo, admin_headers):
    student_id = insert_student(mongo, 1, status="Approved")
    resp = client.patch(f"/api/admin/students/{student_id}/status", json={"status": "approved"}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid status value"
    assert mongo["student"].find_one({})["status"] == "Approved"


def test_admin_student_status_not_found(client, mongo, admin_headers):
    resp = client.patch(
        "/api/admin/students/64b7f0c2a1b2c3d4e5f60718/status", json={"status": "Approved"}, headers=admin_headers
    )
    assert resp.status_code == 404


def test_admin_delete_student(client, mongo, admin_headers):
    student_id = insert_student(mongo, 1)
    resp = client.delete(f"/api/admin/students/{student_id}", headers=admin_headers)
    assert resp.json() == {"success": True, "message": "Student deleted successfully"}
    assert mongo["student"].count_documents({}) == 0
    again = client.delete(f"/api/admin/students/{student_id}", headers=admin_headers)
    assert again.status_code == 404


def test_messages_list_and_search(client, mongo, admin_headers):
    for i in range(1, 13):
        insert_message(mongo, i)
    insert_message(mongo, 13, subject="Hostel FEES", status="Resolved")

    body = client.get("/api/admin/messages?limit=5", headers=admin_headers).json()
    assert body["totalMessages"] == 13
    assert body["totalPages"] == 3
    assert body["messages"][0]["fullName"] == "Sender 13"

    body = client.get("/api/admin/messages?search=fees", headers=admin_headers).json()
    assert [m["subject"] for m in body["messages"]] == ["Hostel FEES"]

    body = client.get("/api/admin/messages?status=New", headers=admin_headers).json()
    assert body["totalMessages"] == 12


def test_admin_message_detail_status_delete(client, mongo, admin_headers):
    message_id = insert_message(mongo, 1)

    detail = client.get(f"/api/admin/messages/{message_id}", headers=admin_headers).json()
    assert detail["message"]["subject"] == "Question 1"

    resp = client.patch(f"/api/admin/messages/{message_id}/status", json={"status": "In Progress"}, headers=admin_headers)
    assert resp.json()["data"]["status"] == "In Progress"

    resp = client.patch(f"/api/admin/messages/{message_id}/status", json={"status": "Closed"}, headers=admin_headers)
    assert resp.status_code == 400
    assert mongo["contact"].find_one({})["status"] == "In Progress"

    assert client.delete(f"/api/admin/messages/{message_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/messages/{message_id}", headers=admin_headers).status_code == 404


def test_students_large_page_size(client, mongo, admin_headers):
    for i in range(1, 4):
        insert_student(mongo, i)
    resp = client.get("/api/admin/students?limit=500", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["totalPages"] == 1
    assert len(resp.json()["students"]) == 3
