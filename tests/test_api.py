import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.models import Branch
from app.rbac import AccessLevel

STUDENT_BODY = {
    "name": "Asha Verma",
    "regimental_number": "up2024sda0001",
    "category": "B1",
    "branch": Branch.CSE.value,
    "rank": "Cadet",
    "address": "Hostel Block A",
}


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def users(make_user):
    return {
        "alice": await make_user("alice"),
        "bob": await make_user("bob"),
        "carol": await make_user("carol", is_authorized=True),
        "dave": await make_user("dave"),
    }


async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_missing_token_is_rejected(client):
    resp = await client.get("/api/students/")

    assert resp.status_code == 401
    assert resp.json()["error"] == "invalid_credentials"


async def test_unauthorized_user_is_rejected(client, users, auth_header):
    resp = await client.get("/api/students/", headers=auth_header(users["dave"]))

    assert resp.status_code == 403
    assert resp.json()["error"] == "not_authorized"


async def test_viewer_reads_but_cannot_modify(client, users, auth_header):
    headers = auth_header(users["carol"])

    assert (await client.get("/api/students/", headers=headers)).status_code == 200
    resp = await client.post("/api/students/", json=STUDENT_BODY, headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"] == "insufficient_permission"


async def test_admin_modifies_but_only_super_admin_deletes(client, users, auth_header):
    created = await client.post("/api/students/", json=STUDENT_BODY, headers=auth_header(users["bob"]))
    assert created.status_code == 201
    student = created.json()
    assert student["regimental_number"] == "UP2024SDA0001"

    duplicate = await client.post("/api/students/", json=STUDENT_BODY, headers=auth_header(users["bob"]))
    assert duplicate.status_code == 409

    denied = await client.delete(f"/api/students/{student['id']}", headers=auth_header(users["bob"]))
    assert denied.status_code == 403

    deleted = await client.delete(f"/api/students/{student['id']}", headers=auth_header(users["alice"]))
    assert deleted.status_code == 200
    listing = await client.get("/api/students/", headers=auth_header(users["alice"]))
    assert listing.json() == []


async def test_login_endpoint(client, users):
    resp = await client.post("/api/auth/login", json={"username": "bob", "password": "secret123"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["access_level"] == AccessLevel.ADMIN.value

    bad = await client.post("/api/auth/login", json={"username": "bob", "password": "nope"})
    assert bad.status_code == 401


async def test_mark_single_returns_created_then_ok(client, users, auth_header, make_student, make_parade):
    student = await make_student()
    parade = await make_parade()
    body = {"parade_id": str(parade.id), "student_id": str(student.id), "status": "Present"}
    headers = auth_header(users["bob"])

    first = await client.post("/api/attendance/", json=body, headers=headers)
    second = await client.post("/api/attendance/", json={**body, "status": "Late"}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["status"] == "Late"


async def test_batch_mark_reports_errors(client, users, auth_header, make_student, make_parade):
    student = await make_student()
    parade = await make_parade()

    resp = await client.post(
        "/api/attendance/mark",
        json={
            "parade_id": str(parade.id),
            "attendance": [
                {"student_id": str(student.id), "status": "Present"},
                {"student_id": "missing", "status": "Present"},
            ],
        },
        headers=auth_header(users["bob"]),
    )

    assert resp.status_code == 200
    assert resp.json()["created"] == 1
    assert len(resp.json()["errors"]) == 1


async def test_parade_not_found(client, users, auth_header):
    resp = await client.get("/api/parades/65f0000000000000000000ff", headers=auth_header(users["carol"]))

    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


async def test_create_parade_records_creator(client, users, auth_header):
    resp = await client.post(
        "/api/parades/",
        json={"name": "Drill", "type": "Special Drill", "date": "2024-03-04T06:30:00", "time": "06:30"},
        headers=auth_header(users["bob"]),
    )

    assert resp.status_code == 201
    assert resp.json()["status"] == "Completed"
    assert resp.json()["created_by"]["username"] == "bob"


async def test_branch_report_csv(client, users, auth_header):
    resp = await client.get(
        "/api/reports/branch",
        params={"branch": Branch.CSE.value, "format": "csv", "start_date": "2024-03-01T00:00:00", "end_date": "2024-03-08T00:00:00"},
        headers=auth_header(users["carol"]),
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")


@pytest.mark.parametrize("path", ["/api/email/weekly/all", "/api/email/daily-parade"])
async def test_email_triggers_are_super_admin_only(client, users, auth_header, path):
    assert (await client.post(path, headers=auth_header(users["bob"]))).status_code == 403
    assert (await client.post(path, headers=auth_header(users["alice"]))).status_code == 200


async def test_weekly_email_for_all_branches(client, users, auth_header):
    resp = await client.post("/api/email/weekly/all", headers=auth_header(users["alice"]))

    assert resp.json()["summary"]["total_branches"] == len(Branch)


async def test_weekly_email_rejects_unknown_branch(client, users, auth_header):
    resp = await client.post("/api/email/weekly/Astronomy", headers=auth_header(users["alice"]))

    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_failure"


async def test_user_access_management(client, users, auth_header):
    dave = users["dave"]
    resp = await client.patch(
        f"/api/users/{dave.id}/access",
        json={"is_authorized": True},
        headers=auth_header(users["alice"]),
    )

    assert resp.status_code == 200
    assert resp.json()["is_authorized"] is True
    assert (await client.get("/api/students/", headers=auth_header(dave))).status_code == 200


async def test_put_with_null_required_field_is_rejected(client, users, auth_header, make_parade):
    parade = await make_parade(name="Drill")
    headers = auth_header(users["bob"])

    resp = await client.put(f"/api/parades/{parade.id}", json={"name": None, "date": None}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_failure"
    listing = await client.get("/api/parades/", headers=headers)
    assert [p["name"] for p in listing.json()] == ["Drill"]
