from sqlalchemy import select

import crud
import workflow
from models import BorrowingIn
from orm import ToolORM


def test_tools_require_caller(client):
    assert client.get("/tools").status_code == 401
    assert client.get("/tools", headers={"X-User-Id": "999999"}).status_code == 401


def test_create_tool_is_catalogue_editor_only(client, auth, users):
    body = {"tool_id": "EL-MT-001", "name": "Multimeter", "brand": "Fluke", "location": "Cabinet 2"}

    r = client.post("/tools", json=body, headers=auth("user"))
    assert r.status_code == 403
    assert r.json()["detail"] == "Insufficient privileges"

    r = client.post("/tools", json=body, headers=auth("lab_supervisor"))
    assert r.status_code == 201, r.text
    tool = r.json()
    assert tool["status"] == "available"
    assert tool["assigned_to"] == users["lab_supervisor"].id

    r = client.post("/tools", json=body, headers=auth("admin"))
    assert r.status_code == 409


def test_duplicate_serial_no_is_conflict(client, auth, users, make_tool, db_session):
    make_tool("EL-MT-001", serial_no="SN1")
    other = make_tool("EL-MT-002", serial_no="SN2")

    r = client.post("/tools", json={"tool_id": "EL-MT-003", "name": "Multimeter", "serial_no": "SN1"}, headers=auth("admin"))
    assert r.status_code == 409
    assert r.json()["detail"] == "serial_no already exists"

    r = client.patch(f"/tools/{other.id}", json={"serial_no": "SN1"}, headers=auth("admin"))
    assert r.status_code == 409

    # keeping its own serial is not a conflict
    r = client.patch(f"/tools/{other.id}", json={"serial_no": "SN2", "notes": "relabelled"}, headers=auth("admin"))
    assert r.status_code == 200

    db_session.expire_all()
    assert sorted(db_session.execute(select(ToolORM.serial_no)).scalars().all()) == ["SN1", "SN2"]


def test_tool_lookups_and_filters(client, auth, users, make_tool):
    make_tool("EL-MT-002", name="Clamp meter")
    t1 = make_tool("EL-MT-001")
    make_tool("EL-OS-001", name="Oscilloscope", status="maintenance")

    r = client.get("/tools", headers=auth("user"))
    assert [t["tool_id"] for t in r.json()] == ["EL-MT-001", "EL-MT-002", "EL-OS-001"]

    r = client.get("/tools", params={"status": "maintenance"}, headers=auth("user"))
    assert [t["tool_id"] for t in r.json()] == ["EL-OS-001"]

    # an unknown filter value is ignored rather than rejected
    r = client.get("/tools", params={"status": "lost"}, headers=auth("user"))
    assert len(r.json()) == 3

    r = client.get("/tools/by-status/available", headers=auth("user"))
    assert [t["tool_id"] for t in r.json()] == ["EL-MT-001", "EL-MT-002"]
    assert client.get("/tools/by-status/lost", headers=auth("user")).status_code == 422

    r = client.get("/tools/by-tool-id/EL-MT-001", headers=auth("user"))
    assert r.status_code == 200
    assert r.json()["id"] == t1.id
    assert client.get("/tools/by-tool-id/NOPE", headers=auth("user")).status_code == 404

    assert client.get(f"/tools/{t1.id}", headers=auth("user")).json()["name"] == "Multimeter"
    assert client.get("/tools/999999", headers=auth("user")).status_code == 404


def test_update_tool(client, auth, users, make_tool):
    t = make_tool("EL-MT-001")

    r = client.patch(f"/tools/{t.id}", json={"status": "damaged", "notes": "cracked case"}, headers=auth("user"))
    assert r.status_code == 403

    r = client.patch(f"/tools/{t.id}", json={"status": "damaged", "notes": "cracked case"}, headers=auth("admin"))
    assert r.status_code == 200
    assert r.json()["status"] == "damaged"
    assert r.json()["name"] == "Multimeter"

    assert client.patch("/tools/999999", json={"notes": "x"}, headers=auth("admin")).status_code == 404


def test_delete_tool_guard(client, auth, users, make_tool, db_session):
    borrowed = make_tool("EL-MT-001")
    spare = make_tool("EL-MT-002")
    workflow.create_borrowing(
        db_session,
        BorrowingIn(
            borrowing_id="BRW-1",
            tool_ids=[borrowed.id],
            borrow_date="2026-01-10T08:00:00",
            expected_return_date="2026-01-12T08:00:00",
        ),
        borrower=users["user"],
    )

    assert client.delete(f"/tools/{spare.id}", headers=auth("lab_supervisor")).status_code == 403

    r = client.delete(f"/tools/{borrowed.id}", headers=auth("admin"))
    assert r.status_code == 409

    db_session.expire_all()
    assert db_session.get(ToolORM, borrowed.id) is not None

    assert client.delete(f"/tools/{spare.id}", headers=auth("admin")).status_code == 204
    assert client.delete(f"/tools/{spare.id}", headers=auth("admin")).status_code == 404

    remaining = db_session.execute(select(ToolORM.tool_id)).scalars().all()
    assert remaining == ["EL-MT-001"]


def test_calibration_updates_tool(client, auth, users, make_tool, db_session):
    t = make_tool("EL-MT-001")
    body = {
        "calibration_date": "2026-03-01T00:00:00",
        "next_calibration_date": "2027-03-01T00:00:00",
        "calibration_provider": "KAN lab",
        "certificate_no": "CERT-77",
        "certificate_url": "https://certs.example/77.pdf",
        "result": "passed",
    }

    assert client.post(f"/tools/{t.id}/calibrations", json=body, headers=auth("user")).status_code == 403

    r = client.post(f"/tools/{t.id}/calibrations", json=body, headers=auth("lab_supervisor"))
    assert r.status_code == 201, r.text
    assert r.json()["tool_id"] == t.id

    loaded = crud.get_tool(db_session, t.id)
    assert loaded.last_calibration_date.year == 2026
    assert loaded.next_calibration_date.year == 2027
    assert loaded.calibration_certificate_url == "https://certs.example/77.pdf"
    assert loaded.status == "available"

    failed = dict(body, calibration_date="2026-04-01T00:00:00", certificate_url=None, result="failed")
    r = client.post(f"/tools/{t.id}/calibrations", json=failed, headers=auth("admin"))
    assert r.status_code == 201

    db_session.expire_all()
    loaded = crud.get_tool(db_session, t.id)
    assert loaded.status == "needs_calibration"
    assert loaded.calibration_certificate_url == "https://certs.example/77.pdf"

    r = client.get(f"/tools/{t.id}/calibrations", headers=auth("user"))
    assert [c["result"] for c in r.json()] == ["failed", "passed"]

    assert client.post("/tools/999999/calibrations", json=body, headers=auth("admin")).status_code == 404
