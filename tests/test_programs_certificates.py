"""Program catalog, certificate types and per-program requirements."""

from __future__ import annotations

from models import db
from models.program import Program


def _program_payload(**overrides):
    payload = {
        "programCode": "bca",
        "programName": "Bachelor of Computer Application (BCA)",
        "programType": "UG",
        "department": "Computer Applications",
        "durationYears": 3,
        "totalSeats": 180,
        "applicationStartDate": "2025-03-01",
        "applicationEndDate": "2025-06-30",
    }
    payload.update(overrides)
    return payload


def test_admin_creates_program_and_public_reads(client, admin, auth_headers):
    response = client.post("/api/programs", json=_program_payload(), headers=auth_headers(admin))
    assert response.status_code == 201
    program = response.get_json()["program"]
    assert program["programCode"] == "BCA"
    assert program["applicationEndDate"] == "2025-06-30"

    listing = client.get("/api/programs?programType=UG").get_json()
    assert [item["programCode"] for item in listing["programs"]] == ["BCA"]
    assert client.get(f"/api/programs/{program['id']}").status_code == 200


def test_program_code_is_unique(client, admin, program, auth_headers):
    response = client.post(
        "/api/programs",
        json=_program_payload(programCode=program.program_code),
        headers=auth_headers(admin),
    )
    assert response.status_code == 409


def test_program_validation(client, admin, auth_headers):
    response = client.post(
        "/api/programs",
        json=_program_payload(programType="PhD", applicationEndDate="2025-01-01"),
        headers=auth_headers(admin),
    )
    assert response.status_code == 400
    message = response.get_json()["message"]
    assert "programType" in message
    assert "applicationEndDate" in message


def test_non_admin_cannot_manage_programs(client, program_admin, auth_headers):
    response = client.post("/api/programs", json=_program_payload(), headers=auth_headers(program_admin))
    assert response.status_code == 403


def test_program_with_applications_cannot_be_deleted(
    client, admin, student, program, make_application, auth_headers
):
    make_application(student, program)
    response = client.delete(f"/api/programs/{program.id}", headers=auth_headers(admin))
    assert response.status_code == 409


def test_program_delete_removes_requirements(
    client, admin, program, make_certificate_type, require_certificate, auth_headers
):
    require_certificate(program, make_certificate_type("SSC Marks Memo"))
    program_id = program.id
    response = client.delete(f"/api/programs/{program_id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert db.session.get(Program, program_id) is None


def test_certificate_type_crud(client, admin, auth_headers):
    headers = auth_headers(admin)
    created = client.post(
        "/api/certificate-types",
        json={"name": "Transfer Certificate", "fileTypesAllowed": [".PDF", "jpg"], "maxFileSizeMb": 2},
        headers=headers,
    )
    assert created.status_code == 201
    body = created.get_json()["certificateType"]
    assert body["fileTypesAllowed"] == "pdf,jpg"

    duplicate = client.post(
        "/api/certificate-types", json={"name": "transfer certificate"}, headers=headers
    )
    assert duplicate.status_code == 409

    retired = client.put(
        f"/api/certificate-types/{body['id']}", json={"isActive": False}, headers=headers
    )
    assert retired.get_json()["certificateType"]["isActive"] is False
    assert client.get("/api/certificate-types").get_json()["count"] == 0
    assert client.get("/api/certificate-types?isActive=false").get_json()["count"] == 1

    assert client.delete(f"/api/certificate-types/{body['id']}", headers=headers).status_code == 200


def test_requirements_flow(client, admin, program, make_program, make_certificate_type, auth_headers):
    headers = auth_headers(admin)
    ssc = make_certificate_type("SSC Marks Memo")
    inter = make_certificate_type("Intermediate Marks Memo")
    base = f"/api/programs/{program.id}/certificates"

    available = client.get(f"{base}/available", headers=headers).get_json()
    assert len(available["certificateTypes"]) == 2

    first = client.post(base, json={"certificateTypeId": ssc.id}, headers=headers).get_json()["requirement"]
    second = client.post(
        base,
        json={"certificateTypeId": inter.id, "specialInstructions": "Attested copy"},
        headers=headers,
    ).get_json()["requirement"]
    assert client.post(base, json={"certificateTypeId": ssc.id}, headers=headers).status_code == 409

    reorder = client.put(
        f"{base}/reorder",
        json={"requirements": [{"id": first["id"], "displayOrder": 5}, {"id": second["id"], "displayOrder": 1}]},
        headers=headers,
    )
    assert [item["id"] for item in reorder.get_json()["requirements"]] == [second["id"], first["id"]]

    listing = client.get(base).get_json()
    assert listing["count"] == 2
    assert client.get(f"{base}/available", headers=headers).get_json()["certificateTypes"] == []

    updated = client.put(f"{base}/{first['id']}", json={"isRequired": False}, headers=headers)
    assert updated.get_json()["requirement"]["isRequired"] is False

    other = make_program("BBA")
    mismatch = client.delete(f"/api/programs/{other.id}/certificates/{first['id']}", headers=headers)
    assert mismatch.status_code == 400

    assert client.delete(f"{base}/{first['id']}", headers=headers).status_code == 200
    assert client.get(base).get_json()["count"] == 1
