"""Upload, access control, verification and deletion of stored files."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

from models import db
from models.application_document import ApplicationDocument
from models.file_upload import FileUpload


def _post(client, headers, name="memo.pdf", content=b"%PDF-1.4 data", **form):
    return client.post(
        "/api/files",
        data={"file": (BytesIO(content), name), **form},
        headers=headers,
        content_type="multipart/form-data",
    )


def test_upload_stores_file_under_uuid_name(client, app, student, auth_headers):
    response = _post(client, auth_headers(student), description="SSC memo")
    assert response.status_code == 201
    body = response.get_json()["file"]
    assert body["originalName"] == "memo.pdf"
    assert body["filename"].endswith(".pdf")
    assert body["filename"] != "memo.pdf"
    assert body["description"] == "SSC memo"
    assert body["fileSize"] == len(b"%PDF-1.4 data")
    assert (Path(app.config["UPLOAD_DIR"]) / body["filename"]).is_file()


def test_upload_rejects_disallowed_extension(client, student, auth_headers):
    response = _post(client, auth_headers(student), name="run.exe")
    assert response.status_code == 400
    assert "File type not allowed" in response.get_json()["message"]


def test_upload_rejects_oversized_file(client, app, student, auth_headers):
    app.config["MAX_UPLOAD_SIZE"] = 8
    response = _post(client, auth_headers(student), content=b"0123456789")
    assert response.status_code == 400


def test_upload_requires_file(client, student, auth_headers):
    response = client.post(
        "/api/files",
        data={"description": "no file"},
        headers=auth_headers(student),
        content_type="multipart/form-data",
    )
    assert response.status_code == 400


def test_students_only_see_their_files(client, student, make_user, admin, auth_headers):
    other = make_user("other@example.com")
    _post(client, auth_headers(student))
    _post(client, auth_headers(other))

    own = client.get("/api/files", headers=auth_headers(student)).get_json()
    assert own["totalDocs"] == 1
    everything = client.get("/api/files", headers=auth_headers(admin)).get_json()
    assert everything["totalDocs"] == 2


def test_other_student_cannot_read_file(client, student, make_user, auth_headers):
    uploaded = _post(client, auth_headers(student)).get_json()["file"]
    other = make_user("other@example.com")
    response = client.get(f"/api/files/{uploaded['uuid']}", headers=auth_headers(other))
    assert response.status_code == 403


def test_download_returns_content(client, student, auth_headers):
    uploaded = _post(client, auth_headers(student)).get_json()["file"]
    response = client.get(
        f"/api/files/{uploaded['uuid']}/download", headers=auth_headers(student)
    )
    assert response.status_code == 200
    assert response.data == b"%PDF-1.4 data"
    assert "memo.pdf" in response.headers["Content-Disposition"]


def test_staff_verify_file(client, student, admin, auth_headers):
    uploaded = _post(client, auth_headers(student)).get_json()["file"]
    denied = client.put(f"/api/files/{uploaded['uuid']}/verify", headers=auth_headers(student))
    assert denied.status_code == 403

    response = client.put(f"/api/files/{uploaded['uuid']}/verify", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.get_json()["file"]["isVerified"] is True
    assert response.get_json()["file"]["verifiedBy"] == admin.id


def test_delete_removes_record_and_file(client, app, student, auth_headers):
    uploaded = _post(client, auth_headers(student)).get_json()["file"]
    response = client.delete(f"/api/files/{uploaded['uuid']}", headers=auth_headers(student))
    assert response.status_code == 200
    assert FileUpload.query.filter_by(uuid=uploaded["uuid"]).first() is None
    assert not (Path(app.config["UPLOAD_DIR"]) / uploaded["filename"]).exists()


def test_delete_refused_while_verified_document_uses_file(
    client, student, admin, program, make_certificate_type, require_certificate, make_application, auth_headers
):
    certificate_type = make_certificate_type("SSC Marks Memo")
    require_certificate(program, certificate_type)
    application = make_application(student, program)
    uploaded = _post(client, auth_headers(student)).get_json()["file"]
    document = client.post(
        f"/api/applications/{application.id}/documents",
        json={"certificateTypeId": certificate_type.id, "fileUuid": uploaded["uuid"]},
        headers=auth_headers(student),
    ).get_json()["document"]
    client.put(
        f"/api/applications/{application.id}/documents/{document['id']}/verify",
        headers=auth_headers(admin),
    )

    response = client.delete(f"/api/files/{uploaded['uuid']}", headers=auth_headers(student))
    assert response.status_code == 400


def _attach(client, headers, application, certificate_type, file_uuid):
    response = client.post(
        f"/api/applications/{application.id}/documents",
        json={"certificateTypeId": certificate_type.id, "fileUuid": file_uuid},
        headers=headers,
    )
    assert response.status_code == 201, response.get_json()
    return response.get_json()["document"]


def test_delete_refused_once_application_is_submitted(
    client, student, program, make_certificate_type, require_certificate, make_application, auth_headers
):
    certificate_type = make_certificate_type("SSC Marks Memo")
    require_certificate(program, certificate_type)
    application = make_application(student, program)
    headers = auth_headers(student)
    uploaded = _post(client, headers).get_json()["file"]
    document = _attach(client, headers, application, certificate_type, uploaded["uuid"])

    application.status = "submitted"
    db.session.commit()

    response = client.delete(f"/api/files/{uploaded['uuid']}", headers=headers)
    assert response.status_code == 403
    assert db.session.get(ApplicationDocument, document["id"]) is not None
    assert FileUpload.query.filter_by(uuid=uploaded["uuid"]).first() is not None


def test_delete_on_draft_application_removes_linked_document(
    client, student, program, make_certificate_type, require_certificate, make_application, auth_headers
):
    certificate_type = make_certificate_type("SSC Marks Memo")
    require_certificate(program, certificate_type)
    application = make_application(student, program)
    headers = auth_headers(student)
    uploaded = _post(client, headers).get_json()["file"]
    document = _attach(client, headers, application, certificate_type, uploaded["uuid"])

    response = client.delete(f"/api/files/{uploaded['uuid']}", headers=headers)
    assert response.status_code == 200
    assert db.session.get(ApplicationDocument, document["id"]) is None
