import json
import os
from io import BytesIO

import docx

from conftest import SAMPLE_CV, register_and_login, set_user_fields
from matchmycv.services.ai import AIRateLimitError


def _docx_bytes():
    d = docx.Document()
    for line in ("Jane Doe", "jane@example.com", "Summary", "Backend engineer."):
        d.add_paragraph(line)
    buf = BytesIO()
    d.save(buf)
    return buf.getvalue()


def _upload(client, data=None, filename="cv.docx", title="My CV"):
    form = {"file": (BytesIO(data if data is not None else _docx_bytes()), filename)}
    if title is not None:
        form["title"] = title
    return client.post("/api/upload", data=form, content_type="multipart/form-data")


def test_upload_list_detail_and_file(client, user, provider):
    r = _upload(client)
    assert r.status_code == 201, r.get_json()
    data = r.get_json()
    doc_id = data["document"]["id"]
    assert data["structured"]["contact"]["name"] == "Jane Doe"
    assert data["preview"].startswith("Jane Doe")
    assert any(c["schema_name"] == "cv_structure" for c in provider.calls)

    r = client.get("/api/documents")
    docs = r.get_json()["documents"]
    assert [d["id"] for d in docs] == [doc_id]
    assert docs[0]["versions"][0]["label"] == "Original"
    assert docs[0]["versions"][0]["id"] == data["versionId"]

    detail = client.get(f"/api/documents/{doc_id}").get_json()["document"]
    assert detail["structured"]["skills"] == SAMPLE_CV["skills"]
    assert detail["fileUrl"].startswith("/api/files/documents/")

    r = client.get(detail["fileUrl"])
    assert r.status_code == 200
    assert r.data[:2] == b"PK"


def test_upload_rejections(client, user):
    assert _upload(client, title=None).status_code == 400
    r = _upload(client, data=b"plain text", filename="cv.txt")
    assert r.status_code == 415
    assert _upload(client, data=b"", filename="cv.pdf").status_code == 400
    r = client.post("/api/upload", data={"title": "x"}, content_type="multipart/form-data")
    assert r.get_json()["message"] == "No file provided"


def test_upload_too_large(app, client, user):
    app.config["MAX_UPLOAD_BYTES"] = 10
    r = _upload(client)
    assert r.status_code == 413
    assert r.get_json()["error"] == "file_too_large"


def test_upload_with_null_fields_in_ai_reply(client, user, provider):
    provider.structure_reply = {"sections": {
        "contact": {"name": "Jane Doe", "phone": None, "website": None},
        "experience": [{"title": "Dev", "company": "Acme", "duration": None, "bullets": []}],
        "education": [{"degree": "BSc", "year": 2015}],
    }}
    r = _upload(client)
    assert r.status_code == 201, r.get_json()
    structured = r.get_json()["structured"]
    assert structured["contact"]["phone"] == ""
    assert structured["experience"][0]["duration"] == ""
    assert structured["education"][0]["year"] == "2015"


def test_upload_with_malformed_ai_reply_uses_heuristics(client, user, provider):
    provider.structure_reply = {"sections": {"contact": {"name": "Someone Else"}, "experience": 5}}
    r = _upload(client)
    assert r.status_code == 201, r.get_json()
    assert r.get_json()["structured"]["contact"]["name"] == "Jane Doe"


def test_unreadable_upload_leaves_no_file(app, client, user):
    r = _upload(client, data=b"not a zip archive")
    assert r.status_code == 415
    assert client.get("/api/documents").get_json()["documents"] == []
    leftovers = [f for _, _, files in os.walk(app.config["UPLOAD_DIR"]) for f in files]
    assert leftovers == []


def test_upload_rate_limited_by_ai_removes_file(app, client, user, provider):
    provider.fail_with = AIRateLimitError()
    r = _upload(client)
    assert r.status_code == 429
    assert client.get("/api/documents").get_json()["documents"] == []
    upload_dir = app.config["UPLOAD_DIR"]
    leftovers = [f for _, _, files in os.walk(upload_dir) for f in files]
    assert leftovers == []


def test_rename_download_delete(client, document):
    doc_id = document["id"]
    r = client.patch(f"/api/documents/{doc_id}/rename", json={"title": "  Backend CV  "})
    assert r.status_code == 200
    assert r.get_json()["document"]["title"] == "Backend CV"
    assert client.patch(f"/api/documents/{doc_id}/rename", json={"title": "   "}).status_code == 400
    assert client.patch(f"/api/documents/{doc_id}/rename", json={"title": "x" * 101}).status_code == 400

    r = client.get(f"/api/documents/{doc_id}/download")
    assert r.status_code == 200
    assert "Backend_CV.docx" in r.headers["Content-Disposition"]
    assert r.data[:2] == b"PK"

    assert client.delete(f"/api/documents/{doc_id}").status_code == 200
    assert client.get(f"/api/documents/{doc_id}").status_code == 404


def test_documents_are_private(client, document):
    client.post("/api/auth/logout")
    register_and_login(client, email="mallory@example.com")
    assert client.get(f"/api/documents/{document['id']}").status_code == 404
    assert client.delete(f"/api/documents/{document['id']}").status_code == 404
    assert client.get(f"/api/versions/{document['versionId']}").status_code == 404
    r = client.get("/api/files/documents/someone-else/cv.pdf")
    assert r.status_code == 403


def test_missing_file_is_404(client, user):
    r = client.get(f"/api/files/documents/{user['id']}/nothing.pdf")
    assert r.status_code == 404


def test_free_plan_saves_one_version_per_document(app, client, user, document):
    payload = {"documentId": document["id"], "label": "Tailored", "content": {"sections": SAMPLE_CV}}
    r = client.post("/api/versions", json=payload)
    assert r.status_code == 201
    version = r.get_json()["version"]
    assert version["isActive"] is False
    assert json.loads(version["content"])["contact"]["name"] == "Jane Doe"

    r = client.post("/api/versions", json=payload)
    assert r.status_code == 403
    assert r.get_json()["error"] == "limit_exceeded"

    set_user_fields(app, user["id"], plan="PRO")
    assert client.post("/api/versions", json=payload).status_code == 201


def test_get_and_update_version(client, document):
    vid = document["versionId"]
    r = client.get(f"/api/versions/{vid}")
    assert r.status_code == 200
    assert r.get_json()["version"]["label"] == "Original"

    r = client.put(f"/api/versions/{vid}", json={"content": {"summary": "Short summary"}})
    assert r.status_code == 200
    stored = json.loads(r.get_json()["version"]["content"])
    assert stored["summary"] == "Short summary"
    assert stored["experience"] == []
    assert client.put("/api/versions/missing", json={"content": "x"}).status_code == 404


def test_job_targets(client, job_target):
    assert job_target["seniority"] == "senior"
    assert "kubernetes" in job_target["skills"]
    assert job_target["company"] == "Initech"

    r = client.post("/api/job-targets", json={"title": "Too short", "description": "tiny"})
    assert r.status_code == 400

    listed = client.get("/api/job-targets").get_json()["jobTargets"]
    assert [jt["id"] for jt in listed] == [job_target["id"]]
