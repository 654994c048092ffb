# matchmycv/routes/documents.py
from __future__ import annotations
import mimetypes, os, re
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_login import current_user, login_required

from ..extensions import get_db
from ..rendering import DOCX_MIME, build_layout, render_docx
from ..schemas import RenameDocumentRequest
from ..services.ai import AIProviderError, get_ai_provider
from ..services.cv_content import normalize_cv_content
from ..services.documents import create_document, delete_document, get_owned_document, list_documents
from ..services.file_processing import ALLOWED_MIME_TYPES, PDF_MIME, extract_text_from_file, structure_cv_text
from ..services.storage import StorageError, get_storage, key_belongs_to

documents_bp = Blueprint("documents", __name__)

_EXT_TO_MIME = {"pdf": PDF_MIME, "docx": DOCX_MIME}


def safe_filename(title: str, ext: str) -> str:
    base = re.sub(r"[^A-Za-z0-9._ -]+", "", title or "").strip().replace(" ", "_") or "cv"
    return f"{base[:80]}.{ext}"


def _not_found():
    return jsonify(error="not_found", message="Document not found"), 404


def _detect_mime(file) -> str | None:
    mime = (file.mimetype or "").split(";")[0].strip()
    if mime in ALLOWED_MIME_TYPES:
        return mime
    ext = os.path.splitext(file.filename or "")[1].lstrip(".").lower()
    return _EXT_TO_MIME.get(ext)


@documents_bp.get("/api/documents")
@login_required
def documents_list():
    docs = list_documents(get_db(), current_user.id)
    return jsonify(documents=[d.to_dict(with_versions=True) for d in docs])


@documents_bp.get("/api/documents/<doc_id>")
@login_required
def document_detail(doc_id: str):
    doc = get_owned_document(get_db(), doc_id, current_user.id)
    if not doc:
        return _not_found()
    data = doc.to_dict(with_versions=True)
    data["structured"] = normalize_cv_content(doc.structured or {})
    data["rawText"] = doc.raw_text
    data["fileUrl"] = get_storage().file_url(doc.storage_key) if doc.storage_key else None
    return jsonify(document=data)


@documents_bp.post("/api/upload")
@login_required
def upload():
    file = request.files.get("file")
    title = (request.form.get("title") or "").strip()
    if not file or not file.filename:
        return jsonify(error="bad_request", message="No file provided"), 400
    if not title:
        return jsonify(error="bad_request", message="Title is required"), 400

    mime_type = _detect_mime(file)
    if mime_type is None:
        return jsonify(error="unsupported_media_type", message="Only PDF and DOCX files are supported"), 415

    data = file.read()
    if len(data) > current_app.config["MAX_UPLOAD_BYTES"]:
        return jsonify(error="file_too_large", message="File size must be less than 10MB"), 413
    if not data:
        return jsonify(error="bad_request", message="File is empty"), 400

    storage = get_storage()
    key, size = storage.upload_file(data, file.filename, mime_type, current_user.id)
    try:
        raw_text = extract_text_from_file(data, mime_type)
        try:
            provider = get_ai_provider()
        except AIProviderError as e:
            current_app.logger.warning("AI provider unavailable, structuring heuristically: %s", e)
            provider = None
        structured = structure_cv_text(raw_text, provider)
        doc = create_document(get_db(), current_user.id, title[:200], key, mime_type, size, raw_text, structured)
    except Exception:
        # nothing references the stored file yet
        get_db().rollback()
        try:
            storage.delete_file(key)
        except StorageError as e:
            current_app.logger.warning("Could not remove orphaned upload %s: %s", key, e)
        raise
    current_app.logger.info("Document %s uploaded (%s, %d bytes)", doc.id, mime_type, size)
    return jsonify(
        document=doc.to_dict(),
        versionId=doc.versions[0].id,
        structured=structured,
        preview=raw_text[:500],
    ), 201


@documents_bp.delete("/api/documents/<doc_id>")
@login_required
def document_delete(doc_id: str):
    session = get_db()
    doc = get_owned_document(session, doc_id, current_user.id)
    if not doc:
        return _not_found()
    delete_document(session, doc, get_storage())
    return jsonify(message="Document deleted successfully")


@documents_bp.patch("/api/documents/<doc_id>/rename")
@login_required
def document_rename(doc_id: str):
    body = RenameDocumentRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    doc = get_owned_document(session, doc_id, current_user.id)
    if not doc:
        return _not_found()
    doc.title = body.title
    session.commit()
    return jsonify(document=doc.to_dict())


@documents_bp.get("/api/documents/<doc_id>/download")
@login_required
def document_download(doc_id: str):
    doc = get_owned_document(get_db(), doc_id, current_user.id)
    if not doc:
        return _not_found()
    payload = render_docx(build_layout(doc.structured or {}))
    return send_file(
        BytesIO(payload), mimetype=DOCX_MIME, as_attachment=True,
        download_name=safe_filename(doc.title, "docx"),
    )


@documents_bp.get("/api/files/<path:key>")
@login_required
def serve_file(key: str):
    if not key_belongs_to(key, current_user.id):
        return jsonify(error="forbidden", message="Access denied"), 403
    try:
        data = get_storage().download_file(key)
    except StorageError:
        return jsonify(error="not_found", message="File not found"), 404
    mime = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return send_file(BytesIO(data), mimetype=mime, download_name=os.path.basename(key))
