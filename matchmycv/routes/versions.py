# matchmycv/routes/versions.py
from __future__ import annotations
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from ..extensions import get_db
from ..models import Version
from ..schemas import CreateVersionRequest, UpdateVersionRequest
from ..services.cv_content import dump_content, normalize_cv_content
from ..services.documents import get_owned_document, get_owned_version
from ..services.limits import check_usage_limit

versions_bp = Blueprint("versions", __name__, url_prefix="/api/versions")


def _content_text(content) -> str:
    # dict payloads are normalised; strings are stored as sent
    if isinstance(content, dict):
        return dump_content(normalize_cv_content(content))
    return content


@versions_bp.post("")
@login_required
def create_version():
    body = CreateVersionRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    doc = get_owned_document(session, body.document_id, current_user.id)
    if not doc:
        return jsonify(error="not_found", message="Document not found"), 404

    allowed, info = check_usage_limit(session, current_user, "versions", document_id=doc.id)
    if not allowed:
        return jsonify(error="limit_exceeded", message="Version limit reached for your plan", **info), 403

    version = Version(document_id=doc.id, label=body.label.strip(), content=_content_text(body.content), is_active=False)
    session.add(version)
    session.commit()
    return jsonify(version=version.to_dict()), 201


@versions_bp.get("/<version_id>")
@login_required
def get_version(version_id: str):
    version = get_owned_version(get_db(), version_id, current_user.id)
    if not version:
        return jsonify(error="not_found", message="Version not found"), 404
    return jsonify(version=version.to_dict())


@versions_bp.put("/<version_id>")
@login_required
def update_version(version_id: str):
    body = UpdateVersionRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    version = get_owned_version(session, version_id, current_user.id)
    if not version:
        return jsonify(error="not_found", message="Version not found"), 404
    version.content = _content_text(body.content)
    session.commit()
    return jsonify(version=version.to_dict())
