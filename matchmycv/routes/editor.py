# matchmycv/routes/editor.py
from __future__ import annotations
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from ..extensions import EDIT_LIMIT, get_db, limiter
from ..schemas import EditRequest
from ..security.client import user_or_ip_key
from ..services.ai import get_ai_provider
from ..services.ai.prompts import build_edit_prompt
from ..services.documents import get_owned_document
from ..services.limits import check_usage_limit, feature_enabled, record_usage

editor_bp = Blueprint("editor", __name__, url_prefix="/api")


@editor_bp.post("/ai-edit")
@limiter.limit(EDIT_LIMIT, key_func=user_or_ip_key)
@login_required
def ai_edit():
    if not current_user.is_admin and not feature_enabled(current_user.plan, "ai_editor"):
        return jsonify(error="upgrade_required", message="The AI editor is available on the Pro plan"), 403

    body = EditRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    if not get_owned_document(session, body.document_id, current_user.id):
        return jsonify(error="not_found", message="Document not found"), 404

    allowed, usage = check_usage_limit(session, current_user, "ai_edits")
    if not allowed:
        return jsonify(error="limit_exceeded", message="AI edit limit reached for your plan", **usage), 403

    prompt = build_edit_prompt(body.action, body.content, body.section, body.context)
    edited = get_ai_provider().edit_text(prompt, body.action)
    record_usage(session, current_user.id, "AI_EDIT", documentId=body.document_id, action=body.action)

    return jsonify(
        editedText=edited,
        originalText=body.content,
        action=body.action,
        section=body.section,
    )
