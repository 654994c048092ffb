# matchmycv/routes/admin.py
from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request

from ..extensions import get_db
from ..models import User
from ..schemas import UpdateUserRequest
from ..security.admin import require_admin
from ..services.storage import get_storage

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.patch("/users/<user_id>")
@require_admin
def update_user(user_id: str):
    body = UpdateUserRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    user = session.get(User, user_id)
    if not user:
        return jsonify(error="not_found", message="User not found"), 404
    for field, value in body.model_dump(exclude_none=True).items():
        setattr(user, field, value)
    session.commit()
    current_app.logger.info("Admin updated user %s: %s", user.id, body.model_dump(exclude_none=True))
    return jsonify(user=user.to_dict())


@admin_bp.get("/storage")
@require_admin
def storage_check():
    storage = get_storage()
    ok, error = storage.check()
    return jsonify(backend=storage.kind, ok=ok, error=error), (200 if ok else 503)
