# matchmycv/routes/auth.py
from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from ..extensions import get_db, limit_auth
from ..schemas import ChangePasswordRequest, SignInRequest, SignUpRequest, UpdateProfileRequest
from ..services.limits import limits_summary
from ..services.users import (
    UserExistsError, authenticate, create_user, find_user_by_email, normalize_email,
    password_matches, set_password,
)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
@limit_auth
def register():
    body = SignUpRequest.model_validate(request.get_json(silent=True) or {})
    try:
        user = create_user(get_db(), body.name, body.email, body.password)
    except UserExistsError:
        return jsonify(error="bad_request", message="User already exists"), 400
    current_app.logger.info("New account %s", user.id)
    return jsonify(message="User created successfully", user=user.to_dict()), 201


@auth_bp.post("/login")
@limit_auth
def login():
    body = SignInRequest.model_validate(request.get_json(silent=True) or {})
    user = authenticate(get_db(), body.email, body.password)
    if not user:
        return jsonify(error="unauthorized", message="Invalid email or password"), 401
    login_user(user, remember=True)
    return jsonify(user=user.to_dict())


@auth_bp.post("/logout")
def logout():
    logout_user()
    return ("", 204)


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user=current_user.to_dict(), limits=limits_summary(get_db(), current_user))


@auth_bp.patch("/profile")
@login_required
def update_profile():
    body = UpdateProfileRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    email = normalize_email(body.email)
    if email != current_user.email:
        other = find_user_by_email(session, email)
        if other is not None and other.id != current_user.id:
            return jsonify(error="bad_request", message="Email is already in use"), 400
    user = session.merge(current_user._get_current_object())
    user.name = body.name.strip()
    user.email = email
    session.commit()
    return jsonify(user=user.to_dict())


@auth_bp.post("/change-password")
@login_required
def change_password():
    body = ChangePasswordRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    user = session.merge(current_user._get_current_object())
    if not password_matches(user, body.current_password):
        return jsonify(error="bad_request", message="Current password is incorrect"), 400
    set_password(session, user, body.new_password)
    return jsonify(message="Password updated")
