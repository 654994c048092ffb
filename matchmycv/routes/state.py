# matchmycv/routes/state.py
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from ..extensions import get_db
from ..services.limits import limits_summary

state_bp = Blueprint("state", __name__)


@state_bp.get("/api/limits")
@login_required
def api_limits():
    return jsonify(limits_summary(get_db(), current_user))
