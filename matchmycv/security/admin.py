# matchmycv/security/admin.py
from __future__ import annotations
from functools import wraps

from flask import jsonify
from flask_login import current_user, login_required


def require_admin(fn):
    """Use on admin API routes: blocks anyone whose role is not ADMIN with a 403."""
    @wraps(fn)
    @login_required
    def _wrapped(*args, **kwargs):
        if not getattr(current_user, "is_admin", False):
            return jsonify(error="forbidden", message="Admin access required"), 403
        return fn(*args, **kwargs)
    return _wrapped
