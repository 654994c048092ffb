# matchmycv/routes/__init__.py
from __future__ import annotations
from flask import Flask


def register_routes(app: Flask) -> None:
    from .auth import auth_bp
    from .documents import documents_bp
    from .versions import versions_bp
    from .job_targets import job_targets_bp
    from .analysis import analysis_bp
    from .editor import editor_bp
    from .export import export_bp
    from .state import state_bp
    from .billing import billing_bp
    from .admin import admin_bp

    for bp in (auth_bp, documents_bp, versions_bp, job_targets_bp, analysis_bp,
               editor_bp, export_bp, state_bp, billing_bp, admin_bp):
        app.register_blueprint(bp)
