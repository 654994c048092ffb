# matchmycv/routes/job_targets.py
from __future__ import annotations
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import select

from ..extensions import get_db
from ..models import JobTarget
from ..schemas import JobTargetRequest
from ..services.job_targets import describe_job_target

job_targets_bp = Blueprint("job_targets", __name__, url_prefix="/api/job-targets")


@job_targets_bp.get("")
@login_required
def list_job_targets():
    rows = get_db().execute(
        select(JobTarget).where(JobTarget.user_id == current_user.id).order_by(JobTarget.created_at.desc())
    ).scalars()
    return jsonify(jobTargets=[jt.to_dict() for jt in rows])


@job_targets_bp.post("")
@login_required
def create_job_target():
    body = JobTargetRequest.model_validate(request.get_json(silent=True) or {})
    extracted = describe_job_target(body.title, body.description)
    session = get_db()
    jt = JobTarget(
        user_id=current_user.id,
        title=body.title.strip(),
        company=(body.company or "").strip() or None,
        raw_text=body.description,
        **extracted,
    )
    session.add(jt)
    session.commit()
    return jsonify(jobTarget=jt.to_dict()), 201
