# matchmycv/routes/analysis.py
from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import select

from ..extensions import ANALYSIS_LIMIT, get_db, limiter
from ..models import Analysis, CVAnalysis
from ..security.client import user_or_ip_key
from ..schemas import (
    AnalysisRequest, AppliedFixRequest, CVReviewRequest, ExperienceReviewRequest,
    SaveExperienceAnalysisRequest,
)
from ..services.ai import AIProviderError, get_ai_provider, weighted_overall
from ..services.cv_content import parse_version_content, structured_to_text
from ..services.cv_review import apply_fix, review_cv, review_experience
from ..services.documents import (
    get_owned_document, get_owned_job_target, get_owned_version, latest_cv_analysis,
)
from ..services.limits import UPGRADE_MESSAGE, check_usage_limit, record_usage

analysis_bp = Blueprint("analysis", __name__, url_prefix="/api")


def _not_found(what: str):
    return jsonify(error="not_found", message=f"{what} not found"), 404


@analysis_bp.post("/analyze")
@limiter.limit(ANALYSIS_LIMIT, key_func=user_or_ip_key)
@login_required
def analyze():
    session = get_db()
    allowed, usage = check_usage_limit(session, current_user, "analyses")
    if not allowed:
        return jsonify(error="limit_exceeded", message=f"Analysis limit exceeded. {UPGRADE_MESSAGE}", **usage), 403

    body = AnalysisRequest.model_validate(request.get_json(silent=True) or {})
    doc = get_owned_document(session, body.document_id, current_user.id)
    if not doc:
        return _not_found("Document")
    job_target = get_owned_job_target(session, body.job_target_id, current_user.id)
    if not job_target:
        return _not_found("Job target")

    cv_text = doc.raw_text or ""
    if body.version_id:
        version = get_owned_version(session, body.version_id, current_user.id, doc.id)
        if not version:
            return _not_found("Version")
        try:
            cv_text = structured_to_text(parse_version_content(version.content))
        except ValueError:
            return jsonify(error="bad_request", message="Invalid version content format"), 400
    if not cv_text.strip():
        return jsonify(error="bad_request", message="Document has no text to analyze"), 400

    result = get_ai_provider().generate_analysis(cv_text, job_target.raw_text)
    if body.weights is not None:
        weights = body.weights.model_dump(by_alias=True)
        result["overallScore"] = weighted_overall(result["subScores"], weights)

    analysis = Analysis(
        user_id=current_user.id,
        document_id=doc.id,
        version_id=body.version_id,
        job_target_id=job_target.id,
        overall_score=result["overallScore"],
        sub_scores=result["subScores"],
        gaps=result["gaps"],
        suggestions=result["suggestions"],
    )
    session.add(analysis)
    session.commit()
    record_usage(session, current_user.id, "ANALYSIS", documentId=doc.id, analysisId=analysis.id)
    current_app.logger.info("Analysis %s scored %s", analysis.id, analysis.overall_score)

    current = usage.get("current")
    return jsonify(
        analysis=analysis.to_dict(),
        document={"id": doc.id, "title": doc.title},
        jobTarget={"id": job_target.id, "title": job_target.title, "company": job_target.company},
        usage={
            "current": current + 1 if current is not None else None,
            "limit": usage.get("limit"),
            "plan": usage.get("plan", current_user.plan),
        },
    )


@analysis_bp.get("/analyses")
@login_required
def analyses_history():
    rows = get_db().execute(
        select(Analysis).where(Analysis.user_id == current_user.id).order_by(Analysis.created_at.desc()).limit(100)
    ).scalars()
    out = []
    for a in rows:
        item = a.to_dict()
        item["documentTitle"] = a.document.title if a.document else None
        item["jobTargetTitle"] = a.job_target.title if a.job_target else None
        out.append(item)
    return jsonify(analyses=out)


@analysis_bp.get("/analyses/<analysis_id>")
@login_required
def analysis_detail(analysis_id: str):
    a = get_db().execute(
        select(Analysis).where(Analysis.id == analysis_id, Analysis.user_id == current_user.id)
    ).scalar_one_or_none()
    if not a:
        return _not_found("Analysis")
    return jsonify(
        analysis=a.to_dict(),
        document={"id": a.document.id, "title": a.document.title},
        jobTarget=a.job_target.to_dict() if a.job_target else None,
    )


# ---------- CV review (grade + per-experience bullets) ----------

def _provider_or_none():
    try:
        return get_ai_provider()
    except (AIProviderError, ValueError) as e:
        current_app.logger.warning("AI provider unavailable, using rule-based review: %s", e)
        return None


@analysis_bp.post("/cv-analysis")
@login_required
def cv_analysis():
    body = CVReviewRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    doc = get_owned_document(session, body.document_id, current_user.id)
    if not doc:
        return _not_found("Document")
    if body.version_id and not get_owned_version(session, body.version_id, current_user.id, doc.id):
        return _not_found("Version")

    review = review_cv(_provider_or_none(), body.content)
    row = CVAnalysis(
        document_id=doc.id,
        version_id=body.version_id,
        overall_grade=review["overallGrade"],
        overall_score=review["overallScore"],
        summary=review["summary"],
        urgent_fixes=[], critical_fixes=[], optional_fixes=[],
    )
    session.add(row)
    session.commit()
    return jsonify(**review, id=row.id, urgentFixes=[], criticalFixes=[], optionalFixes=[])


@analysis_bp.post("/experience-analysis")
@login_required
def experience_analysis():
    body = ExperienceReviewRequest.model_validate(request.get_json(silent=True) or {})
    if not get_owned_document(get_db(), body.document_id, current_user.id):
        return _not_found("Document")
    result = review_experience(_provider_or_none(), body.experience, body.experience_index)
    return jsonify(experienceAnalysis=result)


@analysis_bp.post("/save-experience-analysis")
@login_required
def save_experience_analysis():
    body = SaveExperienceAnalysisRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    if not get_owned_document(session, body.document_id, current_user.id):
        return _not_found("Document")
    row = latest_cv_analysis(session, body.document_id, body.version_id)
    if not row:
        return _not_found("CV analysis")
    row.experience_analysis = body.experience_analysis
    session.commit()
    return jsonify(success=True, id=row.id)


@analysis_bp.post("/update-applied-fixes")
@login_required
def update_applied_fixes():
    body = AppliedFixRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    if not get_owned_document(session, body.document_id, current_user.id):
        return _not_found("Document")
    row = latest_cv_analysis(session, body.document_id, body.version_id)
    if not row or not row.experience_analysis:
        return _not_found("Experience analysis")
    try:
        updated = apply_fix(row.experience_analysis, body.experience_index, body.bullet_index, body.fix_type)
    except LookupError as e:
        return jsonify(error="not_found", message=str(e)), 404
    # reassign so the JSON column is flagged dirty
    row.experience_analysis = updated
    session.commit()
    return jsonify(success=True, experienceAnalysis=updated)


@analysis_bp.get("/get-version-analysis")
@login_required
def get_version_analysis():
    document_id = request.args.get("documentId")
    version_id = request.args.get("versionId") or None
    if not document_id:
        return jsonify(error="bad_request", message="documentId is required"), 400
    session = get_db()
    if not get_owned_document(session, document_id, current_user.id):
        return _not_found("Document")
    row = latest_cv_analysis(session, document_id, version_id)
    if not row:
        return jsonify(analysis=None, experienceAnalysis=None)
    return jsonify(analysis=row.to_dict(), experienceAnalysis=row.experience_analysis)
