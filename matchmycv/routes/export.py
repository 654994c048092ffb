# matchmycv/routes/export.py
from __future__ import annotations
from io import BytesIO

from flask import Blueprint, current_app, jsonify, make_response, request, send_file
from flask_login import current_user, login_required

from ..extensions import EXPORT_LIMIT, get_db, limiter
from ..rendering import (
    DOCX_MIME, build_layout, page_breaks, paginate_layout, render_docx, render_html, render_pdf,
)
from ..schemas import ExportRequest, PreviewRequest
from ..security.client import user_or_ip_key
from ..services.documents import get_owned_document, resolve_content
from ..services.limits import check_usage_limit, record_usage
from .documents import safe_filename

export_bp = Blueprint("export", __name__, url_prefix="/api")


def _layout_from(body):
    """Build the layout for a preview/export body, or return an error response."""
    session = get_db()
    doc = None
    if body.document_id:
        doc = get_owned_document(session, body.document_id, current_user.id)
        if not doc:
            return None, None, (jsonify(error="not_found", message="Document not found"), 404)
    if doc is None and not body.content:
        return None, None, (jsonify(error="bad_request", message="content or documentId is required"), 400)
    try:
        if doc is not None:
            content = resolve_content(session, current_user.id, doc, body.content, body.version_id)
        else:
            content = body.content
    except LookupError:
        return None, None, (jsonify(error="not_found", message="Version not found"), 404)
    except ValueError:
        return None, None, (jsonify(error="bad_request", message="Invalid version content format"), 400)
    return doc, build_layout(content, body.template, body.settings), None


@export_bp.post("/export")
@limiter.limit(EXPORT_LIMIT, key_func=user_or_ip_key)
@login_required
def export_cv():
    body = ExportRequest.model_validate(request.get_json(silent=True) or {})
    session = get_db()
    allowed, usage = check_usage_limit(session, current_user, "exports")
    if not allowed:
        return jsonify(error="limit_exceeded", message="Export limit reached for your plan", **usage), 403

    doc, layout, error = _layout_from(body)
    if error:
        return error

    if body.format == "pdf":
        cfg = current_app.config
        payload = render_pdf(layout, engine=cfg["PDF_ENGINE"], timeout=cfg["SOFFICE_TIMEOUT"])
        mimetype = "application/pdf"
    else:
        payload = render_docx(layout)
        mimetype = DOCX_MIME

    record_usage(
        session, current_user.id, f"EXPORT_{body.format.upper()}",
        documentId=doc.id, versionId=body.version_id, template=body.template,
    )
    current_app.logger.info("Exported document %s as %s (%d bytes)", doc.id, body.format, len(payload))
    return send_file(
        BytesIO(payload), mimetype=mimetype, as_attachment=True,
        download_name=safe_filename(doc.title, body.format),
    )


@export_bp.post("/preview")
@login_required
def preview():
    body = PreviewRequest.model_validate(request.get_json(silent=True) or {})
    _, layout, error = _layout_from(body)
    if error:
        return error
    pages = paginate_layout(layout)
    geo = layout.geometry
    return jsonify(
        geometry={
            "width": geo.width, "height": geo.height, "margin": geo.margin,
            "contentWidth": geo.content_width, "contentHeight": geo.content_height,
        },
        pages=[
            {"number": p.number, "height": round(p.height, 2), "blocks": [b.key for b in p.blocks]}
            for p in pages
        ],
        pageBreaks=page_breaks([p.indices for p in pages]),
        blockCount=len(layout.blocks),
    )


@export_bp.post("/preview/html")
@login_required
def preview_html():
    body = PreviewRequest.model_validate(request.get_json(silent=True) or {})
    _, layout, error = _layout_from(body)
    if error:
        return error
    resp = make_response(render_html(layout))
    resp.headers["Content-Type"] = "text/html; charset=utf-8"
    return resp
