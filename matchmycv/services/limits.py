# matchmycv/services/limits.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Analysis, Document, Usage, User, Version

# ---------- Plan config ----------

@dataclass(frozen=True)
class Quota:
    period_kind: str  # 'total' | 'month'
    limit: Optional[int]  # None = unlimited


PLAN_QUOTAS = {
    "FREE": {
        "analyses": Quota("month", 5),
        "exports":  Quota("month", 10),
        "ai_edits": Quota("month", 0),
        "versions": Quota("total", 1),  # saved versions per document
    },
    "PRO": {
        "analyses": Quota("month", None),
        "exports":  Quota("month", None),
        "ai_edits": Quota("month", None),
        "versions": Quota("total", None),
    },
}

# Feature flags (non-metered toggles)
FEATURE_FLAGS = {
    "FREE": {"ai_editor": False, "docx_export": True, "pdf_export": True},
    "PRO":  {"ai_editor": True,  "docx_export": True, "pdf_export": True},
}

# Usage rows that count toward each metered feature
USAGE_TYPES = {
    "exports": ("EXPORT_PDF", "EXPORT_DOCX"),
    "ai_edits": ("AI_EDIT",),
}

UPGRADE_MESSAGE = "You have reached the limit for the free plan, upgrade to Pro for unlimited use"


def _plan_code(plan: str | None) -> str:
    p = (plan or "FREE").upper()
    return p if p in PLAN_QUOTAS else "FREE"


def quota_for(plan: str | None, feature: str) -> Quota:
    return PLAN_QUOTAS[_plan_code(plan)].get(feature, Quota("month", None))


def feature_enabled(plan: str | None, flag: str) -> bool:
    return bool(FEATURE_FLAGS[_plan_code(plan)].get(flag, False))


# ---------- Period helpers ----------

def period_start(kind: str, now: datetime | None = None) -> datetime | None:
    """First instant of the counting period in UTC, or None for all-time."""
    if kind != "month":
        return None
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def period_key(kind: str, now: datetime | None = None) -> str:
    start = period_start(kind, now)
    return start.strftime("%Y-%m") if start else "all"


# ---------- Counters ----------

def get_usage_count(session: Session, user_id: str, feature: str,
                    since: datetime | None = None, document_id: str | None = None) -> int:
    if feature == "analyses":
        stmt = select(func.count(Analysis.id)).where(Analysis.user_id == user_id)
        if since is not None:
            stmt = stmt.where(Analysis.created_at >= since)
    elif feature == "versions":
        stmt = (
            select(func.count(Version.id))
            .join(Document, Document.id == Version.document_id)
            .where(Document.user_id == user_id)
            .where(Version.is_active.is_(False))
        )
        if document_id is not None:
            stmt = stmt.where(Version.document_id == document_id)
    else:
        stmt = (
            select(func.count(Usage.id))
            .where(Usage.user_id == user_id)
            .where(Usage.type.in_(USAGE_TYPES.get(feature, (feature.upper(),))))
        )
        if since is not None:
            stmt = stmt.where(Usage.created_at >= since)
    return int(session.execute(stmt).scalar() or 0)


def check_usage_limit(session: Session, user: User, feature: str,
                      document_id: str | None = None, now: datetime | None = None):
    """Return (allowed, info). Nothing is recorded here; call record_usage after the work succeeds."""
    if getattr(user, "is_admin", False):
        return True, {"bypass": "admin", "feature": feature}

    q = quota_for(user.plan, feature)
    if q.limit is None:
        return True, {"feature": feature, "limit": None, "current": None, "plan": _plan_code(user.plan)}

    used = get_usage_count(session, user.id, feature, period_start(q.period_kind, now), document_id)
    info = {
        "feature": feature,
        "current": used,
        "limit": q.limit,
        "plan": _plan_code(user.plan),
        "period_kind": q.period_kind,
        "period_key": period_key(q.period_kind, now),
    }
    return used < q.limit, info


def record_usage(session: Session, user_id: str, usage_type: str, **details) -> Usage:
    row = Usage(user_id=user_id, type=usage_type, details=details)
    session.add(row)
    session.commit()
    return row


def limits_summary(session: Session, user: User) -> dict:
    plan = _plan_code(user.plan)
    data = {"plan": plan, "features": {}, "flags": dict(FEATURE_FLAGS[plan])}
    for feature in ("analyses", "exports", "ai_edits"):
        q = quota_for(plan, feature)
        if q.limit is None:
            data["features"][feature] = {"used": None, "max": None, "left": None, "period_kind": q.period_kind}
            continue
        used = get_usage_count(session, user.id, feature, period_start(q.period_kind))
        data["features"][feature] = {
            "used": used,
            "max": q.limit,
            "left": max(q.limit - used, 0),
            "period_kind": q.period_kind,
            "period_key": period_key(q.period_kind),
        }
    return data
