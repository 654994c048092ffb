# matchmycv/services/cv_review.py
"""Whole-CV grading and per-experience bullet review.

Both ask the LLM first and fall back to simple rules when the call or the
JSON parse fails, so the editor always gets something to show.
"""
from __future__ import annotations
import copy, logging, re

from .ai import AIProvider, AIProviderError, AIRateLimitError
from .cv_content import normalize_cv_content

logger = logging.getLogger(__name__)

PRIORITIES = ("urgent", "critical", "optional")
STRONG_VERBS = ("achieved", "developed", "led", "managed", "improved", "created", "implemented")


def grade_for_score(score: int) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    return "D"


# ---------- whole CV ----------

def fallback_cv_review(content: dict) -> dict:
    cv = normalize_cv_content(content)
    score = 85
    if not cv["contact"]["name"] or not cv["contact"]["email"]:
        score -= 15
    if len(cv["summary"]) < 50:
        score -= 10
    if not cv["experience"]:
        score -= 20
    if not cv["skills"]:
        score -= 10
    score = max(0, score)
    return {
        "overallGrade": grade_for_score(score),
        "overallScore": score,
        "summary": "Your CV has been analyzed. Review each experience entry for detailed, bullet-level suggestions.",
    }


def review_cv(provider: AIProvider | None, content: dict) -> dict:
    if provider is not None:
        try:
            data = provider.review_cv(content)
            score = int(round(min(100, max(0, float(data.get("overallScore") or 0)))))
            grade = str(data.get("overallGrade") or "").strip().upper()[:1]
            return {
                "overallGrade": grade if grade in ("A", "B", "C", "D") else grade_for_score(score),
                "overallScore": score,
                "summary": str(data.get("summary") or ""),
            }
        except AIRateLimitError:
            raise
        except (AIProviderError, TypeError, ValueError) as e:
            logger.warning("CV review fell back to rules: %s", e)
    return fallback_cv_review(content)


# ---------- one experience entry ----------

def _bullet_issues(text: str) -> list[dict]:
    issues = []
    if not re.search(r"\d", text):
        issues.append({
            "type": "metrics", "priority": "urgent",
            "title": "Missing quantifiable metrics",
            "description": "This bullet has no numbers showing the scale or impact of the work.",
            "suggestion": "Add a concrete figure such as a percentage, amount, team size or time saved.",
        })
    if len(text) < 30:
        issues.append({
            "type": "length", "priority": "critical",
            "title": "Too brief",
            "description": "The bullet is too short to show what you did and why it mattered.",
            "suggestion": "Expand it with the action, the context and the result.",
        })
    first = (text.split() or [""])[0].strip(",.;:").lower()
    if first not in STRONG_VERBS:
        issues.append({
            "type": "verb", "priority": "critical",
            "title": "Weak action verb",
            "description": "The bullet does not open with a strong action verb.",
            "suggestion": "Start with a verb such as Achieved, Developed, Led, Managed or Improved.",
        })
    return issues


def count_issues(bullet_issues: list[dict]) -> dict:
    counts = dict.fromkeys(PRIORITIES, 0)
    for bullet in bullet_issues or []:
        for issue in bullet.get("issues") or []:
            p = issue.get("priority")
            if p in counts:
                counts[p] += 1
    return counts


def fallback_experience_review(experience: dict, index: int) -> dict:
    bullets = experience.get("bullets") or []
    if isinstance(bullets, str):
        bullets = bullets.splitlines()
    bullets = [b for b in bullets if str(b).strip()]
    bullet_issues = []
    for i, bullet in enumerate(bullets):
        text = str(bullet).strip()
        issues = _bullet_issues(text)
        if not issues:
            continue
        suggested = text
        if not re.search(r"\d", text):
            rest = text[:1].lower() + text[1:]
            suggested = f"Achieved 25% improvement in {rest}"
        bullet_issues.append({
            "bulletIndex": i,
            "originalText": text,
            "issues": issues,
            "suggestedText": suggested,
        })
    return {
        "experienceIndex": index,
        "overallIssues": count_issues(bullet_issues),
        "bulletIssues": bullet_issues,
    }


def review_experience(provider: AIProvider | None, experience: dict, index: int) -> dict:
    if provider is not None:
        try:
            data = provider.review_experience(experience, index)["experienceAnalysis"]
            bullet_issues = [b for b in (data.get("bulletIssues") or []) if isinstance(b, dict)]
            return {
                "experienceIndex": index,
                "overallIssues": count_issues(bullet_issues),
                "bulletIssues": bullet_issues,
            }
        except AIRateLimitError:
            raise
        except (AIProviderError, KeyError, TypeError, AttributeError) as e:
            logger.warning("Experience review fell back to rules: %s", e)
    return fallback_experience_review(experience, index)


def apply_fix(experience_analysis: list[dict], experience_index: int, bullet_index: int, fix_type: str) -> list[dict]:
    """Return a copy with one issue of ``fix_type`` marked applied for the experience entry."""
    if fix_type not in PRIORITIES:
        raise ValueError(f"Unknown fix type: {fix_type}")
    updated = copy.deepcopy(experience_analysis or [])
    for entry in updated:
        if entry.get("experienceIndex") != experience_index:
            continue
        counts = entry.setdefault("overallIssues", dict.fromkeys(PRIORITIES, 0))
        counts[fix_type] = max(0, int(counts.get(fix_type) or 0) - 1)
        applied = entry.setdefault("appliedFixes", [])
        applied.append({"bulletIndex": bullet_index, "fixType": fix_type})
        return updated
    raise LookupError(f"No analysis for experience {experience_index}")
