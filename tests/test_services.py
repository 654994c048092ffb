import json
from datetime import datetime, timezone

import pytest

from matchmycv.services.cv_content import normalize_cv_content, parse_version_content, structured_to_text
from matchmycv.services.cv_review import (
    apply_fix, fallback_cv_review, fallback_experience_review, grade_for_score, review_cv,
    review_experience,
)
from matchmycv.services.ai import AIProviderError, AIRateLimitError
from matchmycv.services.job_targets import detect_seniority, extract_requirements, extract_skills
from matchmycv.services.limits import period_key, period_start
from conftest import JOB_DESCRIPTION, SAMPLE_CV, FakeProvider


# ---------- CV content ----------

def test_normalize_accepts_sections_wrapper_and_cleans():
    cv = normalize_cv_content({"sections": {"skills": "Go, , Rust", "experience": [{"title": "Dev", "bullets": ["a", " "]}]}})
    assert cv["skills"] == ["Go", "Rust"]
    assert cv["experience"][0]["bullets"] == ["a"]
    assert cv["contact"]["email"] == ""


def test_parse_version_content():
    assert parse_version_content('{"summary": "x"}') == {"summary": "x"}
    for bad in ("raw text", "[1, 2]", ""):
        with pytest.raises(ValueError):
            parse_version_content(bad)


def test_structured_to_text():
    text = structured_to_text(json.dumps(SAMPLE_CV))
    lines = text.splitlines()
    assert lines[0] == "Jane Doe"
    assert "SUMMARY" in lines and "EXPERIENCE" in lines
    assert "Senior Engineer at Acme" in lines
    assert "• Reduced API latency by 35%" in lines
    assert "BSc Computer Science from UT Austin (2015)" in lines
    assert lines[-1] == "Python, SQL, AWS, Docker"


# ---------- Job targets ----------

def test_job_target_heuristics():
    skills = extract_skills(JOB_DESCRIPTION)
    assert {"python", "aws", "docker", "kubernetes", "sql", "postgresql", "communication"} <= set(skills)
    assert "java" not in skills and "react" not in skills
    reqs = extract_requirements(JOB_DESCRIPTION)
    assert reqs == ["5+ years of Python", "SQL and PostgreSQL required", "Must have strong communication skills."]
    assert detect_seniority("Senior Python Engineer") == "senior"
    assert detect_seniority("Entry level analyst") == "junior"
    assert detect_seniority("Backend developer") == "mid"


def test_requirements_capped():
    text = "\n".join(f"- item {i}" for i in range(20))
    assert len(extract_requirements(text)) == 10


# ---------- CV review ----------

def test_grades():
    assert [grade_for_score(s) for s in (95, 90, 85, 70, 69)] == ["A", "A", "B", "C", "D"]


def test_fallback_cv_review_penalties():
    assert fallback_cv_review(SAMPLE_CV)["overallScore"] == 85
    empty = fallback_cv_review({})
    assert empty["overallScore"] == 30
    assert empty["overallGrade"] == "D"


def test_review_cv_uses_provider_then_falls_back():
    assert review_cv(FakeProvider(), SAMPLE_CV) == {"overallGrade": "B", "overallScore": 84, "summary": "Solid CV."}
    p = FakeProvider()
    p.fail_with = AIProviderError("down")
    assert review_cv(p, SAMPLE_CV)["overallScore"] == 85
    p.fail_with = AIRateLimitError()
    with pytest.raises(AIRateLimitError):
        review_cv(p, SAMPLE_CV)


def test_fallback_experience_review():
    exp = {"bullets": ["Led migration of 40 services to Kubernetes", "Worked on billing"]}
    out = fallback_experience_review(exp, 2)
    assert out["experienceIndex"] == 2
    # first bullet is fine, second lacks metrics, is short and opens weakly
    assert [b["bulletIndex"] for b in out["bulletIssues"]] == [1]
    titles = [i["title"] for i in out["bulletIssues"][0]["issues"]]
    assert titles == ["Missing quantifiable metrics", "Too brief", "Weak action verb"]
    assert out["overallIssues"] == {"urgent": 1, "critical": 2, "optional": 0}
    assert out["bulletIssues"][0]["suggestedText"] == "Achieved 25% improvement in worked on billing"


def test_review_experience_recounts_provider_totals():
    out = review_experience(FakeProvider(), {"bullets": ["x"]}, 0)
    assert out["overallIssues"] == {"urgent": 1, "critical": 0, "optional": 0}


def test_apply_fix_decrements_without_going_negative():
    analysis = [{"experienceIndex": 0, "overallIssues": {"urgent": 1, "critical": 0, "optional": 0}}]
    once = apply_fix(analysis, 0, 3, "urgent")
    assert once[0]["overallIssues"]["urgent"] == 0
    assert analysis[0]["overallIssues"]["urgent"] == 1
    twice = apply_fix(once, 0, 3, "urgent")
    assert twice[0]["overallIssues"]["urgent"] == 0
    assert len(twice[0]["appliedFixes"]) == 2
    with pytest.raises(LookupError):
        apply_fix(analysis, 5, 0, "urgent")
    with pytest.raises(ValueError):
        apply_fix(analysis, 0, 0, "cosmetic")


# ---------- Limits ----------

def test_period_helpers():
    now = datetime(2026, 3, 17, 12, 30, tzinfo=timezone.utc)
    assert period_start("month", now) == datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert period_key("month", now) == "2026-03"
    assert period_start("total", now) is None
    assert period_key("total", now) == "all"



def test_fallback_experience_review_splits_text_bullets():
    exp = {"bullets": "Led migration of 40 services to Kubernetes\n\nWorked on billing"}
    out = fallback_experience_review(exp, 0)
    assert [b["bulletIndex"] for b in out["bulletIssues"]] == [1]
    assert out["bulletIssues"][0]["originalText"] == "Worked on billing"
