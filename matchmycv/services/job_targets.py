# matchmycv/services/job_targets.py
from __future__ import annotations
import re

SKILL_KEYWORDS = (
    "javascript", "typescript", "react", "node.js", "python", "java", "c++",
    "html", "css", "aws", "docker", "kubernetes", "git", "sql", "mongodb",
    "postgresql", "redis", "project management", "agile", "scrum", "leadership",
    "communication", "analytical", "problem solving", "team work", "collaboration",
)
BULLET_PAT = re.compile(r"^\s*(?:[-•*]|\d+[.)])\s+")
MAX_REQUIREMENTS = 10


def extract_skills(text: str) -> list[str]:
    low = (text or "").lower()
    out = []
    for kw in SKILL_KEYWORDS:
        # word boundaries that still work for "c++" and "node.js"
        if re.search(rf"(?<![a-z0-9]){re.escape(kw)}(?![a-z0-9])", low):
            out.append(kw)
    return out


def extract_requirements(text: str) -> list[str]:
    out = []
    for line in (text or "").splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        low = stripped.lower()
        if BULLET_PAT.match(stripped) or "required" in low or "must have" in low:
            out.append(BULLET_PAT.sub("", stripped).strip())
        if len(out) >= MAX_REQUIREMENTS:
            break
    return out


def detect_seniority(text: str) -> str:
    low = (text or "").lower()
    if any(re.search(rf"\b{w}\b", low) for w in ("senior", "lead", "principal")):
        return "senior"
    if any(re.search(rf"\b{w}\b", low) for w in ("junior", "entry", "associate")):
        return "junior"
    return "mid"


def describe_job_target(title: str, description: str) -> dict:
    text = f"{title}\n{description}"
    return {
        "skills": extract_skills(description),
        "requirements": extract_requirements(description),
        "seniority": detect_seniority(text),
    }
