# matchmycv/services/ai/prompts.py
from __future__ import annotations
import json

# ---------- Match analysis ----------

ANALYSIS_SYSTEM = """You are an expert CV/resume analyst and career coach. Compare a candidate's CV against a job description and return a structured evaluation.

Score each dimension from 0 to 100:
- skillsFit (35% weight): how well the candidate's skills match the required skills
- experience (25% weight): relevance and depth of work history for the role
- keywordsATS (20% weight): presence of job-description keywords an ATS would scan for
- readability (10% weight): clarity, structure and concision of the CV
- seniority (10% weight): alignment between the candidate's level and the role's level

overallScore is the weighted score. List missing skills, weak areas and keyword opportunities (with importance high/medium/low and where to add them). Give concrete suggestions, each with section, type (rewrite/add/remove/reorder), original text, suggested text, reason and priority (high/medium/low).

Respond with JSON only."""


def analysis_user_prompt(cv_text: str, job_description: str) -> str:
    return f"""Analyze this CV against the job description.

CV CONTENT:
{cv_text}

JOB DESCRIPTION:
{job_description}"""


_SCORE = {"type": "number"}
_PRIORITY = {"type": "string", "enum": ["high", "medium", "low"]}

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "overallScore": _SCORE,
        "subScores": {
            "type": "object",
            "properties": {
                "skillsFit": _SCORE,
                "experience": _SCORE,
                "keywordsATS": _SCORE,
                "readability": _SCORE,
                "seniority": _SCORE,
            },
            "required": ["skillsFit", "experience", "keywordsATS", "readability", "seniority"],
            "additionalProperties": False,
        },
        "gaps": {
            "type": "object",
            "properties": {
                "missingSkills": {"type": "array", "items": {"type": "string"}},
                "weakAreas": {"type": "array", "items": {"type": "string"}},
                "keywordOps": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "keyword": {"type": "string"},
                            "importance": _PRIORITY,
                            "context": {"type": "string"},
                        },
                        "required": ["keyword", "importance", "context"],
                        "additionalProperties": False,
                    },
                },
            },
            "required": ["missingSkills", "weakAreas", "keywordOps"],
            "additionalProperties": False,
        },
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "section": {"type": "string"},
                    "type": {"type": "string", "enum": ["rewrite", "add", "remove", "reorder"]},
                    "original": {"type": "string"},
                    "suggested": {"type": "string"},
                    "reason": {"type": "string"},
                    "priority": _PRIORITY,
                },
                "required": ["section", "type", "original", "suggested", "reason", "priority"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["overallScore", "subScores", "gaps", "suggestions"],
    "additionalProperties": False,
}

# ---------- CV structure extraction ----------

STRUCTURE_SYSTEM = """You extract structured data from CV text. Return the candidate's contact details, professional summary, work experience (title, company, duration, achievement bullets), education (degree, institution, year) and skills. Use empty strings or empty lists for anything not present. Do not invent information. Respond with JSON only."""


def structure_user_prompt(cv_text: str) -> str:
    return f"Extract the structure of this CV:\n\n{cv_text}"


_STR = {"type": "string"}

CV_STRUCTURE_SCHEMA = {
    "type": "object",
    "properties": {
        "sections": {
            "type": "object",
            "properties": {
                "contact": {
                    "type": "object",
                    "properties": {k: _STR for k in ("name", "email", "phone", "location", "website", "linkedin")},
                    "required": ["name", "email", "phone", "location", "website", "linkedin"],
                    "additionalProperties": False,
                },
                "summary": _STR,
                "experience": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "title": _STR, "company": _STR, "duration": _STR,
                            "bullets": {"type": "array", "items": _STR},
                        },
                        "required": ["title", "company", "duration", "bullets"],
                        "additionalProperties": False,
                    },
                },
                "education": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"degree": _STR, "institution": _STR, "year": _STR},
                        "required": ["degree", "institution", "year"],
                        "additionalProperties": False,
                    },
                },
                "skills": {"type": "array", "items": _STR},
            },
            "required": ["contact", "summary", "experience", "education", "skills"],
            "additionalProperties": False,
        },
    },
    "required": ["sections"],
    "additionalProperties": False,
}

# ---------- Editor ----------

EDIT_SYSTEM = {
    "rewrite": "You are a professional CV writer. Rewrite text to be clearer, more impactful and achievement-focused. Return only the improved text.",
    "quantify": "You are a professional CV writer. Add realistic, specific metrics and numbers to achievements. Return only the improved text.",
    "keyword_fit": "You are an ATS optimisation expert. Weave relevant keywords naturally into CV text. Return only the improved text.",
    "tone_adjust": "You are a professional CV writer. Adjust tone to be confident and professional without exaggeration. Return only the improved text.",
}


def build_edit_prompt(action: str, content: str, section: str | None = None, context: str | None = None) -> str:
    where = f" from the {section} section" if section else ""
    extra = f"\n\nAdditional context: {context}" if context else ""
    if action == "quantify":
        ask = f"Add quantifiable metrics and specific numbers to this CV text{where}. Keep the original meaning."
    elif action == "keyword_fit":
        ask = f"Improve this CV text{where} by including relevant industry keywords while keeping it natural."
    elif action == "tone_adjust":
        ask = f"Adjust the tone of this CV text{where} to be more professional and confident."
    else:
        ask = f"Rewrite this CV text{where} to be more compelling, using strong action verbs."
    return f"{ask}\n\nText:\n{content}{extra}"


# ---------- CV review ----------

CV_REVIEW_SYSTEM = """You are a senior recruiter grading CVs. Return JSON with:
- overallGrade: one of A, B, C, D
- overallScore: number 0-100
- summary: two or three sentences on the CV's main strengths and weaknesses
Respond with JSON only."""


def cv_review_user_prompt(content: dict) -> str:
    return f"Grade this CV:\n\n{json.dumps(content, ensure_ascii=False, indent=2)}"


EXPERIENCE_REVIEW_SYSTEM = """You review the bullet points of one CV experience entry. Return JSON:
{"experienceAnalysis": {"experienceIndex": <int>, "overallIssues": {"urgent": <int>, "critical": <int>, "optional": <int>},
 "bulletIssues": [{"bulletIndex": <int>, "originalText": <str>, "issues": [{"type": <str>, "priority": "urgent"|"critical"|"optional", "title": <str>, "description": <str>, "suggestion": <str>}], "suggestedText": <str>}]}}
Urgent: missing metrics or impact. Critical: weak verbs, vague or too brief. Optional: style polish.
Respond with JSON only."""


def experience_review_user_prompt(experience: dict, index: int) -> str:
    return (
        f"Experience index: {index}\n\n"
        f"{json.dumps(experience, ensure_ascii=False, indent=2)}"
    )
