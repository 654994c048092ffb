# matchmycv/services/ai/base.py
from __future__ import annotations
import json, logging, re, uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import ValidationError

from . import prompts
from ..cv_content import normalize_cv_content

logger = logging.getLogger(__name__)

SUB_SCORE_KEYS = ("skillsFit", "experience", "keywordsATS", "readability", "seniority")
DEFAULT_WEIGHTS = {"skillsFit": 35, "experience": 25, "keywordsATS": 20, "readability": 10, "seniority": 10}
RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."


class AIProviderError(Exception):
    """The LLM call failed or returned something unusable."""


class AIRateLimitError(AIProviderError):
    def __init__(self, message: str = RATE_LIMIT_MESSAGE):
        super().__init__(message)


class AIResponseParseError(AIProviderError):
    pass


# ---------- JSON helpers ----------

def parse_json_response(content: str) -> dict:
    """Strip code fences, take the outermost {...} and parse it."""
    text = re.sub(r"```(?:json)?", "", content or "").strip()
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise AIResponseParseError("No JSON object in AI response")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise AIResponseParseError(f"Malformed JSON in AI response: {e}") from e
    if not isinstance(data, dict):
        raise AIResponseParseError("AI response is not a JSON object")
    return data


def _score(value: Any, default: float = 0) -> int:
    try:
        v = float(value)
    except (TypeError, ValueError):
        v = default
    return int(round(min(100, max(0, v))))


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    return [str(v).strip() for v in (value or []) if v is not None and str(v).strip()]


def normalize_analysis(data: dict) -> dict:
    subs = data.get("subScores") or {}
    sub_scores = {k: _score(subs.get(k)) for k in SUB_SCORE_KEYS}

    gaps = data.get("gaps") or {}
    keyword_ops = []
    for op in gaps.get("keywordOps") or []:
        if isinstance(op, str):
            op = {"keyword": op, "importance": "medium", "context": ""}
        if isinstance(op, dict) and op.get("keyword"):
            keyword_ops.append({
                "keyword": str(op["keyword"]),
                "importance": op.get("importance") if op.get("importance") in ("high", "medium", "low") else "medium",
                "context": str(op.get("context") or ""),
            })

    suggestions = []
    for s in data.get("suggestions") or []:
        if not isinstance(s, dict) or not (s.get("suggested") or s.get("reason")):
            continue
        suggestions.append({
            "id": str(s.get("id") or uuid.uuid4().hex[:12]),
            "section": str(s.get("section") or "general"),
            "type": s.get("type") if s.get("type") in ("rewrite", "add", "remove", "reorder") else "rewrite",
            "original": str(s.get("original") or ""),
            "suggested": str(s.get("suggested") or ""),
            "reason": str(s.get("reason") or ""),
            "priority": s.get("priority") if s.get("priority") in ("high", "medium", "low") else "medium",
        })

    overall = data.get("overallScore")
    return {
        "overallScore": _score(overall) if overall is not None else weighted_overall(sub_scores),
        "subScores": sub_scores,
        "gaps": {
            "missingSkills": _str_list(gaps.get("missingSkills")),
            "weakAreas": _str_list(gaps.get("weakAreas")),
            "keywordOps": keyword_ops,
        },
        "suggestions": suggestions,
    }


def weighted_overall(sub_scores: dict, weights: Optional[dict] = None) -> int:
    weights = weights or DEFAULT_WEIGHTS
    total = sum(float(weights.get(k, 0)) for k in SUB_SCORE_KEYS)
    if total <= 0:
        return 0
    acc = sum(float(sub_scores.get(k, 0)) * float(weights.get(k, 0)) for k in SUB_SCORE_KEYS)
    return int(round(acc / total))


# ---------- Provider interface ----------

class AIProvider(ABC):
    """Prompting and parsing live here; variants only supply the transport."""

    name = "base"

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    def chat(self, system: str, user: str, *, temperature: float, max_tokens: int,
             schema: Optional[dict] = None, schema_name: Optional[str] = None) -> str:
        """Return the raw text of one completion."""

    @abstractmethod
    def generate_embeddings(self, text: str) -> list[float]:
        ...

    def generate_analysis(self, cv_text: str, job_description: str) -> dict:
        content = self.chat(
            prompts.ANALYSIS_SYSTEM,
            prompts.analysis_user_prompt(cv_text, job_description),
            temperature=0.3, max_tokens=3000,
            schema=prompts.ANALYSIS_SCHEMA, schema_name="cv_analysis",
        )
        return normalize_analysis(parse_json_response(content))

    def edit_text(self, prompt: str, action: str) -> str:
        content = self.chat(
            prompts.EDIT_SYSTEM.get(action, prompts.EDIT_SYSTEM["rewrite"]),
            prompt,
            temperature=0.4, max_tokens=1500,
        )
        text = (content or "").strip()
        if not text:
            raise AIProviderError("No response from AI service")
        return text

    def extract_cv_structure(self, cv_text: str) -> dict:
        content = self.chat(
            prompts.STRUCTURE_SYSTEM,
            prompts.structure_user_prompt(cv_text),
            temperature=0.1, max_tokens=3000,
            schema=prompts.CV_STRUCTURE_SCHEMA, schema_name="cv_structure",
        )
        try:
            sections = normalize_cv_content(parse_json_response(content))
        except ValidationError as e:
            raise AIResponseParseError(f"CV structure did not validate: {e.error_count()} errors") from e
        return {"sections": sections}

    def review_cv(self, content: dict) -> dict:
        raw = self.chat(
            prompts.CV_REVIEW_SYSTEM,
            prompts.cv_review_user_prompt(content),
            temperature=0.3, max_tokens=800,
        )
        data = parse_json_response(raw)
        if "overallScore" not in data:
            raise AIResponseParseError("CV review is missing overallScore")
        return data

    def review_experience(self, experience: dict, index: int) -> dict:
        raw = self.chat(
            prompts.EXPERIENCE_REVIEW_SYSTEM,
            prompts.experience_review_user_prompt(experience, index),
            temperature=0.3, max_tokens=1500,
        )
        data = parse_json_response(raw)
        if not isinstance(data.get("experienceAnalysis"), dict):
            raise AIResponseParseError("Experience review is missing experienceAnalysis")
        return data
