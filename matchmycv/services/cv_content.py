# matchmycv/services/cv_content.py
from __future__ import annotations
import json
from typing import Any

from ..schemas import CVContent


def normalize_cv_content(data: Any) -> dict:
    """Coerce loosely shaped CV data (LLM output, editor payloads) into the canonical dict."""
    if isinstance(data, CVContent):
        return data.model_dump()
    if isinstance(data, str):
        data = parse_version_content(data)
    data = dict(data or {})
    if isinstance(data.get("sections"), dict):
        data = data["sections"]
    return CVContent.model_validate(data).model_dump()


def parse_version_content(raw: str) -> dict:
    try:
        parsed = json.loads(raw or "")
    except (TypeError, json.JSONDecodeError) as e:
        raise ValueError("Invalid version content format") from e
    if not isinstance(parsed, dict):
        raise ValueError("Invalid version content format")
    return parsed


def dump_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False)


def structured_to_text(content: Any) -> str:
    """Plain-text rendering used as LLM input when analysing an edited version."""
    cv = normalize_cv_content(content)
    contact = cv["contact"]
    parts: list[str] = []

    for key in ("name", "email", "phone", "location"):
        if contact.get(key):
            parts.append(contact[key])
    if parts:
        parts.append("")

    if cv["summary"]:
        parts += ["SUMMARY", cv["summary"], ""]

    if cv["experience"]:
        parts.append("EXPERIENCE")
        for exp in cv["experience"]:
            heading = " at ".join(p for p in (exp["title"], exp["company"]) if p)
            if heading:
                parts.append(heading)
            if exp["duration"]:
                parts.append(exp["duration"])
            parts += [f"• {b}" for b in exp["bullets"]]
            parts.append("")

    if cv["education"]:
        parts.append("EDUCATION")
        for edu in cv["education"]:
            line = edu["degree"]
            if edu["institution"]:
                line = f"{line} from {edu['institution']}" if line else edu["institution"]
            if edu["year"]:
                line = f"{line} ({edu['year']})"
            parts.append(line)
        parts.append("")

    if cv["skills"]:
        parts += ["SKILLS", ", ".join(cv["skills"])]

    return "\n".join(parts).strip()
