# matchmycv/services/file_processing.py
from __future__ import annotations

import logging, re
from io import BytesIO

import docx
from PyPDF2 import PdfReader

from .ai import AIProvider, AIProviderError, AIRateLimitError
from .cv_content import normalize_cv_content

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ALLOWED_MIME_TYPES = {PDF_MIME: "pdf", DOCX_MIME: "docx"}

# ========= Patterns =========
EMAIL_PAT = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.I)
PHONE_PAT = re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
LINKEDIN_PAT = re.compile(r"linkedin\.com/(?:in|pub)/[A-Za-z0-9_-]+", re.I)
BULLET_MARKERS = ("-", "•", "*")

JOB_TITLE_WORDS = ("developer", "engineer", "manager", "analyst", "coordinator",
                   "assistant", "director", "specialist")
EDUCATION_WORDS = ("university", "college", "bachelor", "master", "degree", "phd", "diploma")
SKILL_WORDS = (
    "javascript", "python", "java", "react", "node", "sql", "aws", "docker", "git",
    "html", "css", "typescript", "angular", "vue", "mongodb", "postgresql",
    "leadership", "communication", "project management", "agile", "scrum",
)
SECTION_HEADINGS = ("summary", "objective", "profile", "experience", "employment",
                    "education", "skills", "projects", "certifications")


class UnsupportedFileType(ValueError):
    pass


# ========= Text extraction =========
def extract_text_from_file(data: bytes, mime_type: str) -> str:
    if mime_type == PDF_MIME:
        return _extract_pdf(data)
    if mime_type == DOCX_MIME:
        return _extract_docx(data)
    raise UnsupportedFileType(f"Unsupported file type: {mime_type}")


def _extract_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(BytesIO(data))
        text = "\n".join((page.extract_text() or "") for page in reader.pages).strip()
    except Exception:
        logger.exception("PDF text extraction failed")
        text = ""
    if not text:
        return (
            f"[PDF file uploaded successfully - {len(data)} bytes]\n\n"
            "Text could not be extracted automatically. "
            "You can still edit the CV content manually in the editor."
        )
    return text


def _extract_docx(data: bytes) -> str:
    try:
        d = docx.Document(BytesIO(data))
    except Exception as e:
        raise UnsupportedFileType("Could not read DOCX file") from e
    lines = [p.text for p in d.paragraphs]
    for table in d.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines).strip()


# ========= Structuring =========
def structure_cv_text(raw_text: str, provider: AIProvider | None) -> dict:
    """Ask the LLM for CV sections; fall back to regex heuristics on failure.

    Rate-limit errors propagate so the caller can answer 429.
    """
    if provider is not None:
        try:
            return provider.extract_cv_structure(raw_text)["sections"]
        except AIRateLimitError:
            raise
        except AIProviderError as e:
            logger.warning("AI structuring failed, using heuristic extraction: %s", e)
    return heuristic_structure(raw_text)


def heuristic_structure(text: str) -> dict:
    lines = [ln.strip() for ln in (text or "").splitlines() if ln.strip()]
    email = EMAIL_PAT.search(text or "")
    phone = PHONE_PAT.search(text or "")
    linkedin = LINKEDIN_PAT.search(text or "")

    name = ""
    for ln in lines[:5]:
        if EMAIL_PAT.search(ln) or PHONE_PAT.search(ln) or len(ln.split()) > 5:
            continue
        if ln.lower() in SECTION_HEADINGS:
            continue
        name = ln
        break

    return normalize_cv_content({
        "contact": {
            "name": name,
            "email": email.group(0) if email else "",
            "phone": phone.group(0) if phone else "",
            "linkedin": linkedin.group(0) if linkedin else "",
        },
        "summary": " ".join(_section_lines(lines, ("summary", "objective", "profile")))[:500],
        "experience": _extract_experience(_section_lines(lines, ("experience", "employment")) or lines),
        "education": _extract_education(_section_lines(lines, ("education",)) or lines),
        "skills": _extract_skills(text),
    })


def _is_heading(line: str) -> bool:
    h = re.sub(r"[^a-z ]+", "", line.lower()).strip()
    return any(h == w or h.startswith(w + " ") or h.endswith(" " + w) for w in SECTION_HEADINGS) and len(h.split()) <= 3


def _section_lines(lines: list[str], names: tuple[str, ...]) -> list[str]:
    out, inside = [], False
    for ln in lines:
        if _is_heading(ln):
            h = ln.lower()
            inside = any(n in h for n in names)
            continue
        if inside:
            out.append(ln)
    return out


def _extract_experience(lines: list[str]) -> list[dict]:
    entries: list[dict] = []
    current = None
    for ln in lines:
        low = ln.lower()
        if ln.startswith(BULLET_MARKERS):
            if current is not None:
                current["bullets"].append(ln.lstrip("".join(BULLET_MARKERS)).strip())
            continue
        if len(entries) < 5 and any(w in low for w in JOB_TITLE_WORDS) and not _is_heading(ln):
            parts = [p.strip() for p in ln.split("|")]
            current = {
                "title": parts[0],
                "company": parts[1] if len(parts) > 1 else "",
                "duration": parts[2] if len(parts) > 2 else "",
                "bullets": [],
            }
            entries.append(current)
    return entries


def _extract_education(lines: list[str]) -> list[dict]:
    out = []
    for ln in lines:
        low = ln.lower()
        if _is_heading(ln) or not any(w in low for w in EDUCATION_WORDS):
            continue
        year = re.search(r"\b(19|20)\d{2}\b", ln)
        parts = [p.strip() for p in ln.split("|")]
        out.append({
            "degree": parts[0],
            "institution": parts[1] if len(parts) > 1 else "",
            "year": year.group(0) if year else "",
        })
        if len(out) >= 3:
            break
    return out


def _extract_skills(text: str) -> list[str]:
    low = (text or "").lower()
    found = []
    for skill in SKILL_WORDS:
        if re.search(rf"(?<![a-z]){re.escape(skill)}(?![a-z])", low):
            found.append(skill[:1].upper() + skill[1:])
        if len(found) >= 10:
            break
    return found
