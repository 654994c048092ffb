from io import BytesIO

import docx
import pytest

from matchmycv.services.ai import AIProviderError, AIRateLimitError
from matchmycv.services.file_processing import (
    DOCX_MIME, PDF_MIME, UnsupportedFileType, extract_text_from_file, heuristic_structure,
    structure_cv_text,
)
from conftest import FakeProvider

CV_TEXT = """John Smith
john.smith@example.com | (512) 555-0199 | linkedin.com/in/johnsmith

Summary
Data analyst who turns messy data into decisions.

Experience
Senior Data Analyst | Initech | 2020 - 2024
- Built dashboards in SQL and Python
- Cut reporting time by 40%
Marketing Coordinator | Globex
• Ran campaigns

Education
Bachelor of Science | State University | 2016

Skills
Python, SQL, Leadership, Communication
"""


def make_docx(lines, table=None):
    d = docx.Document()
    for line in lines:
        d.add_paragraph(line)
    if table:
        t = d.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, val in enumerate(row):
                t.cell(r, c).text = val
    buf = BytesIO()
    d.save(buf)
    return buf.getvalue()


def test_docx_extraction_includes_tables():
    data = make_docx(["Jane Doe", "Engineer"], table=[["Skill", "Years"], ["Python", "8"]])
    text = extract_text_from_file(data, DOCX_MIME)
    assert text.startswith("Jane Doe\nEngineer")
    assert "Python | 8" in text


def test_unreadable_pdf_returns_placeholder():
    text = extract_text_from_file(b"not a pdf at all", PDF_MIME)
    assert text.startswith("[PDF file uploaded successfully - 16 bytes]")


def test_unsupported_type():
    with pytest.raises(UnsupportedFileType):
        extract_text_from_file(b"hello", "text/plain")


def test_heuristic_structure():
    cv = heuristic_structure(CV_TEXT)
    assert cv["contact"]["name"] == "John Smith"
    assert cv["contact"]["email"] == "john.smith@example.com"
    assert cv["contact"]["phone"] == "(512) 555-0199"
    assert cv["contact"]["linkedin"] == "linkedin.com/in/johnsmith"
    assert cv["summary"] == "Data analyst who turns messy data into decisions."
    assert [e["title"] for e in cv["experience"]] == ["Senior Data Analyst", "Marketing Coordinator"]
    assert cv["experience"][0]["company"] == "Initech"
    assert cv["experience"][0]["duration"] == "2020 - 2024"
    assert cv["experience"][0]["bullets"] == ["Built dashboards in SQL and Python", "Cut reporting time by 40%"]
    assert cv["experience"][1]["bullets"] == ["Ran campaigns"]
    assert cv["education"] == [{"degree": "Bachelor of Science", "institution": "State University", "year": "2016"}]
    assert "Python" in cv["skills"] and "Sql" in cv["skills"]
    assert len(cv["skills"]) <= 10


def test_structure_uses_provider():
    cv = structure_cv_text(CV_TEXT, FakeProvider())
    assert cv["contact"]["name"] == "Jane Doe"


def test_structure_falls_back_on_provider_error():
    p = FakeProvider()
    p.fail_with = AIProviderError("boom")
    cv = structure_cv_text(CV_TEXT, p)
    assert cv["contact"]["name"] == "John Smith"


def test_structure_reraises_rate_limit():
    p = FakeProvider()
    p.fail_with = AIRateLimitError()
    with pytest.raises(AIRateLimitError):
        structure_cv_text(CV_TEXT, p)


def test_structure_accepts_null_fields_and_numeric_years():
    p = FakeProvider()
    p.structure_reply = {"sections": {
        "contact": {"name": "Jane Doe", "email": None, "phone": None, "linkedin": None},
        "summary": None,
        "experience": [{"title": "Engineer", "company": None, "duration": None,
                        "bullets": "Built dashboards\nCut reporting time by 40%"}],
        "education": [{"degree": "BSc", "institution": None, "year": 2015}],
    }}
    cv = structure_cv_text(CV_TEXT, p)
    assert cv["contact"] == {"name": "Jane Doe", "email": "", "phone": "", "location": "",
                             "website": "", "linkedin": ""}
    assert cv["experience"][0]["duration"] == ""
    assert cv["experience"][0]["bullets"] == ["Built dashboards", "Cut reporting time by 40%"]
    assert cv["education"][0]["year"] == "2015"


def test_structure_falls_back_when_reply_has_wrong_shape():
    p = FakeProvider()
    p.structure_reply = {"sections": {"contact": {"name": "Jane Doe"}, "experience": 5}}
    cv = structure_cv_text(CV_TEXT, p)
    assert cv["contact"]["name"] == "John Smith"
