import json

import pytest

from matchmycv import create_app
from matchmycv.extensions import get_db
from matchmycv.models import Document, User, Version
from matchmycv.services.ai import AIProvider


SAMPLE_CV = {
    "contact": {"name": "Jane Doe", "email": "jane@example.com", "phone": "555-123-4567",
                "location": "Austin, TX", "website": "", "linkedin": "linkedin.com/in/janedoe"},
    "summary": "Backend engineer with eight years of experience building APIs and data pipelines in Python.",
    "skills": ["Python", "SQL", "AWS", "Docker"],
    "experience": [
        {"title": "Senior Engineer", "company": "Acme", "duration": "2019 - Present",
         "bullets": ["Led migration of 40 services to Kubernetes", "Reduced API latency by 35%"]},
        {"title": "Engineer", "company": "Globex", "duration": "2015 - 2019",
         "bullets": ["Built reporting pipeline", "Worked on billing"]},
    ],
    "education": [{"degree": "BSc Computer Science", "institution": "UT Austin", "year": "2015"}],
}

JOB_DESCRIPTION = (
    "Senior Python Engineer. We need someone with AWS, Docker and Kubernetes experience.\n"
    "- 5+ years of Python\n"
    "- SQL and PostgreSQL required\n"
    "Must have strong communication skills."
)


class FakeProvider(AIProvider):
    """Scripted replies keyed by the schema name or system prompt."""

    name = "fake"

    def __init__(self):
        super().__init__("fake-model")
        self.calls = []
        self.fail_with = None
        self.structure_reply = None

    def chat(self, system, user, *, temperature, max_tokens, schema=None, schema_name=None):
        self.calls.append({"system": system, "user": user, "schema_name": schema_name})
        if self.fail_with is not None:
            raise self.fail_with
        if schema_name == "cv_analysis":
            return "```json\n" + json.dumps({
                "overallScore": 72,
                "subScores": {"skillsFit": 80, "experience": 70, "keywordsATS": 60,
                              "readability": 90, "seniority": 50},
                "gaps": {"missingSkills": ["Kubernetes"], "weakAreas": [], "keywordOps": []},
                "suggestions": [{"section": "summary", "type": "rewrite", "original": "a",
                                 "suggested": "b", "reason": "clearer", "priority": "high"}],
            }) + "\n```"
        if schema_name == "cv_structure":
            return json.dumps(self.structure_reply or {"sections": SAMPLE_CV})
        if "grading CVs" in system:
            return '{"overallGrade": "B", "overallScore": 84, "summary": "Solid CV."}'
        if "bullet points" in system:
            return json.dumps({"experienceAnalysis": {
                "experienceIndex": 0,
                "overallIssues": {"urgent": 9, "critical": 9, "optional": 9},
                "bulletIssues": [{"bulletIndex": 0, "originalText": "x", "suggestedText": "y",
                                  "issues": [{"type": "metrics", "priority": "urgent", "title": "t",
                                              "description": "d", "suggestion": "s"}]}],
            }})
        return "Edited text with 30% more impact"

    def generate_embeddings(self, text):
        return [0.0, 1.0]


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def app(tmp_path, provider):
    app = create_app("test", {"UPLOAD_DIR": str(tmp_path / "uploads"), "AI_PROVIDER_INSTANCE": provider})
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def register_and_login(client, email="jane@example.com", password="secret123", name="Jane Doe"):
    r = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 201, r.get_json()
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()["user"]


@pytest.fixture
def user(client):
    return register_and_login(client)


def set_user_fields(app, user_id, **fields):
    with app.app_context():
        session = get_db()
        u = session.get(User, user_id)
        for k, v in fields.items():
            setattr(u, k, v)
        session.commit()


@pytest.fixture
def document(app, user):
    """A stored document with its Original version, created without going through upload."""
    with app.app_context():
        session = get_db()
        doc = Document(user_id=user["id"], title="My CV", storage_key=None,
                       mime_type="application/pdf", file_size=10,
                       raw_text="Jane Doe\nSenior Engineer at Acme", structured=SAMPLE_CV)
        doc.versions.append(Version(label="Original", content=json.dumps(SAMPLE_CV), is_active=True))
        session.add(doc)
        session.commit()
        return {"id": doc.id, "versionId": doc.versions[0].id}


@pytest.fixture
def job_target(client, user):
    r = client.post("/api/job-targets", json={"title": "Senior Python Engineer", "company": "Initech",
                                              "description": JOB_DESCRIPTION})
    assert r.status_code == 201, r.get_json()
    return r.get_json()["jobTarget"]

