from types import SimpleNamespace

import pytest

from matchmycv.services.ai import (
    AIProviderError, AIResponseParseError, AnthropicProvider, OpenAIProvider,
    build_provider, normalize_analysis, parse_json_response, weighted_overall,
)
from conftest import FakeProvider


def test_parse_json_strips_fences_and_prose():
    assert parse_json_response('Sure! ```json\n{"a": 1}\n``` hope that helps') == {"a": 1}
    assert parse_json_response('{"a": {"b": [1, 2]}}') == {"a": {"b": [1, 2]}}


@pytest.mark.parametrize("text", ["", "no json here", "{not: valid}", "} {"])
def test_parse_json_rejects_garbage(text):
    with pytest.raises(AIResponseParseError):
        parse_json_response(text)


def test_normalize_analysis_clamps_and_fills():
    data = normalize_analysis({
        "subScores": {"skillsFit": 140, "experience": -5, "keywordsATS": "55", "readability": None},
        "gaps": {"missingSkills": "Go", "keywordOps": ["terraform", {"keyword": "k8s", "importance": "urgent"}]},
        "suggestions": [{"suggested": "Add metrics"}, {"nothing": True}],
    })
    assert data["subScores"] == {"skillsFit": 100, "experience": 0, "keywordsATS": 55,
                                 "readability": 0, "seniority": 0}
    # no overallScore from the model: weighted from sub-scores
    assert data["overallScore"] == weighted_overall(data["subScores"])
    assert data["gaps"]["missingSkills"] == ["Go"]
    assert [k["keyword"] for k in data["gaps"]["keywordOps"]] == ["terraform", "k8s"]
    assert data["gaps"]["keywordOps"][1]["importance"] == "medium"
    assert len(data["suggestions"]) == 1
    assert data["suggestions"][0]["id"]


def test_weighted_overall():
    subs = {"skillsFit": 100, "experience": 0, "keywordsATS": 0, "readability": 0, "seniority": 0}
    assert weighted_overall(subs) == 35
    assert weighted_overall(subs, {"skillsFit": 1}) == 100
    assert weighted_overall(subs, {k: 0 for k in subs}) == 0


def test_fake_provider_analysis_goes_through_base_parsing():
    result = FakeProvider().generate_analysis("cv", "job")
    assert result["overallScore"] == 72
    assert result["gaps"]["missingSkills"] == ["Kubernetes"]


def test_build_provider_selection():
    with pytest.raises(ValueError, match="Unsupported AI provider"):
        build_provider({"AI_PROVIDER": "cohere"})
    with pytest.raises(AIProviderError):
        build_provider({"AI_PROVIDER": "openai", "OPENAI_API_KEY": ""})
    p = build_provider({"AI_PROVIDER": "anthropic", "ANTHROPIC_API_KEY": "sk-test"})
    assert isinstance(p, AnthropicProvider)
    assert p.model == "claude-3-haiku-20240307"


class _StubCompletions:
    def __init__(self, content):
        self.content = content
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_openai_provider_requests_json_schema():
    completions = _StubCompletions('{"sections": {"contact": {"name": "Ann"}, "skills": ["Go", " "]}}')
    client = SimpleNamespace(
        chat=SimpleNamespace(completions=completions),
        embeddings=SimpleNamespace(create=lambda **kw: SimpleNamespace(data=[SimpleNamespace(embedding=[0.5])])),
    )
    p = OpenAIProvider(client, model="gpt-test")
    out = p.extract_cv_structure("Ann\nGo developer")
    assert out["sections"]["contact"]["name"] == "Ann"
    assert out["sections"]["skills"] == ["Go"]
    fmt = completions.kwargs["response_format"]
    assert fmt["type"] == "json_schema" and fmt["json_schema"]["name"] == "cv_structure"
    assert completions.kwargs["temperature"] == 0.1
    assert p.generate_embeddings("x") == [0.5]


def test_openai_provider_empty_reply_is_an_error():
    client = SimpleNamespace(chat=SimpleNamespace(completions=_StubCompletions(None)))
    with pytest.raises(AIProviderError):
        OpenAIProvider(client).edit_text("prompt", "rewrite")


def test_anthropic_provider_embeds_schema_in_system_prompt():
    captured = {}

    def create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(content=[SimpleNamespace(type="text", text='{"overallScore": 64, "subScores": {}}')])

    p = AnthropicProvider(SimpleNamespace(messages=SimpleNamespace(create=create)), model="claude-test")
    result = p.generate_analysis("cv", "job")
    assert result["overallScore"] == 64
    assert "JSON schema" in captured["system"]
    assert captured["max_tokens"] == 3000
    with pytest.raises(AIProviderError):
        p.generate_embeddings("text")
