import asyncio

import pytest

import lumenta.gemini.analyzer as analyzer_module
from lumenta.config.pipeline_config import PipelineConfig
from lumenta.gemini.analyzer import GeminiAnalyzer
from lumenta.gemini.contracts import (
    AnalyzeRequest,
    AnalyzeResponse,
    NarrativeRequest,
    NarrativeResponse,
)


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    def __init__(self, model_name=None, generation_config=None):
        self.model_name = model_name
        self.replies = []
        self.calls = []

    async def generate_content_async(self, parts):
        self.calls.append(parts)
        return FakeResponse(self.replies.pop(0))


@pytest.fixture
def analyzer(monkeypatch):
    monkeypatch.setattr(analyzer_module.genai, "configure", lambda **kwargs: None)
    monkeypatch.setattr(analyzer_module.genai, "GenerativeModel", FakeModel)
    return GeminiAnalyzer(api_key="test-key", model_name="gemini-test")


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.setattr(PipelineConfig, "GEMINI_API_KEY", None)
    with pytest.raises(ValueError):
        GeminiAnalyzer()


def test_parse_json_strips_fences_and_prose():
    parse = GeminiAnalyzer._parse_json_response
    assert parse('```json\n{"confidence": 0.7}\n```') == {"confidence": 0.7}
    assert parse('Sure! {"summary": "ok"} Hope that helps') == {"summary": "ok"}
    assert parse('[{"description": "a"}]') == [{"description": "a"}]
    with pytest.raises(ValueError):
        parse("no json here")


def test_analyze_sends_prompt_and_image(analyzer):
    analyzer.model.replies.append('{"summary": "A red car is parked", "confidence": "0.8"}')
    request = AnalyzeRequest(
        prompt="red car", frame_snapshot=b"jpeg", feed_id="cam1", context_summary="busy street"
    )

    response = asyncio.run(analyzer.analyze(request))

    assert response.confidence == 0.8
    assert response.summary == "A red car is parked"
    prompt, image = analyzer.model.calls[0]
    assert "red car" in prompt
    assert "busy street" in prompt
    assert image == {"mime_type": "image/jpeg", "data": b"jpeg"}
    assert analyzer.get_call_count() == 1


def test_narrate_parses_events(analyzer):
    analyzer.model.replies.append(
        '{"summary": "Quiet", "events": [{"description": "Door opens", "type": "activity"}]}'
    )
    request = NarrativeRequest(
        frame_snapshot=b"jpeg", feed_id="cam1", timestamp=3.0, previous_summary="Empty hall"
    )

    response = asyncio.run(analyzer.narrate(request))

    assert response.summary == "Quiet"
    assert [e.description for e in response.events] == ["Door opens"]
    assert "Empty hall" in analyzer.model.calls[0][0]


def test_invalid_reply_raises(analyzer):
    analyzer.model.replies.append("I cannot help with that")
    request = AnalyzeRequest(prompt="x", frame_snapshot=b"jpeg", feed_id="cam1")
    with pytest.raises(ValueError):
        asyncio.run(analyzer.analyze(request))


def test_analyze_response_is_lenient():
    assert AnalyzeResponse.parse_lenient(None) == AnalyzeResponse()
    assert AnalyzeResponse.parse_lenient({"confidence": "high"}).confidence is None
    assert AnalyzeResponse.parse_lenient({"confidence": True}).confidence is None
    assert AnalyzeResponse.parse_lenient({"summary": "  "}).summary is None
    assert AnalyzeResponse.parse_lenient({"confidence": 1}).confidence == 1.0


def test_narrative_response_is_lenient():
    response = NarrativeResponse.parse_lenient(
        {"description": "A cat", "events": "not a list", "confidence": "?"}
    )
    assert response.text == "A cat"
    assert response.events == []
    assert response.confidence is None


def test_singleton_returns_none_without_key(monkeypatch):
    monkeypatch.setattr(PipelineConfig, "GEMINI_API_KEY", None)
    analyzer_module.reset_gemini_analyzer()
    try:
        assert analyzer_module.get_gemini_analyzer() is None
    finally:
        analyzer_module.reset_gemini_analyzer()
