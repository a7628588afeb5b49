"""Gemini-backed frame analysis.

Implements both vision-language contracts used by the pipeline:
- analyze(): "does this frame match <prompt>?" with a confidence score
- narrate(): periodic scene narrative, optionally split into discrete events

Responses are requested as JSON; markdown fences and surrounding prose are
stripped before parsing.
"""

import json
import logging
import re
from typing import Any, Optional

import google.generativeai as genai

from lumenta.config.pipeline_config import PipelineConfig
from lumenta.gemini.contracts import (
    AnalyzeRequest,
    AnalyzeResponse,
    NarrativeRequest,
    NarrativeResponse,
)

logger = logging.getLogger(__name__)


class GeminiAnalyzer:
    """Gemini analyzer for prompt matching and scene narration."""

    ANALYZE_PROMPT = """You are monitoring security camera feed "{feed_id}".
Question about this frame: {prompt}
{context}
Respond ONLY with JSON: {{"summary": string, "confidence": number}}
- summary: one sentence describing what in the frame answers the question
- confidence: 0..1, how strongly the frame matches the question"""

    NARRATIVE_PROMPT = """You are monitoring security camera feed "{feed_id}" at {timestamp:.1f}s.
{previous}
Describe what is happening in this frame now.
Respond ONLY with JSON:
{{"summary": string, "events": [{{"description": string, "type": "motion"|"person"|"vehicle"|"object"|"alert"|"activity", "severity": "low"|"medium"|"high"}}], "confidence": number}}
- list only concrete, notable events; use an empty list if nothing notable happens
- confidence must be 0..1"""

    GENERATION_CONFIG = {
        "temperature": 0.2,
        "top_k": 40,
        "top_p": 0.9,
        "max_output_tokens": 512,
        "response_mime_type": "application/json",
    }

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        """
        Args:
            api_key: Gemini API key (reads PipelineConfig.GEMINI_API_KEY if not provided)
            model_name: Model to use (default: PipelineConfig.GEMINI_MODEL)
        """
        self.api_key = api_key or PipelineConfig.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError(
                "Gemini API key not provided. Set GEMINI_API_KEY env var or pass api_key parameter."
            )

        genai.configure(api_key=self.api_key)
        self.model_name = model_name or PipelineConfig.GEMINI_MODEL
        self.model = genai.GenerativeModel(
            model_name=self.model_name, generation_config=self.GENERATION_CONFIG
        )
        self._call_count = 0
        logger.info(f"GeminiAnalyzer initialized with model: {self.model_name}")

    def get_call_count(self) -> int:
        """Total number of Gemini API calls made."""
        return self._call_count

    async def analyze(self, request: AnalyzeRequest) -> AnalyzeResponse:
        context = (
            f"Recent scene context: {request.context_summary}"
            if request.context_summary
            else ""
        )
        prompt = self.ANALYZE_PROMPT.format(
            feed_id=request.feed_id, prompt=request.prompt, context=context
        )
        text = await self._generate(prompt, request.frame_snapshot)
        return AnalyzeResponse.parse_lenient(self._parse_json_response(text))

    async def narrate(self, request: NarrativeRequest) -> NarrativeResponse:
        previous = (
            f"Previously: {request.previous_summary}" if request.previous_summary else ""
        )
        prompt = self.NARRATIVE_PROMPT.format(
            feed_id=request.feed_id, timestamp=request.timestamp, previous=previous
        )
        text = await self._generate(prompt, request.frame_snapshot)
        return NarrativeResponse.parse_lenient(self._parse_json_response(text))

    async def _generate(self, prompt: str, jpeg_bytes: bytes) -> str:
        self._call_count += 1
        response = await self.model.generate_content_async(
            [prompt, {"mime_type": "image/jpeg", "data": jpeg_bytes}]
        )
        logger.debug(f"Gemini response: {response.text[:500]}")
        return response.text

    @staticmethod
    def _parse_json_response(response_text: str) -> Any:
        """Parse a JSON answer, tolerating markdown fences and stray prose.

        Raises:
            ValueError: if no JSON value can be recovered
        """
        text = (response_text or "").strip()
        text = re.sub(r"```json\s*", "", text)
        text = re.sub(r"```\s*", "", text)
        text = text.strip()

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        match = re.search(r"\{[\s\S]*\}", text)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON response from Gemini: {e}")
        raise ValueError(f"Invalid JSON response from Gemini: {text[:200]}")


# Shared across feeds; one client per process
_gemini_analyzer: Optional[GeminiAnalyzer] = None


def get_gemini_analyzer(
    api_key: Optional[str] = None, model_name: Optional[str] = None
) -> Optional[GeminiAnalyzer]:
    """Shared analyzer, created on first use.

    Returns:
        GeminiAnalyzer instance, or None if it cannot be configured
    """
    global _gemini_analyzer

    if _gemini_analyzer is None:
        try:
            _gemini_analyzer = GeminiAnalyzer(api_key=api_key, model_name=model_name)
        except Exception as e:
            logger.error(f"Failed to initialize Gemini analyzer: {e}")
            return None

    return _gemini_analyzer


def reset_gemini_analyzer():
    """Drop the shared analyzer so the next call rebuilds it."""
    global _gemini_analyzer
    _gemini_analyzer = None
