"""Gemini vision-language backend and its request/response contracts."""

from lumenta.gemini.contracts import (
    AnalyzeRequest,
    AnalyzeResponse,
    NarrativeRequest,
    NarrativeResponse,
    NarrativeItem,
)

__all__ = [
    "AnalyzeRequest",
    "AnalyzeResponse",
    "NarrativeRequest",
    "NarrativeResponse",
    "NarrativeItem",
]
