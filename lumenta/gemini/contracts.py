"""Request/response contracts for the vision-language backends.

Responses are validated leniently: a field that is missing or of the wrong
type becomes None (or an empty list) instead of failing the whole response,
and anything that is not a mapping parses as an empty response.
"""

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


class AnalyzeRequest(BaseModel):
    prompt: str
    frame_snapshot: bytes = Field(..., description="JPEG-encoded frame", repr=False)
    feed_id: str
    context_summary: Optional[str] = None


class AnalyzeResponse(BaseModel):
    confidence: Optional[float] = None
    summary: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v):
        return _optional_float(v)

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, v):
        return _optional_text(v)

    @classmethod
    def parse_lenient(cls, raw: Any) -> "AnalyzeResponse":
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.debug(f"Malformed analyze response: {e}")
            return cls()


class NarrativeRequest(BaseModel):
    frame_snapshot: bytes = Field(..., description="JPEG-encoded frame", repr=False)
    feed_id: str
    timestamp: float
    previous_summary: Optional[str] = None


class NarrativeItem(BaseModel):
    description: str
    type: Optional[str] = None
    severity: Optional[str] = None

    @field_validator("type", "severity", mode="before")
    @classmethod
    def _labels(cls, v):
        return _optional_text(v)


class NarrativeResponse(BaseModel):
    summary: Optional[str] = None
    description: Optional[str] = None
    events: List[NarrativeItem] = Field(default_factory=list)
    confidence: Optional[float] = None

    @field_validator("summary", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return _optional_text(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v):
        return _optional_float(v)

    @field_validator("events", mode="before")
    @classmethod
    def _events(cls, v):
        # Keep only items that carry a usable description
        if not isinstance(v, list):
            return []
        items = []
        for item in v:
            if isinstance(item, NarrativeItem):
                items.append(item)
            elif isinstance(item, dict) and _optional_text(item.get("description")):
                items.append(
                    {
                        "description": _optional_text(item.get("description")),
                        "type": item.get("type"),
                        "severity": item.get("severity"),
                    }
                )
        return items

    @property
    def text(self) -> Optional[str]:
        """Free-text narrative, if any."""
        return self.summary or self.description

    @classmethod
    def parse_lenient(cls, raw: Any) -> "NarrativeResponse":
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, list):
            # Some models answer with the bare event list
            raw = {"events": raw}
        if not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.debug(f"Malformed narrative response: {e}")
            return cls()
