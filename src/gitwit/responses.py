"""Extraction and validation of JSON replies from the AI providers.

Model replies are free text that is expected to contain one JSON object.
Anything that cannot be turned into one of the known reply shapes raises
:class:`ResponseFormatError`, which carries no status and is therefore never
retried by the resilience layer.
"""

import json
import re
from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE = re.compile(r"```[a-zA-Z]*")
SEVERITIES = ("low", "medium", "high")


class ResponseFormatError(ValueError):
    """The AI reply did not contain a usable JSON object."""
    pass


class _Reply(BaseModel):
    model_config = ConfigDict(extra="allow")


class ReviewBody(_Reply):
    summary: str
    critique: str
    suggestions: Union[str, List[str]]


class ProductionRisk(_Reply):
    risk: str
    isSafe: bool


class ReviewResponse(_Reply):
    """Persona review of a code selection."""

    review: ReviewBody
    productionRisk: List[ProductionRisk]
    severity: Optional[Literal["low", "medium", "high"]] = None

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, value):
        """Lower-case known severities; unknown values become None."""
        if isinstance(value, str) and value.strip().lower() in SEVERITIES:
            return value.strip().lower()
        return None


class AutomatedReviewResponse(_Reply):
    """Review run on save or on a diff."""

    issues: List[Any]
    isClean: bool


class CommitSuggestion(_Reply):
    """Commit readiness verdict for a diff."""

    ready: bool
    commitMessage: Optional[str] = None
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_verdict(self):
        if self.ready and not self.commitMessage:
            raise ValueError("ready suggestion requires 'commitMessage'")
        if not self.ready and not self.reason:
            raise ValueError("not-ready suggestion requires 'reason'")
        return self


class RefactorResponse(_Reply):
    refactoredCode: str
    explanation: str
    alternativeSuggestion: Optional[str] = None


# Order matters: the first shape that validates wins.
REPLY_MODELS = (AutomatedReviewResponse, ReviewResponse, CommitSuggestion)


def extract_json_object(raw_text: str) -> Dict[str, Any]:
    """Return the outermost ``{...}`` block of ``raw_text`` parsed as JSON."""
    match = _JSON_OBJECT.search(raw_text or "")
    if not match:
        raise ResponseFormatError("AI response did not contain a valid JSON object.")

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Failed to parse AI response as JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ResponseFormatError("AI response did not contain a valid JSON object.")
    return parsed


def parse_response(raw_text: str, model: Type[BaseModel]) -> BaseModel:
    """Parse ``raw_text`` into one specific reply model."""
    data = extract_json_object(raw_text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ResponseFormatError(
            f"AI response does not match {model.__name__}: {e.error_count()} error(s)"
        ) from e


def parse_and_validate_response(raw_text: str) -> BaseModel:
    """Parse ``raw_text`` into the first known reply shape it satisfies."""
    data = extract_json_object(raw_text)
    for model in REPLY_MODELS:
        try:
            return model.model_validate(data)
        except ValidationError:
            continue
    raise ResponseFormatError("Invalid or incomplete AI response format.")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences from plain-text replies such as generated tests."""
    return _CODE_FENCE.sub("", text).strip()
