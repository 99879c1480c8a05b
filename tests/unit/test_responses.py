"""Tests for AI reply parsing."""

import pytest

from gitwit.resilience import is_retryable
from gitwit.responses import (
    AutomatedReviewResponse,
    CommitSuggestion,
    RefactorResponse,
    ResponseFormatError,
    ReviewResponse,
    extract_json_object,
    parse_and_validate_response,
    parse_response,
    strip_code_fences,
)

REVIEW_REPLY = """Here is my review:
```json
{
  "review": {"summary": "Adds a helper", "critique": "No tests", "suggestions": "Add tests"},
  "productionRisk": [{"risk": "None obvious", "isSafe": true}],
  "severity": "low"
}
```"""


class TestExtractJsonObject:

    def test_extracts_from_surrounding_text(self):
        assert extract_json_object('sure! {"ready": false, "reason": "wip"} hope it helps') == {
            "ready": False,
            "reason": "wip",
        }

    def test_no_object(self):
        with pytest.raises(ResponseFormatError, match="did not contain a valid JSON object"):
            extract_json_object("I cannot help with that.")

    def test_invalid_json(self):
        with pytest.raises(ResponseFormatError, match="Failed to parse AI response as JSON"):
            extract_json_object("{not: json}")

    def test_format_errors_are_not_retryable(self):
        with pytest.raises(ResponseFormatError) as exc_info:
            extract_json_object("")
        assert not is_retryable(exc_info.value)


class TestParseAndValidateResponse:

    def test_review(self):
        reply = parse_and_validate_response(REVIEW_REPLY)

        assert isinstance(reply, ReviewResponse)
        assert reply.review.summary == "Adds a helper"
        assert reply.productionRisk[0].isSafe is True
        assert reply.severity == "low"

    def test_review_severity_is_normalized(self):
        reply = parse_and_validate_response(
            '{"review": {"summary": "s", "critique": "c", "suggestions": "x"}, '
            '"productionRisk": [], "severity": "High"}'
        )

        assert isinstance(reply, ReviewResponse)
        assert reply.severity == "high"

    def test_review_unknown_severity_is_dropped(self):
        reply = parse_and_validate_response(
            '{"review": {"summary": "s", "critique": "c", "suggestions": "x"}, '
            '"productionRisk": [], "severity": "critical"}'
        )

        assert isinstance(reply, ReviewResponse)
        assert reply.severity is None

    def test_review_missing_keys(self):
        with pytest.raises(ResponseFormatError, match="Invalid or incomplete"):
            parse_and_validate_response('{"review": {"summary": "x"}, "productionRisk": []}')

    def test_automated_review(self):
        reply = parse_and_validate_response('{"issues": [], "isClean": true}')

        assert isinstance(reply, AutomatedReviewResponse)
        assert reply.isClean is True

    def test_commit_ready(self):
        reply = parse_and_validate_response('{"ready": true, "commitMessage": "feat: add parser"}')

        assert isinstance(reply, CommitSuggestion)
        assert reply.commitMessage == "feat: add parser"

    def test_commit_not_ready(self):
        reply = parse_and_validate_response('{"ready": false, "reason": "Debug prints left in"}')

        assert isinstance(reply, CommitSuggestion)
        assert reply.ready is False

    def test_commit_ready_without_message(self):
        with pytest.raises(ResponseFormatError):
            parse_and_validate_response('{"ready": true}')

    def test_unknown_shape(self):
        with pytest.raises(ResponseFormatError):
            parse_and_validate_response('{"answer": 42}')


class TestParseResponse:

    def test_refactor(self):
        reply = parse_response(
            '{"refactoredCode": "def f():\\n    return 1", "explanation": "Simplified"}',
            RefactorResponse,
        )

        assert reply.explanation == "Simplified"
        assert reply.alternativeSuggestion is None

    def test_refactor_missing_field(self):
        with pytest.raises(ResponseFormatError, match="RefactorResponse"):
            parse_response('{"refactoredCode": "x"}', RefactorResponse)


def test_strip_code_fences():
    assert strip_code_fences("```typescript\nit('works')\n```") == "it('works')"
