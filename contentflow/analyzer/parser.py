"""
Output Parser for LLM Responses

Turns raw analysis output into an AIAnalysisResult. The model is asked
for bare JSON but sometimes wraps it in markdown fences or returns prose;
parsing degrades to a deterministic fallback derived from the body
rather than failing the stage.
"""

import json
import logging
import math
import re
from typing import Any, Dict, List

from contentflow.models import AIAnalysisResult, Sentiment, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 50
SUMMARY_LENGTH = 200

_LEADING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` or ```json fence, if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _LEADING_FENCE.sub("", cleaned)
        cleaned = _TRAILING_FENCE.sub("", cleaned)
    return cleaned.strip()


def count_words(body: str) -> int:
    return len(body.split())


def fallback_summary(body: str) -> str:
    return body[:SUMMARY_LENGTH] + "..."


def fallback_analysis(body: str) -> AIAnalysisResult:
    """Neutral analysis computed from the body alone."""
    return AIAnalysisResult(
        sentiment=Sentiment.NEUTRAL,
        topics=[],
        readability_score=DEFAULT_SCORE,
        word_count=count_words(body),
        quality_score=DEFAULT_SCORE,
        summary=fallback_summary(body),
        strengths=[],
        weaknesses=[],
        analyzed_at=utc_now_iso(),
    )


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _clamp_score(value: Any) -> float:
    if not _is_number(value):
        return DEFAULT_SCORE
    return max(0, min(100, value))


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _sentiment(value: Any) -> Sentiment:
    try:
        return Sentiment(value)
    except ValueError:
        return Sentiment.NEUTRAL


def normalize_analysis(data: Dict[str, Any], body: str) -> AIAnalysisResult:
    """Coerce parsed JSON into a complete, clamped analysis."""
    summary = data.get("summary")
    word_count = data.get("wordCount")

    return AIAnalysisResult(
        sentiment=_sentiment(data.get("sentiment")),
        topics=_string_list(data.get("topics")),
        readability_score=_clamp_score(data.get("readabilityScore")),
        word_count=int(word_count) if _is_number(word_count) else count_words(body),
        quality_score=_clamp_score(data.get("qualityScore")),
        summary=summary if isinstance(summary, str) and summary else fallback_summary(body),
        strengths=_string_list(data.get("strengths")),
        weaknesses=_string_list(data.get("weaknesses")),
        analyzed_at=utc_now_iso(),
    )


def parse_analysis(raw_output: str, body: str) -> AIAnalysisResult:
    """
    Parse the model's analysis output.

    Args:
        raw_output: Raw text from Claude
        body: The analyzed content body, used for fallbacks

    Returns:
        AIAnalysisResult, never raises on malformed output
    """
    cleaned = strip_code_fences(raw_output)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response as JSON: {e}; response: {raw_output[:500]!r}")
        return fallback_analysis(body)

    if not isinstance(data, dict):
        logger.error(f"AI response is JSON but not an object: {type(data).__name__}")
        return fallback_analysis(body)

    return normalize_analysis(data, body)
