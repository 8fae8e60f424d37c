"""
Content Flow - Data Models

Shared data models used across the workflow and API.
"""

from .content import (
    ContentItem,
    ValidationResult,
    AIAnalysisResult,
    Recommendation,
    VoteSummary,
    ImprovedContent,
    Sentiment,
    RecommendationType,
    Priority,
    ImprovementStatus,
    utc_now_iso,
    parse_iso,
    generate_id,
)
from .engagement import Comment, CommentType, VoteDirection, vote_key

__all__ = [
    "ContentItem",
    "ValidationResult",
    "AIAnalysisResult",
    "Recommendation",
    "VoteSummary",
    "ImprovedContent",
    "Sentiment",
    "RecommendationType",
    "Priority",
    "ImprovementStatus",
    "Comment",
    "CommentType",
    "VoteDirection",
    "vote_key",
    "utc_now_iso",
    "parse_iso",
    "generate_id",
]
