"""Durable key-value state shared by the workflow stages."""

from .store import StateStore

# Collection names
CONTENT = "content"
WORKFLOW = "workflow"
VALIDATION = "validation"
AI_ANALYSIS = "ai_analysis"
RECOMMENDATIONS = "recommendations"
VOTES = "votes"
SYSTEM = "system"


def comments_collection(content_id: str) -> str:
    """Comments live in one collection per content item."""
    return f"comments:{content_id}"


__all__ = [
    "StateStore",
    "CONTENT",
    "WORKFLOW",
    "VALIDATION",
    "AI_ANALYSIS",
    "RECOMMENDATIONS",
    "VOTES",
    "SYSTEM",
    "comments_collection",
]
