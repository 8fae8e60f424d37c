"""
Workflow Stages

Each stage reads state, writes its result, then notifies:
- submission: create content (HTTP)
- validation: content.created -> validated | rejected
- analysis: content.validated -> analyzed | failed
- recommendations: content.analyzed -> completed
- improvement: request / generate / apply rewrite drafts
- engagement: comments and votes (HTTP)
"""

from .submission import create_content
from .validation import validate, validate_content
from .analysis import analyze_content
from .recommendations import generate_recommendations, recommend
from .improvement import request_improvement, generate_improvement, apply_improvement
from .engagement import add_comment, list_comments, cast_vote

__all__ = [
    "create_content",
    "validate",
    "validate_content",
    "analyze_content",
    "generate_recommendations",
    "recommend",
    "request_improvement",
    "generate_improvement",
    "apply_improvement",
    "add_comment",
    "list_comments",
    "cast_vote",
]
