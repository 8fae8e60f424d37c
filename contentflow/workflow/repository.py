"""
Content Repository

High-level operations over the state store for content items, their
per-stage mirrors, comments and votes. Status changes go through
set_status(), which authorizes the edge before writing.
"""

import logging
from typing import Dict, List, Optional, Union

from contentflow.models import (
    AIAnalysisResult,
    Comment,
    ContentItem,
    Recommendation,
    ValidationResult,
    vote_key,
)
from contentflow.state import (
    AI_ANALYSIS,
    CONTENT,
    RECOMMENDATIONS,
    VALIDATION,
    VOTES,
    WORKFLOW,
    StateStore,
    comments_collection,
)
from contentflow.workflow.errors import ContentNotFoundError
from contentflow.workflow.status import WorkflowStatus, transition

logger = logging.getLogger(__name__)


class ContentRepository:
    """Typed access to workflow state."""

    def __init__(self, store: StateStore):
        self.store = store

    # =========================================================================
    # CONTENT
    # =========================================================================

    def get(self, content_id: str) -> Optional[ContentItem]:
        data = self.store.get(CONTENT, content_id)
        return ContentItem.from_dict(data) if data else None

    def require(self, content_id: str) -> ContentItem:
        item = self.get(content_id)
        if item is None:
            raise ContentNotFoundError(content_id)
        return item

    def save(self, item: ContentItem) -> None:
        """Write the whole item and its workflow mirror."""
        self.store.set(CONTENT, item.content_id, item.to_dict())
        self.store.set(WORKFLOW, item.content_id, {
            "status": item.workflow_status.value,
            "contentId": item.content_id,
        })

    def set_status(self, item: ContentItem, target: Union[str, WorkflowStatus]) -> ContentItem:
        """
        Move an item to a new status and persist it.

        Raises:
            IllegalTransitionError: if the move is not allowed
        """
        item.workflow_status = transition(item.workflow_status, target)
        item.touch()
        self.save(item)
        return item

    def list(self, user_id: Optional[str] = None) -> List[ContentItem]:
        """All items, newest first, optionally restricted to one user."""
        items = []
        for data in self.store.get_group(CONTENT):
            try:
                items.append(ContentItem.from_dict(data))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed content record {data.get('contentId')}: {e}")

        if user_id:
            items = [item for item in items if item.user_id == user_id]

        items.sort(key=lambda item: item.created_at, reverse=True)
        return items

    def delete(self, content_id: str) -> bool:
        """Remove an item and its workflow record. Returns False if absent."""
        deleted = self.store.delete(CONTENT, content_id)
        self.store.delete(WORKFLOW, content_id)
        return deleted

    def purge(self, content_id: str) -> bool:
        """
        delete() plus everything hanging off the item: stage mirrors,
        comments and vote maps. Returns False if the item was absent.
        """
        deleted = self.delete(content_id)
        for collection in (VALIDATION, AI_ANALYSIS, RECOMMENDATIONS):
            self.store.delete(collection, content_id)
        self.store.delete_group(comments_collection(content_id))
        self.store.delete_matching(VOTES, vote_key(content_id, ""))
        return deleted

    # =========================================================================
    # STAGE MIRRORS
    # =========================================================================

    def store_validation(self, content_id: str, result: ValidationResult) -> None:
        self.store.set(VALIDATION, content_id, result.to_dict())

    def store_analysis(self, content_id: str, analysis: AIAnalysisResult) -> None:
        self.store.set(AI_ANALYSIS, content_id, analysis.to_dict())

    def store_recommendations(self, content_id: str, recommendations: List[Recommendation]) -> None:
        self.store.set(RECOMMENDATIONS, content_id, {
            "contentId": content_id,
            "recommendations": [r.to_dict() for r in recommendations],
        })

    # =========================================================================
    # COMMENTS & VOTES
    # =========================================================================

    def add_comment(self, comment: Comment) -> None:
        self.store.set(comments_collection(comment.content_id), comment.id, comment.to_dict())

    def list_comments(self, content_id: str) -> List[Comment]:
        """Comments for an item, newest first."""
        comments = [
            Comment.from_dict(data)
            for data in self.store.get_group(comments_collection(content_id))
        ]
        comments.sort(key=lambda c: c.created_at, reverse=True)
        return comments

    def get_votes(self, content_id: str, recommendation_id: str) -> Dict[str, str]:
        return self.store.get(VOTES, vote_key(content_id, recommendation_id)) or {}

    def set_votes(self, content_id: str, recommendation_id: str, votes: Dict[str, str]) -> None:
        self.store.set(VOTES, vote_key(content_id, recommendation_id), votes)
