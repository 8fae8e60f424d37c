"""
Comments and Votes

Comments are append-only records per content item. Votes are a
userId -> direction map per recommendation; counts are always recomputed
from the whole map, so casting the same vote twice changes nothing.
"""

import logging
from typing import Any, Dict, List

from contentflow.models import (
    Comment,
    CommentType,
    VoteDirection,
    VoteSummary,
    generate_id,
    utc_now_iso,
)
from contentflow.workflow.context import StageContext
from contentflow.workflow.errors import InvalidInputError, NotFoundError
from contentflow.workflow.events import COMMENT_ADDED, VOTE_CAST

logger = logging.getLogger(__name__)

COMMENT_REQUIRED_FIELDS = ["userId", "userName", "text"]
VOTE_REQUIRED_FIELDS = ["userId", "vote (up or down)"]


async def add_comment(ctx: StageContext, content_id: str, payload: Dict[str, Any]) -> Comment:
    """
    Store a comment and broadcast it to viewers.

    Raises:
        InvalidInputError: if userId, userName or text is missing, or type is unknown
    """
    if any(not payload.get(name) for name in COMMENT_REQUIRED_FIELDS):
        raise InvalidInputError("Missing required fields", required=COMMENT_REQUIRED_FIELDS)

    try:
        comment_type = CommentType(payload.get("type") or CommentType.GENERAL.value)
    except ValueError:
        raise InvalidInputError(
            "Invalid comment type",
            allowed=[t.value for t in CommentType],
        )

    now = utc_now_iso()
    comment = Comment(
        id=generate_id("comment"),
        content_id=content_id,
        user_id=payload["userId"],
        user_name=payload["userName"],
        text=payload["text"],
        type=comment_type,
        target_id=payload.get("targetId"),
        created_at=now,
        updated_at=now,
    )
    ctx.repository.add_comment(comment)

    logger.info(f"Comment added: {comment.id} on {content_id} by {comment.user_id}")

    await ctx.notifier.push(content_id, "comment_added", comment.to_dict())
    await ctx.notifier.emit(COMMENT_ADDED, {
        "contentId": content_id,
        "commentId": comment.id,
        "userId": comment.user_id,
    })
    return comment


def list_comments(ctx: StageContext, content_id: str) -> List[Comment]:
    """Comments for an item, newest first."""
    return ctx.repository.list_comments(content_id)


async def cast_vote(
    ctx: StageContext,
    content_id: str,
    recommendation_id: str,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Record or change a user's vote on a recommendation.

    Raises:
        InvalidInputError: if userId is missing or vote is not up/down
        NotFoundError: if the content or recommendation doesn't exist
    """
    user_id = payload.get("userId")
    try:
        direction = VoteDirection(payload.get("vote"))
    except ValueError:
        direction = None
    if not user_id or direction is None:
        raise InvalidInputError("Missing required fields", required=VOTE_REQUIRED_FIELDS)

    item = ctx.repository.get(content_id)
    if item is None:
        raise NotFoundError("Content not found")

    recommendation = item.find_recommendation(recommendation_id)
    if recommendation is None:
        raise NotFoundError("Recommendation not found")

    votes = ctx.repository.get_votes(content_id, recommendation_id)
    votes[user_id] = direction.value
    ctx.repository.set_votes(content_id, recommendation_id, votes)

    summary = VoteSummary.from_votes(votes)
    recommendation.votes = summary
    ctx.repository.save(item)

    logger.info(f"Vote cast: {direction.value} on {recommendation_id} by {user_id}")

    await ctx.notifier.push(content_id, "vote_updated", {
        "recommendationId": recommendation_id,
        "upvotes": summary.upvotes,
        "downvotes": summary.downvotes,
        "userVote": direction.value,
    })
    await ctx.notifier.emit(VOTE_CAST, {
        "contentId": content_id,
        "recommendationId": recommendation_id,
        "userId": user_id,
        "vote": direction.value,
    })

    return {
        "recommendationId": recommendation_id,
        "upvotes": summary.upvotes,
        "downvotes": summary.downvotes,
        "userVote": direction.value,
        "message": "Vote recorded successfully",
    }
