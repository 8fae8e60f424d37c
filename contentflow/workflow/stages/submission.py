"""
Submission Stage

Entry point of the workflow: persist a new content item as pending and
emit content.created to start validation.
"""

import logging
from typing import Any, Dict

from contentflow.models import ContentItem, generate_id, utc_now_iso
from contentflow.workflow.context import StageContext
from contentflow.workflow.errors import InvalidInputError
from contentflow.workflow.events import CONTENT_CREATED
from contentflow.workflow.status import WorkflowStatus

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["title", "body", "author", "language"]


async def create_content(ctx: StageContext, payload: Dict[str, Any]) -> ContentItem:
    """
    Create a content item and start the workflow.

    Raises:
        InvalidInputError: if any of title, body, author, language is missing
    """
    if any(not payload.get(name) for name in REQUIRED_FIELDS):
        logger.warning(f"Missing required fields in submission: {sorted(payload)}")
        raise InvalidInputError("Missing required fields", required=REQUIRED_FIELDS)

    now = utc_now_iso()
    item = ContentItem(
        content_id=generate_id("content"),
        title=payload["title"],
        body=payload["body"],
        author=payload["author"],
        language=payload["language"],
        user_id=payload.get("userId"),
        created_at=now,
        updated_at=now,
        workflow_status=WorkflowStatus.PENDING,
    )
    ctx.repository.save(item)

    logger.info(f"Content created: {item.content_id} by {item.author}")

    await ctx.notifier.emit(CONTENT_CREATED, {"contentId": item.content_id})
    return item
