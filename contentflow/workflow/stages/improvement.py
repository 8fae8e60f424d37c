"""
Improvement Stage

On-demand AI rewrite of an analyzed item:

1. request_improvement() - HTTP entry, checks preconditions and emits
   content.improvement.requested
2. generate_improvement() - background handler, produces the draft
3. apply_improvement() - HTTP entry, swaps the draft into the body

The draft never replaces the body on its own. Applying it changes only
the body; workflow status, analysis and recommendations are kept.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from contentflow.analyzer import (
    IMPROVEMENT_SYSTEM_PROMPT,
    build_improvement_prompt,
    strip_code_fences,
)
from contentflow.models import ImprovedContent, ImprovementStatus, utc_now_iso
from contentflow.workflow.context import StageContext
from contentflow.workflow.errors import ConflictError, InvalidInputError
from contentflow.workflow.events import IMPROVEMENT_COMPLETED, IMPROVEMENT_REQUESTED

logger = logging.getLogger(__name__)

IMPROVEMENT_TEMPERATURE = 0.4
IMPROVEMENT_MAX_TOKENS = 3000


async def request_improvement(ctx: StageContext, content_id: str) -> Dict[str, Any]:
    """
    Ask for a rewrite draft.

    Raises:
        ContentNotFoundError: if the item doesn't exist
        InvalidInputError: if the item has no analysis yet
        ConflictError: if a draft is already being generated
    """
    logger.info(f"Content improvement requested: {content_id}")
    item = ctx.repository.require(content_id)

    if item.ai_analysis is None:
        logger.warning(f"Analysis not complete, cannot request improvement: {content_id}")
        raise InvalidInputError(
            "Content analysis must be complete before requesting improvement",
            contentId=content_id,
            currentStatus=item.workflow_status.value,
        )

    if item.improved_content and item.improved_content.status == ImprovementStatus.GENERATING:
        raise ConflictError("Improvement generation already in progress", contentId=content_id)

    await ctx.notifier.emit(IMPROVEMENT_REQUESTED, {"contentId": content_id})

    return {
        "contentId": content_id,
        "message": "Improvement generation started",
        "status": ImprovementStatus.GENERATING.value,
    }


async def generate_improvement(ctx: StageContext, data: Dict[str, Any]) -> Optional[ImprovedContent]:
    """Handle content.improvement.requested."""
    content_id = data["contentId"]
    logger.info(f"Starting content improvement generation: {content_id}")

    item = ctx.repository.get(content_id)
    if item is None:
        logger.error(f"Content not found for improvement: {content_id}")
        return None
    if item.ai_analysis is None:
        logger.error(f"AI analysis not found, cannot generate improvement: {content_id}")
        return None

    original_body = item.body
    item.improved_content = ImprovedContent(
        original_body=original_body,
        improved_body="",
        status=ImprovementStatus.GENERATING,
    )
    item.touch()
    ctx.repository.save(item)

    try:
        await ctx.notifier.push(content_id, "improvement_started", {})

        client = ctx.llm()
        raw_output = await client.complete(
            build_improvement_prompt(item.title, original_body, item.ai_analysis),
            system=IMPROVEMENT_SYSTEM_PROMPT,
            timeout=ctx.settings.IMPROVEMENT_TIMEOUT,
            temperature=IMPROVEMENT_TEMPERATURE,
            max_tokens=IMPROVEMENT_MAX_TOKENS,
        )
        improved_body = strip_code_fences(raw_output or "")
        if not improved_body:
            raise ValueError("Empty response from AI")
    except asyncio.CancelledError:
        logger.error(f"Content improvement generation cancelled for {content_id}")
        _mark_failed(ctx, content_id, original_body)
        raise
    except Exception as e:
        logger.error(f"Content improvement generation failed for {content_id}: {type(e).__name__}: {e}")
        _mark_failed(ctx, content_id, original_body)
        return None

    draft = ImprovedContent(
        original_body=original_body,
        improved_body=improved_body,
        status=ImprovementStatus.COMPLETED,
    )
    item = ctx.repository.get(content_id)
    if item is None:
        logger.warning(f"Content {content_id} was deleted during improvement generation")
        return None
    item.improved_content = draft
    item.touch()
    ctx.repository.save(item)

    logger.info(f"Content improvement generated: {content_id} ({len(improved_body)} chars)")

    await ctx.notifier.push(content_id, "improvement_completed", {
        "improvedContent": draft.to_dict(),
    })
    await ctx.notifier.emit(IMPROVEMENT_COMPLETED, {"contentId": content_id})
    return draft


def _mark_failed(ctx: StageContext, content_id: str, original_body: str) -> None:
    try:
        item = ctx.repository.get(content_id)
        if item is None:
            return
        item.improved_content = ImprovedContent(
            original_body=original_body,
            improved_body="",
            status=ImprovementStatus.FAILED,
        )
        item.touch()
        ctx.repository.save(item)
    except Exception as e:
        logger.error(f"Failed to update improvement failure status for {content_id}: {e}")


async def apply_improvement(ctx: StageContext, content_id: str) -> Dict[str, Any]:
    """
    Replace the body with the completed draft.

    Raises:
        ContentNotFoundError: if the item doesn't exist
        InvalidInputError: if there is no completed, non-empty draft
    """
    logger.info(f"Apply improved content requested: {content_id}")
    item = ctx.repository.require(content_id)

    draft = item.improved_content
    if draft is None or draft.status != ImprovementStatus.COMPLETED:
        raise InvalidInputError("No completed improved content available", contentId=content_id)
    if not draft.improved_body:
        raise InvalidInputError("Improved content body is empty", contentId=content_id)

    original_body = item.body
    item.body = draft.improved_body
    draft.applied_at = utc_now_iso()
    item.touch()
    ctx.repository.save(item)

    logger.info(f"Improved content applied: {content_id}")

    await ctx.notifier.push(content_id, "improvement_applied", {
        "status": item.workflow_status.value,
        "appliedAt": draft.applied_at,
    })

    return {
        "contentId": content_id,
        "message": "Improved content applied successfully",
        "originalBodyLength": len(original_body),
        "newBodyLength": len(item.body),
        "appliedAt": draft.applied_at,
        "status": item.workflow_status.value,
    }
