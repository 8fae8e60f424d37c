"""
Analysis Stage

Asks Claude for a structured analysis of a validated item. The analysis
and the analyzed status are persisted before any notification, so a
failed stream push or emit can never roll the item back.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from contentflow.analyzer import (
    ANALYSIS_SYSTEM_PROMPT,
    build_analysis_prompt,
    parse_analysis,
)
from contentflow.models import AIAnalysisResult
from contentflow.workflow.context import StageContext
from contentflow.workflow.events import CONTENT_ANALYZED
from contentflow.workflow.status import WorkflowStatus, can_transition

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 1500


async def analyze_content(ctx: StageContext, data: Dict[str, Any]) -> Optional[AIAnalysisResult]:
    """Handle content.validated."""
    content_id = data["contentId"]
    logger.info(f"Starting AI analysis: {content_id}")

    item = ctx.repository.get(content_id)
    if item is None:
        logger.error(f"Content not found for AI analysis: {content_id}")
        return None

    if not can_transition(item.workflow_status, WorkflowStatus.ANALYZING):
        logger.warning(f"Skipping analysis of {content_id}: status is {item.workflow_status.value}")
        return None

    try:
        client = ctx.llm()
        ctx.repository.set_status(item, WorkflowStatus.ANALYZING)

        raw_output = await client.complete(
            build_analysis_prompt(item.title, item.language, item.body),
            system=ANALYSIS_SYSTEM_PROMPT,
            timeout=ctx.settings.ANALYSIS_TIMEOUT,
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
        )

        analysis = parse_analysis(raw_output, item.body)
        item.ai_analysis = analysis
        ctx.repository.save(item)
        ctx.repository.store_analysis(content_id, analysis)
        ctx.repository.set_status(item, WorkflowStatus.ANALYZED)

    except asyncio.CancelledError:
        logger.error(f"AI analysis cancelled for {content_id}")
        _settle_after_failure(ctx, content_id)
        raise
    except Exception as e:
        logger.error(f"AI analysis error for {content_id}: {type(e).__name__}: {e}")
        _settle_after_failure(ctx, content_id)
        return None

    logger.info(
        f"AI analysis completed: {content_id} "
        f"(sentiment={analysis.sentiment.value}, quality={analysis.quality_score})"
    )

    await ctx.notifier.push(content_id, "analysis_completed", {
        "status": WorkflowStatus.ANALYZED.value,
        "analysis": analysis.to_dict(),
    })
    await ctx.notifier.emit(CONTENT_ANALYZED, {
        "contentId": content_id,
        "aiAnalysis": analysis.to_dict(),
    })
    return analysis


def _settle_after_failure(ctx: StageContext, content_id: str) -> None:
    """
    Leave the item in a correct status after the stage failed.

    No stored analysis means the analysis itself failed. A stored analysis
    means only a later write failed, so the item stays analyzed.
    """
    try:
        item = ctx.repository.get(content_id)
        if item is None:
            return

        target = WorkflowStatus.ANALYZED if item.ai_analysis else WorkflowStatus.FAILED
        if can_transition(item.workflow_status, target):
            ctx.repository.set_status(item, target)
            logger.info(f"Content {content_id} settled as {target.value}")
    except Exception as e:
        logger.error(f"Failed to update workflow status for {content_id}: {e}")
