"""
Recommendation Stage

Turns an analysis into publishing and improvement recommendations using
a fixed rule table. No external calls; the same analysis always yields
the same recommendations.
"""

import logging
from typing import Any, Dict, List, Optional

from contentflow.models import (
    AIAnalysisResult,
    Priority,
    Recommendation,
    RecommendationType,
    Sentiment,
)
from contentflow.workflow.context import StageContext
from contentflow.workflow.events import CONTENT_COMPLETED
from contentflow.workflow.status import WorkflowStatus, can_transition

logger = logging.getLogger(__name__)

READY_QUALITY = 80
ACCEPTABLE_QUALITY = 60
MIN_READABILITY = 60
MIN_TOPICS = 3


def generate_recommendations(content_id: str, analysis: AIAnalysisResult) -> List[Recommendation]:
    """
    Apply the recommendation rules.

    Exactly one publish/review recommendation is always produced; the
    improve and optimize recommendations are added on top.
    """
    recommendations = []

    if analysis.quality_score >= READY_QUALITY and analysis.sentiment == Sentiment.POSITIVE:
        recommendations.append(Recommendation(
            id=f"rec_{content_id}_publish_1",
            type=RecommendationType.PUBLISH,
            title="Ready to Publish",
            description="Content meets high quality standards and is ready for publication.",
            priority=Priority.HIGH,
            actionable_steps=[
                "Review final content for typos",
                "Add relevant tags/categories",
                "Schedule publication",
                "Share on social media channels",
            ],
        ))
    elif analysis.quality_score >= ACCEPTABLE_QUALITY:
        recommendations.append(Recommendation(
            id=f"rec_{content_id}_publish_2",
            type=RecommendationType.PUBLISH,
            title="Publish with Minor Edits",
            description="Content is good but could benefit from minor improvements before publishing.",
            priority=Priority.MEDIUM,
            actionable_steps=[
                "Address identified weaknesses",
                "Enhance strengths",
                "Review and publish",
            ],
        ))
    else:
        recommendations.append(Recommendation(
            id=f"rec_{content_id}_review_1",
            type=RecommendationType.REVIEW,
            title="Needs Review Before Publishing",
            description="Content requires significant improvements before it's ready for publication.",
            priority=Priority.HIGH,
            actionable_steps=[
                "Address all identified weaknesses",
                f"Improve quality score above {ACCEPTABLE_QUALITY}",
                "Get peer review",
                "Revise and resubmit",
            ],
        ))

    if analysis.weaknesses:
        recommendations.append(Recommendation(
            id=f"rec_{content_id}_improve_1",
            type=RecommendationType.IMPROVE,
            title="Address Content Weaknesses",
            description=f"Focus on improving: {', '.join(analysis.weaknesses[:3])}",
            priority=Priority.HIGH if analysis.quality_score < ACCEPTABLE_QUALITY else Priority.MEDIUM,
            actionable_steps=[f"Work on: {w}" for w in analysis.weaknesses[:5]],
        ))

    if analysis.readability_score < MIN_READABILITY:
        recommendations.append(Recommendation(
            id=f"rec_{content_id}_optimize_1",
            type=RecommendationType.OPTIMIZE,
            title="Improve Readability",
            description="Content readability can be improved for better audience engagement.",
            priority=Priority.MEDIUM,
            actionable_steps=[
                "Use shorter sentences",
                "Break up long paragraphs",
                "Add subheadings for structure",
                "Simplify complex vocabulary where possible",
            ],
        ))

    if 0 < len(analysis.topics) < MIN_TOPICS:
        recommendations.append(Recommendation(
            id=f"rec_{content_id}_optimize_2",
            type=RecommendationType.OPTIMIZE,
            title="Expand Topic Coverage",
            description="Consider adding more related topics to improve SEO and depth.",
            priority=Priority.LOW,
            actionable_steps=[
                "Research related subtopics",
                "Add supporting examples",
                "Include relevant keywords naturally",
            ],
        ))

    return recommendations


async def recommend(ctx: StageContext, data: Dict[str, Any]) -> Optional[List[Recommendation]]:
    """Handle content.analyzed."""
    content_id = data["contentId"]
    logger.info(f"Generating recommendations: {content_id}")

    item = ctx.repository.get(content_id)
    if item is None:
        logger.error(f"Content not found for recommendations: {content_id}")
        return None

    if not can_transition(item.workflow_status, WorkflowStatus.COMPLETED):
        logger.warning(
            f"Skipping recommendations for {content_id}: status is {item.workflow_status.value}"
        )
        return None

    try:
        if data.get("aiAnalysis"):
            analysis = AIAnalysisResult.from_dict(data["aiAnalysis"])
        else:
            analysis = item.ai_analysis
        if analysis is None:
            logger.error(f"No analysis available for recommendations: {content_id}")
            return None

        recommendations = generate_recommendations(content_id, analysis)
        item.recommendations = recommendations
        ctx.repository.save(item)
        ctx.repository.store_recommendations(content_id, recommendations)
        ctx.repository.set_status(item, WorkflowStatus.COMPLETED)

    except Exception as e:
        logger.error(f"Recommendation generation error for {content_id}: {type(e).__name__}: {e}")
        _settle_after_failure(ctx, content_id)
        return None

    logger.info(f"Recommendations generated: {content_id} ({len(recommendations)} total)")

    await ctx.notifier.push(content_id, "recommendations_completed", {
        "status": WorkflowStatus.COMPLETED.value,
        "recommendations": [r.to_dict() for r in recommendations],
    })
    await ctx.notifier.emit(CONTENT_COMPLETED, {
        "contentId": content_id,
        "recommendations": [r.to_dict() for r in recommendations],
    })
    return recommendations


def _settle_after_failure(ctx: StageContext, content_id: str) -> None:
    """Stored recommendations mean completed; otherwise the item stays analyzed."""
    try:
        item = ctx.repository.get(content_id)
        if item is None:
            return
        if item.recommendations and can_transition(item.workflow_status, WorkflowStatus.COMPLETED):
            ctx.repository.set_status(item, WorkflowStatus.COMPLETED)
    except Exception as e:
        logger.error(f"Failed to update workflow status for {content_id}: {e}")
