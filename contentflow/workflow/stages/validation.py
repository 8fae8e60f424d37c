"""
Validation Stage

Checks body length and language before any LLM work is spent on an item.
Errors reject the item; warnings are advisory only.
"""

import logging
from typing import Any, Dict, Optional

from contentflow.models import ContentItem, ValidationResult, utc_now_iso
from contentflow.workflow.context import StageContext
from contentflow.workflow.events import CONTENT_REJECTED, CONTENT_VALIDATED
from contentflow.workflow.status import WorkflowStatus, can_transition

logger = logging.getLogger(__name__)

MIN_BODY_LENGTH = 100
RECOMMENDED_BODY_LENGTH = 500
MIN_TITLE_LENGTH = 10
SUPPORTED_LANGUAGES = ["en", "es", "fr", "de", "it", "pt"]


def validate(item: ContentItem) -> ValidationResult:
    """Apply the validation rules in order."""
    errors = []
    warnings = []

    if len(item.body) < MIN_BODY_LENGTH:
        errors.append(
            f"Content body must be at least {MIN_BODY_LENGTH} characters. "
            f"Current: {len(item.body)}"
        )

    if item.language.lower() not in SUPPORTED_LANGUAGES:
        errors.append(
            f"Language '{item.language}' is not supported. "
            f"Supported: {', '.join(SUPPORTED_LANGUAGES)}"
        )

    if len(item.title) < MIN_TITLE_LENGTH:
        warnings.append("Title is quite short. Consider a more descriptive title.")

    if len(item.body) < RECOMMENDED_BODY_LENGTH:
        warnings.append("Content body is relatively short. Consider adding more detail.")

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        validated_at=utc_now_iso(),
    )


async def validate_content(ctx: StageContext, data: Dict[str, Any]) -> Optional[ValidationResult]:
    """Handle content.created."""
    content_id = data["contentId"]
    logger.info(f"Starting content validation: {content_id}")

    item = ctx.repository.get(content_id)
    if item is None:
        logger.error(f"Content not found for validation: {content_id}")
        return None

    result = validate(item)
    target = WorkflowStatus.VALIDATED if result.is_valid else WorkflowStatus.REJECTED
    if not can_transition(item.workflow_status, target):
        logger.warning(
            f"Skipping validation of {content_id}: already {item.workflow_status.value}"
        )
        return None

    item.validation_result = result
    ctx.repository.store_validation(content_id, result)
    ctx.repository.set_status(item, target)

    if not result.is_valid:
        logger.warning(f"Content validation failed: {content_id}: {result.errors}")
        await ctx.notifier.emit(CONTENT_REJECTED, {
            "contentId": content_id,
            "validationResult": result.to_dict(),
        })
        return result

    logger.info(f"Content validation passed: {content_id} ({len(result.warnings)} warnings)")

    await ctx.notifier.push(content_id, "validation_completed", {
        "status": WorkflowStatus.VALIDATED.value,
        "validation": result.to_dict(),
    })
    await ctx.notifier.emit(CONTENT_VALIDATED, {
        "contentId": content_id,
        "validationResult": result.to_dict(),
    })
    return result
