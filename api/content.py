"""
Content API

Endpoints for the content workflow:
- Submit, list, inspect and delete content
- Comments and recommendation votes
- Request and apply AI rewrites
- Live updates (Server-Sent Events) and dashboard export

Background stages run on the workflow's event bus; these handlers only
write the request's own state and return.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from contentflow.workflow.errors import ContentNotFoundError, InvalidInputError
from contentflow.workflow.runtime import WorkflowRuntime
from contentflow.workflow.stages import (
    add_comment,
    apply_improvement,
    cast_vote,
    create_content,
    list_comments,
    request_improvement,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/content", tags=["Content"])

EXPORT_HEADERS = ["ID", "Content ID", "Title", "Author", "Status", "Created At", "Updated At"]


def get_runtime(request: Request) -> WorkflowRuntime:
    """The workflow runtime attached to the app."""
    return request.app.state.runtime


# =============================================================================
# REQUEST MODELS
# =============================================================================

# Fields are optional so missing ones surface as the workflow's 400 with a
# `required` list instead of FastAPI's 422.

class ContentSubmission(BaseModel):
    """New content to run through the workflow."""
    title: Optional[str] = None
    body: Optional[str] = None
    author: Optional[str] = None
    language: Optional[str] = None
    userId: Optional[str] = None


class CommentInput(BaseModel):
    userId: Optional[str] = None
    userName: Optional[str] = None
    text: Optional[str] = None
    type: Optional[str] = None
    targetId: Optional[str] = None


class VoteInput(BaseModel):
    userId: Optional[str] = None
    vote: Optional[str] = None


# =============================================================================
# CONTENT
# =============================================================================

@router.post("", status_code=201)
async def submit_content(
    submission: ContentSubmission,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    """
    Submit content for analysis.

    Returns immediately with status "pending"; validation, analysis and
    recommendations follow in the background.
    """
    item = await create_content(runtime.ctx, submission.model_dump())
    return {
        "contentId": item.content_id,
        "status": item.workflow_status.value,
        "message": "Content submitted successfully. Analysis in progress.",
    }


@router.get("")
async def list_content(
    userId: Optional[str] = None,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> List[Dict[str, Any]]:
    """Dashboard list, newest first."""
    return [item.to_summary() for item in runtime.repository.list(userId)]


@router.get("/export")
async def export_content(
    export_format: str = Query("json", alias="format"),
    userId: Optional[str] = None,
    runtime: WorkflowRuntime = Depends(get_runtime),
):
    """Download the dashboard list as JSON or CSV."""
    if export_format not in ("json", "csv"):
        raise InvalidInputError("Unsupported export format", allowed=["json", "csv"])

    summaries = [item.to_summary() for item in runtime.repository.list(userId)]
    filename = f"content-export-{datetime.now(timezone.utc).date().isoformat()}.{export_format}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if export_format == "csv":
        return Response(
            content=summaries_to_csv(summaries),
            media_type="text/csv; charset=utf-8",
            headers=headers,
        )
    return Response(
        content=json.dumps(summaries, indent=2),
        media_type="application/json",
        headers=headers,
    )


def _quote(value: Optional[str]) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def summaries_to_csv(summaries: List[Dict[str, Any]]) -> str:
    """CSV rows for the export; free-text columns are always quoted."""
    if not summaries:
        return ""

    lines = [",".join(EXPORT_HEADERS)]
    for s in summaries:
        lines.append(",".join([
            s.get("id") or "",
            s.get("contentId") or "",
            _quote(s.get("title")),
            _quote(s.get("author")),
            s.get("status") or "",
            s.get("createdAt") or "",
            s.get("updatedAt") or "",
        ]))
    return "\n".join(lines)


@router.get("/{content_id}")
async def get_content(
    content_id: str,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    """Full status snapshot, including whatever stages have finished."""
    return runtime.repository.require(content_id).to_snapshot()


@router.delete("/{content_id}")
async def delete_content(
    content_id: str,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    if not runtime.repository.purge(content_id):
        raise ContentNotFoundError(content_id)

    logger.info(f"Content deleted: {content_id}")
    return {
        "success": True,
        "message": "Content deleted successfully",
        "contentId": content_id,
    }


@router.get("/{content_id}/updates")
async def stream_updates(
    content_id: str,
    runtime: WorkflowRuntime = Depends(get_runtime),
):
    """
    Live workflow updates for one item as Server-Sent Events.

    Best-effort: messages published while no client is connected are not
    replayed. Clients reconcile with GET /content/{id}.
    """
    runtime.repository.require(content_id)

    async def event_generator():
        async for message in runtime.stream.subscribe(content_id):
            yield {
                "event": message["type"],
                "data": json.dumps(message["data"]),
            }

    return EventSourceResponse(event_generator())


# =============================================================================
# COMMENTS & VOTES
# =============================================================================

@router.post("/{content_id}/comments", status_code=201)
async def post_comment(
    content_id: str,
    comment: CommentInput,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    created = await add_comment(runtime.ctx, content_id, comment.model_dump())
    return created.to_dict()


@router.get("/{content_id}/comments")
async def get_comments(
    content_id: str,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> List[Dict[str, Any]]:
    """Comments, newest first."""
    return [c.to_dict() for c in list_comments(runtime.ctx, content_id)]


@router.post("/{content_id}/recommendations/{recommendation_id}/vote")
async def vote_recommendation(
    content_id: str,
    recommendation_id: str,
    vote: VoteInput,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    return await cast_vote(runtime.ctx, content_id, recommendation_id, vote.model_dump())


# =============================================================================
# IMPROVEMENT
# =============================================================================

@router.post("/{content_id}/improve", status_code=202)
async def improve_content(
    content_id: str,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    """Start generating an AI rewrite. Poll GET /content/{id} for the draft."""
    return await request_improvement(runtime.ctx, content_id)


@router.post("/{content_id}/apply-improvement")
async def apply_improved_content(
    content_id: str,
    runtime: WorkflowRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    return await apply_improvement(runtime.ctx, content_id)
