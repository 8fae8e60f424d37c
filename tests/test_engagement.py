"""
Tests for comments and recommendation votes.
"""

from unittest.mock import AsyncMock, patch

import pytest

from contentflow.models import (
    CommentType,
    ContentItem,
    Priority,
    Recommendation,
    RecommendationType,
    utc_now_iso,
)
from contentflow.workflow.errors import InvalidInputError, NotFoundError
from contentflow.workflow.events import COMMENT_ADDED, VOTE_CAST
from contentflow.workflow.stages import add_comment, cast_vote, list_comments
from contentflow.workflow.status import WorkflowStatus

REC_ID = "rec_content_1_publish_1"


def seed(repository):
    now = utc_now_iso()
    repository.save(ContentItem(
        content_id="content_1",
        title="A title here",
        body="x" * 150,
        author="A",
        language="en",
        created_at=now,
        updated_at=now,
        workflow_status=WorkflowStatus.COMPLETED,
        recommendations=[Recommendation(
            id=REC_ID,
            type=RecommendationType.PUBLISH,
            title="Ready to Publish",
            description="Content meets high quality standards and is ready for publication.",
            priority=Priority.HIGH,
        )],
    ))


class TestComments:

    @pytest.mark.asyncio
    async def test_add_comment(self, stage_ctx):
        with patch.object(stage_ctx.notifier, "emit", AsyncMock(return_value=True)) as emit:
            comment = await add_comment(stage_ctx, "content_1", {
                "userId": "u1",
                "userName": "Ann",
                "text": "Looks good",
            })

        assert comment.id.startswith("comment_")
        assert comment.type == CommentType.GENERAL
        assert comment.created_at == comment.updated_at
        emit.assert_awaited_once_with(COMMENT_ADDED, {
            "contentId": "content_1",
            "commentId": comment.id,
            "userId": "u1",
        })

    @pytest.mark.asyncio
    async def test_missing_fields(self, stage_ctx):
        with pytest.raises(InvalidInputError) as exc_info:
            await add_comment(stage_ctx, "content_1", {"userId": "u1", "text": "hi"})
        assert exc_info.value.to_dict()["required"] == ["userId", "userName", "text"]

    @pytest.mark.asyncio
    async def test_unknown_type(self, stage_ctx):
        with pytest.raises(InvalidInputError):
            await add_comment(stage_ctx, "content_1", {
                "userId": "u1", "userName": "Ann", "text": "hi", "type": "rant",
            })

    @pytest.mark.asyncio
    async def test_target_id_kept(self, stage_ctx):
        comment = await add_comment(stage_ctx, "content_1", {
            "userId": "u1", "userName": "Ann", "text": "hi",
            "type": "recommendation", "targetId": REC_ID,
        })
        assert comment.to_dict()["targetId"] == REC_ID
        assert comment.type == CommentType.RECOMMENDATION

    @pytest.mark.asyncio
    async def test_list_newest_first(self, stage_ctx):
        first = await add_comment(stage_ctx, "content_1", {"userId": "u1", "userName": "Ann", "text": "one"})
        with patch("contentflow.workflow.stages.engagement.utc_now_iso", return_value="2999-01-01T00:00:00.000Z"):
            second = await add_comment(stage_ctx, "content_1", {"userId": "u2", "userName": "Bo", "text": "two"})

        assert [c.id for c in list_comments(stage_ctx, "content_1")] == [second.id, first.id]
        assert list_comments(stage_ctx, "content_other") == []

    @pytest.mark.asyncio
    async def test_comment_broadcast(self, stage_ctx):
        with patch.object(stage_ctx.notifier.stream, "publish") as publish:
            comment = await add_comment(stage_ctx, "content_1", {"userId": "u1", "userName": "Ann", "text": "hi"})

        group, message = publish.call_args.args
        assert group == "content_1"
        assert message["type"] == "comment_added"
        assert message["data"]["id"] == comment.id


class TestVotes:

    @pytest.mark.asyncio
    async def test_vote_counts(self, stage_ctx):
        seed(stage_ctx.repository)

        await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u1", "vote": "up"})
        result = await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u2", "vote": "down"})

        assert result == {
            "recommendationId": REC_ID,
            "upvotes": 1,
            "downvotes": 1,
            "userVote": "down",
            "message": "Vote recorded successfully",
        }
        votes = stage_ctx.repository.get("content_1").find_recommendation(REC_ID).votes
        assert votes.user_votes == {"u1": "up", "u2": "down"}

    @pytest.mark.asyncio
    async def test_repeat_vote_is_idempotent(self, stage_ctx):
        seed(stage_ctx.repository)

        first = await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u1", "vote": "up"})
        second = await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u1", "vote": "up"})

        assert first["upvotes"] == second["upvotes"] == 1

    @pytest.mark.asyncio
    async def test_changing_vote_moves_count(self, stage_ctx):
        seed(stage_ctx.repository)

        await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u1", "vote": "up"})
        result = await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u1", "vote": "down"})

        assert (result["upvotes"], result["downvotes"]) == (0, 1)
        assert stage_ctx.repository.get_votes("content_1", REC_ID) == {"u1": "down"}

    @pytest.mark.asyncio
    async def test_emits_vote_cast(self, stage_ctx):
        seed(stage_ctx.repository)

        with patch.object(stage_ctx.notifier, "emit", AsyncMock(return_value=True)) as emit:
            await cast_vote(stage_ctx, "content_1", REC_ID, {"userId": "u1", "vote": "up"})

        emit.assert_awaited_once_with(VOTE_CAST, {
            "contentId": "content_1",
            "recommendationId": REC_ID,
            "userId": "u1",
            "vote": "up",
        })

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"userId": "u1", "vote": "sideways"},
        {"userId": "u1"},
        {"vote": "up"},
    ])
    async def test_invalid_vote(self, stage_ctx, payload):
        seed(stage_ctx.repository)
        with pytest.raises(InvalidInputError):
            await cast_vote(stage_ctx, "content_1", REC_ID, payload)

    @pytest.mark.asyncio
    async def test_unknown_content(self, stage_ctx):
        with pytest.raises(NotFoundError, match="Content not found"):
            await cast_vote(stage_ctx, "content_missing", REC_ID, {"userId": "u1", "vote": "up"})

    @pytest.mark.asyncio
    async def test_unknown_recommendation(self, stage_ctx):
        seed(stage_ctx.repository)
        with pytest.raises(NotFoundError, match="Recommendation not found"):
            await cast_vote(stage_ctx, "content_1", "rec_nope", {"userId": "u1", "vote": "up"})
