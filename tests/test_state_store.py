"""
Tests for the key-value state store and content repository.
"""

from unittest.mock import patch

import pytest

from contentflow.database import StateEntry, get_db_context, make_session_factory
from contentflow.models import ContentItem, utc_now_iso
from contentflow.state import (
    AI_ANALYSIS,
    CONTENT,
    RECOMMENDATIONS,
    VALIDATION,
    WORKFLOW,
    comments_collection,
)
from contentflow.workflow.errors import ContentNotFoundError
from contentflow.workflow.status import IllegalTransitionError, WorkflowStatus


def make_item(content_id: str, created_at: str, user_id=None) -> ContentItem:
    return ContentItem(
        content_id=content_id,
        title="A title here",
        body="body",
        author="Ann",
        language="en",
        created_at=created_at,
        updated_at=created_at,
        user_id=user_id,
    )


# ============================================================================
# StateStore
# ============================================================================

class TestStateStore:

    def test_get_missing_returns_none(self, store):
        assert store.get("content", "nope") is None

    def test_set_then_get(self, store):
        store.set("content", "a", {"x": 1})
        assert store.get("content", "a") == {"x": 1}

    def test_set_overwrites_whole_value(self, store):
        store.set("content", "a", {"x": 1, "y": 2})
        store.set("content", "a", {"x": 3})
        assert store.get("content", "a") == {"x": 3}

    def test_returned_value_is_a_copy(self, store):
        store.set("content", "a", {"items": [1]})
        value = store.get("content", "a")
        value["items"].append(2)
        assert store.get("content", "a") == {"items": [1]}

    def test_collections_are_isolated(self, store):
        store.set("content", "a", {"v": "content"})
        store.set("workflow", "a", {"v": "workflow"})
        assert store.get("content", "a") == {"v": "content"}
        assert store.get("workflow", "a") == {"v": "workflow"}

    def test_delete(self, store):
        store.set("content", "a", {"x": 1})
        assert store.delete("content", "a") is True
        assert store.get("content", "a") is None
        assert store.delete("content", "a") is False

    def test_get_group_in_insertion_order(self, store):
        store.set("comments:c1", "b", {"id": "b"})
        store.set("comments:c1", "a", {"id": "a"})
        store.set("comments:c2", "z", {"id": "z"})
        assert store.get_group("comments:c1") == [{"id": "b"}, {"id": "a"}]
        assert store.get_group("empty") == []

    def test_delete_group(self, store):
        store.set("comments:c1", "a", {"id": "a"})
        store.set("comments:c1", "b", {"id": "b"})
        store.set("comments:c2", "z", {"id": "z"})

        assert store.delete_group("comments:c1") == 2
        assert store.get_group("comments:c1") == []
        assert store.get_group("comments:c2") == [{"id": "z"}]

    def test_delete_matching_prefix(self, store):
        store.set("votes", "votes_c1_rec_a", {"u1": "up"})
        store.set("votes", "votes_c1_rec_b", {"u2": "down"})
        store.set("votes", "votes_c10_rec_a", {"u3": "up"})

        assert store.delete_matching("votes", "votes_c1_") == 2
        assert store.get("votes", "votes_c10_rec_a") == {"u3": "up"}

    def test_failed_write_leaves_value_unchanged(self, store):
        store.set("content", "a", {"x": 1})

        # object() is not JSON serializable, so the commit fails
        with pytest.raises(Exception):
            store.set("content", "a", {"x": object()})

        assert store.get("content", "a") == {"x": 1}


class TestDbContext:

    def test_uses_given_session_factory(self, engine, store):
        with get_db_context(make_session_factory(engine)) as db:
            db.add(StateEntry(collection="system", key="k", value={"ok": True}))

        assert store.get("system", "k") == {"ok": True}

    def test_commits_on_success(self, engine, store):
        with patch(
            "contentflow.database.session.get_session_factory",
            return_value=make_session_factory(engine),
        ):
            with get_db_context() as db:
                db.add(StateEntry(collection="system", key="k", value={"ok": True}))

        assert store.get("system", "k") == {"ok": True}

    def test_rolls_back_on_error(self, engine, store):
        with patch(
            "contentflow.database.session.get_session_factory",
            return_value=make_session_factory(engine),
        ):
            with pytest.raises(RuntimeError):
                with get_db_context() as db:
                    db.add(StateEntry(collection="system", key="k", value={"ok": True}))
                    raise RuntimeError("boom")

        assert store.get("system", "k") is None


# ============================================================================
# ContentRepository
# ============================================================================

class TestContentRepository:

    def test_save_writes_workflow_mirror(self, repository):
        item = make_item("content_1", utc_now_iso())
        repository.save(item)

        assert repository.store.get(WORKFLOW, "content_1") == {
            "status": "pending",
            "contentId": "content_1",
        }
        assert repository.get("content_1").title == "A title here"

    def test_require_missing_raises(self, repository):
        with pytest.raises(ContentNotFoundError) as exc_info:
            repository.require("content_missing")
        assert exc_info.value.to_dict() == {
            "error": "Content not found",
            "contentId": "content_missing",
        }

    def test_set_status_updates_item_and_mirror(self, repository):
        item = make_item("content_1", "2024-01-01T00:00:00.000Z")
        repository.save(item)

        repository.set_status(item, WorkflowStatus.VALIDATED)

        assert repository.get("content_1").workflow_status == WorkflowStatus.VALIDATED
        assert repository.store.get(WORKFLOW, "content_1")["status"] == "validated"
        assert item.updated_at != "2024-01-01T00:00:00.000Z"

    def test_set_status_refuses_illegal_edge(self, repository):
        item = make_item("content_1", utc_now_iso())
        repository.save(item)

        with pytest.raises(IllegalTransitionError):
            repository.set_status(item, WorkflowStatus.COMPLETED)
        assert repository.get("content_1").workflow_status == WorkflowStatus.PENDING

    def test_list_newest_first_and_filtered(self, repository):
        repository.save(make_item("content_old", "2024-01-01T00:00:00.000Z", user_id="u1"))
        repository.save(make_item("content_new", "2024-03-01T00:00:00.000Z", user_id="u2"))
        repository.save(make_item("content_mid", "2024-02-01T00:00:00.000Z", user_id="u1"))

        assert [i.content_id for i in repository.list()] == [
            "content_new", "content_mid", "content_old",
        ]
        assert [i.content_id for i in repository.list("u1")] == ["content_mid", "content_old"]

    def test_list_skips_malformed_records(self, repository):
        repository.save(make_item("content_1", utc_now_iso()))
        repository.store.set(CONTENT, "broken", {"contentId": "broken"})

        assert [i.content_id for i in repository.list()] == ["content_1"]

    def test_delete_removes_item_and_mirror(self, repository):
        repository.save(make_item("content_1", utc_now_iso()))

        assert repository.delete("content_1") is True
        assert repository.get("content_1") is None
        assert repository.store.get(WORKFLOW, "content_1") is None
        assert repository.delete("content_1") is False

    def test_purge_removes_everything_for_the_item(self, repository):
        repository.save(make_item("content_1", utc_now_iso()))
        repository.save(make_item("content_12", utc_now_iso()))
        for content_id in ("content_1", "content_12"):
            repository.store.set(VALIDATION, content_id, {"isValid": True})
            repository.store.set(AI_ANALYSIS, content_id, {"qualityScore": 90})
            repository.store.set(RECOMMENDATIONS, content_id, {"recommendations": []})
            repository.store.set(comments_collection(content_id), "comment_1", {"id": "comment_1"})
            repository.set_votes(content_id, f"rec_{content_id}_publish_1", {"u1": "up"})

        assert repository.purge("content_1") is True

        for collection in (CONTENT, WORKFLOW, VALIDATION, AI_ANALYSIS, RECOMMENDATIONS):
            assert repository.store.get(collection, "content_1") is None
        assert repository.store.get_group(comments_collection("content_1")) == []
        assert repository.get_votes("content_1", "rec_content_1_publish_1") == {}

        # a neighbour whose id shares the prefix is untouched
        assert repository.get("content_12") is not None
        assert repository.store.get(AI_ANALYSIS, "content_12") is not None
        assert len(repository.store.get_group(comments_collection("content_12"))) == 1
        assert repository.get_votes("content_12", "rec_content_12_publish_1") == {"u1": "up"}

        assert repository.purge("content_1") is False
