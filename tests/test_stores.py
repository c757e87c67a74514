"""Tests for the storage collaborators (MemoryStore and FileStore).

The shared behaviour runs against both stores; FileStore-specific tests
cover persistence and schema checks.
"""

import json

import pytest

from agentboard.lib.models import Priority, Project
from agentboard.lib.validate import ValidationError
from agentboard.store import DependencyError, FileStore, MemoryStore, NotFound, StaleItemError
from agentboard.workflow.states import ItemStatus, Role

TS = "2024-06-01T12:00:00.000000+00:00"


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    store = MemoryStore() if request.param == "memory" else FileStore(tmp_path)
    store.create_project(Project(id="p1", name="Project One", anthropic_api_key="sk-1"))
    store.create_project(Project(id="p2", name="Project Two"))
    return store


class TestProjects:
    """Project lookup."""

    def test_get_project(self, store):
        project = store.get_project("p1")
        assert project.name == "Project One"
        assert project.anthropic_api_key == "sk-1"

    def test_list_projects(self, store):
        assert [p.id for p in store.list_projects()] == ["p1", "p2"]

    def test_unknown_project(self, store):
        with pytest.raises(NotFound) as exc_info:
            store.get_project("nope")
        assert str(exc_info.value) == "Project not found: nope"


class TestItems:
    """Item creation and status writes."""

    def test_create_defaults(self, store):
        item = store.create_item("p1", "Task", created_by_role=Role.PLANNER)
        assert item.status == ItemStatus.DRAFT
        assert item.priority == Priority.MEDIUM
        assert item.version == 0
        assert item.created_by_role == Role.PLANNER

    def test_create_in_unknown_project(self, store):
        with pytest.raises(NotFound):
            store.create_item("nope", "Task")

    def test_get_item_round_trip(self, store):
        item = store.create_item("p1", "Task", description="Details", priority=Priority.HIGH, sprint_tag="s1")
        loaded = store.get_item(item.id)
        assert loaded == item

    def test_unknown_item(self, store):
        with pytest.raises(NotFound) as exc_info:
            store.get_item("missing")
        assert str(exc_info.value) == "Item not found: missing"

    def test_list_in_creation_order(self, store):
        ids = [store.create_item("p1", f"T{i}").id for i in range(4)]
        store.create_item("p2", "Elsewhere")
        assert [i.id for i in store.list_items("p1")] == ids

    def test_list_by_status(self, store):
        a = store.create_item("p1", "A")
        store.create_item("p1", "B")
        store.update_item_status(a.id, ItemStatus.PENDING_REVIEW, TS)
        found = store.list_items_by_project_and_status("p1", ItemStatus.PENDING_REVIEW)
        assert [i.id for i in found] == [a.id]

    def test_update_status(self, store):
        item = store.create_item("p1", "Task")
        updated = store.update_item_status(item.id, ItemStatus.PENDING_REVIEW, TS)
        assert updated.status == ItemStatus.PENDING_REVIEW
        assert updated.updated_at == TS
        assert updated.version == 1
        assert store.get_item(item.id).version == 1

    def test_stale_version(self, store):
        item = store.create_item("p1", "Task")
        store.update_item_status(item.id, ItemStatus.PENDING_REVIEW, TS, expected_version=0)
        with pytest.raises(StaleItemError) as exc_info:
            store.update_item_status(item.id, ItemStatus.APPROVED, TS, expected_version=0)
        assert exc_info.value.actual == 1
        assert store.get_item(item.id).status == ItemStatus.PENDING_REVIEW

    def test_assignee_recorded_on_start(self, store):
        item = store.create_item("p1", "Task")
        for status in (ItemStatus.PENDING_REVIEW, ItemStatus.APPROVED):
            store.update_item_status(item.id, status, TS, assigned_to="ignored")
        assert store.get_item(item.id).assigned_to is None

        store.update_item_status(item.id, ItemStatus.IN_PROGRESS, TS, assigned_to="agent")
        store.update_item_status(item.id, ItemStatus.DONE, TS)
        assert store.get_item(item.id).assigned_to == "agent"

        store.update_item_status(item.id, ItemStatus.DRAFT, TS)
        store.update_item_status(item.id, ItemStatus.PENDING_REVIEW, TS)
        store.update_item_status(item.id, ItemStatus.APPROVED, TS)
        store.update_item_status(item.id, ItemStatus.IN_PROGRESS, TS)
        assert store.get_item(item.id).assigned_to is None

    def test_returned_items_are_copies(self, store):
        item = store.create_item("p1", "Task")
        item.status = ItemStatus.DONE
        assert store.get_item(item.id).status == ItemStatus.DRAFT


class TestDependencies:
    """Dependency edges."""

    def test_add_and_list(self, store):
        a = store.create_item("p1", "A")
        b = store.create_item("p1", "B")
        store.add_dependency(a.id, b.id)
        assert [d.depends_on_item_id for d in store.list_dependencies(a.id)] == [b.id]
        assert store.list_dependencies(b.id) == []

    def test_add_twice_is_noop(self, store):
        a = store.create_item("p1", "A")
        b = store.create_item("p1", "B")
        store.add_dependency(a.id, b.id)
        store.add_dependency(a.id, b.id)
        assert len(store.list_dependencies(a.id)) == 1

    def test_self_dependency_rejected(self, store):
        a = store.create_item("p1", "A")
        with pytest.raises(DependencyError, match="itself"):
            store.add_dependency(a.id, a.id)

    def test_cross_project_rejected(self, store):
        a = store.create_item("p1", "A")
        b = store.create_item("p2", "B")
        with pytest.raises(DependencyError, match="same project"):
            store.add_dependency(a.id, b.id)

    def test_unknown_target(self, store):
        a = store.create_item("p1", "A")
        with pytest.raises(NotFound):
            store.add_dependency(a.id, "missing")

    def test_cycles_allowed(self, store):
        a = store.create_item("p1", "A")
        b = store.create_item("p1", "B")
        store.add_dependency(a.id, b.id)
        store.add_dependency(b.id, a.id)
        assert len(store.list_dependencies(b.id)) == 1

    def test_remove(self, store):
        a = store.create_item("p1", "A")
        b = store.create_item("p1", "B")
        store.add_dependency(a.id, b.id)
        assert store.remove_dependency(a.id, b.id) is True
        assert store.remove_dependency(a.id, b.id) is False
        assert store.list_dependencies(a.id) == []


class TestAttachments:
    """Comments and decision logs."""

    def test_comments_in_order(self, store):
        item = store.create_item("p1", "Task")
        store.append_comment(item.id, "first", Role.PLANNER)
        store.append_comment(item.id, "second", "authority")
        comments = store.list_comments(item.id)
        assert [c.content for c in comments] == ["first", "second"]
        assert [c.author_role for c in comments] == ["planner", "authority"]
        assert comments[0].created_at <= comments[1].created_at

    def test_decision_log_fields(self, store):
        item = store.create_item("p1", "Task")
        log = store.append_decision_log(
            item.id, "Auth", "Use JWT", Role.IMPLEMENTER,
            alternatives="Sessions", consequences="Stateless",
        )
        logs = store.list_decision_logs(item.id)
        assert logs == [log]
        assert logs[0].alternatives == "Sessions"
        assert logs[0].created_by_role == "implementer"

    def test_attachments_on_unknown_item(self, store):
        with pytest.raises(NotFound):
            store.append_comment("missing", "text", Role.PLANNER)
        with pytest.raises(NotFound):
            store.append_decision_log("missing", "c", "d", Role.PLANNER)


class TestFileStore:
    """FileStore persistence and schema checks."""

    @pytest.fixture
    def board(self, tmp_path):
        store = FileStore(tmp_path)
        store.create_project(Project(id="p1", name="Project One"))
        return tmp_path

    def test_survives_new_instance(self, board):
        first = FileStore(board)
        item = first.create_item("p1", "Task")
        first.append_comment(item.id, "hello", Role.PLANNER)
        first.update_item_status(item.id, ItemStatus.PENDING_REVIEW, TS)

        second = FileStore(board)
        loaded = second.get_item(item.id)
        assert loaded.status == ItemStatus.PENDING_REVIEW
        assert loaded.version == 1
        assert [c.content for c in second.list_comments(item.id)] == ["hello"]

    def test_document_layout(self, board):
        store = FileStore(board)
        item = store.create_item("p1", "Task")
        path = board / "projects" / "p1" / "items" / f"{item.id}.json"
        doc = json.loads(path.read_text())
        assert set(doc) == {"item", "dependencies", "comments", "decision_logs"}
        assert doc["item"]["status"] == "draft"

    def test_project_env_written(self, board):
        env = (board / "projects" / "p1" / "project.env").read_text()
        assert 'PROJECT_NAME="Project One"' in env

    def test_invalid_write_refused(self, board):
        store = FileStore(board)
        item = store.create_item("p1", "Task")
        with pytest.raises(ValidationError, match="Refusing to write"):
            store.append_comment(item.id, "", Role.PLANNER)
        assert store.list_comments(item.id) == []

    def test_empty_title_refused(self, board):
        with pytest.raises(ValidationError):
            FileStore(board).create_item("p1", "")

    def test_corrupt_file_skipped_in_listing(self, board, caplog):
        store = FileStore(board)
        good = store.create_item("p1", "Good")
        (board / "projects" / "p1" / "items" / "broken.json").write_text("{not json")

        assert [i.id for i in store.list_items("p1")] == [good.id]
        assert "Skipping unreadable item file" in caplog.text

    def test_path_traversal_rejected(self, board):
        store = FileStore(board)
        with pytest.raises(NotFound):
            store.get_item("../p1")
        with pytest.raises(NotFound):
            store.get_project("../../etc")

    def test_project_without_env_ignored(self, board):
        (board / "projects" / "stray").mkdir()
        assert [p.id for p in FileStore(board).list_projects()] == ["p1"]
