"""
In-process ItemStore.

Records live in insertion-ordered dicts. Items are copied on the way in and
out so callers never hold a reference to stored state.
"""

import logging
from dataclasses import replace
from typing import Optional

from agentboard.lib.models import (
    Comment,
    DecisionLog,
    Dependency,
    Item,
    Priority,
    Project,
    new_id,
    now_iso,
)
from agentboard.store.base import ItemStore, NotFound, StaleItemError, role_value
from agentboard.workflow.states import ItemStatus, Role

logger = logging.getLogger(__name__)


class MemoryStore(ItemStore):
    def __init__(self):
        self._projects: dict[str, Project] = {}
        self._items: dict[str, Item] = {}
        self._dependencies: list[Dependency] = []
        self._comments: dict[str, list[Comment]] = {}
        self._decision_logs: dict[str, list[DecisionLog]] = {}

    def get_project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise NotFound("project", project_id)
        return replace(project)

    def list_projects(self) -> list[Project]:
        return [replace(p) for p in self._projects.values()]

    def create_project(self, project: Project) -> Project:
        self._projects[project.id] = replace(project)
        return replace(project)

    def create_item(
        self,
        project_id: str,
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        sprint_tag: Optional[str] = None,
        created_by_role: Optional[Role] = None,
    ) -> Item:
        self.get_project(project_id)
        item = Item(
            id=new_id(),
            project_id=project_id,
            title=title,
            description=description,
            priority=priority,
            sprint_tag=sprint_tag,
            created_by_role=created_by_role,
        )
        self._items[item.id] = item
        return replace(item)

    def _item(self, item_id: str) -> Item:
        item = self._items.get(item_id)
        if item is None:
            raise NotFound("item", item_id)
        return item

    def get_item(self, item_id: str) -> Item:
        return replace(self._item(item_id))

    def list_items(self, project_id: str) -> list[Item]:
        return [replace(i) for i in self._items.values() if i.project_id == project_id]

    def update_item_status(
        self,
        item_id: str,
        status: ItemStatus,
        timestamp: str,
        expected_version: Optional[int] = None,
        assigned_to: Optional[str] = None,
    ) -> Item:
        item = self._item(item_id)
        if expected_version is not None and item.version != expected_version:
            raise StaleItemError(item_id, expected_version, item.version)
        item.status = status
        item.updated_at = timestamp
        if status == ItemStatus.IN_PROGRESS:
            item.assigned_to = assigned_to
        item.version += 1
        return replace(item)

    def list_dependencies(self, item_id: str) -> list[Dependency]:
        return [d for d in self._dependencies if d.item_id == item_id]

    def add_dependency(self, item_id: str, depends_on_item_id: str) -> Dependency:
        self.check_dependency(item_id, depends_on_item_id)
        dep = Dependency(item_id, depends_on_item_id)
        if dep not in self._dependencies:
            self._dependencies.append(dep)
        return dep

    def remove_dependency(self, item_id: str, depends_on_item_id: str) -> bool:
        dep = Dependency(item_id, depends_on_item_id)
        if dep in self._dependencies:
            self._dependencies.remove(dep)
            return True
        return False

    def list_decision_logs(self, item_id: str) -> list[DecisionLog]:
        return list(self._decision_logs.get(item_id, []))

    def append_decision_log(
        self,
        item_id: str,
        context: str,
        decision: str,
        role: Optional[str],
        alternatives: Optional[str] = None,
        consequences: Optional[str] = None,
    ) -> DecisionLog:
        self._item(item_id)
        log = DecisionLog(
            id=new_id(),
            item_id=item_id,
            context=context,
            decision=decision,
            alternatives=alternatives,
            consequences=consequences,
            created_by_role=role_value(role),
            created_at=now_iso(),
        )
        self._decision_logs.setdefault(item_id, []).append(log)
        return log

    def list_comments(self, item_id: str) -> list[Comment]:
        return list(self._comments.get(item_id, []))

    def append_comment(self, item_id: str, content: str, role: Optional[str]) -> Comment:
        self._item(item_id)
        comment = Comment(
            id=new_id(),
            item_id=item_id,
            content=content,
            author_role=role_value(role),
            created_at=now_iso(),
        )
        self._comments.setdefault(item_id, []).append(comment)
        return comment
