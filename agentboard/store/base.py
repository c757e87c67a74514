"""
Storage collaborator interface.

The engine only talks to storage through ItemStore. Status writes go through
update_item_status, which is the single place an item's version is bumped.
"""

from abc import ABC, abstractmethod
from typing import Optional

from agentboard.lib.models import Comment, DecisionLog, Dependency, Item, Priority, Project
from agentboard.workflow.states import ItemStatus, Role


class NotFound(Exception):
    """Raised when a project or item does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} not found: {key}")


class StaleItemError(Exception):
    """Raised when a status write races with another writer."""

    def __init__(self, item_id: str, expected: int, actual: int):
        self.item_id = item_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Item {item_id} changed since it was validated "
            f"(expected version {expected}, found {actual})"
        )


class DependencyError(ValueError):
    """Raised when a dependency edge cannot be created."""


class ItemStore(ABC):
    """Row-level operations over projects, items and their attachments."""

    # Projects

    @abstractmethod
    def get_project(self, project_id: str) -> Project:
        ...

    @abstractmethod
    def list_projects(self) -> list[Project]:
        ...

    @abstractmethod
    def create_project(self, project: Project) -> Project:
        ...

    # Items

    @abstractmethod
    def create_item(
        self,
        project_id: str,
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        sprint_tag: Optional[str] = None,
        created_by_role: Optional[Role] = None,
    ) -> Item:
        ...

    @abstractmethod
    def get_item(self, item_id: str) -> Item:
        ...

    @abstractmethod
    def list_items(self, project_id: str) -> list[Item]:
        ...

    def list_items_by_project_and_status(self, project_id: str, status: ItemStatus) -> list[Item]:
        return [i for i in self.list_items(project_id) if i.status == status]

    @abstractmethod
    def update_item_status(
        self,
        item_id: str,
        status: ItemStatus,
        timestamp: str,
        expected_version: Optional[int] = None,
        assigned_to: Optional[str] = None,
    ) -> Item:
        """Persist a new status.

        Entering in_progress records assigned_to as the item's assignee
        (None clears it). Other statuses leave the assignee alone.

        Raises:
            NotFound: unknown item
            StaleItemError: expected_version given and no longer current
        """

    # Dependencies

    @abstractmethod
    def list_dependencies(self, item_id: str) -> list[Dependency]:
        ...

    @abstractmethod
    def add_dependency(self, item_id: str, depends_on_item_id: str) -> Dependency:
        ...

    @abstractmethod
    def remove_dependency(self, item_id: str, depends_on_item_id: str) -> bool:
        ...

    # Attachments

    @abstractmethod
    def list_decision_logs(self, item_id: str) -> list[DecisionLog]:
        ...

    @abstractmethod
    def append_decision_log(
        self,
        item_id: str,
        context: str,
        decision: str,
        role: Optional[str],
        alternatives: Optional[str] = None,
        consequences: Optional[str] = None,
    ) -> DecisionLog:
        ...

    @abstractmethod
    def list_comments(self, item_id: str) -> list[Comment]:
        ...

    @abstractmethod
    def append_comment(self, item_id: str, content: str, role: Optional[str]) -> Comment:
        ...

    def check_dependency(self, item_id: str, depends_on_item_id: str) -> None:
        """Shared checks before inserting a dependency edge.

        Cycles are not detected.
        """
        if item_id == depends_on_item_id:
            raise DependencyError("Item cannot depend on itself")
        item = self.get_item(item_id)
        dep = self.get_item(depends_on_item_id)
        if item.project_id != dep.project_id:
            raise DependencyError(
                f"Dependency must be in the same project ({item.project_id} != {dep.project_id})"
            )


def role_value(role) -> Optional[str]:
    """Accept a Role or its string value."""
    if role is None:
        return None
    if isinstance(role, Role):
        return role.value
    return str(role)
