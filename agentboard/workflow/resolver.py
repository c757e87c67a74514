"""Dependency resolution and next-item selection.

next_unblocked() answers "what should an implementer pick up next?":
the highest-priority approved item whose dependencies are all finished.
Ties keep storage order (the sort is stable).

Dependency cycles are not detected. Items on a cycle never become
unblocked, so they are simply never selected.
"""

import logging
from dataclasses import dataclass

from agentboard.lib.models import PRIORITY_ORDER, Item, Priority
from agentboard.store.base import ItemStore, NotFound
from agentboard.workflow.states import FINISHED_STATUSES, ItemStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockingDependency:
    """An unfinished dependency. status is None when the item no longer exists."""
    id: str
    title: str
    status: ItemStatus | None

    def describe(self) -> str:
        status = self.status.value if self.status else "missing"
        return f'"{self.title}" ({status})'


def priority_rank(priority: Priority) -> int:
    return PRIORITY_ORDER.get(priority, PRIORITY_ORDER[Priority.MEDIUM])


def unfinished_dependencies(
    store: ItemStore, item_id: str, include_missing: bool = True
) -> list[BlockingDependency]:
    """Dependencies of item_id that are neither done nor accepted.

    An edge to an item that no longer exists is reported with status None,
    or skipped when include_missing is False (the transition validator's view).
    """
    blocking = []
    for dep in store.list_dependencies(item_id):
        try:
            dep_item = store.get_item(dep.depends_on_item_id)
        except NotFound:
            if not include_missing:
                continue
            blocking.append(BlockingDependency(dep.depends_on_item_id, dep.depends_on_item_id, None))
            continue
        if dep_item.status not in FINISHED_STATUSES:
            blocking.append(BlockingDependency(dep_item.id, dep_item.title, dep_item.status))
    return blocking


def is_unblocked(store: ItemStore, item_id: str) -> bool:
    return not unfinished_dependencies(store, item_id)


def sort_by_priority(items: list[Item]) -> list[Item]:
    """Critical first, low last; equal priorities keep their input order."""
    return sorted(items, key=lambda i: priority_rank(i.priority))


def next_unblocked(store: ItemStore, project_id: str) -> Item:
    """Pick the next approved item to work on.

    Raises:
        NotFound: no approved item in the project is unblocked
    """
    approved = store.list_items_by_project_and_status(project_id, ItemStatus.APPROVED)

    for item in sort_by_priority(approved):
        if is_unblocked(store, item.id):
            logger.debug(f"Next unblocked item in {project_id}: {item.id} ({item.priority.value})")
            return item

    raise NotFound("unblocked approved item", project_id)
