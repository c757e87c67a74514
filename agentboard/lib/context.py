"""
Item context assembly.

Gathers an item with its dependencies (and their decisions), comments and
decision logs. The worker turns this into prompt text; the CLI prints it.
"""

import logging

from agentboard.lib.models import Comment, DependencyContext, ItemContext
from agentboard.store.base import ItemStore, NotFound
from agentboard.workflow.states import ItemStatus

logger = logging.getLogger(__name__)

__all__ = [
    "PLAN_HEADER",
    "IMPLEMENTATION_HEADER",
    "assemble_context",
    "format_dependencies",
    "find_plan_comment",
    "find_implementation_comment",
]

PLAN_HEADER = "**Implementation Plan**"
IMPLEMENTATION_HEADER = "**Implementation**"


def assemble_context(store: ItemStore, item_id: str) -> ItemContext:
    """Build the full context for one item.

    A dependency that points at a deleted item shows up as "Unknown" in draft.

    Raises:
        NotFound: if the item itself does not exist
    """
    item = store.get_item(item_id)

    deps = []
    for dep in store.list_dependencies(item_id):
        try:
            dep_item = store.get_item(dep.depends_on_item_id)
        except NotFound:
            logger.warning(f"Item {item_id} depends on missing item {dep.depends_on_item_id}")
            deps.append(DependencyContext(dep.depends_on_item_id, "Unknown", ItemStatus.DRAFT))
            continue
        deps.append(DependencyContext(
            id=dep_item.id,
            title=dep_item.title,
            status=dep_item.status,
            decision_logs=store.list_decision_logs(dep_item.id),
        ))

    return ItemContext(
        item=item,
        dependencies=deps,
        comments=store.list_comments(item_id),
        decision_logs=store.list_decision_logs(item_id),
    )


def format_dependencies(ctx: ItemContext) -> str:
    """Dependencies as prompt text: one line per dependency, then its decisions."""
    lines = []
    for dep in ctx.dependencies:
        lines.append(f"- {dep.title} ({dep.status.value})")
        for log in dep.decision_logs:
            lines.append(f"  Decision: {log.decision}")
    return "\n".join(lines)


def _latest_with_header(comments: list[Comment], header: str, since: str | None) -> Comment | None:
    for comment in reversed(comments):
        if not comment.content.startswith(header):
            continue
        if since is not None and comment.created_at < since:
            return None
        return comment
    return None


def find_plan_comment(comments: list[Comment], since: str | None = None) -> Comment | None:
    """Most recent plan comment, optionally only if written at or after `since`."""
    return _latest_with_header(comments, PLAN_HEADER, since)


def find_implementation_comment(comments: list[Comment], since: str | None = None) -> Comment | None:
    """Most recent implementation comment, optionally only if written at or after `since`."""
    return _latest_with_header(comments, IMPLEMENTATION_HEADER, since)
