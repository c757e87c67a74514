"""Transition execution.

WorkflowExecutor commits a transition that has already been validated:
status write, optional rationale comment, broadcast, notification.

execute() does not re-run role or precondition checks. Use transition()
for the validate-then-execute path callers normally want.
"""

import logging
from typing import Optional

from agentboard.broadcast import COMMENT_ADDED, ITEM_TRANSITIONED, Broadcaster
from agentboard.lib.models import Item, comment_to_dict, item_to_dict, now_iso
from agentboard.notifications import NullNotifier
from agentboard.store.base import ItemStore, StaleItemError
from agentboard.workflow.fsm import ItemFSM
from agentboard.workflow.state_machine import validate_item_transition
from agentboard.workflow.states import ItemStatus, Role

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    def __init__(self, store: ItemStore, broadcaster: Broadcaster | None = None, notifier=None):
        self.store = store
        self.broadcaster = broadcaster or Broadcaster()
        self.notifier = notifier or NullNotifier()

    def execute(
        self,
        item_id: str,
        target: ItemStatus,
        role: Role,
        comment: Optional[str] = None,
        expected_version: Optional[int] = None,
        assignee: Optional[str] = None,
    ) -> Item:
        """Apply one edge and tell everyone about it.

        Args:
            item_id: Item to move
            target: Destination status
            role: Acting role; the comment is attributed to it
            comment: Optional rationale, stored as a Comment
            expected_version: Item version seen at validation time. The write
                fails with StaleItemError if the item changed since.
            assignee: Recorded as assigned_to when entering in_progress

        Returns:
            The updated item

        Raises:
            NotFound: unknown item
            InvalidTransition: no edge from the item's current status to target
            StaleItemError: expected_version no longer current
        """
        item = self.store.get_item(item_id)
        if expected_version is None:
            expected_version = item.version
        elif item.version != expected_version:
            raise StaleItemError(item_id, expected_version, item.version)

        updated: list[Item] = []

        def persist(from_status, to_status, trigger):
            updated.append(
                self.store.update_item_status(item_id, to_status, now_iso(), expected_version, assignee)
            )

        fsm = ItemFSM(item_id, item.status, on_transition=persist)
        trigger = fsm.move_to(target)
        result = updated[0]

        if comment:
            saved = self.store.append_comment(item_id, comment, role)
            self.broadcaster.publish(COMMENT_ADDED, comment_to_dict(saved))

        logger.info(
            f"[STATE] {item_id}: {item.status.value} -> {target.value} "
            f"({trigger.value} by {role.value})"
        )
        self.broadcaster.publish(ITEM_TRANSITIONED, {
            "item": item_to_dict(result),
            "from": item.status.value,
            "to": target.value,
        })
        self._notify(result, target, comment)
        return result

    def _notify(self, item: Item, target: ItemStatus, comment: Optional[str]) -> None:
        try:
            self.notifier.notify(item, target, comment)
        except Exception as e:
            logger.warning(f"[NOTIFY] Notification for {item.id} failed: {e}")

    def transition(
        self,
        item_id: str,
        target: ItemStatus,
        role: Role,
        comment: Optional[str] = None,
        force: bool = False,
    ) -> Item:
        """Validate and execute a requested transition.

        Raises:
            NotFound: unknown item
            TransitionError: (subclass) the request was rejected
            StaleItemError: the item changed between validation and the write
        """
        item = self.store.get_item(item_id)
        result = validate_item_transition(self.store, item, target, role, comment, force)
        result.raise_if_rejected()
        return self.execute(item_id, target, role, comment, expected_version=item.version)
