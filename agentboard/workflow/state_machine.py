"""Transition validation.

validate() decides whether a requested status change is allowed. It is pure:
everything it needs about the item's surroundings comes in through
TransitionFacts, whose providers are only called when a check needs them.

Checks run in a fixed order and stop at the first failure:
    1. the (current, target) edge exists
    2. the acting role may invoke it
    3. a required comment is present
    4. a required decision log exists (authority is exempt)
    5. entering in_progress: every dependency is done/accepted, unless forced

Permission is checked before dependencies so that a caller who may not make
the move never learns what blocks it.

Usage:
    from agentboard.workflow.state_machine import validate_item_transition

    result = validate_item_transition(store, item, ItemStatus.IN_PROGRESS, Role.IMPLEMENTER)
    result.raise_if_rejected()
"""

import logging
from dataclasses import dataclass
from typing import Callable

from agentboard.workflow.states import ItemStatus, Role, TransitionDef, find_transition

logger = logging.getLogger(__name__)


class TransitionError(Exception):
    """Base class for rejected transitions."""

    def __init__(self, message: str, item_id: str = ""):
        self.message = message
        self.item_id = item_id
        super().__init__(message)


class InvalidTransition(TransitionError):
    """No edge exists for the requested (from, to) pair."""

    def __init__(self, from_status: ItemStatus, to_status: ItemStatus, item_id: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition from {from_status.value} to {to_status.value}",
            item_id,
        )


class RoleNotPermitted(TransitionError):
    """The acting role may not invoke this edge."""

    def __init__(self, role: Role, tdef: TransitionDef, item_id: str = ""):
        self.role = role
        self.transition = tdef
        super().__init__(f"Role '{role.value}' cannot perform this transition", item_id)


class PreconditionUnmet(TransitionError):
    """A required comment or decision log is missing."""


class DependencyBlocked(TransitionError):
    """Unfinished dependencies block entering in_progress."""

    def __init__(self, blocking: list, item_id: str = ""):
        self.blocking = blocking
        names = ", ".join(b.describe() for b in blocking)
        super().__init__(
            f"Blocked by unfinished dependencies: {names}. Use force=true to override.",
            item_id,
        )


COMMENT_REQUIRED = "A comment is required for this transition"
DECISION_LOG_REQUIRED = "At least one decision log is required before marking as done"


@dataclass
class TransitionFacts:
    """What the validator may know about the item besides its status."""
    comment: str | None = None
    force: bool = False
    decision_log_count: Callable[[], int] = lambda: 0
    unfinished_dependencies: Callable[[], list] = lambda: []
    item_id: str = ""


@dataclass
class TransitionResult:
    ok: bool
    error: str | None = None
    exception: TransitionError | None = None

    @classmethod
    def accepted(cls) -> "TransitionResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, exc: TransitionError) -> "TransitionResult":
        return cls(ok=False, error=exc.message, exception=exc)

    def raise_if_rejected(self) -> None:
        if not self.ok:
            raise self.exception


def validate(
    current: ItemStatus,
    target: ItemStatus,
    role: Role,
    facts: TransitionFacts | None = None,
) -> TransitionResult:
    """Decide whether `role` may move an item from `current` to `target`."""
    facts = facts or TransitionFacts()
    item_id = facts.item_id

    tdef = find_transition(current, target)
    if tdef is None:
        return TransitionResult.rejected(InvalidTransition(current, target, item_id))

    if role not in tdef.roles:
        return TransitionResult.rejected(RoleNotPermitted(role, tdef, item_id))

    if tdef.requires_comment and not (facts.comment and facts.comment.strip()):
        return TransitionResult.rejected(PreconditionUnmet(COMMENT_REQUIRED, item_id))

    if tdef.requires_decision_log and role != Role.AUTHORITY:
        if facts.decision_log_count() == 0:
            return TransitionResult.rejected(PreconditionUnmet(DECISION_LOG_REQUIRED, item_id))

    if target == ItemStatus.IN_PROGRESS and not facts.force:
        blocking = facts.unfinished_dependencies()
        if blocking:
            return TransitionResult.rejected(DependencyBlocked(blocking, item_id))

    return TransitionResult.accepted()


def facts_from_store(store, item_id: str, comment: str | None = None, force: bool = False) -> TransitionFacts:
    """TransitionFacts whose providers query `store` on demand."""
    from agentboard.workflow.resolver import unfinished_dependencies

    return TransitionFacts(
        comment=comment,
        force=force,
        decision_log_count=lambda: len(store.list_decision_logs(item_id)),
        unfinished_dependencies=lambda: unfinished_dependencies(store, item_id, include_missing=False),
        item_id=item_id,
    )


def validate_item_transition(
    store,
    item,
    target: ItemStatus,
    role: Role,
    comment: str | None = None,
    force: bool = False,
) -> TransitionResult:
    """validate() for a stored item, with facts read from the store."""
    result = validate(item.status, target, role, facts_from_store(store, item.id, comment, force))
    if not result.ok:
        logger.debug(f"[STATE] {item.id}: {item.status.value} -> {target.value} rejected: {result.error}")
    return result
