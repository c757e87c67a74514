"""Item lifecycle: statuses, roles and the closed transition table.

Every legal status change is one of the seven named edges in TRANSITIONS.
Lookups are by (source, dest) pair, mirroring how callers ask for a move
("put this item in approved") rather than for a trigger.

Usage:
    from agentboard.workflow.states import ItemStatus, Role, find_transition

    tdef = find_transition(ItemStatus.DRAFT, ItemStatus.PENDING_REVIEW)
    if tdef and Role.PLANNER in tdef.roles:
        ...
"""

from dataclasses import dataclass
from enum import Enum


class ItemStatus(Enum):
    """All item statuses, in lifecycle order."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    ACCEPTED = "accepted"


class Role(Enum):
    PLANNER = "planner"
    IMPLEMENTER = "implementer"
    AUTHORITY = "authority"


class Transition(Enum):
    """The seven named edges. Values double as FSM trigger names."""

    SUBMIT_FOR_REVIEW = "submit_for_review"
    APPROVE = "approve"
    REJECT_REVIEW = "reject_review"
    START_WORK = "start_work"
    COMPLETE = "complete"
    ACCEPT = "accept"
    REJECT_RESULT = "reject_result"


@dataclass(frozen=True)
class TransitionDef:
    name: Transition
    source: ItemStatus
    dest: ItemStatus
    roles: frozenset
    requires_comment: bool = False
    requires_decision_log: bool = False


# Statuses a dependency must be in before dependents may start
FINISHED_STATUSES = frozenset({ItemStatus.DONE, ItemStatus.ACCEPTED})

STATUS_LABELS = {
    ItemStatus.DRAFT: "Draft",
    ItemStatus.PENDING_REVIEW: "Pending Review",
    ItemStatus.APPROVED: "Approved",
    ItemStatus.IN_PROGRESS: "In Progress",
    ItemStatus.DONE: "Done",
    ItemStatus.ACCEPTED: "Accepted",
}

TRANSITIONS = {
    Transition.SUBMIT_FOR_REVIEW: TransitionDef(
        Transition.SUBMIT_FOR_REVIEW, ItemStatus.DRAFT, ItemStatus.PENDING_REVIEW,
        frozenset({Role.PLANNER, Role.AUTHORITY}),
    ),
    Transition.APPROVE: TransitionDef(
        Transition.APPROVE, ItemStatus.PENDING_REVIEW, ItemStatus.APPROVED,
        frozenset({Role.AUTHORITY}),
    ),
    Transition.REJECT_REVIEW: TransitionDef(
        Transition.REJECT_REVIEW, ItemStatus.PENDING_REVIEW, ItemStatus.DRAFT,
        frozenset({Role.AUTHORITY}),
        requires_comment=True,
    ),
    Transition.START_WORK: TransitionDef(
        Transition.START_WORK, ItemStatus.APPROVED, ItemStatus.IN_PROGRESS,
        frozenset({Role.IMPLEMENTER, Role.AUTHORITY}),
    ),
    Transition.COMPLETE: TransitionDef(
        Transition.COMPLETE, ItemStatus.IN_PROGRESS, ItemStatus.DONE,
        frozenset({Role.IMPLEMENTER, Role.AUTHORITY}),
        requires_decision_log=True,
    ),
    Transition.ACCEPT: TransitionDef(
        Transition.ACCEPT, ItemStatus.DONE, ItemStatus.ACCEPTED,
        frozenset({Role.AUTHORITY}),
    ),
    Transition.REJECT_RESULT: TransitionDef(
        Transition.REJECT_RESULT, ItemStatus.DONE, ItemStatus.DRAFT,
        frozenset({Role.AUTHORITY}),
        requires_comment=True,
    ),
}


def _build_pair_lookup() -> dict[tuple[ItemStatus, ItemStatus], TransitionDef]:
    """Build lookup from (source, dest) -> TransitionDef."""
    lookup: dict[tuple[ItemStatus, ItemStatus], TransitionDef] = {}
    for tdef in TRANSITIONS.values():
        key = (tdef.source, tdef.dest)
        if key in lookup:
            raise RuntimeError(f"Duplicate transition for {key[0].value} -> {key[1].value}")
        lookup[key] = tdef
    return lookup


TRANSITION_FOR = _build_pair_lookup()


def find_transition(source: ItemStatus, dest: ItemStatus) -> TransitionDef | None:
    """Return the edge for source -> dest, or None if there is no such edge."""
    return TRANSITION_FOR.get((source, dest))


def available_transitions(source: ItemStatus, role: Role) -> list[TransitionDef]:
    """Edges leaving `source` that `role` is allowed to invoke."""
    return [t for t in TRANSITIONS.values() if t.source == source and role in t.roles]


def _parse(enum_cls, value):
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if member.value == value:
            return member
    return None


def parse_status(value: str | None) -> ItemStatus | None:
    """Parse a status string. Returns None if unknown."""
    return _parse(ItemStatus, value)


def parse_role(value: str | None) -> Role | None:
    """Parse a role string. Returns None if unknown."""
    return _parse(Role, value)
