"""
board transition / validate / next - the caller-facing engine operations.
"""

from agentboard.store.base import StaleItemError
from agentboard.workflow.state_machine import TransitionError
from agentboard.workflow.states import parse_role, parse_status


def cmd_transition(args, engine) -> int:
    """Validate and apply a status change."""
    target = parse_status(args.status)
    role = parse_role(args.role)
    before = engine.store.get_item(args.item)

    try:
        item = engine.execute_transition(args.item, target, role, args.comment, args.force)
    except TransitionError as e:
        print(f"ERROR: {e.message}")
        return 2
    except StaleItemError as e:
        print(f"ERROR: {e}")
        print("  Re-run the command to transition from the current status.")
        return 2

    print(f"{item.id}: {before.status.value} -> {item.status.value}")
    return 0


def cmd_validate(args, engine) -> int:
    """Report whether a transition would be accepted, without applying it."""
    result = engine.validate_transition(
        args.item, parse_status(args.status), parse_role(args.role), args.comment, args.force
    )
    if result.ok:
        print("OK")
        return 0
    print(f"ERROR: {result.error}")
    return 2


def cmd_next(args, engine) -> int:
    """Print the next unblocked approved item, or exit 1 when there is none."""
    item = engine.next_unblocked(args.project)
    print(f"{item.id}  [{item.priority.value}]  {item.title}")
    if item.description:
        print(f"  {item.description}")
    deps = engine.store.list_dependencies(item.id)
    if deps:
        print(f"  {len(deps)} dependency(s) finished")
    return 0
