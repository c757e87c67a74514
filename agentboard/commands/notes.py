"""
board depend / comment / decision - edit what hangs off an item.

None of these change an item's status.
"""

from agentboard.broadcast import COMMENT_ADDED, DECISION_ADDED, DEPENDENCY_ADDED, DEPENDENCY_REMOVED
from agentboard.lib.models import comment_to_dict, decision_log_to_dict
from agentboard.store.base import DependencyError
from agentboard.workflow.states import parse_role


def cmd_depend_add(args, engine) -> int:
    try:
        dep = engine.store.add_dependency(args.item, args.on)
    except DependencyError as e:
        print(f"ERROR: {e}")
        return 2

    engine.broadcaster.publish(DEPENDENCY_ADDED, {
        "item_id": dep.item_id,
        "depends_on_item_id": dep.depends_on_item_id,
    })
    print(f"{args.item} now depends on {args.on}")
    return 0


def cmd_depend_remove(args, engine) -> int:
    if not engine.store.remove_dependency(args.item, args.on):
        print(f"ERROR: {args.item} does not depend on {args.on}")
        return 1

    engine.broadcaster.publish(DEPENDENCY_REMOVED, {
        "item_id": args.item,
        "depends_on_item_id": args.on,
    })
    print(f"Removed dependency {args.item} -> {args.on}")
    return 0


def cmd_comment(args, engine) -> int:
    if not args.text.strip():
        print("ERROR: Comment text is empty")
        return 2

    comment = engine.store.append_comment(args.item, args.text, parse_role(args.role))
    engine.broadcaster.publish(COMMENT_ADDED, comment_to_dict(comment))
    print(f"Added comment {comment.id} to {args.item}")
    return 0


def cmd_decision(args, engine) -> int:
    log = engine.store.append_decision_log(
        args.item,
        args.context,
        args.decision,
        parse_role(args.role),
        alternatives=args.alternatives,
        consequences=args.consequences,
    )
    engine.broadcaster.publish(DECISION_ADDED, decision_log_to_dict(log))
    print(f"Recorded decision {log.id} on {args.item}")
    return 0
