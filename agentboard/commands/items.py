"""
board items - list, create and inspect work items.
"""

import json

from agentboard.broadcast import ITEM_CREATED
from agentboard.lib.context import assemble_context
from agentboard.lib.models import context_to_dict, item_to_dict, parse_priority
from agentboard.workflow.resolver import unfinished_dependencies
from agentboard.workflow.states import STATUS_LABELS, Role, available_transitions, parse_role, parse_status


def _short(title: str, width: int) -> str:
    return title[:width - 3] + "..." if len(title) > width else title


def cmd_items_list(args, engine) -> int:
    store = engine.store
    if args.status:
        items = store.list_items_by_project_and_status(args.project, parse_status(args.status))
    else:
        items = store.list_items(args.project)

    if not items:
        print("Items: none")
        return 0

    print(f"Items in {args.project}")
    print("-" * 72)
    for item in items:
        print(f"  {item.id:<14} {item.status.value:<16} {item.priority.value:<9} {_short(item.title, 30)}")
    print()
    print(f"{len(items)} item(s)")
    return 0


def cmd_items_create(args, engine) -> int:
    item = engine.store.create_item(
        args.project,
        args.title,
        description=args.description,
        priority=parse_priority(args.priority),
        sprint_tag=args.sprint,
        created_by_role=parse_role(args.role),
    )
    engine.broadcaster.publish(ITEM_CREATED, item_to_dict(item))
    print(f"Created item: {item.id} ({item.status.value})")
    return 0


def cmd_items_show(args, engine) -> int:
    store = engine.store
    item = store.get_item(args.id)

    print(f"{item.title}")
    print("=" * 60)
    print(f"  ID:        {item.id}")
    print(f"  Project:   {item.project_id}")
    print(f"  Status:    {item.status.value} ({STATUS_LABELS[item.status]})")
    print(f"  Priority:  {item.priority.value}")
    if item.sprint_tag:
        print(f"  Sprint:    {item.sprint_tag}")
    if item.assigned_to:
        print(f"  Assigned:  {item.assigned_to}")
    print(f"  Updated:   {item.updated_at}")
    if item.description:
        print()
        print(item.description)

    blocking = unfinished_dependencies(store, item.id)
    if blocking:
        print()
        print("Blocked by:")
        for b in blocking:
            print(f"  {b.id:<14} {b.describe()}")

    print()
    print("Next steps:")
    found = False
    for role in Role:
        for t in available_transitions(item.status, role):
            print(f"  {t.name.value:<18} board transition {item.id} {t.dest.value} --role {role.value}")
            found = True
    if not found:
        print("  none (terminal)")
    return 0


def cmd_items_context(args, engine) -> int:
    ctx = assemble_context(engine.store, args.id)
    print(json.dumps(context_to_dict(ctx), indent=2))
    return 0
