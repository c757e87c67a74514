#!/usr/bin/env python3
"""agentboard CLI entrypoint."""

import sys
import argparse
import logging

from agentboard.lib.config import ConfigError, get_board_dir
from agentboard.lib.models import Priority
from agentboard.store.base import NotFound
from agentboard.workflow.engine import Engine
from agentboard.workflow.states import ItemStatus, Role
from agentboard.commands import items as cmd_items_module
from agentboard.commands import notes as cmd_notes_module
from agentboard.commands import project as cmd_project_module
from agentboard.commands import transition as cmd_transition_module
from agentboard.commands import worker as cmd_worker_module

STATUS_CHOICES = [s.value for s in ItemStatus]
ROLE_CHOICES = [r.value for r in Role]
PRIORITY_CHOICES = [p.value for p in Priority]


def get_engine(args) -> Engine:
    """Engine for --board-dir (or $AGENTBOARD_DIR, or cwd)."""
    return Engine.from_board_dir(get_board_dir(args.board_dir))


def resolve_project_id(args, engine: Engine) -> str:
    """Project from --project, or the only configured project."""
    if args.project:
        engine.store.get_project(args.project)
        return args.project

    projects = engine.store.list_projects()
    if len(projects) == 0:
        print("ERROR: No projects configured. Use 'board project create <id> --name <name>'")
        sys.exit(2)
    elif len(projects) > 1:
        print("ERROR: Multiple projects found. Use --project to specify one:")
        for p in projects:
            print(f"  {p.id}")
        sys.exit(2)
    return projects[0].id


def with_engine(fn, needs_project=False):
    """Build the engine, run fn(args, engine), map lookup failures to exit 1."""
    def run(args):
        try:
            engine = get_engine(args)
        except ConfigError as e:
            print(f"ERROR: {e}")
            return 2
        with engine:
            try:
                if needs_project:
                    args.project = resolve_project_id(args, engine)
                return fn(args, engine)
            except NotFound as e:
                print(f"ERROR: {e}")
                return 1
    return run


def cmd_tick(args):
    if args.prefect:
        return cmd_worker_module.cmd_tick_prefect(args, get_board_dir(args.board_dir))
    return with_engine(cmd_worker_module.cmd_tick)(args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='board', description='agentboard workflow CLI')
    parser.add_argument('--board-dir', '-d', help='Board directory (default: $AGENTBOARD_DIR or cwd)')
    parser.add_argument('--project', '-p', help='Project id')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # board project
    p_project = subparsers.add_parser('project', help='Manage projects')
    project_sub = p_project.add_subparsers(dest='project_cmd', required=True)

    p_project_create = project_sub.add_parser('create', help='Create a project')
    p_project_create.add_argument('id', help='Project id (directory name)')
    p_project_create.add_argument('--name', '-n', required=True, help='Display name')
    p_project_create.add_argument('--description', help='Project description')
    p_project_create.add_argument('--anthropic-key', help='API key; enables the autonomous worker')
    p_project_create.add_argument('--telegram-token', help='Telegram bot token for notifications')
    p_project_create.add_argument('--telegram-chat', help='Telegram chat id for notifications')
    p_project_create.set_defaults(func=with_engine(cmd_project_module.cmd_project_create))

    p_project_list = project_sub.add_parser('list', help='List projects')
    p_project_list.set_defaults(func=with_engine(cmd_project_module.cmd_project_list))

    # board items
    p_items = subparsers.add_parser('items', help='Manage work items')
    items_sub = p_items.add_subparsers(dest='items_cmd', required=True)

    p_items_list = items_sub.add_parser('list', help='List items in the project')
    p_items_list.add_argument('--status', '-s', choices=STATUS_CHOICES, help='Only this status')
    p_items_list.set_defaults(func=with_engine(cmd_items_module.cmd_items_list, needs_project=True))

    p_items_create = items_sub.add_parser('create', help='Create a draft item')
    p_items_create.add_argument('title', help='Item title')
    p_items_create.add_argument('--description', help='Item description')
    p_items_create.add_argument('--priority', choices=PRIORITY_CHOICES, default='medium')
    p_items_create.add_argument('--sprint', help='Sprint tag')
    p_items_create.add_argument('--role', '-r', choices=ROLE_CHOICES, default='planner',
                                help='Creating role (default: planner)')
    p_items_create.set_defaults(func=with_engine(cmd_items_module.cmd_items_create, needs_project=True))

    p_items_show = items_sub.add_parser('show', help='Show an item')
    p_items_show.add_argument('id', help='Item id')
    p_items_show.set_defaults(func=with_engine(cmd_items_module.cmd_items_show))

    p_items_context = items_sub.add_parser('context', help='Print an item with dependencies, comments, decisions (JSON)')
    p_items_context.add_argument('id', help='Item id')
    p_items_context.set_defaults(func=with_engine(cmd_items_module.cmd_items_context))

    # board depend
    p_depend = subparsers.add_parser('depend', help='Manage dependencies')
    depend_sub = p_depend.add_subparsers(dest='depend_cmd', required=True)

    p_depend_add = depend_sub.add_parser('add', help='Make ITEM depend on ON')
    p_depend_add.add_argument('item', help='Dependent item id')
    p_depend_add.add_argument('on', help='Item id it depends on')
    p_depend_add.set_defaults(func=with_engine(cmd_notes_module.cmd_depend_add))

    p_depend_remove = depend_sub.add_parser('remove', help='Remove a dependency')
    p_depend_remove.add_argument('item', help='Dependent item id')
    p_depend_remove.add_argument('on', help='Item id it depends on')
    p_depend_remove.set_defaults(func=with_engine(cmd_notes_module.cmd_depend_remove))

    # board comment
    p_comment = subparsers.add_parser('comment', help='Add a comment to an item')
    p_comment.add_argument('item', help='Item id')
    p_comment.add_argument('text', help='Comment text')
    p_comment.add_argument('--role', '-r', choices=ROLE_CHOICES, required=True)
    p_comment.set_defaults(func=with_engine(cmd_notes_module.cmd_comment))

    # board decision
    p_decision = subparsers.add_parser('decision', help='Record a decision log on an item')
    p_decision.add_argument('item', help='Item id')
    p_decision.add_argument('--context', '-c', required=True, help='What prompted the decision')
    p_decision.add_argument('--decision', required=True, help='What was decided')
    p_decision.add_argument('--alternatives', help='Alternatives considered')
    p_decision.add_argument('--consequences', help='Expected consequences')
    p_decision.add_argument('--role', '-r', choices=ROLE_CHOICES, required=True)
    p_decision.set_defaults(func=with_engine(cmd_notes_module.cmd_decision))

    # board transition / validate
    for name, func, help_text in [
        ('transition', cmd_transition_module.cmd_transition, 'Move an item to a new status'),
        ('validate', cmd_transition_module.cmd_validate, 'Check whether a transition would be accepted'),
    ]:
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument('item', help='Item id')
        p.add_argument('status', choices=STATUS_CHOICES, help='Target status')
        p.add_argument('--role', '-r', choices=ROLE_CHOICES, required=True)
        p.add_argument('--comment', '-m', help='Rationale (required when rejecting)')
        p.add_argument('--force', action='store_true', help='Start work despite unfinished dependencies')
        p.set_defaults(func=with_engine(func))

    # board next
    p_next = subparsers.add_parser('next', help='Show the next unblocked approved item')
    p_next.set_defaults(func=with_engine(cmd_transition_module.cmd_next, needs_project=True))

    # board tick
    p_tick = subparsers.add_parser('tick', help='Run one autonomous worker cycle')
    p_tick.add_argument('--prefect', action='store_true', help='Run as a Prefect flow')
    p_tick.set_defaults(func=cmd_tick)

    # board worker
    p_worker = subparsers.add_parser('worker', help='Run the autonomous worker until interrupted')
    p_worker.set_defaults(func=with_engine(cmd_worker_module.cmd_worker))

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
