"""
board project - create and list projects.
"""

from agentboard.lib.config import ConfigError
from agentboard.lib.models import Project
from agentboard.store.base import NotFound
from agentboard.store.files import RECORD_ID_PATTERN


def cmd_project_create(args, engine) -> int:
    """Create projects/<id>/project.env."""
    if not RECORD_ID_PATTERN.match(args.id):
        print(f"ERROR: Invalid project id '{args.id}' (letters, digits, - and _ only)")
        return 2

    try:
        engine.store.get_project(args.id)
        print(f"ERROR: Project '{args.id}' already exists")
        return 2
    except NotFound:
        pass

    project = Project(
        id=args.id,
        name=args.name,
        description=args.description,
        anthropic_api_key=args.anthropic_key,
        telegram_bot_token=args.telegram_token,
        telegram_chat_id=args.telegram_chat,
    )
    try:
        engine.store.create_project(project)
    except (ConfigError, ValueError) as e:
        print(f"ERROR: {e}")
        return 2

    print(f"Created project: {project.id}")
    if not project.anthropic_api_key:
        print("  No API key set; the autonomous worker will skip this project.")
    return 0


def cmd_project_list(args, engine) -> int:
    projects = engine.store.list_projects()
    if not projects:
        print("Projects: none")
        return 0

    print("Projects")
    print("-" * 60)
    for p in projects:
        agent = "agent" if p.anthropic_api_key else "-"
        print(f"  {p.id:<18} {agent:<6} {p.name}")
    return 0
