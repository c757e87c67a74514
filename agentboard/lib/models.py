"""
Record types shared by the engine, the stores and the CLI.

Enums are kept on the in-memory records; the *_to_dict / *_from_dict helpers
convert to the plain JSON shape used on disk and in broadcast payloads.
"""

import secrets
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from agentboard.workflow.states import ItemStatus, Role, parse_role, parse_status


class Priority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Scheduling rank, lower runs first
PRIORITY_ORDER = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}

ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
ID_LENGTH = 12


def new_id() -> str:
    """Random lowercase alphanumeric record id."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def parse_priority(value: str | None) -> Priority | None:
    """Parse a priority string. Returns None if unknown."""
    if value is None:
        return None
    if isinstance(value, Priority):
        return value
    for p in Priority:
        if p.value == value:
            return p
    return None


@dataclass
class Project:
    id: str
    name: str
    description: Optional[str] = None
    anthropic_api_key: Optional[str] = None  # AI credential; worker skips projects without one
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None


@dataclass
class Item:
    """A unit of work moving through the lifecycle."""
    id: str
    project_id: str
    title: str
    priority: Priority = Priority.MEDIUM
    status: ItemStatus = ItemStatus.DRAFT
    description: Optional[str] = None
    sprint_tag: Optional[str] = None
    assigned_to: Optional[str] = None
    created_by_role: Optional[Role] = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    version: int = 0  # Bumped on every status write


@dataclass(frozen=True)
class Dependency:
    item_id: str
    depends_on_item_id: str


@dataclass(frozen=True)
class DecisionLog:
    id: str
    item_id: str
    context: str
    decision: str
    alternatives: Optional[str] = None
    consequences: Optional[str] = None
    created_by_role: Optional[str] = None
    created_at: str = field(default_factory=now_iso)


@dataclass(frozen=True)
class Comment:
    id: str
    item_id: str
    content: str
    author_role: Optional[str] = None
    created_at: str = field(default_factory=now_iso)


@dataclass
class DependencyContext:
    """A dependency as seen from the dependent item."""
    id: str
    title: str
    status: ItemStatus
    decision_logs: list[DecisionLog] = field(default_factory=list)


@dataclass
class ItemContext:
    """Everything an implementer needs to know about one item."""
    item: Item
    dependencies: list[DependencyContext] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    decision_logs: list[DecisionLog] = field(default_factory=list)


def item_to_dict(item: Item) -> dict:
    data = asdict(item)
    data["priority"] = item.priority.value
    data["status"] = item.status.value
    data["created_by_role"] = item.created_by_role.value if item.created_by_role else None
    return data


def item_from_dict(data: dict) -> Item:
    """Build an Item from its JSON shape.

    Raises:
        ValueError: if status is not a known lifecycle state
    """
    status = parse_status(data.get("status", "draft"))
    if status is None:
        raise ValueError(f"Unknown item status: {data.get('status')!r}")
    return Item(
        id=data["id"],
        project_id=data["project_id"],
        title=data["title"],
        priority=parse_priority(data.get("priority")) or Priority.MEDIUM,
        status=status,
        description=data.get("description"),
        sprint_tag=data.get("sprint_tag"),
        assigned_to=data.get("assigned_to"),
        created_by_role=parse_role(data.get("created_by_role")),
        created_at=data.get("created_at") or now_iso(),
        updated_at=data.get("updated_at") or now_iso(),
        version=int(data.get("version", 0)),
    )


def comment_to_dict(comment: Comment) -> dict:
    return asdict(comment)


def decision_log_to_dict(log: DecisionLog) -> dict:
    return asdict(log)


def context_to_dict(ctx: ItemContext) -> dict:
    return {
        "item": item_to_dict(ctx.item),
        "dependencies": [
            {
                "item": {"id": d.id, "title": d.title, "status": d.status.value},
                "decision_logs": [decision_log_to_dict(log) for log in d.decision_logs],
            }
            for d in ctx.dependencies
        ],
        "comments": [comment_to_dict(c) for c in ctx.comments],
        "decision_logs": [decision_log_to_dict(log) for log in ctx.decision_logs],
    }
