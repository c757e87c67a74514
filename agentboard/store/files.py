"""
JSON-file ItemStore.

Layout under the board directory:
  projects/<project_id>/project.env
  projects/<project_id>/items/<item_id>.json

Each item file holds the item together with its outgoing dependency edges,
comments and decision logs. Documents are schema-checked on every read and
write.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Optional

from agentboard.lib.config import (
    ConfigError,
    PROJECT_ENV_FILE,
    get_projects_dir,
    load_project_config,
    write_project_config,
)
from agentboard.lib.models import (
    Comment,
    DecisionLog,
    Dependency,
    Item,
    Priority,
    Project,
    comment_to_dict,
    decision_log_to_dict,
    item_from_dict,
    item_to_dict,
    new_id,
    now_iso,
)
from agentboard.lib.validate import ValidationError, validate_before_write, validate_file
from agentboard.store.base import ItemStore, NotFound, StaleItemError, role_value
from agentboard.workflow.states import ItemStatus, Role

logger = logging.getLogger(__name__)

DOCUMENT_SCHEMA = "item_document"
RECORD_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


class FileStore(ItemStore):
    def __init__(self, board_dir: Path):
        self.board_dir = Path(board_dir)
        self.projects_dir = get_projects_dir(self.board_dir)
        self._paths: dict[str, Path] = {}

    # Projects

    def _project_dir(self, project_id: str) -> Path:
        if not RECORD_ID_PATTERN.match(project_id):
            raise NotFound("project", project_id)
        return self.projects_dir / project_id

    def get_project(self, project_id: str) -> Project:
        project_dir = self._project_dir(project_id)
        if not (project_dir / PROJECT_ENV_FILE).exists():
            raise NotFound("project", project_id)
        return load_project_config(project_dir)

    def list_projects(self) -> list[Project]:
        if not self.projects_dir.exists():
            return []

        projects = []
        for d in sorted(self.projects_dir.iterdir()):
            if not d.is_dir() or not (d / PROJECT_ENV_FILE).exists():
                continue
            try:
                projects.append(load_project_config(d))
            except ConfigError as e:
                logger.warning(f"[STORE] Skipping project {d.name}: {e}")
        return projects

    def create_project(self, project: Project) -> Project:
        write_project_config(self._project_dir(project.id), project)
        return project

    # Documents

    def _items_dir(self, project_id: str) -> Path:
        return self._project_dir(project_id) / "items"

    def _find_path(self, item_id: str) -> Path:
        if not RECORD_ID_PATTERN.match(item_id):
            raise NotFound("item", item_id)

        cached = self._paths.get(item_id)
        if cached is not None and cached.exists():
            return cached

        for path in self.projects_dir.glob(f"*/items/{item_id}.json"):
            self._paths[item_id] = path
            return path
        raise NotFound("item", item_id)

    def _load(self, path: Path) -> dict:
        return validate_file(path, DOCUMENT_SCHEMA)

    def _save(self, path: Path, doc: dict) -> None:
        validate_before_write(doc, DOCUMENT_SCHEMA, path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(doc, indent=2))
        os.replace(tmp, path)

    def _doc(self, item_id: str) -> tuple[Path, dict]:
        path = self._find_path(item_id)
        return path, self._load(path)

    # Items

    def create_item(
        self,
        project_id: str,
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        sprint_tag: Optional[str] = None,
        created_by_role: Optional[Role] = None,
    ) -> Item:
        self.get_project(project_id)
        item = Item(
            id=new_id(),
            project_id=project_id,
            title=title,
            description=description,
            priority=priority,
            sprint_tag=sprint_tag,
            created_by_role=created_by_role,
        )
        path = self._items_dir(project_id) / f"{item.id}.json"
        self._save(path, {
            "item": item_to_dict(item),
            "dependencies": [],
            "comments": [],
            "decision_logs": [],
        })
        self._paths[item.id] = path
        return item

    def get_item(self, item_id: str) -> Item:
        _, doc = self._doc(item_id)
        return item_from_dict(doc["item"])

    def list_items(self, project_id: str) -> list[Item]:
        items_dir = self._items_dir(project_id)
        if not items_dir.exists():
            return []

        items = []
        for path in items_dir.glob("*.json"):
            try:
                items.append(item_from_dict(self._load(path)["item"]))
            except (ValidationError, ValueError) as e:
                logger.warning(f"[STORE] Skipping unreadable item file {path}: {e}")
        items.sort(key=lambda i: (i.created_at, i.id))
        return items

    def update_item_status(
        self,
        item_id: str,
        status: ItemStatus,
        timestamp: str,
        expected_version: Optional[int] = None,
        assigned_to: Optional[str] = None,
    ) -> Item:
        path, doc = self._doc(item_id)
        current = doc["item"]["version"]
        if expected_version is not None and current != expected_version:
            raise StaleItemError(item_id, expected_version, current)

        doc["item"]["status"] = status.value
        doc["item"]["updated_at"] = timestamp
        if status == ItemStatus.IN_PROGRESS:
            doc["item"]["assigned_to"] = assigned_to
        doc["item"]["version"] = current + 1
        self._save(path, doc)
        return item_from_dict(doc["item"])

    # Dependencies

    def list_dependencies(self, item_id: str) -> list[Dependency]:
        _, doc = self._doc(item_id)
        return [Dependency(item_id, dep_id) for dep_id in doc["dependencies"]]

    def add_dependency(self, item_id: str, depends_on_item_id: str) -> Dependency:
        self.check_dependency(item_id, depends_on_item_id)
        path, doc = self._doc(item_id)
        if depends_on_item_id not in doc["dependencies"]:
            doc["dependencies"].append(depends_on_item_id)
            self._save(path, doc)
        return Dependency(item_id, depends_on_item_id)

    def remove_dependency(self, item_id: str, depends_on_item_id: str) -> bool:
        path, doc = self._doc(item_id)
        if depends_on_item_id not in doc["dependencies"]:
            return False
        doc["dependencies"].remove(depends_on_item_id)
        self._save(path, doc)
        return True

    # Attachments

    def list_decision_logs(self, item_id: str) -> list[DecisionLog]:
        _, doc = self._doc(item_id)
        return [DecisionLog(**d) for d in doc["decision_logs"]]

    def append_decision_log(
        self,
        item_id: str,
        context: str,
        decision: str,
        role: Optional[str],
        alternatives: Optional[str] = None,
        consequences: Optional[str] = None,
    ) -> DecisionLog:
        path, doc = self._doc(item_id)
        log = DecisionLog(
            id=new_id(),
            item_id=item_id,
            context=context,
            decision=decision,
            alternatives=alternatives,
            consequences=consequences,
            created_by_role=role_value(role),
            created_at=now_iso(),
        )
        doc["decision_logs"].append(decision_log_to_dict(log))
        self._save(path, doc)
        return log

    def list_comments(self, item_id: str) -> list[Comment]:
        _, doc = self._doc(item_id)
        return [Comment(**c) for c in doc["comments"]]

    def append_comment(self, item_id: str, content: str, role: Optional[str]) -> Comment:
        path, doc = self._doc(item_id)
        comment = Comment(
            id=new_id(),
            item_id=item_id,
            content=content,
            author_role=role_value(role),
            created_at=now_iso(),
        )
        doc["comments"].append(comment_to_dict(comment))
        self._save(path, doc)
        return comment
