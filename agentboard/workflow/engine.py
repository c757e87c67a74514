"""Workflow engine service object.

Owns the collaborators the engine needs (store, broadcaster, notifier, agent
pool) and exposes the four caller-facing operations:

    validate_transition  - would this request be accepted?
    execute_transition   - validate, then commit
    next_unblocked       - what should an implementer pick up next?
    tick                 - run one autonomous worker cycle

Everything is constructed explicitly and torn down with close(); there is no
module-level state.
"""

import logging
from pathlib import Path
from typing import Optional

from agentboard.agents.claude import AgentPool
from agentboard.broadcast import Broadcaster
from agentboard.lib.config import WorkerConfig, load_worker_config
from agentboard.lib.models import Item
from agentboard.notifications import build_notifier
from agentboard.store.base import ItemStore
from agentboard.store.files import FileStore
from agentboard.workflow.executor import WorkflowExecutor
from agentboard.workflow.resolver import next_unblocked
from agentboard.workflow.state_machine import TransitionResult, validate_item_transition
from agentboard.workflow.states import ItemStatus, Role
from agentboard.workflow.worker import AutonomousWorker, TickReport

logger = logging.getLogger(__name__)


class Engine:
    def __init__(
        self,
        store: ItemStore,
        config: WorkerConfig | None = None,
        broadcaster: Broadcaster | None = None,
        notifier=None,
        agents: AgentPool | None = None,
    ):
        self.config = config or WorkerConfig()
        self.store = store
        self.broadcaster = broadcaster or Broadcaster()
        self.notifier = notifier if notifier is not None else build_notifier(self.config.notifier, store)
        self.agents = agents or AgentPool(self.config)
        self.executor = WorkflowExecutor(store, self.broadcaster, self.notifier)
        self.worker = AutonomousWorker(store, self.executor, self.agents, self.config)

    @classmethod
    def from_board_dir(cls, board_dir: Path) -> "Engine":
        """Engine over a FileStore, configured from agentboard.yaml."""
        config = load_worker_config(board_dir)
        return cls(FileStore(board_dir), config)

    def validate_transition(
        self,
        item_id: str,
        target: ItemStatus,
        role: Role,
        comment: Optional[str] = None,
        force: bool = False,
    ) -> TransitionResult:
        """Raises NotFound for an unknown item; otherwise never raises."""
        item = self.store.get_item(item_id)
        return validate_item_transition(self.store, item, target, role, comment, force)

    def execute_transition(
        self,
        item_id: str,
        target: ItemStatus,
        role: Role,
        comment: Optional[str] = None,
        force: bool = False,
    ) -> Item:
        return self.executor.transition(item_id, target, role, comment, force)

    def next_unblocked(self, project_id: str) -> Item:
        return next_unblocked(self.store, project_id)

    def tick(self) -> TickReport:
        return self.worker.tick()

    def start(self) -> None:
        self.worker.start()

    def stop(self) -> None:
        self.worker.stop()

    def close(self) -> None:
        """Stop the worker and release every owned resource."""
        self.worker.stop()
        self.agents.close()
        close_notifier = getattr(self.notifier, "close", None)
        if close_notifier is not None:
            close_notifier()
        self.broadcaster.close()
        logger.debug("Engine closed")

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
