"""Autonomous worker.

A polling loop that acts as the implementer for every project with an AI
credential. Each tick, per project:

1. draft items: generate a plan, record it as a comment, submit for review
2. in_progress items the worker started on an earlier tick: finish them (step 4)
3. approved items: start work
4. generate the implementation, record it as a comment and a decision log,
   mark done

A failed AI call leaves the item where it is; the next tick retries. A plan
or implementation recorded since the item's last status change is reused
rather than generated again, so a crash between "record" and "transition"
doesn't produce duplicate comments.

Usage:
    worker = AutonomousWorker(store, executor, AgentPool(config), config)
    worker.start()      # background thread, first tick after first_tick_delay
    ...
    worker.stop()
"""

import logging
import threading
from dataclasses import dataclass, field

from agentboard.agents.claude import AgentError, AgentPool
from agentboard.broadcast import COMMENT_ADDED, DECISION_ADDED
from agentboard.lib.config import WorkerConfig
from agentboard.lib.context import (
    IMPLEMENTATION_HEADER,
    PLAN_HEADER,
    assemble_context,
    find_implementation_comment,
    find_plan_comment,
    format_dependencies,
)
from agentboard.lib.models import Item, Project, comment_to_dict, decision_log_to_dict
from agentboard.lib.prompts import build_section, load_prompt, render_prompt
from agentboard.workflow.executor import WorkflowExecutor
from agentboard.workflow.states import ItemStatus, Role

logger = logging.getLogger(__name__)

AGENT_ROLE = Role.IMPLEMENTER
AGENT_ASSIGNEE = "agent"


@dataclass
class TickReport:
    """What one tick did. Item ids per outcome."""
    planned: list[str] = field(default_factory=list)
    started: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped_projects: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.planned or self.started or self.completed)


def truncate_decision(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class AutonomousWorker:
    def __init__(self, store, executor: WorkflowExecutor, agents: AgentPool, config: WorkerConfig):
        self.store = store
        self.executor = executor
        self.agents = agents
        self.config = config
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_lock = threading.Lock()

    # Loop control

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start ticking on a background thread. No-op if already running."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="agentboard-worker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("[AGENT] Worker stopped")

    def run_forever(self) -> None:
        """Tick until stop() is called. Blocks the calling thread."""
        logger.info(f"[AGENT] Worker started (polling every {self.config.poll_interval:g}s)")
        if self._stop.wait(self.config.first_tick_delay):
            return
        while True:
            self.tick()
            if self._stop.wait(self.config.poll_interval):
                return

    # Tick

    def tick(self) -> TickReport:
        """Run one polling cycle over all projects. Never raises."""
        report = TickReport()
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("[AGENT] Tick already running, skipping")
            return report

        try:
            for project in self.store.list_projects():
                if not project.anthropic_api_key:
                    report.skipped_projects.append(project.id)
                    continue
                self.process_project(project, report)
        except Exception:
            logger.exception("[AGENT] Worker error")
        finally:
            self._tick_lock.release()
        return report

    def process_project(self, project: Project, report: TickReport) -> None:
        client = self.agents.get(project.anthropic_api_key)

        for item in self.store.list_items_by_project_and_status(project.id, ItemStatus.DRAFT):
            self._attempt(item, report, lambda i=item: self.plan_item(i, client, report))

        # Snapshot both lists first so an item that fails after start_work
        # waits for the next tick instead of being retried right away.
        # Only in_progress items this worker started are resumed.
        leftover = [
            i for i in self.store.list_items_by_project_and_status(project.id, ItemStatus.IN_PROGRESS)
            if i.assigned_to == AGENT_ASSIGNEE
        ]
        approved = self.store.list_items_by_project_and_status(project.id, ItemStatus.APPROVED)

        for item in leftover + approved:
            self._attempt(item, report, lambda i=item: self.implement_item(i, client, report))

    def _attempt(self, item: Item, report: TickReport, step) -> None:
        try:
            step()
        except AgentError as e:
            logger.warning(f"[AGENT] AI call failed for \"{item.title}\": {e}")
            report.failed.append(item.id)
        except Exception:
            logger.exception(f"[AGENT] Failed to process \"{item.title}\"")
            report.failed.append(item.id)

    # Steps

    def plan_item(self, item: Item, client, report: TickReport) -> Item:
        """draft -> pending_review via a generated plan."""
        logger.info(f"[AGENT] Planning draft item: \"{item.title}\"")
        ctx = assemble_context(self.store, item.id)

        if find_plan_comment(ctx.comments, since=item.updated_at):
            logger.info(f"[AGENT] Reusing plan already recorded for \"{item.title}\"")
        else:
            prompt = render_prompt(
                "plan_task",
                title=item.title,
                description_section=build_section(item.description, "Description:"),
                dependencies_section=build_section(format_dependencies(ctx), "Dependencies:"),
                priority=item.priority.value,
            )
            plan = client.complete(load_prompt("plan_system"), prompt)
            self._add_comment(item.id, f"{PLAN_HEADER}\n\n{plan}")

        updated = self.executor.execute(
            item.id, ItemStatus.PENDING_REVIEW, AGENT_ROLE, expected_version=item.version
        )
        report.planned.append(item.id)
        logger.info(f"[AGENT] Item \"{item.title}\" -> pending_review")
        return updated

    def implement_item(self, item: Item, client, report: TickReport) -> Item:
        """approved/in_progress -> done via a generated implementation."""
        if item.status == ItemStatus.APPROVED:
            logger.info(f"[AGENT] Starting work on: \"{item.title}\"")
            item = self.executor.execute(
                item.id, ItemStatus.IN_PROGRESS, AGENT_ROLE,
                expected_version=item.version, assignee=AGENT_ASSIGNEE,
            )
            report.started.append(item.id)
        else:
            logger.info(f"[AGENT] Resuming work on: \"{item.title}\"")

        ctx = assemble_context(self.store, item.id)
        since = item.updated_at

        existing = find_implementation_comment(ctx.comments, since=since)
        if existing:
            implementation = existing.content[len(IMPLEMENTATION_HEADER):].strip()
            logger.info(f"[AGENT] Reusing implementation already recorded for \"{item.title}\"")
        else:
            plan = find_plan_comment(ctx.comments)
            prompt = render_prompt(
                "implement_task",
                title=item.title,
                description_section=build_section(item.description, "Description:"),
                plan_section=build_section(plan.content if plan else None, "Approved plan:"),
                dependencies_section=build_section(format_dependencies(ctx), "Dependencies:"),
            )
            implementation = client.complete(load_prompt("implement_system"), prompt)
            self._add_comment(item.id, f"{IMPLEMENTATION_HEADER}\n\n{implementation}")

        decision_context = f"Implementation of: {item.title}"
        if not any(self._is_own_log(log, decision_context, since) for log in ctx.decision_logs):
            log = self.store.append_decision_log(
                item.id,
                decision_context,
                truncate_decision(implementation, self.config.decision_max_chars),
                AGENT_ROLE,
            )
            self.executor.broadcaster.publish(DECISION_ADDED, decision_log_to_dict(log))

        updated = self.executor.execute(
            item.id, ItemStatus.DONE, AGENT_ROLE, expected_version=item.version
        )
        report.completed.append(item.id)
        logger.info(f"[AGENT] Item \"{item.title}\" -> done")
        return updated

    def _add_comment(self, item_id: str, content: str) -> None:
        comment = self.store.append_comment(item_id, content, AGENT_ROLE)
        self.executor.broadcaster.publish(COMMENT_ADDED, comment_to_dict(comment))

    @staticmethod
    def _is_own_log(log, context: str, since: str) -> bool:
        """Decision log this worker wrote for the current in_progress run."""
        return (
            log.context == context
            and log.created_by_role == AGENT_ROLE.value
            and log.created_at >= since
        )
