"""Prefect wrappers for the autonomous tick.

`board tick --prefect` runs one tick as a Prefect flow, one task per project,
so each project's outcome shows up separately when a Prefect server is
connected. The worker logic itself is unchanged; the plain AutonomousWorker
loop remains the default way to run it.
"""

import logging
from pathlib import Path

from prefect import flow, task

from agentboard.lib.models import Project
from agentboard.workflow.engine import Engine
from agentboard.workflow.worker import AutonomousWorker, TickReport

logger = logging.getLogger(__name__)


@task(
    retries=0,
    name="process_project",
    description="Plan drafts and implement approved items for one project"
)
def task_process_project(worker: AutonomousWorker, project: Project) -> TickReport:
    """One project's share of a tick.

    No Prefect retries: a failed item is retried by the next tick, and
    retrying here would repeat the AI calls for items that succeeded.
    """
    report = TickReport()
    worker.process_project(project, report)
    return report


@flow(name="agent_tick")
def agent_tick(board_dir: str) -> dict:
    """Run one autonomous tick over every project in board_dir.

    Returns: counts per outcome, plus the ids of skipped projects
    """
    totals = TickReport()
    with Engine.from_board_dir(Path(board_dir)) as engine:
        for project in engine.store.list_projects():
            if not project.anthropic_api_key:
                totals.skipped_projects.append(project.id)
                continue
            report = task_process_project(engine.worker, project)
            totals.planned += report.planned
            totals.started += report.started
            totals.completed += report.completed
            totals.failed += report.failed

    logger.info(
        f"[AGENT] Tick finished: {len(totals.planned)} planned, "
        f"{len(totals.completed)} completed, {len(totals.failed)} failed"
    )
    return summarize(totals)


def summarize(report: TickReport) -> dict:
    return {
        "planned": len(report.planned),
        "started": len(report.started),
        "completed": len(report.completed),
        "failed": len(report.failed),
        "skipped_projects": list(report.skipped_projects),
    }
