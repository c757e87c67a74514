"""
board tick / worker - drive items with the autonomous agent.
"""

import logging
from pathlib import Path

from agentboard.lib.config import ConfigError
from agentboard.workflow.flows import agent_tick, summarize

logger = logging.getLogger(__name__)


def _print_summary(summary: dict) -> None:
    print(
        f"Tick: {summary['planned']} planned, {summary['started']} started, "
        f"{summary['completed']} completed, {summary['failed']} failed"
    )
    if summary["skipped_projects"]:
        print(f"  Skipped (no API key): {', '.join(summary['skipped_projects'])}")


def cmd_tick(args, engine) -> int:
    """Run one tick in-process."""
    summary = summarize(engine.tick())
    _print_summary(summary)
    return 1 if summary["failed"] else 0


def cmd_tick_prefect(args, board_dir: Path) -> int:
    """Run one tick as the agent_tick Prefect flow."""
    try:
        summary = agent_tick(str(board_dir))
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 2
    _print_summary(summary)
    return 1 if summary["failed"] else 0


def cmd_worker(args, engine) -> int:
    """Run the worker loop in the foreground until Ctrl-C."""
    print(
        f"Worker running: first tick in {engine.config.first_tick_delay:g}s, "
        f"then every {engine.config.poll_interval:g}s. Ctrl-C to stop."
    )
    try:
        engine.worker.run_forever()
    except KeyboardInterrupt:
        print()
        logger.info("[AGENT] Interrupted")
    return 0
