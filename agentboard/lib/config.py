"""
Configuration loaders for agentboard.

Board-wide worker settings come from agentboard.yaml; per-project settings
(including credentials) come from projects/<id>/project.env.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from agentboard.lib import envparse
from agentboard.lib.models import Project

logger = logging.getLogger(__name__)

BOARD_CONFIG_FILE = "agentboard.yaml"
PROJECT_ENV_FILE = "project.env"
BOARD_DIR_ENV = "AGENTBOARD_DIR"

NOTIFIER_CHOICES = ("telegram", "desktop", "none")


class ConfigError(Exception):
    """Configuration file is missing required values or has invalid ones."""


@dataclass
class WorkerConfig:
    """Autonomous worker settings from agentboard.yaml"""
    poll_interval: float = 15.0        # Seconds between ticks
    first_tick_delay: float = 5.0      # Seconds before the first tick after start
    model: str = "claude-3-haiku-20240307"
    max_tokens: int = 2048
    decision_max_chars: int = 500      # Decision log text is truncated to this length
    notifier: str = "telegram"         # telegram | desktop | none


def get_board_dir(explicit: str | None = None) -> Path:
    """Resolve the board directory: explicit arg, then $AGENTBOARD_DIR, then cwd."""
    if explicit:
        return Path(explicit)
    env_dir = os.environ.get(BOARD_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.cwd()


def load_worker_config(board_dir: Path) -> WorkerConfig:
    """Load agentboard.yaml, falling back to defaults when absent.

    Raises:
        ConfigError: if the file is not a mapping or a value has the wrong type
    """
    config_path = board_dir / BOARD_CONFIG_FILE
    if not config_path.exists():
        logger.debug(f"No {BOARD_CONFIG_FILE} in {board_dir}, using defaults")
        return WorkerConfig()

    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping, got {type(data).__name__}")

    worker = data.get("worker", data)
    known = {f.name: f for f in fields(WorkerConfig)}
    values = {}
    for key, value in worker.items():
        if key not in known:
            logger.warning(f"Ignoring unknown setting '{key}' in {config_path}")
            continue
        values[key] = value

    try:
        config = WorkerConfig(**values)
        config.poll_interval = float(config.poll_interval)
        config.first_tick_delay = float(config.first_tick_delay)
        config.max_tokens = int(config.max_tokens)
        config.decision_max_chars = int(config.decision_max_chars)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {config_path}: {e}") from e

    if config.poll_interval <= 0:
        raise ConfigError(f"poll_interval must be positive, got {config.poll_interval}")
    if config.first_tick_delay < 0:
        raise ConfigError(f"first_tick_delay must not be negative, got {config.first_tick_delay}")
    if config.decision_max_chars <= 0:
        raise ConfigError(f"decision_max_chars must be positive, got {config.decision_max_chars}")
    if config.notifier not in NOTIFIER_CHOICES:
        raise ConfigError(
            f"notifier must be one of {', '.join(NOTIFIER_CHOICES)}, got '{config.notifier}'"
        )
    return config


def get_projects_dir(board_dir: Path) -> Path:
    return board_dir / "projects"


def load_project_config(project_dir: Path) -> Project:
    """Load project.env and return a Project. The directory name is the id."""
    try:
        env = envparse.load_env(project_dir / PROJECT_ENV_FILE)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    if not env.get("PROJECT_NAME"):
        raise ConfigError(f"PROJECT_NAME is required in {project_dir / PROJECT_ENV_FILE}")

    return Project(
        id=project_dir.name,
        name=env["PROJECT_NAME"],
        description=env.get("PROJECT_DESCRIPTION") or None,
        anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
        telegram_bot_token=env.get("TELEGRAM_BOT_TOKEN") or None,
        telegram_chat_id=env.get("TELEGRAM_CHAT_ID") or None,
    )


def write_project_config(project_dir: Path, project: Project) -> None:
    """Write project.env for a project."""
    project_dir.mkdir(parents=True, exist_ok=True)
    text = envparse.dump_env({
        "PROJECT_NAME": project.name,
        "PROJECT_DESCRIPTION": project.description,
        "ANTHROPIC_API_KEY": project.anthropic_api_key,
        "TELEGRAM_BOT_TOKEN": project.telegram_bot_token,
        "TELEGRAM_CHAT_ID": project.telegram_chat_id,
    })
    (project_dir / PROJECT_ENV_FILE).write_text(text)
