"""Tests for agentboard.lib.config module."""

import pytest
from pathlib import Path
from unittest.mock import patch

from agentboard.lib.config import (
    BOARD_CONFIG_FILE,
    ConfigError,
    WorkerConfig,
    get_board_dir,
    load_project_config,
    load_worker_config,
    write_project_config,
)
from agentboard.lib.models import Project


class TestLoadWorkerConfig:
    """Tests for agentboard.yaml loading."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_worker_config(tmp_path)
        assert config == WorkerConfig()
        assert config.poll_interval == 15.0
        assert config.first_tick_delay == 5.0
        assert config.decision_max_chars == 500
        assert config.notifier == "telegram"

    def test_values_loaded(self, tmp_path):
        (tmp_path / BOARD_CONFIG_FILE).write_text(
            "poll_interval: 30\nmodel: claude-3-5-sonnet-latest\nnotifier: desktop\n"
        )
        config = load_worker_config(tmp_path)
        assert config.poll_interval == 30.0
        assert isinstance(config.poll_interval, float)
        assert config.model == "claude-3-5-sonnet-latest"
        assert config.notifier == "desktop"
        assert config.max_tokens == 2048

    def test_worker_section(self, tmp_path):
        (tmp_path / BOARD_CONFIG_FILE).write_text("worker:\n  first_tick_delay: 0\n")
        assert load_worker_config(tmp_path).first_tick_delay == 0.0

    def test_empty_file(self, tmp_path):
        (tmp_path / BOARD_CONFIG_FILE).write_text("")
        assert load_worker_config(tmp_path) == WorkerConfig()

    def test_unknown_key_warns(self, tmp_path, caplog):
        (tmp_path / BOARD_CONFIG_FILE).write_text("poll_intervall: 3\n")
        config = load_worker_config(tmp_path)
        assert config.poll_interval == 15.0
        assert "Ignoring unknown setting 'poll_intervall'" in caplog.text

    @pytest.mark.parametrize("content,message", [
        ("poll_interval: 0\n", "poll_interval must be positive"),
        ("poll_interval: soon\n", "Invalid value"),
        ("first_tick_delay: -1\n", "first_tick_delay must not be negative"),
        ("decision_max_chars: 0\n", "decision_max_chars must be positive"),
        ("notifier: email\n", "notifier must be one of"),
        ("- just\n- a list\n", "must contain a mapping"),
        ("key: [unclosed\n", "Invalid YAML"),
    ])
    def test_invalid_values(self, tmp_path, content, message):
        (tmp_path / BOARD_CONFIG_FILE).write_text(content)
        with pytest.raises(ConfigError, match=message):
            load_worker_config(tmp_path)


class TestGetBoardDir:
    """Tests for board directory resolution."""

    def test_explicit_wins(self, monkeypatch):
        monkeypatch.setenv("AGENTBOARD_DIR", "/from/env")
        assert get_board_dir("/explicit") == Path("/explicit")

    def test_env(self, monkeypatch):
        monkeypatch.setenv("AGENTBOARD_DIR", "/from/env")
        assert get_board_dir() == Path("/from/env")

    def test_cwd(self, monkeypatch, tmp_path):
        monkeypatch.delenv("AGENTBOARD_DIR", raising=False)
        monkeypatch.chdir(tmp_path)
        assert get_board_dir() == tmp_path


class TestProjectConfig:
    """Tests for project.env loading."""

    @patch("agentboard.lib.config.envparse.load_env")
    def test_fields(self, mock_load_env):
        mock_load_env.return_value = {
            "PROJECT_NAME": "Shop",
            "ANTHROPIC_API_KEY": "sk-abc",
            "TELEGRAM_BOT_TOKEN": "123:xyz",
            "TELEGRAM_CHAT_ID": "-100",
        }
        project = load_project_config(Path("/fake/projects/shop"))
        assert project.id == "shop"
        assert project.name == "Shop"
        assert project.anthropic_api_key == "sk-abc"
        assert project.telegram_chat_id == "-100"
        assert project.description is None

    @patch("agentboard.lib.config.envparse.load_env")
    def test_empty_key_means_none(self, mock_load_env):
        mock_load_env.return_value = {"PROJECT_NAME": "Shop", "ANTHROPIC_API_KEY": ""}
        assert load_project_config(Path("/fake/shop")).anthropic_api_key is None

    @patch("agentboard.lib.config.envparse.load_env")
    def test_name_required(self, mock_load_env):
        mock_load_env.return_value = {"ANTHROPIC_API_KEY": "sk"}
        with pytest.raises(ConfigError, match="PROJECT_NAME is required"):
            load_project_config(Path("/fake/shop"))

    def test_forbidden_pattern_is_config_error(self, tmp_path):
        (tmp_path / "project.env").write_text('PROJECT_NAME="$(rm -rf /)"\n')
        with pytest.raises(ConfigError, match="Forbidden pattern"):
            load_project_config(tmp_path)

    def test_write_then_load(self, tmp_path):
        project_dir = tmp_path / "shop"
        write_project_config(project_dir, Project(
            id="shop", name="Shop", description="Online store", anthropic_api_key="sk-1",
        ))
        loaded = load_project_config(project_dir)
        assert loaded == Project(id="shop", name="Shop", description="Online store", anthropic_api_key="sk-1")
