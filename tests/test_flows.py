"""Tests for the Prefect tick flow (agentboard.workflow.flows)."""

import pytest
from unittest.mock import MagicMock, patch

from agentboard.lib.models import Project
from agentboard.workflow.flows import agent_tick, summarize, task_process_project
from agentboard.workflow.worker import TickReport


def test_summarize():
    report = TickReport(planned=["a", "b"], completed=["c"], skipped_projects=["quiet"])
    assert summarize(report) == {
        "planned": 2,
        "started": 0,
        "completed": 1,
        "failed": 0,
        "skipped_projects": ["quiet"],
    }


def test_task_delegates_to_worker():
    worker = MagicMock()
    worker.process_project.side_effect = lambda project, report: report.planned.append("i1")
    project = Project(id="p1", name="P", anthropic_api_key="sk")

    report = task_process_project.fn(worker, project)

    assert report.planned == ["i1"]
    worker.process_project.assert_called_once()


class TestAgentTick:
    """agent_tick runs one task per project that has an API key."""

    @pytest.fixture
    def engine(self):
        engine = MagicMock()
        engine.__enter__.return_value = engine
        engine.store.list_projects.return_value = [
            Project(id="p1", name="One", anthropic_api_key="sk-1"),
            Project(id="quiet", name="No key"),
            Project(id="p2", name="Two", anthropic_api_key="sk-2"),
        ]
        return engine

    @patch("agentboard.workflow.flows.task_process_project")
    @patch("agentboard.workflow.flows.Engine")
    def test_aggregates_reports(self, mock_engine_cls, mock_task, engine, tmp_path):
        mock_engine_cls.from_board_dir.return_value = engine
        mock_task.side_effect = [
            TickReport(planned=["a"], started=["b"], completed=["b"]),
            TickReport(failed=["c"]),
        ]

        summary = agent_tick.fn(str(tmp_path))

        assert summary == {
            "planned": 1,
            "started": 1,
            "completed": 1,
            "failed": 1,
            "skipped_projects": ["quiet"],
        }
        assert [c.args[1].id for c in mock_task.call_args_list] == ["p1", "p2"]
        mock_engine_cls.from_board_dir.assert_called_once_with(tmp_path)
        engine.__exit__.assert_called_once()

    @patch("agentboard.workflow.flows.task_process_project")
    @patch("agentboard.workflow.flows.Engine")
    def test_no_projects(self, mock_engine_cls, mock_task, engine, tmp_path):
        engine.store.list_projects.return_value = []
        mock_engine_cls.from_board_dir.return_value = engine

        summary = agent_tick.fn(str(tmp_path))

        assert summary["planned"] == 0
        mock_task.assert_not_called()
