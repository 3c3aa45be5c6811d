"""
Tests for the typer CLI.
"""

import json
from unittest.mock import patch

from typer.testing import CliRunner

from banquet import __version__
from banquet.main import app
from banquet.workflow.orchestrator import WorkflowOrchestrator

from conftest import CountingPacer

runner = CliRunner()


class TestCli:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_health(self):
        result = runner.invoke(app, ["health"])
        assert result.exit_code == 0
        assert "Configuration loaded" in result.output

    def test_plan_runs_workflow(self, tmp_path, store, fake_gateway, fake_catalog, settings):
        event = tmp_path / "event.json"
        event.write_text(json.dumps({
            "name": "Picnic",
            "attendee_count": 2,
            "budget_total": 50,
            "start_date": "2026-08-01",
            "end_date": "2026-08-01",
            "attendees": [{"name": "Ana", "dietary_restrictions": ["vegetarian"]}, {"name": "Ben"}],
        }))
        orchestrator = WorkflowOrchestrator(
            store=store, gateway=fake_gateway, catalog=fake_catalog, pacer=CountingPacer(), settings=settings
        )

        with patch("banquet.main._build_orchestrator", return_value=orchestrator):
            result = runner.invoke(app, ["plan", str(event)])

        assert result.exit_code == 0, result.output
        assert "Budget Optimization" in result.output
        assert "Shopping List" in result.output

    def test_run_unknown_plan(self, store, fake_gateway, fake_catalog, settings):
        orchestrator = WorkflowOrchestrator(
            store=store, gateway=fake_gateway, catalog=fake_catalog, pacer=CountingPacer(), settings=settings
        )

        with patch("banquet.main._build_orchestrator", return_value=orchestrator):
            result = runner.invoke(app, ["run", "missing"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_create_plan_rejects_reversed_dates(self):
        result = runner.invoke(
            app,
            ["create-plan", "--name", "Trip", "--attendees", "4", "--start", "2026-08-05", "--end", "2026-08-01"],
        )
        assert result.exit_code == 1
