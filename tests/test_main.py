"""Unit tests for main.py, the CLI entry point."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from optix_flow import __version__
from optix_flow.main import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert "Usage" in result.output


@pytest.mark.parametrize("group", ["auth", "tasks", "projects"])
def test_groups_are_registered(group):
    result = runner.invoke(app, [group, "--help"])
    assert result.exit_code == 0


def test_stats_is_registered():
    result = runner.invoke(app, ["stats", "--help"])
    assert result.exit_code == 0
    assert "--output" in result.output


def test_top_level_typo_suggests():
    result = runner.invoke(app, ["taks"])
    assert result.exit_code == 1
    assert "tasks" in result.output
