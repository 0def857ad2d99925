"""Fixtures for command tests."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from optix_flow.main import app


@pytest.fixture()
def runner():
    return CliRunner()


@pytest.fixture()
def cli(runner, tmp_config):
    """Invoke the CLI against a guest session stored under tmp_path."""

    def invoke(*args, input=None):
        return runner.invoke(app, list(args), input=input)

    return invoke


@pytest.fixture()
def ids(cli):
    """Return the ids printed by ``<group> list -o quiet``."""

    def list_ids(group="tasks"):
        result = cli(group, "list", "-o", "quiet")
        assert result.exit_code == 0, result.output
        return result.output.split()

    return list_ids


@pytest.fixture()
def tasks_json(cli):
    def load():
        result = cli("tasks", "list", "-o", "json")
        assert result.exit_code == 0, result.output
        return json.loads(result.output)["tasks"]

    return load
