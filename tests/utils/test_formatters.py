"""Tests for UI formatters."""

import json
from io import StringIO
from unittest.mock import patch

import pytest
import yaml
from rich.console import Console

from optix_flow.utils.ui.formatters import (
    color_style,
    format_output,
    format_quiet,
    format_tasks_pretty,
    get_completion_color,
    get_progress_bar,
)

TASKS = [
    {
        "id": "t-high",
        "title": "Fix outage",
        "importance_level": 3,
        "is_urgent": True,
        "estimated_time": 30,
        "is_completed": False,
        "project_id": "p1",
        "sync": "pending",
        "subtasks": [{"id": "s1", "title": "Page on-call", "estimated_time": 5}],
    },
    {
        "id": "t-low",
        "title": "Tidy desk",
        "importance_level": 1,
        "is_urgent": False,
        "estimated_time": 10,
        "is_completed": True,
        "project_id": "gone",
        "subtasks": [],
    },
]
PROJECTS = [{"id": "p1", "name": "Ops", "color": "#ef4444"}]


@pytest.fixture()
def recorded():
    """Route formatter output to a recording console."""
    console = Console(file=StringIO(), width=120, color_system=None)
    with patch("optix_flow.utils.ui.formatters.console", console):
        yield console


def _text(console):
    return console.file.getvalue()


def test_json_output(capsys):
    format_output({"tasks": TASKS}, "json")
    assert json.loads(capsys.readouterr().out)["tasks"][0]["id"] == "t-high"


def test_yaml_output_keeps_key_order(capsys):
    format_output({"id": "p1", "name": "Ops"}, "yaml")
    out = capsys.readouterr().out
    assert yaml.safe_load(out) == {"id": "p1", "name": "Ops"}
    assert out.index("id:") < out.index("name:")


def test_quiet_output_prints_ids(capsys):
    format_quiet({"tasks": TASKS})
    assert capsys.readouterr().out.split() == ["t-high", "t-low"]


def test_tasks_grouped_by_importance(recorded):
    format_tasks_pretty(TASKS, PROJECTS)

    text = _text(recorded)
    assert "1 open, 1 done" in text
    assert text.index("HIGH") < text.index("Fix outage") < text.index("LOW")
    assert "Ops" in text
    assert "Unassigned" in text
    assert "[pending]" in text
    assert "Page on-call" in text


def test_compact_hides_subtasks(recorded):
    format_tasks_pretty(TASKS, PROJECTS, compact=True)
    assert "Page on-call" not in _text(recorded)


def test_table_output(recorded):
    format_output([{"id": "p1", "name": "Ops", "archived": False}], "table")
    text = _text(recorded)
    assert "Name" in text
    assert "✗" in text


def test_empty_data(recorded):
    format_output([], "pretty")
    assert "No data to display" in _text(recorded)


@pytest.mark.parametrize(
    ("color", "expected"),
    [("#22c55e", "#22c55e"), ("green", "green"), ("", "#94a3b8"), ("not a color!", "#94a3b8")],
)
def test_color_style(color, expected):
    assert color_style(color) == expected


def test_progress_helpers():
    assert get_progress_bar(40) == "▓▓▓▓░░░░░░"
    assert get_completion_color(85) == "green"
    assert get_completion_color(50) == "yellow"
    assert get_completion_color(10) == "red"
