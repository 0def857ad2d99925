"""Tests for authentication commands."""
# pylint: disable=redefined-outer-name

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from optix_flow.models import MigrationResult, Project, Task, User
from optix_flow.models.exceptions import AuthError
from optix_flow.services.session_service import SessionState

USER = User(id="user-1", email="ada@example.com")


@pytest.fixture
def app_ctx():
    """A started application with mocked services."""
    ctx = MagicMock()
    ctx.auth.sign_in = AsyncMock(return_value=USER)
    ctx.auth.sign_up = AsyncMock(return_value=(USER, True))
    ctx.auth.sign_out = AsyncMock()
    ctx.session.last_migration = None
    ctx.session.state = SessionState.AUTHENTICATED
    ctx.store.tasks = [Task(id="t1", title="a"), Task(id="t2", title="b")]
    ctx.store.projects = [Project(id="p1", name="Work")]
    ctx.store.user = USER

    @asynccontextmanager
    async def fake_open_app():
        yield ctx

    with patch("optix_flow.commands.auth.open_app", fake_open_app):
        yield ctx


def test_login(cli, app_ctx):
    result = cli("auth", "login", "--email", "ada@example.com", "--password", "pw")

    assert result.exit_code == 0, result.output
    app_ctx.auth.sign_in.assert_awaited_once_with("ada@example.com", "pw")
    assert "Logged in as ada@example.com" in result.output
    assert "2 tasks, 1 projects loaded" in result.output


def test_login_prompts_for_missing_values(cli, app_ctx):
    with patch("optix_flow.commands.auth.Prompt.ask", side_effect=["ada@example.com", "pw"]):
        result = cli("auth", "login")

    assert result.exit_code == 0, result.output
    app_ctx.auth.sign_in.assert_awaited_once_with("ada@example.com", "pw")


def test_login_reports_migration(cli, app_ctx):
    app_ctx.session.last_migration = MigrationResult(
        attempted=True, projects_uploaded=1, tasks_uploaded=2, guest_record_cleared=True
    )

    result = cli("auth", "login", "--email", "ada@example.com", "--password", "pw")

    assert "Moved 2 tasks and 1 projects" in result.output


def test_login_reports_partial_migration(cli, app_ctx):
    app_ctx.session.last_migration = MigrationResult(
        attempted=True, errors=["tasks: boom"], guest_record_cleared=False
    )

    result = cli("auth", "login", "--email", "ada@example.com", "--password", "pw")

    assert result.exit_code == 0
    assert "tasks: boom" in result.output
    assert "retried at next login" in result.output


def test_login_failure(cli, app_ctx):
    app_ctx.auth.sign_in.side_effect = AuthError("Sign-in failed: Invalid login credentials")

    result = cli("auth", "login", "--email", "ada@example.com", "--password", "bad")

    assert result.exit_code == 1
    assert "Invalid login credentials" in result.output


def test_signup_pending_confirmation(cli, app_ctx):
    app_ctx.auth.sign_up.return_value = (USER, False)

    result = cli("auth", "signup", "--email", "ada@example.com", "--password", "pw")

    assert result.exit_code == 0, result.output
    assert "Confirm your email address" in result.output


def test_signup_password_mismatch(cli, app_ctx):
    with patch("optix_flow.commands.auth.Prompt.ask", side_effect=["one", "two"]):
        result = cli("auth", "signup", "--email", "ada@example.com")

    assert result.exit_code == 1
    assert "Passwords do not match" in result.output
    app_ctx.auth.sign_up.assert_not_awaited()


def test_logout(cli, app_ctx):
    result = cli("auth", "logout")

    assert result.exit_code == 0
    app_ctx.auth.sign_out.assert_awaited_once()


def test_logout_as_guest(cli, app_ctx):
    app_ctx.session.state = SessionState.GUEST

    result = cli("auth", "logout")

    assert "Not logged in" in result.output
    app_ctx.auth.sign_out.assert_not_awaited()


def test_status_authenticated(cli, app_ctx):
    result = cli("auth", "status")
    assert "Logged in" in result.output
    assert "2 tasks, 1 projects" in result.output


def test_status_guest_uses_real_session(cli):
    result = cli("auth", "status")

    assert result.exit_code == 0, result.output
    assert "Guest" in result.output
