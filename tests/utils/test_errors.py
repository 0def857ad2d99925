"""Tests for the backend error logging policy."""

from __future__ import annotations

import asyncio
import logging

import pytest

from optix_flow.models.exceptions import BackendError
from optix_flow.utils.errors import is_benign_error, log_backend_error


@pytest.mark.parametrize(
    "error",
    [
        None,
        BackendError("The user aborted a request.", name="AbortError"),
        BackendError("signal is aborted without reason"),
        BackendError("", name="HTTPStatusError"),
        BackendError("[object Object]"),
        BackendError("no rows", code="PGRST000"),
        asyncio.CancelledError(),
    ],
)
def test_benign_errors(error):
    assert is_benign_error(error) is True


@pytest.mark.parametrize(
    "error",
    [
        BackendError("JWT expired", status=401),
        BackendError("duplicate key", code="23505", status=409),
        ValueError("bad value"),
    ],
)
def test_real_errors(error):
    assert is_benign_error(error) is False


def test_log_backend_error_filters_benign(caplog):
    logger = logging.getLogger("tests.errors")

    with caplog.at_level(logging.DEBUG, logger="tests.errors"):
        assert log_backend_error(logger, "Update task", BackendError("aborted")) is False
        assert log_backend_error(logger, "Update task", BackendError("timeout", status=504))

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage() == "Update task: timeout status=504"
