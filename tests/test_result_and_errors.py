# ruff: noqa: INP001
"""Result helpers, error messages and the single-slot error channel."""

from __future__ import annotations

import pytest

from doneday.core.errors import (
    AppError,
    NotificationPermissionDenied,
    ProjectNameEmpty,
    StoreSaveFailed,
    TaskCreationFailed,
    TaskNotFound,
    ValidationFailed,
)
from doneday.core.result import Err, Ok
from doneday.services.error_channel import ErrorChannel


def test_ok_helpers() -> None:
    result = Ok(2)
    assert result.is_ok and not result.is_err
    assert result.unwrap() == 2
    assert result.unwrap_or(5) == 2
    assert result.map(lambda value: value * 10) == Ok(20)
    assert result.and_then(lambda value: Err(TaskNotFound())) == Err(TaskNotFound())


def test_err_helpers() -> None:
    result = Err(TaskNotFound())
    assert result.is_err and not result.is_ok
    assert result.unwrap_or(5) == 5
    assert result.map(lambda value: value) is result
    assert result.and_then(lambda value: Ok(value)) is result
    with pytest.raises(TaskNotFound):
        result.unwrap()


def test_err_map_err_swaps_the_error() -> None:
    mapped = Err(TaskNotFound()).map_err(lambda _: TaskCreationFailed("gone"))
    assert mapped == Err(TaskCreationFailed("gone"))


def test_report_to_returns_value_or_reports() -> None:
    channel = ErrorChannel()
    assert Ok("value").report_to(channel) == "value"
    assert channel.current is None

    error = TaskNotFound()
    assert Err(error).report_to(channel) is None
    assert channel.current is error


def test_error_messages_and_suggestions() -> None:
    assert TaskCreationFailed("disk full").message == "Could not create task: disk full"
    assert TaskNotFound().message == "Task not found"
    assert ProjectNameEmpty().recovery_suggestion == "Please enter a project name."
    assert ValidationFailed("title", "Task title cannot be empty").field == "title"
    assert str(TaskNotFound()) == "Task not found"


def test_cause_errors_chain_the_underlying_exception() -> None:
    cause = RuntimeError("locked")
    error = StoreSaveFailed(cause)
    assert error.cause is cause
    assert error.__cause__ is cause
    assert error.message == "Failed to save data: locked"
    assert error.recovery_suggestion == "Try restarting the application."


def test_errors_compare_by_kind_and_payload() -> None:
    assert TaskCreationFailed("a") == TaskCreationFailed("a")
    assert TaskCreationFailed("a") != TaskCreationFailed("b")
    assert TaskNotFound() != NotificationPermissionDenied()
    assert isinstance(NotificationPermissionDenied(), AppError)


def test_channel_keeps_only_the_latest_error() -> None:
    channel = ErrorChannel()
    seen: list[AppError | None] = []
    channel.subscribe(seen.append)

    first, second = TaskNotFound(), NotificationPermissionDenied()
    channel.report(first)
    channel.report(second)
    assert channel.current is second
    assert channel.has_error

    assert channel.acknowledge() is second
    assert channel.current is None
    assert not channel.has_error
    assert seen == [first, second, None]


def test_acknowledge_without_error_does_not_notify() -> None:
    channel = ErrorChannel()
    seen: list[AppError | None] = []
    unsubscribe = channel.subscribe(seen.append)
    assert channel.acknowledge() is None
    unsubscribe()
    channel.report(TaskNotFound())
    assert seen == []
