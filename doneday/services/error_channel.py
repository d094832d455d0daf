"""Single-slot error presentation channel."""

from __future__ import annotations

from collections.abc import Callable

from doneday.core.errors import AppError
from doneday.core.logging import get_logger

logger = get_logger(__name__)

ErrorListener = Callable[[AppError | None], None]


class ErrorChannel:
    """Holds at most one unacknowledged error.

    A new report replaces whatever is pending; there is no queue. Listeners are
    called with the new current error (or `None` after acknowledgement).
    """

    def __init__(self) -> None:
        self._current: AppError | None = None
        self._listeners: list[ErrorListener] = []

    @property
    def current(self) -> AppError | None:
        return self._current

    @property
    def has_error(self) -> bool:
        return self._current is not None

    def subscribe(self, listener: ErrorListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def report(self, error: AppError) -> None:
        if self._current is not None:
            logger.info(
                "error.replaced_unacknowledged",
                extra={"previous_code": self._current.code, "code": error.code},
            )
        self._current = error
        logger.error(
            "error.reported",
            extra={
                "code": error.code,
                "error_message": error.message,
                "suggestion": error.recovery_suggestion,
            },
        )
        self._notify()

    def acknowledge(self) -> AppError | None:
        """Clear the pending error and return it."""
        error, self._current = self._current, None
        if error is not None:
            self._notify()
        return error

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._current)
