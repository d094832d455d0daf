"""Tagged success/failure result returned by every mutating core call."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, NoReturn, TypeVar

from doneday.core.errors import AppError

if TYPE_CHECKING:
    from doneday.services.error_channel import ErrorChannel

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=AppError)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        return Ok(fn(self.value))

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return fn(self.value)

    def map_err(self, fn: Callable[[AppError], AppError]) -> Ok[T]:
        return self

    def report_to(self, channel: ErrorChannel) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying a typed error."""

    error: E

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[object], object]) -> Err[E]:
        return self

    def and_then(self, fn: Callable[[object], object]) -> Err[E]:
        return self

    def map_err(self, fn: Callable[[E], AppError]) -> Err[AppError]:
        return Err(fn(self.error))

    def report_to(self, channel: ErrorChannel) -> None:
        """Surface the error through the shared channel and yield no value."""
        channel.report(self.error)


Result = Ok[T] | Err[E]
