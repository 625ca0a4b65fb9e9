"""Exception hierarchy for jax_loop.

Cancellation of a loop scope is never an exception: callbacks return a
:class:`~jax_loop.loop.events.Signal`. The errors below are caller mistakes
or misuse of the loop, and always propagate to the caller.

Each error mixes in the builtin a caller would naturally catch
(``ValueError`` for bad arguments, ``RuntimeError`` for loop misuse), so
``except ValueError`` keeps working for code that does not know this package.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class LoopError(Exception):
    """Base class for all jax_loop errors.

    Attributes:
        message: Human-readable message.
        code: Stable identifier for the error type.
        context: Extra debugging information.
    """

    default_code: str = "loop_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code: str = code or self.default_code
        self.context: dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return f"[{self.code}] {self.message}"
        details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {self.message} ({details})"


class ConfigError(LoopError, ValueError):
    """Invalid configuration values."""

    default_code = "config_error"


class ScheduleError(LoopError, ValueError):
    """A schedule was built with missing or invalid parameters."""

    default_code = "schedule_error"


class UnhandledSignalError(LoopError, RuntimeError):
    """A callback returned a signal with no matching enclosing scope."""

    default_code = "unhandled_signal"


class ReentrantFitError(LoopError, RuntimeError):
    """``fit`` was called while the same loop was already fitting."""

    default_code = "reentrant_fit"


class CallbackNotFoundError(LoopError, LookupError):
    """No registered callback matches the requested type."""

    default_code = "callback_not_found"
