"""Hyperparameter schedule recipes.

A schedule maps training progress in [0, 1] to a hyperparameter value.
Schedules are plain Python closures over floats: pure, cheap, and safe to
call any number of times from a callback.

References:
    - Optax schedules: https://optax.readthedocs.io/en/latest/api/optimizer_schedules.html
    - SGDR (Loshchilov & Hutter, 2016) for cosine annealing.

"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable

from jax_loop.exceptions import ScheduleError

Schedule = Callable[[float], float]


class ScheduleShape(str, enum.Enum):
    """Curve shapes understood by :func:`make_schedule`."""

    CONSTANT = "constant"
    COSINE = "cosine"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    POLYNOMIAL = "polynomial"


def _coerce_shape(shape: ScheduleShape | str) -> ScheduleShape:
    try:
        return ScheduleShape(shape)
    except ValueError as exc:
        raise ScheduleError(
            f"Unknown schedule shape: {shape!r}",
            context={"choices": [s.value for s in ScheduleShape]},
        ) from exc


def make_schedule(
    shape: ScheduleShape | str,
    start: float,
    end: float | None = None,
    *,
    power: float = 1.0,
) -> Schedule:
    """Build a schedule going from ``start`` to ``end``.

    Args:
        shape: Curve shape (enum member or its string value).
        start: Value at progress 0.
        end: Value at progress 1. Required for every shape but constant.
        power: Exponent of the polynomial shape.

    Returns:
        A function ``progress -> value``.

    Raises:
        ScheduleError: If ``end`` is missing for a non-constant shape, or an
            exponential schedule starts at 0.

    Examples:
        >>> sched = make_schedule("linear", 0.1, 0.0)
        >>> sched(0.0), sched(1.0)
        (0.1, 0.0)
        >>> make_schedule("constant", 3.0)(0.7)
        3.0
        >>> round(make_schedule("exponential", 1e-3, 1e-1)(0.5), 6)
        0.01

    """
    shape = _coerce_shape(shape)
    start = float(start)

    if shape is ScheduleShape.CONSTANT:
        return lambda _progress: start

    if end is None:
        raise ScheduleError(
            "missing required parameter 'end'",
            context={"shape": shape.value},
        )
    end = float(end)
    delta = end - start

    if shape is ScheduleShape.LINEAR:
        return lambda progress: start + delta * progress

    if shape is ScheduleShape.COSINE:

        def cosine(progress: float) -> float:
            slope = (1.0 + math.cos(math.pi * (1.0 - progress))) / 2.0
            return start + delta * slope

        return cosine

    if shape is ScheduleShape.EXPONENTIAL:
        if start == 0.0:
            raise ScheduleError(
                "exponential schedule cannot start at 0",
                context={"start": start, "end": end},
            )
        ratio = end / start
        return lambda progress: start * ratio**progress

    return lambda progress: start + delta * progress**power
