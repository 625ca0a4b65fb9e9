"""Hyperparameter schedules.

Pure functions from training progress in [0, 1] to a value, consumed by
the :class:`~jax_loop.callbacks.Scheduler` callback.
"""

from jax_loop.schedules.shapes import (
    Schedule,
    ScheduleShape,
    make_schedule,
)

__all__ = [
    "Schedule",
    "ScheduleShape",
    "make_schedule",
]
