"""Lifecycle events, learning phases, cancellation signals and the callback protocol.

Events nest as::

    FIT_START
      EPOCH_START
        TRAINING_START
          (BATCH_START  <step>  BATCH_END) x training batches
        TRAINING_END
        VALIDATION_START
          (BATCH_START  <step>  BATCH_END) x validation batches
        VALIDATION_END
      EPOCH_END          (once per epoch)
    FIT_END

A callback asks for early exit by returning a :class:`Signal` instead of
``None``. Each signal names the scope it ends; that scope still fires its
closing event.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from jax_loop.loop.training_loop import TrainingLoop


class Event(str, enum.Enum):
    """Points in the loop at which callbacks are invoked."""

    FIT_START = "fit_start"
    EPOCH_START = "epoch_start"
    TRAINING_START = "training_start"
    BATCH_START = "batch_start"
    BATCH_END = "batch_end"
    TRAINING_END = "training_end"
    VALIDATION_START = "validation_start"
    VALIDATION_END = "validation_end"
    EPOCH_END = "epoch_end"
    FIT_END = "fit_end"


class Phase(str, enum.Enum):
    """Learning phase of the events inside a training or validation pass."""

    TRAINING = "training"
    INFERENCE = "inference"


class Signal(str, enum.Enum):
    """Requests to end a scope early."""

    CANCEL_BATCH = "cancel_batch"
    CANCEL_TRAINING = "cancel_training"
    CANCEL_VALIDATION = "cancel_validation"
    CANCEL_EPOCH = "cancel_epoch"
    CANCEL_FIT = "cancel_fit"


@runtime_checkable
class Callback(Protocol):
    """An observer of the training loop.

    ``on_event`` is called for every event, in registration order. It may
    read any loop attribute, overwrite ``loop.optimizer.learning_rate`` and
    keep its own state. Returning a :class:`Signal` ends the matching scope
    and skips the callbacks registered after it for this event. Raising an
    exception aborts ``fit``.

    ``phase`` is ``None`` for fit and epoch events.
    """

    def on_event(self, loop: TrainingLoop, event: Event, phase: Phase | None) -> Signal | None:
        ...
