"""Learning-rate scheduling callback."""

from __future__ import annotations

from typing import TYPE_CHECKING

from jax_loop.loop.events import Event, Phase, Signal
from jax_loop.schedules import Schedule

if TYPE_CHECKING:
    from jax_loop.loop.training_loop import TrainingLoop


class Scheduler:
    """Set the optimizer learning rate from ``schedule`` before every training batch.

    Progress runs from 0 at the first training batch of a fit to 1 at the
    last one, assuming every epoch has as many batches as the first.
    Validation batches leave the learning rate alone.

    Attributes:
        schedule: Maps progress in [0, 1] to a learning rate.
        learning_rates: Every value written during the current fit.
    """

    def __init__(self, schedule: Schedule) -> None:
        self.schedule = schedule
        self.learning_rates: list[float] = []
        self._batches_per_epoch = 0
        self._total_batches = 0

    def on_event(self, loop: TrainingLoop, event: Event, phase: Phase | None) -> Signal | None:
        if event is Event.FIT_START:
            self.learning_rates = []
            self._total_batches = 0
        elif event is Event.TRAINING_START and self._total_batches == 0:
            self._batches_per_epoch = loop.batch_count
            self._total_batches = loop.epoch_count * loop.batch_count
        elif event is Event.BATCH_START and phase is Phase.TRAINING:
            step = loop.batch_index + loop.epoch_index * self._batches_per_epoch
            progress = step / (self._total_batches - 1) if self._total_batches > 1 else 0.0
            learning_rate = self.schedule(progress)
            loop.optimizer.learning_rate = learning_rate
            self.learning_rates.append(learning_rate)
        return None
