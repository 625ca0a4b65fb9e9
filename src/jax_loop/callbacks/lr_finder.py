"""Learning-rate range test (Smith, 2015).

Trains with a learning rate growing exponentially from ``min_lr`` to
``max_lr`` and records an exponentially smoothed loss at every batch. The
run stops once the loss diverges or the iteration budget is spent. Plotting
``smoothed_losses`` against ``learning_rates`` shows the usable range.

References:
    - Cyclical Learning Rates for Training Neural Networks: https://arxiv.org/abs/1506.01186

"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from jax_loop.config import LRFinderConfig
from jax_loop.loop.events import Event, Phase, Signal
from jax_loop.schedules import ScheduleShape, make_schedule

if TYPE_CHECKING:
    from jax_loop.loop.training_loop import TrainingLoop

logger = logging.getLogger(__name__)


class LearningRateFinder:
    """Callback running the range test; see :meth:`TrainingLoop.find_learning_rate`.

    Validation is skipped entirely.

    Attributes:
        config: Search bounds and stopping rule.
        learning_rates: Learning rate of each batch that produced a loss.
        smoothed_losses: Smoothed loss after each iteration.
    """

    def __init__(self, config: LRFinderConfig | None = None) -> None:
        self.config = config or LRFinderConfig()
        self.schedule = make_schedule(
            ScheduleShape.EXPONENTIAL, self.config.min_lr, self.config.max_lr
        )
        self.learning_rates: list[float] = []
        self.smoothed_losses: list[float] = []
        self._iteration = 0
        self._best = float("inf")

    def on_event(self, loop: TrainingLoop, event: Event, phase: Phase | None) -> Signal | None:
        if event is Event.FIT_START:
            self.learning_rates = []
            self.smoothed_losses = []
            self._iteration = 0
            self._best = float("inf")
        elif event is Event.VALIDATION_START:
            return Signal.CANCEL_VALIDATION
        elif event is Event.BATCH_START and phase is Phase.TRAINING:
            count = self.config.iteration_count
            progress = self._iteration / (count - 1) if count > 1 else 0.0
            loop.optimizer.learning_rate = self.schedule(progress)
        elif event is Event.BATCH_END and phase is Phase.TRAINING:
            return self._record(loop.optimizer.learning_rate, loop.last_loss)
        return None

    def _record(self, learning_rate: float, loss: float | None) -> Signal | None:
        if loss is None:
            return None
        self._iteration += 1
        self.learning_rates.append(float(learning_rate))
        if self.smoothed_losses:
            beta = self.config.smoothing
            smoothed = self.smoothed_losses[-1] * beta + float(loss) * (1 - beta)
        else:
            smoothed = float(loss)
        self.smoothed_losses.append(smoothed)
        self._best = min(self._best, smoothed)

        if smoothed > self.config.divergence * self._best:
            logger.info(
                "learning rate search stopped: loss diverged at lr=%g after %d iterations",
                self.learning_rates[-1],
                self._iteration,
            )
            return Signal.CANCEL_FIT
        if self._iteration >= self.config.iteration_count:
            return Signal.CANCEL_FIT
        return None

    def suggestion(self) -> float | None:
        """One tenth of the learning rate that reached the lowest smoothed loss."""
        if not self.smoothed_losses:
            return None
        best = min(range(len(self.smoothed_losses)), key=self.smoothed_losses.__getitem__)
        return self.learning_rates[best] / 10.0
