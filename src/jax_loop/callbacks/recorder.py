"""Loss and metric recording callback."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from jax_loop.callbacks.metrics import Metric
from jax_loop.loop.events import Event, Phase, Signal

if TYPE_CHECKING:
    from jax_loop.loop.training_loop import TrainingLoop

logger = logging.getLogger(__name__)


def _batch_size(target: Any) -> int:
    shape = getattr(target, "shape", ())
    return int(shape[0]) if shape else 1


def _format(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.6f}"


class Recorder:
    """Record the mean loss of every phase and the metric values of every validation.

    Losses are weighted by batch size, so the recorded value is the mean
    over samples. Batches without a loss (cancelled, or no target) are not
    counted. A phase with no counted batch records ``nan``.

    Attributes:
        metrics: Metrics reset at each phase start and fed every batch.
        training_losses: Mean training loss, one per epoch.
        validation_losses: Mean validation loss, one per epoch.
        metric_results: Metric values at the end of each validation phase.
    """

    def __init__(self, metrics: Sequence[Metric] = ()) -> None:
        self.metrics = list(metrics)
        self.training_losses: list[float] = []
        self.validation_losses: list[float] = []
        self.metric_results: list[list[float | None]] = []
        self._loss_sum = 0.0
        self._sample_count = 0
        self._epoch_marks = (0, 0, 0)

    def _mean_loss(self) -> float:
        if self._sample_count == 0:
            return float("nan")
        return self._loss_sum / self._sample_count

    def on_event(self, loop: TrainingLoop, event: Event, phase: Phase | None) -> Signal | None:
        if event is Event.EPOCH_START:
            self._epoch_marks = (
                len(self.training_losses),
                len(self.validation_losses),
                len(self.metric_results),
            )
        elif event in (Event.TRAINING_START, Event.VALIDATION_START):
            self._loss_sum = 0.0
            self._sample_count = 0
            for metric in self.metrics:
                metric.reset()
        elif event is Event.BATCH_END:
            if loop.last_loss is None:
                return None
            batch_size = _batch_size(loop.last_target)
            self._loss_sum += float(loop.last_loss) * batch_size
            self._sample_count += batch_size
            for metric in self.metrics:
                metric.accumulate(loop.last_output, loop.last_target)
        elif event is Event.TRAINING_END:
            self.training_losses.append(self._mean_loss())
        elif event is Event.VALIDATION_END:
            self.validation_losses.append(self._mean_loss())
            self.metric_results.append([metric.value for metric in self.metrics])
        elif event is Event.EPOCH_END:
            self._log_epoch(loop.epoch_index)
        return None

    def _log_epoch(self, epoch_index: int | None) -> None:
        training_mark, validation_mark, metric_mark = self._epoch_marks
        training = self.training_losses[training_mark:]
        validation = self.validation_losses[validation_mark:]
        metrics = self.metric_results[metric_mark:]
        parts = [
            f"training_loss={_format(training[-1] if training else None)}",
            f"validation_loss={_format(validation[-1] if validation else None)}",
        ]
        values = metrics[-1] if metrics else [None] * len(self.metrics)
        for metric, value in zip(self.metrics, values):
            parts.append(f"{metric.name}={_format(value)}")
        logger.info("epoch %s: %s", epoch_index, " ".join(parts))
