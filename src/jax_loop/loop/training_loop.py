"""The training loop controller.

:class:`TrainingLoop` owns the model, optimizer, data and transient batch
slots, and drives the nested fit → epoch → phase → batch control flow,
calling every registered callback at each event.

Every scope has the same shape (see :meth:`TrainingLoop._scope`)::

    start event   ─┐ inside the scope: a signal here skips the body
    body           ┘
    end event       fired when the body finished or returned this scope's signal

A signal aimed at an outer scope leaves the inner scopes without their end
events and is absorbed by its target, which fires its own end event.
Exceptions are never caught: they leave ``fit`` with no further events.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from jax_loop.exceptions import (
    CallbackNotFoundError,
    ConfigError,
    ReentrantFitError,
    UnhandledSignalError,
)
from jax_loop.loop.events import Callback, Event, Phase, Signal
from jax_loop.training import steps
from jax_loop.training.model import Model
from jax_loop.training.optimizers import Optimizer
from jax_loop.training.steps import StepFn

if TYPE_CHECKING:
    from jax_loop.callbacks.lr_finder import LearningRateFinder
    from jax_loop.config import LRFinderConfig

logger = logging.getLogger(__name__)

C = TypeVar("C")
Batch = tuple[Any, Any]
LossFn = Callable[[Any, Any], Any]

_PHASE_SCOPES = {
    Phase.TRAINING: (Event.TRAINING_START, Event.TRAINING_END, Signal.CANCEL_TRAINING),
    Phase.INFERENCE: (Event.VALIDATION_START, Event.VALIDATION_END, Signal.CANCEL_VALIDATION),
}


class TrainingLoop:
    """A callback-driven training loop.

    Args:
        training: Iterable of epochs, each an iterable of ``(input, target)``
            batches. May be unbounded; ``fit`` takes what it needs.
        validation: Re-iterable collection of ``(input, target)`` batches,
            consumed once per epoch.
        model: The model to train; its params are replaced in place.
        optimizer: Optimizer with a mutable ``learning_rate``.
        loss_fn: ``(output, target) -> scalar``.
        callbacks: Callbacks registered before the first ``fit``.

    Attributes:
        last_input, last_target: The current batch.
        last_output, last_loss: What the step produced for the current batch;
            ``None`` until the step ran.
        epoch_index, epoch_count: Position in the current (or last) fit.
        batch_index, batch_count: Position in the current phase; each phase
            counts its own batches.
    """

    def __init__(
        self,
        training: Iterable[Iterable[Batch]],
        validation: Iterable[Batch],
        model: Model,
        optimizer: Optimizer,
        loss_fn: LossFn,
        callbacks: Iterable[Callback] = (),
    ) -> None:
        self.training = training
        self.validation = validation
        self.model = model
        self.optimizer = optimizer
        self.loss_fn = loss_fn
        self.callbacks: list[Callback] = list(callbacks)

        self.last_input: Any = None
        self.last_target: Any = None
        self.last_output: Any = None
        self.last_loss: float | None = None

        self.epoch_index: int | None = None
        self.epoch_count: int | None = None
        self.batch_index: int | None = None
        self.batch_count: int | None = None

        self._fitting = False
        self._active: tuple[Callback, ...] = ()

    @property
    def is_fitting(self) -> bool:
        return self._fitting

    # ------------------------------------------------------------------
    # Callback registry
    # ------------------------------------------------------------------

    def add_callback(self, callback: C) -> C:
        """Register ``callback`` and return it, typed as passed."""
        self.callbacks.append(callback)
        return callback

    def remove_callback(self, callback: Callback) -> None:
        for i, registered in enumerate(self.callbacks):
            if registered is callback:
                del self.callbacks[i]
                return
        raise CallbackNotFoundError(
            "callback is not registered",
            context={"callback": type(callback).__name__},
        )

    def callbacks_of(self, kind: type[C]) -> list[C]:
        """All registered callbacks that are instances of ``kind``."""
        return [cb for cb in self.callbacks if isinstance(cb, kind)]

    def find_callback(self, kind: type[C]) -> C:
        """First registered callback that is an instance of ``kind``.

        Raises:
            CallbackNotFoundError: If none is registered.
        """
        for cb in self.callbacks:
            if isinstance(cb, kind):
                return cb
        raise CallbackNotFoundError(
            f"no {kind.__name__} callback registered",
            context={"registered": [type(cb).__name__ for cb in self.callbacks]},
        )

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def fit(
        self,
        epoch_count: int,
        callbacks: Sequence[Callback] = (),
        training_step: StepFn | None = None,
        inference_step: StepFn | None = None,
    ) -> None:
        """Train for at most ``epoch_count`` epochs.

        Args:
            epoch_count: Number of epochs taken from ``training``.
            callbacks: Appended to the registered callbacks; they stay
                registered for later fits.
            training_step: Replaces :func:`~jax_loop.training.training_step`.
            inference_step: Replaces :func:`~jax_loop.training.inference_step`.

        Raises:
            ReentrantFitError: If called from inside a running fit.
            UnhandledSignalError: If a callback returned a signal outside
                the scope it names.
            ConfigError: If ``epoch_count`` is negative.
        """
        if self._fitting:
            raise ReentrantFitError("fit called while this loop is already fitting")
        if epoch_count < 0:
            raise ConfigError(
                "epoch_count must be non-negative", context={"epoch_count": epoch_count}
            )

        self.callbacks.extend(callbacks)
        train = training_step or steps.training_step
        infer = inference_step or steps.inference_step

        self._active = tuple(self.callbacks)
        self.epoch_count = epoch_count
        self._fitting = True
        logger.debug("fit: %d epochs, %d callbacks", epoch_count, len(self._active))
        try:
            signal = self._scope(
                Event.FIT_START,
                Event.FIT_END,
                Signal.CANCEL_FIT,
                None,
                lambda: self._run_epochs(epoch_count, train, infer),
            )
        finally:
            self._fitting = False
            self._active = ()

        if signal is not None:
            raise UnhandledSignalError(
                "signal returned outside the scope it cancels",
                context={"signal": signal.value},
            )
        logger.debug("fit finished at epoch %s", self.epoch_index)

    def find_learning_rate(
        self,
        config: LRFinderConfig | None = None,
        *,
        restore: bool = True,
    ) -> LearningRateFinder:
        """Run a short search with exponentially growing learning rates.

        A :class:`~jax_loop.callbacks.LearningRateFinder` is registered for
        the duration of one fit and removed afterwards.

        Args:
            config: Search bounds; defaults to :class:`~jax_loop.config.LRFinderConfig`.
            restore: Put back model params and optimizer state afterwards.

        Returns:
            The finder, holding the learning rates and smoothed losses.
        """
        from jax_loop.callbacks.lr_finder import LearningRateFinder

        finder = LearningRateFinder(config)
        params = self.model.params
        optimizer_state = getattr(self.optimizer, "state", None)
        learning_rate = self.optimizer.learning_rate

        self.add_callback(finder)
        try:
            self.fit(finder.config.iteration_count)
        finally:
            self.remove_callback(finder)
            if restore:
                self.model.params = params
                if hasattr(self.optimizer, "state"):
                    self.optimizer.state = optimizer_state
                self.optimizer.learning_rate = learning_rate
        return finder

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def _dispatch(self, event: Event, phase: Phase | None) -> Signal | None:
        for callback in self._active:
            signal = callback.on_event(self, event, phase)
            if signal is not None:
                signal = Signal(signal)
                logger.debug(
                    "%s returned %s at %s", type(callback).__name__, signal.value, event.value
                )
                return signal
        return None

    def _scope(
        self,
        start: Event,
        end: Event,
        own: Signal,
        phase: Phase | None,
        body: Callable[[], Signal | None],
    ) -> Signal | None:
        """Run ``start``, ``body`` and ``end``; return any signal for an outer scope."""
        signal = self._dispatch(start, phase)
        if signal is None:
            signal = body()
        if signal is not None and signal is not own:
            return signal
        return self._dispatch(end, phase)

    def _run_epochs(self, epoch_count: int, train: StepFn, infer: StepFn) -> Signal | None:
        epochs = itertools.islice(iter(self.training), epoch_count)
        for index, epoch in enumerate(epochs):
            self.epoch_index = index
            signal = self._scope(
                Event.EPOCH_START,
                Event.EPOCH_END,
                Signal.CANCEL_EPOCH,
                None,
                lambda: self._run_epoch(epoch, train, infer),
            )
            if signal is not None:
                return signal
        return None

    def _run_epoch(self, epoch: Iterable[Batch], train: StepFn, infer: StepFn) -> Signal | None:
        signal = self._run_phase(list(epoch), Phase.TRAINING, train)
        if signal is not None:
            return signal
        return self._run_phase(list(self.validation), Phase.INFERENCE, infer)

    def _run_phase(self, batches: list[Batch], phase: Phase, step: StepFn) -> Signal | None:
        start, end, own = _PHASE_SCOPES[phase]
        self.batch_count = len(batches)
        self.batch_index = None

        def run_batches() -> Signal | None:
            for index, batch in enumerate(batches):
                self.batch_index = index
                signal = self._run_batch(batch, phase, step)
                if signal is not None:
                    return signal
            return None

        return self._scope(start, end, own, phase, run_batches)

    def _run_batch(self, batch: Batch, phase: Phase, step: StepFn) -> Signal | None:
        self.last_input, self.last_target = batch
        self.last_output = None
        self.last_loss = None

        def run_step() -> None:
            step(self)

        return self._scope(Event.BATCH_START, Event.BATCH_END, Signal.CANCEL_BATCH, phase, run_step)
