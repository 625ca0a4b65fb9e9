"""jax_loop: a callback-driven training loop for JAX models.

Modules:
    loop: TrainingLoop controller, events, phases and cancellation signals
    training: Model, optimizers, losses and batch steps
    callbacks: Scheduler, Recorder, metrics and LearningRateFinder
    schedules: Hyperparameter schedule shapes
    data: Synthetic regression data
    config: Configuration dataclasses
    exceptions: Error hierarchy
"""

import logging

from jax_loop.loop import Callback, Event, Phase, Signal, TrainingLoop

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "TrainingLoop",
    "Callback",
    "Event",
    "Phase",
    "Signal",
]
