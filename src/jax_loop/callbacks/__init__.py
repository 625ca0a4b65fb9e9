"""Reference callbacks: scheduling, recording and learning-rate search."""

from jax_loop.callbacks.lr_finder import LearningRateFinder
from jax_loop.callbacks.metrics import AlmostAccuracy, MeanAbsoluteError, Metric
from jax_loop.callbacks.recorder import Recorder
from jax_loop.callbacks.scheduler import Scheduler

__all__ = [
    "Scheduler",
    "Recorder",
    "Metric",
    "AlmostAccuracy",
    "MeanAbsoluteError",
    "LearningRateFinder",
]
