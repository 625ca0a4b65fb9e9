"""Models, optimizers, losses and batch steps.

The collaborators a :class:`~jax_loop.loop.TrainingLoop` drives: a pure
model function with its params, an optimizer with a mutable learning rate,
a loss, and the two step strategies.
"""

from jax_loop.training.losses import mean_absolute_error, mean_squared_error
from jax_loop.training.model import Model, linear_model
from jax_loop.training.optimizers import (
    AdamState,
    OptaxOptimizer,
    Optimizer,
    SgdState,
    StatefulOptimizer,
    adam,
    adam_optimizer,
    sgd,
    sgd_optimizer,
)
from jax_loop.training.steps import StepFn, inference_step, training_step

__all__ = [
    "Model",
    "linear_model",
    "Optimizer",
    "StatefulOptimizer",
    "OptaxOptimizer",
    "SgdState",
    "AdamState",
    "sgd_optimizer",
    "adam_optimizer",
    "sgd",
    "adam",
    "mean_squared_error",
    "mean_absolute_error",
    "StepFn",
    "training_step",
    "inference_step",
]
