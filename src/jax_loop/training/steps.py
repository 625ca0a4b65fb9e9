"""Batch step functions.

A step reads ``last_input``/``last_target`` from the loop, writes
``last_output``/``last_loss`` back, and (for training) updates the model
parameters. ``TrainingLoop.fit`` accepts substitutes with the same
``step(loop) -> None`` signature.

References:
    - JAX training patterns: https://jax.readthedocs.io/en/latest/notebooks/neural_network_with_tfds.html
    - ``jax.value_and_grad(..., has_aux=True)`` returns auxiliary outputs
      alongside the loss without a second forward pass.

"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import jax

if TYPE_CHECKING:
    from jax_loop.loop.training_loop import TrainingLoop

StepFn = Callable[["TrainingLoop"], None]


def training_step(loop: TrainingLoop) -> None:
    """Execute one training step: forward → backward → update.

    Output and loss come out of the same forward pass used for the
    gradient. Does nothing when the input or target slot is empty.

    Args:
        loop: The training loop whose transient slots and model are used.

    """
    x, y = loop.last_input, loop.last_target
    if x is None or y is None:
        return

    model = loop.model

    def loss_with_output(params):
        output = model.apply_fn(params, x)
        return loop.loss_fn(output, y), output

    (loss, output), grads = jax.value_and_grad(loss_with_output, has_aux=True)(model.params)
    loop.last_output = output
    loop.last_loss = float(loss)
    model.params = loop.optimizer.update(model.params, grads)


def inference_step(loop: TrainingLoop) -> None:
    """Forward pass only; the loss is computed when a target is present."""
    if loop.last_input is None:
        return
    output = loop.model(loop.last_input)
    loop.last_output = output
    if loop.last_target is not None:
        loop.last_loss = float(loop.loss_fn(output, loop.last_target))
