"""Differentiable model capability.

A model is a pure ``apply_fn(params, x)`` plus the parameter pytree it is
currently evaluated at. The training loop replaces ``params`` after each
optimizer update; ``apply_fn`` never changes.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import jax.numpy as jnp
from jax import Array

Params = Any
ApplyFn = Callable[[Params, Array], Array]


@dataclass
class Model:
    """A pure function of ``(params, x)`` bound to its current params.

    Examples:
        >>> import jax.numpy as jnp
        >>> model = linear_model(2.0, 3.0)
        >>> model(jnp.array([1.0, 2.0])).tolist()
        [5.0, 7.0]

    """

    apply_fn: ApplyFn
    params: Params

    def __call__(self, x: Array) -> Array:
        return self.apply_fn(self.params, x)


def _linear(params: Params, x: Array) -> Array:
    return params["a"] * x + params["b"]


def linear_model(a: float = 0.0, b: float = 0.0) -> Model:
    """Scalar linear regression ``y = a * x + b``."""
    params = {
        "a": jnp.asarray(a, dtype=jnp.float32),
        "b": jnp.asarray(b, dtype=jnp.float32),
    }
    return Model(_linear, params)
