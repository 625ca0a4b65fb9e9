"""Loss functions with the ``(output, target) -> scalar`` signature."""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array


def mean_squared_error(output: Array, target: Array) -> Array:
    """Mean of squared differences.

    Examples:
        >>> import jax.numpy as jnp
        >>> float(mean_squared_error(jnp.array([1.0, 2.0]), jnp.array([1.0, 4.0])))
        2.0

    """
    return jnp.mean((output - target) ** 2)


def mean_absolute_error(output: Array, target: Array) -> Array:
    """Mean of absolute differences."""
    return jnp.mean(jnp.abs(output - target))
