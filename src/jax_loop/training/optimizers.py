"""Optimizer recipes.

The training loop needs an optimizer it can drive step by step and whose
learning rate a callback can overwrite between steps. The update rules
themselves stay functional: ``sgd_optimizer`` and ``adam_optimizer`` return
an explicit NamedTuple state and a pure ``update_fn``, and
:class:`StatefulOptimizer` threads that state across calls.

References:
    - Optax library: https://optax.readthedocs.io/
    - Adam (Kingma & Ba, 2014): https://arxiv.org/abs/1412.6980

"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, NamedTuple, Protocol, runtime_checkable

import jax
import jax.numpy as jnp
import optax
from jax import Array

Params = Any
UpdateFn = Callable[[Params, Params, Any], tuple[Params, Any]]


@runtime_checkable
class Optimizer(Protocol):
    """What the training loop needs from an optimizer."""

    learning_rate: float

    def update(self, params: Params, grads: Params) -> Params:
        """Return parameters moved along ``grads``."""
        ...


class SgdState(NamedTuple):
    """SGD optimizer state (only the learning rate)."""

    learning_rate: float


class AdamState(NamedTuple):
    """Adam optimizer state tracking first/second moments."""

    learning_rate: float
    beta1: float
    beta2: float
    eps: float
    step: int
    m: Params | None  # First moment estimates
    v: Params | None  # Second moment estimates


def sgd_optimizer(
    learning_rate: float = 0.01,
) -> tuple[SgdState, UpdateFn]:
    """Create a Stochastic Gradient Descent optimizer.

    Works on any parameter pytree.

    Args:
        learning_rate: Step size for parameter updates.

    Returns:
        Tuple of (initial_state, update_fn).
        update_fn(params, grads, state) -> (new_params, new_state)

    Examples:
        >>> import jax.numpy as jnp
        >>> state, update_fn = sgd_optimizer(learning_rate=0.1)
        >>> params = {"w": jnp.array([1.0, 2.0])}
        >>> grads = {"w": jnp.array([0.5, 0.5])}
        >>> new_params, new_state = update_fn(params, grads, state)
        >>> [round(w, 4) for w in new_params["w"].tolist()]
        [0.95, 1.95]

    """
    state = SgdState(learning_rate=learning_rate)

    def update(params: Params, grads: Params, state: SgdState) -> tuple[Params, SgdState]:
        new_params = jax.tree_util.tree_map(lambda p, g: p - state.learning_rate * g, params, grads)
        return new_params, state

    return state, update


def adam_optimizer(
    learning_rate: float = 0.001,
    beta1: float = 0.9,
    beta2: float = 0.999,
    eps: float = 1e-8,
    params: Params | None = None,
) -> tuple[AdamState, UpdateFn]:
    """Create an Adam optimizer (Kingma & Ba, 2014).

    Adaptive learning rates per parameter using first and second moment
    estimates with bias correction. Works on any parameter pytree.

    Args:
        learning_rate: Base learning rate.
        beta1: Exponential decay rate for first moment (mean).
        beta2: Exponential decay rate for second moment (variance).
        eps: Numerical stability constant.
        params: Parameters to size the moments from.
            If None, moments are created on the first update.

    Returns:
        Tuple of (initial_state, update_fn).

    Examples:
        >>> import jax.numpy as jnp
        >>> params = {"w": jnp.array([1.0, 2.0, 3.0])}
        >>> state, update_fn = adam_optimizer(learning_rate=0.001, params=params)
        >>> grads = {"w": jnp.array([0.1, 0.2, 0.3])}
        >>> new_params, new_state = update_fn(params, grads, state)
        >>> new_params["w"].shape
        (3,)

    """
    zeros = None if params is None else jax.tree_util.tree_map(jnp.zeros_like, params)
    state = AdamState(
        learning_rate=learning_rate,
        beta1=beta1,
        beta2=beta2,
        eps=eps,
        step=0,
        m=zeros,
        v=zeros,
    )

    def update(params: Params, grads: Params, state: AdamState) -> tuple[Params, AdamState]:
        step = state.step + 1
        tree_map = jax.tree_util.tree_map
        m_prev = state.m if state.m is not None else tree_map(jnp.zeros_like, grads)
        v_prev = state.v if state.v is not None else tree_map(jnp.zeros_like, grads)

        new_m = tree_map(lambda m, g: state.beta1 * m + (1 - state.beta1) * g, m_prev, grads)
        new_v = tree_map(lambda v, g: state.beta2 * v + (1 - state.beta2) * g**2, v_prev, grads)

        m_correction = 1 - state.beta1**step
        v_correction = 1 - state.beta2**step

        def apply(p: Array, m: Array, v: Array) -> Array:
            m_hat = m / m_correction
            v_hat = v / v_correction
            return p - state.learning_rate * m_hat / (jnp.sqrt(v_hat) + state.eps)

        new_params = tree_map(apply, params, new_m, new_v)
        return new_params, state._replace(step=step, m=new_m, v=new_v)

    return state, update


class StatefulOptimizer:
    """Drive a functional ``(state, update_fn)`` pair one step at a time.

    The learning rate is read from and written to ``state.learning_rate``,
    so any NamedTuple state with that field works.

    Examples:
        >>> import jax.numpy as jnp
        >>> opt = sgd(0.1)
        >>> opt.learning_rate = 0.5
        >>> opt.update({"w": jnp.array([1.0])}, {"w": jnp.array([1.0])})["w"].tolist()
        [0.5]

    """

    def __init__(self, state: Any, update_fn: UpdateFn) -> None:
        self.state = state
        self.update_fn = update_fn

    @property
    def learning_rate(self) -> float:
        return float(self.state.learning_rate)

    @learning_rate.setter
    def learning_rate(self, value: float) -> None:
        self.state = self.state._replace(learning_rate=float(value))

    def update(self, params: Params, grads: Params) -> Params:
        new_params, self.state = self.update_fn(params, grads, self.state)
        return new_params

    def __repr__(self) -> str:
        return f"{type(self).__name__}({type(self.state).__name__}, lr={self.learning_rate:g})"


def sgd(learning_rate: float = 0.01) -> StatefulOptimizer:
    """Stateful SGD optimizer for use in a training loop."""
    return StatefulOptimizer(*sgd_optimizer(float(learning_rate)))


def adam(
    learning_rate: float = 0.001,
    beta1: float = 0.9,
    beta2: float = 0.999,
    eps: float = 1e-8,
) -> StatefulOptimizer:
    """Stateful Adam optimizer; moments are created on the first update."""
    return StatefulOptimizer(*adam_optimizer(float(learning_rate), beta1, beta2, eps))


class OptaxOptimizer:
    """Adapter for optax gradient transformations.

    The transformation is wrapped with ``optax.inject_hyperparams`` so the
    learning rate lives in the optimizer state and can change between
    steps without re-initialising moments.

    Args:
        factory: An optax optimizer constructor such as ``optax.adamw``.
        learning_rate: Initial learning rate.
        **hyperparams: Other keyword arguments for ``factory``.

    Examples:
        >>> import jax.numpy as jnp
        >>> import optax
        >>> opt = OptaxOptimizer(optax.sgd, learning_rate=0.1)
        >>> new = opt.update({"w": jnp.array([1.0])}, {"w": jnp.array([1.0])})
        >>> round(float(new["w"][0]), 4)
        0.9

    """

    def __init__(
        self,
        factory: Callable[..., optax.GradientTransformation],
        learning_rate: float,
        **hyperparams: Any,
    ) -> None:
        self._transform = optax.inject_hyperparams(factory)(
            learning_rate=learning_rate, **hyperparams
        )
        self._learning_rate = float(learning_rate)
        self.state: Any = None

    @property
    def learning_rate(self) -> float:
        return self._learning_rate

    @learning_rate.setter
    def learning_rate(self, value: float) -> None:
        self._learning_rate = float(value)

    def update(self, params: Params, grads: Params) -> Params:
        if self.state is None:
            self.state = self._transform.init(params)
        self.state.hyperparams["learning_rate"] = jnp.asarray(self._learning_rate)
        updates, self.state = self._transform.update(grads, self.state, params)
        return optax.apply_updates(params, updates)
