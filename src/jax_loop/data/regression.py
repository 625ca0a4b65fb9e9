"""Synthetic linear-regression data.

Samples follow ``y = a * x + b + noise`` with ``x ~ U(-4, 4)`` and
``noise ~ U(-noise, noise)``. All randomness comes from one explicit PRNG
key that is split, never reused, so the same seed always yields the same
samples and the same epoch shuffles.

References:
    - JAX random: https://jax.readthedocs.io/en/latest/random-numbers.html

"""

from __future__ import annotations

from collections.abc import Iterator
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array

from jax_loop.config import RegressionDataConfig


class Batch(NamedTuple):
    """A group of ``(inputs, targets)`` processed as one unit."""

    inputs: Array
    targets: Array


def generate_samples(
    key: Array, a: float, b: float, count: int, noise: float = 0.1
) -> tuple[Array, Array]:
    """Draw ``count`` noisy samples of ``y = a * x + b``.

    Args:
        key: PRNG key (consumed).
        a: Slope.
        b: Intercept.
        count: Number of samples.
        noise: Half-width of the uniform noise.

    Returns:
        Tuple of (x, y), each of shape ``(count,)``.

    Examples:
        >>> x, y = generate_samples(jax.random.key(0), 2.0, 3.0, 100, noise=0.0)
        >>> bool(jnp.allclose(y, 2.0 * x + 3.0))
        True

    """
    x_key, noise_key = jax.random.split(key)
    x = jax.random.uniform(x_key, (count,), minval=-4.0, maxval=4.0)
    eps = jax.random.uniform(noise_key, (count,), minval=-noise, maxval=noise)
    return x, a * x + b + eps


def _batches(x: Array, y: Array, batch_size: int) -> list[Batch]:
    return [
        Batch(x[i : i + batch_size], y[i : i + batch_size]) for i in range(0, len(x), batch_size)
    ]


class TrainingEpochs:
    """Re-iterable, unbounded sequence of shuffled epochs.

    Each ``iter()`` restarts from the same key, so two iterations produce
    the same shuffles. Within one iteration every epoch is reshuffled.
    """

    def __init__(self, x: Array, y: Array, batch_size: int, key: Array) -> None:
        self.x = x
        self.y = y
        self.batch_size = batch_size
        self.key = key

    def __iter__(self) -> Iterator[list[Batch]]:
        key = self.key
        while True:
            key, subkey = jax.random.split(key)
            perm = jax.random.permutation(subkey, len(self.x))
            yield _batches(self.x[perm], self.y[perm], self.batch_size)


class RegressionData:
    """Training and validation splits for ``y = a * x + b``.

    Examples:
        >>> data = RegressionData(RegressionDataConfig(batch_size=8, training_count=3))
        >>> len(next(iter(data.training_epochs)))
        3
        >>> data.validation_batches[0].inputs.shape
        (8,)

    """

    def __init__(self, config: RegressionDataConfig | None = None) -> None:
        self.config = config or RegressionDataConfig()
        cfg = self.config
        key = jax.random.key(cfg.seed)
        shuffle_key, training_key, validation_key = jax.random.split(key, 3)

        self.training_samples = generate_samples(
            training_key, cfg.a, cfg.b, cfg.training_count * cfg.batch_size, cfg.noise
        )
        self.validation_samples = generate_samples(
            validation_key, cfg.a, cfg.b, cfg.validation_count * cfg.batch_size, cfg.noise
        )
        self._shuffle_key = shuffle_key

    @property
    def training_epochs(self) -> TrainingEpochs:
        x, y = self.training_samples
        return TrainingEpochs(x, y, self.config.batch_size, self._shuffle_key)

    @property
    def validation_batches(self) -> list[Batch]:
        x, y = self.validation_samples
        return _batches(x, y, self.config.batch_size)
