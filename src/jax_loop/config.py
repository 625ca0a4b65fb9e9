"""Configuration dataclasses.

Defaults match the synthetic regression setup and the learning-rate search
bounds used throughout the test suite.
"""

from __future__ import annotations

from dataclasses import dataclass

from jax_loop.exceptions import ConfigError


@dataclass(frozen=True)
class RegressionDataConfig:
    """Synthetic data for ``y = a * x + b`` with uniform noise.

    Attributes:
        a: True slope.
        b: True intercept.
        batch_size: Samples per batch.
        training_count: Number of training batches per epoch.
        validation_count: Number of validation batches.
        seed: Seed for the PRNG key.
        noise: Half-width of the uniform noise added to targets.
    """

    a: float = 2.0
    b: float = 3.0
    batch_size: int = 64
    training_count: int = 10
    validation_count: int = 5
    seed: int = 42
    noise: float = 0.1

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ConfigError(
                "batch_size must be positive",
                context={"batch_size": self.batch_size},
            )
        if self.training_count <= 0:
            raise ConfigError(
                "training_count must be positive",
                context={"training_count": self.training_count},
            )
        if self.validation_count < 0:
            raise ConfigError(
                "validation_count must be non-negative",
                context={"validation_count": self.validation_count},
            )
        if self.noise < 0:
            raise ConfigError("noise must be non-negative", context={"noise": self.noise})


@dataclass(frozen=True)
class LRFinderConfig:
    """Bounds and stopping rule for a learning-rate search.

    Attributes:
        min_lr: Learning rate of the first iteration.
        max_lr: Learning rate of the last iteration.
        iteration_count: Maximum number of training batches.
        smoothing: EMA factor applied to the previous smoothed loss.
        divergence: Stop once smoothed loss exceeds ``divergence`` times the best.
    """

    min_lr: float = 1e-7
    max_lr: float = 10.0
    iteration_count: int = 100
    smoothing: float = 0.98
    divergence: float = 4.0

    def __post_init__(self) -> None:
        if self.min_lr <= 0 or self.max_lr <= 0:
            raise ConfigError(
                "learning rate bounds must be positive",
                context={"min_lr": self.min_lr, "max_lr": self.max_lr},
            )
        if self.iteration_count < 1:
            raise ConfigError(
                "iteration_count must be at least 1",
                context={"iteration_count": self.iteration_count},
            )
        if not 0.0 <= self.smoothing < 1.0:
            raise ConfigError(
                "smoothing must be in [0, 1)",
                context={"smoothing": self.smoothing},
            )
        if self.divergence <= 1.0:
            raise ConfigError(
                "divergence must be greater than 1",
                context={"divergence": self.divergence},
            )
