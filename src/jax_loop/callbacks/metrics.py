"""Streaming metrics consumed by :class:`~jax_loop.callbacks.Recorder`.

A metric is reset at the start of each phase, fed every batch's
``(output, target)`` and read once at the end of validation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import jax.numpy as jnp


@runtime_checkable
class Metric(Protocol):
    """Accumulates a value over batches."""

    @property
    def name(self) -> str: ...

    @property
    def value(self) -> float | None:
        """Current value, or ``None`` when no sample was seen since :meth:`reset`."""
        ...

    def reset(self) -> None: ...

    def accumulate(self, output: Any, target: Any) -> None: ...


class AlmostAccuracy:
    """Fraction of predictions within ``threshold`` of their target.

    Examples:
        >>> import jax.numpy as jnp
        >>> metric = AlmostAccuracy(0.1)
        >>> metric.accumulate(jnp.array([1.0, 2.0, 3.0, 4.0]), jnp.array([1.05, 2.5, 3.0, 0.0]))
        >>> metric.value
        0.5

    """

    def __init__(self, threshold: float) -> None:
        self.threshold = threshold
        self.sample_count = 0
        self.correct_count = 0

    @property
    def name(self) -> str:
        return f"AlmostAccuracy({self.threshold:g})"

    @property
    def value(self) -> float | None:
        if self.sample_count == 0:
            return None
        return self.correct_count / self.sample_count

    def reset(self) -> None:
        self.sample_count = 0
        self.correct_count = 0

    def accumulate(self, output: Any, target: Any) -> None:
        diff = jnp.abs(jnp.asarray(output) - jnp.asarray(target))
        self.sample_count += int(diff.size)
        self.correct_count += int(jnp.sum(diff <= self.threshold))


class MeanAbsoluteError:
    """Mean absolute difference over every sample seen."""

    name = "MeanAbsoluteError"

    def __init__(self) -> None:
        self.sample_count = 0
        self.total = 0.0

    @property
    def value(self) -> float | None:
        if self.sample_count == 0:
            return None
        return self.total / self.sample_count

    def reset(self) -> None:
        self.sample_count = 0
        self.total = 0.0

    def accumulate(self, output: Any, target: Any) -> None:
        diff = jnp.abs(jnp.asarray(output) - jnp.asarray(target))
        self.sample_count += int(diff.size)
        self.total += float(jnp.sum(diff))
