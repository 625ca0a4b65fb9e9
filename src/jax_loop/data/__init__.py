"""Synthetic datasets for exercising the training loop.

All randomness uses explicit, split PRNG keys: same seed, same data.
"""

from jax_loop.data.regression import Batch, RegressionData, TrainingEpochs, generate_samples

__all__ = [
    "Batch",
    "RegressionData",
    "TrainingEpochs",
    "generate_samples",
]
