"""Shared fixtures: regression data and a loop factory."""

from __future__ import annotations

import pytest

from jax_loop.data import RegressionData
from jax_loop.loop import TrainingLoop
from jax_loop.training import linear_model, mean_squared_error, sgd


@pytest.fixture(scope="session")
def data():
    return RegressionData()


@pytest.fixture
def make_loop(data):
    def _make(callbacks=(), learning_rate=0.1, model=None):
        return TrainingLoop(
            training=data.training_epochs,
            validation=data.validation_batches,
            model=model if model is not None else linear_model(0.0, 0.0),
            optimizer=sgd(learning_rate),
            loss_fn=mean_squared_error,
            callbacks=callbacks,
        )

    return _make
