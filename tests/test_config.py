"""Tests for jax_loop.config and jax_loop.exceptions."""

from __future__ import annotations

import dataclasses

import pytest

from jax_loop.config import LRFinderConfig, RegressionDataConfig
from jax_loop.exceptions import ConfigError, LoopError, UnhandledSignalError


class TestRegressionDataConfig:
    """Tests for RegressionDataConfig."""

    def test_defaults(self):
        cfg = RegressionDataConfig()
        assert (cfg.a, cfg.b, cfg.batch_size) == (2.0, 3.0, 64)
        assert (cfg.training_count, cfg.validation_count) == (10, 5)

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            RegressionDataConfig().seed = 1

    @pytest.mark.parametrize(
        "kwargs",
        [{"batch_size": 0}, {"training_count": 0}, {"validation_count": -1}, {"noise": -0.1}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigError):
            RegressionDataConfig(**kwargs)


class TestLRFinderConfig:
    """Tests for LRFinderConfig."""

    def test_defaults(self):
        cfg = LRFinderConfig()
        assert cfg.min_lr == 1e-7
        assert cfg.max_lr == 10.0
        assert cfg.iteration_count == 100
        assert cfg.smoothing == 0.98
        assert cfg.divergence == 4.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_lr": 0.0},
            {"iteration_count": 0},
            {"smoothing": 1.0},
            {"divergence": 1.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            LRFinderConfig(**kwargs)


class TestExceptions:
    """Tests for the error hierarchy."""

    def test_code_and_context(self):
        err = ConfigError("bad", context={"x": 1})
        assert err.code == "config_error"
        assert str(err) == "[config_error] bad (x=1)"
        assert isinstance(err, LoopError)
        assert isinstance(err, ValueError)

    def test_explicit_code(self):
        err = UnhandledSignalError("oops", code="custom")
        assert str(err) == "[custom] oops"
        assert isinstance(err, RuntimeError)
