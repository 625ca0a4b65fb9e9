"""Tests for jax_loop.callbacks.LearningRateFinder."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from helpers import EventLog

from jax_loop.callbacks import LearningRateFinder, Scheduler
from jax_loop.config import LRFinderConfig
from jax_loop.loop import Event, Phase, Signal
from jax_loop.schedules import make_schedule


def fake_loop(learning_rate=0.1):
    return SimpleNamespace(optimizer=SimpleNamespace(learning_rate=learning_rate), last_loss=None)


def run_iteration(finder, loop, loss):
    finder.on_event(loop, Event.BATCH_START, Phase.TRAINING)
    loop.last_loss = loss
    return finder.on_event(loop, Event.BATCH_END, Phase.TRAINING)


class TestLearningRateFinderCallback:
    """Unit tests driving the callback directly."""

    def test_exponential_rates(self):
        finder = LearningRateFinder(LRFinderConfig(min_lr=1e-4, max_lr=1.0, iteration_count=5))
        loop = fake_loop()
        finder.on_event(loop, Event.FIT_START, None)
        for _ in range(4):
            assert run_iteration(finder, loop, 1.0) is None
        assert finder.learning_rates == pytest.approx([1e-4, 1e-3, 1e-2, 1e-1])
        assert loop.optimizer.learning_rate == pytest.approx(1e-1)

    def test_stops_at_iteration_count(self):
        finder = LearningRateFinder(LRFinderConfig(iteration_count=3))
        loop = fake_loop()
        finder.on_event(loop, Event.FIT_START, None)
        signals = [run_iteration(finder, loop, 1.0) for _ in range(3)]
        assert signals == [None, None, Signal.CANCEL_FIT]
        assert finder.learning_rates[-1] == pytest.approx(10.0)

    def test_stops_on_divergence(self):
        finder = LearningRateFinder(LRFinderConfig(smoothing=0.0, iteration_count=100))
        loop = fake_loop()
        finder.on_event(loop, Event.FIT_START, None)
        assert run_iteration(finder, loop, 1.0) is None
        assert run_iteration(finder, loop, 0.5) is None
        assert run_iteration(finder, loop, 1.9) is None
        assert run_iteration(finder, loop, 2.1) is Signal.CANCEL_FIT

    def test_smoothing(self):
        finder = LearningRateFinder(LRFinderConfig(smoothing=0.5))
        loop = fake_loop()
        finder.on_event(loop, Event.FIT_START, None)
        run_iteration(finder, loop, 4.0)
        run_iteration(finder, loop, 2.0)
        assert finder.smoothed_losses == pytest.approx([4.0, 3.0])

    def test_cancelled_batch_not_recorded(self):
        finder = LearningRateFinder(LRFinderConfig(min_lr=1e-4, max_lr=1.0, iteration_count=5))
        loop = fake_loop()
        finder.on_event(loop, Event.FIT_START, None)
        run_iteration(finder, loop, None)
        run_iteration(finder, loop, 1.0)
        run_iteration(finder, loop, 1.0)
        assert finder.learning_rates == pytest.approx([1e-4, 1e-3])
        assert len(finder.smoothed_losses) == 2

    def test_skips_validation(self):
        finder = LearningRateFinder()
        assert finder.on_event(fake_loop(), Event.VALIDATION_START, Phase.INFERENCE) is (
            Signal.CANCEL_VALIDATION
        )

    def test_fit_start_resets(self):
        finder = LearningRateFinder()
        loop = fake_loop()
        run_iteration(finder, loop, 1.0)
        finder.on_event(loop, Event.FIT_START, None)
        assert finder.learning_rates == []
        assert finder.smoothed_losses == []

    def test_suggestion(self):
        finder = LearningRateFinder(LRFinderConfig(min_lr=1e-3, max_lr=1.0, iteration_count=4))
        assert finder.suggestion() is None
        loop = fake_loop()
        finder.on_event(loop, Event.FIT_START, None)
        for loss in [3.0, 2.0, 1.0]:
            run_iteration(finder, loop, loss)
        assert finder.suggestion() == pytest.approx(finder.learning_rates[2] / 10)


class TestFindLearningRate:
    """Tests for TrainingLoop.find_learning_rate."""

    def test_search_runs_and_restores(self, make_loop):
        loop = make_loop(learning_rate=0.1)
        params = loop.model.params
        finder = loop.find_learning_rate(LRFinderConfig(iteration_count=25))

        assert 1 <= len(finder.smoothed_losses) <= 25
        assert len(finder.learning_rates) == len(finder.smoothed_losses)
        assert finder.learning_rates[0] == pytest.approx(1e-7)
        assert finder not in loop.callbacks
        assert loop.model.params is params
        assert loop.optimizer.learning_rate == 0.1

    def test_search_without_restore(self, make_loop):
        loop = make_loop()
        params = loop.model.params
        config = LRFinderConfig(min_lr=1e-3, max_lr=1e-1, iteration_count=15)
        loop.find_learning_rate(config, restore=False)
        assert loop.model.params is not params
        assert loop.optimizer.learning_rate == pytest.approx(1e-1)

    def test_divergence_stops_search(self, make_loop):
        loop = make_loop()
        finder = loop.find_learning_rate()
        assert len(finder.smoothed_losses) < 100
        assert finder.smoothed_losses[-1] > 4.0 * min(finder.smoothed_losses)

    def test_validation_skipped(self, make_loop):
        log = EventLog()
        loop = make_loop([log])
        loop.find_learning_rate(LRFinderConfig(min_lr=1e-4, max_lr=1e-2, iteration_count=15))
        assert Event.VALIDATION_START in log.names
        batch_phases = {phase for event, phase in log.events if event is Event.BATCH_START}
        assert batch_phases == {Phase.TRAINING}
        assert log.names[-1] is Event.FIT_END
        assert log.names.count(Event.BATCH_END) == 15

    def test_overrides_earlier_scheduler(self, make_loop):
        rates = []

        class Observer:
            def on_event(self, loop, event, phase):
                if event is Event.BATCH_END:
                    rates.append(loop.optimizer.learning_rate)

        loop = make_loop([Scheduler(make_schedule("constant", 0.5)), Observer()])
        config = LRFinderConfig(min_lr=1e-5, max_lr=1e-3, iteration_count=5)
        finder = loop.find_learning_rate(config)
        assert rates == pytest.approx(finder.learning_rates)
        assert rates[0] == pytest.approx(1e-5)

    def test_cancelled_batch_keeps_lists_aligned(self, make_loop):
        class CancelFirstBatch:
            def on_event(self, loop, event, phase):
                if event is Event.BATCH_START and phase is Phase.TRAINING and loop.batch_index == 0:
                    return Signal.CANCEL_BATCH
                return None

        finder = LearningRateFinder(LRFinderConfig(min_lr=1e-4, max_lr=1e-2, iteration_count=5))
        make_loop().fit(1, callbacks=[finder, CancelFirstBatch()])
        assert len(finder.learning_rates) == len(finder.smoothed_losses) == 5
        assert finder.learning_rates == pytest.approx([1e-4, 10**-3.5, 1e-3, 10**-2.5, 1e-2])
