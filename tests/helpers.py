"""Test callbacks shared across test modules."""

from __future__ import annotations


class EventLog:
    """Callback recording every ``(event, phase)`` it sees.

    Returns ``signal`` whenever ``when(event, phase)`` is true.
    """

    def __init__(self, signal=None, when=None):
        self.events = []
        self.signal = signal
        self.when = when

    @property
    def names(self):
        return [event for event, _ in self.events]

    def on_event(self, loop, event, phase):
        self.events.append((event, phase))
        if self.signal is not None and self.when(event, phase):
            return self.signal
        return None


def at(event, phase=None):
    """Predicate matching ``event`` (and ``phase`` when given)."""
    return lambda e, p: e is event and (phase is None or p is phase)
