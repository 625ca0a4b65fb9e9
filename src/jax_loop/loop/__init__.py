"""The training loop controller and its event protocol.

Callbacks observe a fixed sequence of events and may end the current
batch, phase, epoch or fit early by returning a :class:`Signal`.
"""

from jax_loop.loop.events import Callback, Event, Phase, Signal
from jax_loop.loop.training_loop import TrainingLoop

__all__ = [
    "TrainingLoop",
    "Callback",
    "Event",
    "Phase",
    "Signal",
]
