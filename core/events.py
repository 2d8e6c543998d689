# core/events.py
from __future__ import annotations
import logging
from typing import Any, Callable

import blinker

logger = logging.getLogger(__name__)

Receiver = Callable[..., None]


class Signal(blinker.Signal):
    """A blinker signal whose ``send`` keeps going past a failing receiver.

    Receivers follow blinker's convention, ``receiver(sender, **kwargs)``, and
    are held strongly by default so lambdas and bound methods stay connected.
    """

    def __init__(self, name: str):
        super().__init__(doc=name)
        self.name = name

    def connect(self, receiver: Receiver, sender: Any = blinker.ANY, weak: bool = False) -> Receiver:
        return super().connect(receiver, sender=sender, weak=weak)

    def send(self, sender: Any = None, **kwargs: Any) -> int:
        delivered = 0
        for receiver in list(self.receivers_for(sender)):
            try:
                receiver(sender, **kwargs)
                delivered += 1
            except Exception:
                logger.exception("Receiver %r failed for signal %s", receiver, self.name)
        return delivered
