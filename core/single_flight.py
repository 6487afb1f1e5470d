# core/single_flight.py

from contextlib import contextmanager

class InFlightGuard:
    """
    Turnstile for one outstanding AI evaluation per farm session.
    Callers check `in_flight` and skip rather than wait; `hold()` releases on
    every exit path, exceptions included.
    """

    def __init__(self):
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @contextmanager
    def hold(self):
        if self._in_flight:
            raise RuntimeError("An AI evaluation is already in flight.")
        self._in_flight = True
        try:
            yield self
        finally:
            self._in_flight = False
