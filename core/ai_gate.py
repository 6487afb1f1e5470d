# core/ai_gate.py

import logging
from contextlib import contextmanager
from typing import Callable, Optional
from datetime import datetime

from .cooldown_store import CooldownStore
from .errors import PersistenceUnavailable
from .models import utc_now
from .single_flight import InFlightGuard

logger = logging.getLogger(__name__)

DEFAULT_AI_COOLDOWN_S = 60.0

class AIAttemptGate:
    """
    Decides whether an AI attempt may start now: nothing in flight and the
    cooldown since the last recorded attempt has elapsed.
    `attempt()` holds the in-flight guard and records the attempt time once the
    attempt settles, whatever its outcome.
    """

    def __init__(
        self,
        store: CooldownStore,
        cooldown_s: float = DEFAULT_AI_COOLDOWN_S,
        clock: Callable[[], datetime] = utc_now,
        guard: Optional[InFlightGuard] = None,
    ):
        self.store = store
        self.cooldown_s = cooldown_s
        self.clock = clock
        self.guard = guard or InFlightGuard()

    @property
    def in_flight(self) -> bool:
        return self.guard.in_flight

    def cooldown_elapsed(self) -> bool:
        try:
            last_attempt = self.store.read()
        except PersistenceUnavailable as e:
            logger.warning("Cooldown store unreadable, treating cooldown as elapsed: %s", e)
            return True
        if last_attempt is None:
            return True
        return (self.clock() - last_attempt).total_seconds() > self.cooldown_s

    def allows_attempt(self) -> bool:
        return not self.guard.in_flight and self.cooldown_elapsed()

    @contextmanager
    def attempt(self):
        with self.guard.hold():
            try:
                yield self
            finally:
                self._record()

    def _record(self) -> None:
        try:
            self.store.write(self.clock())
        except PersistenceUnavailable as e:
            logger.warning("Could not persist AI attempt time: %s", e)
