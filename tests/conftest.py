# tests/conftest.py

from datetime import datetime, timedelta, timezone

import pytest

from core.errors import FailureKind, PersistenceUnavailable, ProviderUnavailable
from core.models import Action, Decision, DecisionSource, FarmContext, SensorSample, Urgency
from core.results import Failure, Success

START = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)

class FakeClock:
    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)

class FakeScheduler:
    """Records the registration instead of running a timer; tests call tick() by hand."""
    def __init__(self):
        self.period_s = None
        self.callback = None
        self.cancelled = False

    def every(self, period_s, callback):
        self.period_s = period_s
        self.callback = callback
        return self

    def cancel(self):
        self.cancelled = True

class FakeSensorSource:
    def __init__(self, clock, moisture=35.0, temperature=28.0, humidity=50.0, ph=6.8):
        self.clock = clock
        self.moisture = moisture
        self.temperature = temperature
        self.humidity = humidity
        self.ph = ph
        self.fail = False
        self.calls = 0

    async def fetch_latest(self, farm_id):
        self.calls += 1
        if self.fail:
            raise ConnectionError("sensor gateway offline")
        return SensorSample(
            soil_moisture_pct=self.moisture,
            temperature_c=self.temperature,
            humidity_pct=self.humidity,
            soil_ph=self.ph,
            observed_at=self.clock(),
        )

class FakeProvider:
    """Counts attempts; answers with an AI decision, a Failure, or after a gate opens."""
    def __init__(self, clock, fail=False, raise_error=False, gate=None):
        self.clock = clock
        self.fail = fail
        self.raise_error = raise_error
        self.gate = gate
        self.calls = 0

    async def recommend(self, sample, farm):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.raise_error:
            raise RuntimeError("provider exploded")
        if self.fail:
            return Failure(ProviderUnavailable(FailureKind.RATE_LIMITED, "quota exceeded"))
        return Success(Decision(
            action=Action.IRRIGATE,
            urgency=Urgency.MEDIUM,
            title="Irrigate Today",
            reason="Soil is drying out.",
            duration_minutes=25,
            water_amount="15L",
            produced_at=self.clock(),
            source=DecisionSource.AI,
        ))

class BrokenCooldownStore:
    def __init__(self, fail_read=True, fail_write=True):
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.value = None

    def read(self):
        if self.fail_read:
            raise PersistenceUnavailable("store offline")
        return self.value

    def write(self, timestamp):
        if self.fail_write:
            raise PersistenceUnavailable("store offline")
        self.value = timestamp

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def tomato_farm():
    return FarmContext(farm_id="frm_1", crop_type="Tomato", location="Sousse", name="Ben Ali Farm")
