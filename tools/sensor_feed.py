# tools/sensor_feed.py

import asyncio
import math
import random
from typing import Callable, Optional
from datetime import datetime

from core.errors import InvalidSample
from core.models import SensorSample, utc_now

MOCK_SENSOR_DATA = {
    "soil_moisture_pct": 42.0,
    "temperature_c": 28.0,
    "humidity_pct": 62.0,
    "soil_ph": 6.8,
}

def _clip_pct(value: float) -> float:
    return max(0.0, min(100.0, value))

def sanitize_sample(
    soil_moisture_pct: float,
    temperature_c: float,
    humidity_pct: float,
    soil_ph: float,
    observed_at: Optional[datetime] = None,
) -> SensorSample:
    """
    Turns raw readings into a SensorSample the rules can trust.
    Percentages are clipped into [0, 100]; anything non-numeric or non-finite
    raises InvalidSample.
    """
    readings = {
        "soil_moisture_pct": soil_moisture_pct,
        "temperature_c": temperature_c,
        "humidity_pct": humidity_pct,
        "soil_ph": soil_ph,
    }
    for name, value in readings.items():
        try:
            readings[name] = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidSample(f"{name} is not numeric: {value!r}") from e
        if not math.isfinite(readings[name]):
            raise InvalidSample(f"{name} is not finite: {value!r}")

    return SensorSample(
        soil_moisture_pct=_clip_pct(readings["soil_moisture_pct"]),
        temperature_c=readings["temperature_c"],
        humidity_pct=_clip_pct(readings["humidity_pct"]),
        soil_ph=readings["soil_ph"],
        observed_at=observed_at or utc_now(),
    )

class SimulatedSensorSource:
    """Stands in for the IoT buffer: jitters a baseline reading on every fetch."""

    def __init__(
        self,
        baseline: Optional[dict] = None,
        rng: Optional[random.Random] = None,
        delay_s: float = 0.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.baseline = baseline or MOCK_SENSOR_DATA
        self.rng = rng or random.Random()
        self.delay_s = delay_s
        self.clock = clock

    async def fetch_latest(self, farm_id: str) -> SensorSample:
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return sanitize_sample(
            soil_moisture_pct=self.baseline["soil_moisture_pct"] + self.rng.uniform(-3, 3),
            temperature_c=self.baseline["temperature_c"] + self.rng.uniform(-1, 1),
            humidity_pct=self.baseline["humidity_pct"] + self.rng.uniform(-2, 2),
            soil_ph=self.baseline["soil_ph"],
            observed_at=self.clock(),
        )
