# core/rules.py

import math
from typing import Optional

from .models import (
    Action,
    CropThresholds,
    Decision,
    DecisionSource,
    SensorSample,
    Urgency,
    WeatherForecast,
)

CRITICAL_HEAT_C = 35.0
HUMIDITY_POSTPONE_PCT = 80.0
RAIN_PROBABILITY_WAIT_PCT = 60.0
DISEASE_HUMIDITY_PCT = 85.0
DISEASE_TEMP_RANGE_C = (20.0, 30.0)

HEAT_STRESS_DURATION_MIN = 30
MIN_DURATION_MIN = 15
MAX_DURATION_MIN = 60
MINUTES_PER_DEFICIT_POINT = 1.5

def irrigation_minutes(deficit_pct: float) -> int:
    """Minutes of irrigation for a moisture deficit, rounded half-up and bounded to [15, 60]."""
    minutes = deficit_pct * MINUTES_PER_DEFICIT_POINT
    minutes = min(max(minutes, MIN_DURATION_MIN), MAX_DURATION_MIN)
    return int(math.floor(minutes + 0.5))

def in_disease_window(temperature_c: float, humidity_pct: float) -> bool:
    low, high = DISEASE_TEMP_RANGE_C
    return humidity_pct > DISEASE_HUMIDITY_PCT and low < temperature_c < high

def evaluate(
    sample: SensorSample,
    thresholds: CropThresholds,
    forecast: Optional[WeatherForecast] = None,
) -> Decision:
    """
    Deterministic irrigation rules. First matching rule wins:
    critical heat stress, moisture deficit (humidity gate, rain gate, irrigate),
    disease-risk window, then the optimal default.

    The decision is stamped with the sample's observation time so identical
    inputs always produce identical decisions.
    """
    moisture = sample.soil_moisture_pct
    temperature = sample.temperature_c
    humidity = sample.humidity_pct
    target = thresholds.min_moisture_pct

    def decide(action, urgency, title, reason, duration=None):
        return Decision(
            action=action,
            urgency=urgency,
            title=title,
            reason=reason,
            duration_minutes=duration,
            produced_at=sample.observed_at,
            source=DecisionSource.RULE,
        )

    # 1. Critical safety rule
    if temperature > CRITICAL_HEAT_C and moisture < target:
        return decide(
            Action.IRRIGATE, Urgency.HIGH, "Irrigate Now",
            "Critical heat stress detected.",
            HEAT_STRESS_DURATION_MIN,
        )

    # 2. Moisture deficit
    if moisture < target:
        # Watering into saturated air feeds fungal growth.
        if humidity > HUMIDITY_POSTPONE_PCT:
            return decide(
                Action.WAIT, Urgency.MEDIUM, "Postpone Irrigation",
                "High humidity detected. Irrigation postponed to avoid disease.",
            )

        if forecast is not None and forecast.rain_probability_pct > RAIN_PROBABILITY_WAIT_PCT:
            return decide(
                Action.WAIT, Urgency.LOW, "Wait for Rain",
                f"Rain expected shortly ({forecast.rain_probability_pct:.0f}% chance).",
            )

        return decide(
            Action.IRRIGATE, Urgency.MEDIUM, "Irrigate Today",
            f"Soil moisture ({moisture:.0f}%) is below target ({target:.0f}%).",
            irrigation_minutes(target - moisture),
        )

    # 3. Disease risk, only reached with adequate moisture
    if in_disease_window(temperature, humidity):
        return decide(
            Action.MONITOR_DISEASE, Urgency.HIGH, "Monitor for Disease",
            "Conditions favor fungal growth.",
        )

    return decide(Action.WAIT, Urgency.LOW, "No Action Needed", "Conditions are optimal.")
