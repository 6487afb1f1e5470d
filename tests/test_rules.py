# tests/test_rules.py

from datetime import datetime, timezone

import pytest

from core.models import Action, DecisionSource, SensorSample, Urgency, WeatherForecast
from core.rules import evaluate, irrigation_minutes
from core.thresholds import CROP_THRESHOLDS, get_thresholds

OBSERVED = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)

def sample(moisture, temperature, humidity, ph=6.8):
    return SensorSample(
        soil_moisture_pct=moisture,
        temperature_c=temperature,
        humidity_pct=humidity,
        soil_ph=ph,
        observed_at=OBSERVED,
    )

VALID_URGENCIES = {
    Action.IRRIGATE: {Urgency.HIGH, Urgency.MEDIUM},
    Action.WAIT: {Urgency.MEDIUM, Urgency.LOW},
    Action.MONITOR_DISEASE: {Urgency.HIGH},
}

def test_tomato_moisture_deficit_irrigates_for_38_minutes():
    decision = evaluate(sample(35, 28, 50), get_thresholds("Tomato"))
    assert decision.action is Action.IRRIGATE
    assert decision.urgency is Urgency.MEDIUM
    assert decision.duration_minutes == 38
    assert "35%" in decision.reason and "60%" in decision.reason
    assert decision.source is DecisionSource.RULE

def test_olive_heat_stress_overrides_standard_duration():
    decision = evaluate(sample(20, 38, 40), get_thresholds("Olive"))
    assert decision.action is Action.IRRIGATE
    assert decision.urgency is Urgency.HIGH
    assert decision.duration_minutes == 30
    assert "heat stress" in decision.reason.lower()

def test_strawberry_high_humidity_postpones_irrigation():
    decision = evaluate(sample(50, 22, 90), get_thresholds("Strawberry"))
    assert decision.action is Action.WAIT
    assert decision.urgency is Urgency.MEDIUM
    assert decision.duration_minutes is None

def test_wheat_with_adequate_moisture_flags_disease_risk():
    decision = evaluate(sample(60, 25, 88), get_thresholds("Wheat"))
    assert decision.action is Action.MONITOR_DISEASE
    assert decision.urgency is Urgency.HIGH

def test_heat_stress_wins_over_humidity_gate():
    decision = evaluate(sample(20, 40, 95), get_thresholds("Tomato"))
    assert decision.action is Action.IRRIGATE
    assert decision.urgency is Urgency.HIGH
    assert decision.duration_minutes == 30

def test_rain_forecast_defers_irrigation():
    decision = evaluate(sample(35, 28, 50), get_thresholds("Tomato"), WeatherForecast(rain_probability_pct=75))
    assert decision.action is Action.WAIT
    assert decision.urgency is Urgency.LOW

def test_rain_probability_at_threshold_still_irrigates():
    decision = evaluate(sample(35, 28, 50), get_thresholds("Tomato"), WeatherForecast(rain_probability_pct=60))
    assert decision.action is Action.IRRIGATE

def test_humidity_gate_takes_precedence_over_rain():
    decision = evaluate(sample(35, 28, 85), get_thresholds("Tomato"), WeatherForecast(rain_probability_pct=90))
    assert decision.action is Action.WAIT
    assert decision.urgency is Urgency.MEDIUM

def test_disease_reporting_suppressed_when_irrigation_triggered():
    # Inside the disease window, but the deficit branch is reached first.
    decision = evaluate(sample(50, 25, 88), get_thresholds("Tomato"))
    assert decision.action is Action.WAIT
    assert decision.urgency is Urgency.MEDIUM

def test_optimal_conditions_default_to_wait():
    decision = evaluate(sample(65, 24, 55), get_thresholds("Tomato"))
    assert decision.action is Action.WAIT
    assert decision.urgency is Urgency.LOW
    assert decision.reason == "Conditions are optimal."

@pytest.mark.parametrize("deficit, minutes", [
    (0.1, 15),
    (5, 15),
    (10, 15),
    (20, 30),
    (25, 38),
    (39.9, 60),
    (100, 60),
])
def test_irrigation_minutes_bounded(deficit, minutes):
    assert irrigation_minutes(deficit) == minutes

def test_duration_always_within_bounds_for_every_deficit():
    thresholds = get_thresholds("Strawberry")
    for moisture in range(0, 70):
        decision = evaluate(sample(moisture, 25, 50), thresholds)
        assert decision.action is Action.IRRIGATE
        assert 15 <= decision.duration_minutes <= 60

def test_evaluate_is_pure():
    s = sample(35, 28, 50)
    forecast = WeatherForecast(rain_probability_pct=10)
    first = evaluate(s, get_thresholds("Tomato"), forecast)
    second = evaluate(s, get_thresholds("Tomato"), forecast)
    assert first == second
    assert first.model_dump() == second.model_dump()
    assert first.produced_at == OBSERVED

def test_every_crop_and_reading_yields_a_valid_action_urgency_pair():
    for crop in list(CROP_THRESHOLDS) + ["Banana"]:
        thresholds = get_thresholds(crop)
        for moisture in (0, 15, 35, 55, 75, 100):
            for temperature in (-5, 15, 25, 33, 36, 45):
                for humidity in (0, 50, 82, 86, 100):
                    decision = evaluate(sample(moisture, temperature, humidity), thresholds)
                    assert decision.urgency in VALID_URGENCIES[decision.action]

def test_out_of_range_and_non_finite_values_do_not_crash():
    thresholds = get_thresholds("Tomato")
    for s in (
        sample(-20, 28, 50),
        sample(150, 28, 150),
        sample(float("nan"), float("nan"), float("nan")),
        sample(float("-inf"), 28, 50),
        sample(10, float("inf"), 50),
    ):
        decision = evaluate(s, thresholds)
        assert decision.action in VALID_URGENCIES
    assert evaluate(sample(float("-inf"), 28, 50), thresholds).duration_minutes == 60

def test_unknown_crop_falls_back_to_default_entry():
    assert get_thresholds("Banana") == CROP_THRESHOLDS["Tomato"]
    assert get_thresholds(None) == CROP_THRESHOLDS["Tomato"]
    assert get_thresholds(" olive ") == CROP_THRESHOLDS["Olive"]
    assert get_thresholds("Banana", default_crop="Wheat") == CROP_THRESHOLDS["Wheat"]
