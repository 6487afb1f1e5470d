# core/models.py

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr
from typing import Optional
from datetime import datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class Action(str, Enum):
    IRRIGATE = "IRRIGATE"
    WAIT = "WAIT"
    MONITOR_DISEASE = "MONITOR_DISEASE"

class Urgency(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class DecisionSource(str, Enum):
    RULE = "RULE"
    AI = "AI"

class SensorSample(BaseModel):
    """A single reading from the field. Never mutated once produced."""
    model_config = ConfigDict(frozen=True)

    soil_moisture_pct: float
    temperature_c: float
    humidity_pct: float
    soil_ph: float
    observed_at: datetime = Field(default_factory=utc_now)

class CropThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_moisture_pct: float
    max_temp_c: float

class WeatherForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    rain_probability_pct: float

class FarmContext(BaseModel):
    """Read-only farm metadata consumed by the decision engine."""
    model_config = ConfigDict(frozen=True)

    farm_id: str
    crop_type: str
    location: str
    name: Optional[str] = None

class Decision(BaseModel):
    """One explainable irrigation decision. Replaced, never merged."""
    model_config = ConfigDict(frozen=True)

    action: Action
    urgency: Urgency
    title: str
    reason: str
    duration_minutes: Optional[int] = None
    water_amount: Optional[str] = None
    produced_at: datetime
    source: DecisionSource

class DiseaseRisk(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk: Urgency
    explanation: str
    source: DecisionSource

class AIRecommendation(BaseModel):
    """The structured object the AI provider must return. Extra fields are ignored,
    missing or mistyped ones fail validation; nothing is coerced."""
    action: Action = Field(description="One of IRRIGATE, WAIT, MONITOR_DISEASE.")
    title: StrictStr = Field(description="Short headline, e.g. 'Irrigate Today'.")
    details: StrictStr = Field(description="Simple explanation for the farmer, max 20 words.")
    urgency: Urgency = Field(description="One of LOW, MEDIUM, HIGH.")
    waterAmount: Optional[StrictStr] = Field(default=None, description="Amount in liters, e.g. '15L'. Optional.")
    duration: Optional[StrictInt] = Field(default=None, ge=0, description="Irrigation time in whole minutes. Optional.")

class AIDiseaseRisk(BaseModel):
    risk: Urgency = Field(description="One of LOW, MEDIUM, HIGH.")
    explanation: str = Field(description="Max 10 words.")

class DecisionRecord(BaseModel):
    """A persisted decision, as stored in the decision history collection."""
    model_config = ConfigDict(use_enum_values=True)

    farm_id: str
    action: Action
    urgency: Urgency
    title: str
    reason: str
    duration_minutes: Optional[int] = None
    source: DecisionSource
    produced_at: datetime
    recorded_at: datetime = Field(default_factory=utc_now)
