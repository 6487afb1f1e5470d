# agents/irrigation_advisor.py

import asyncio
import logging
from typing import Callable, Optional
from datetime import datetime

from langchain_core.language_models import BaseLanguageModel
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers.json import JsonOutputParser
from pydantic import ValidationError

from core.errors import FailureKind, ProviderUnavailable
from core.models import (
    AIRecommendation,
    Decision,
    DecisionSource,
    FarmContext,
    SensorSample,
    utc_now,
)
from core.results import Failure, ProviderResult, Success

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "quota", "rate limit", "ratelimit", "exceeded")

def _status_code(error: BaseException) -> Optional[int]:
    """Digs an HTTP status out of the usual places SDK exceptions keep it."""
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    body = getattr(error, "error", None)
    if isinstance(body, dict) and isinstance(body.get("code"), int):
        return body["code"]
    return None

def classify_failure(error: BaseException) -> FailureKind:
    """Quota / 429 exhaustion is RATE_LIMITED, everything else is OTHER."""
    if _status_code(error) == 429:
        return FailureKind.RATE_LIMITED
    message = str(error).lower()
    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return FailureKind.RATE_LIMITED
    return FailureKind.OTHER

class IrrigationAdvisor:
    """
    Asks an LLM for a structured irrigation recommendation.
    Makes exactly one attempt per call and never raises: the outcome is a
    Success carrying an AI Decision or a Failure carrying ProviderUnavailable.
    """

    def __init__(
        self,
        llm: Optional[BaseLanguageModel],
        timeout_s: float = 20.0,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.llm = llm
        self.timeout_s = timeout_s
        self.clock = clock
        self.parser = JsonOutputParser(pydantic_object=AIRecommendation)
        self.prompt = ChatPromptTemplate.from_template(
            """You are an expert agronomist assistant for a Tunisian farmer.
Analyze the following data and provide a concise, farmer-friendly irrigation recommendation.

**Farm Context:**
- Crop: {crop_type}
- Location: {location}

**Sensor Readings:**
- Soil Moisture: {soil_moisture}%
- Temperature: {temperature}°C
- Humidity: {humidity}%
- pH: {soil_ph}

**Rules for your answer:**
1.  `action` must be exactly one of IRRIGATE, WAIT, MONITOR_DISEASE.
2.  `urgency` must be exactly one of LOW, MEDIUM, HIGH.
3.  `duration` is a whole number of minutes, only when irrigating.
4.  Output ONLY the JSON object. No markdown code blocks.

{format_instructions}
"""
        )
        self.chain = (self.prompt | self.llm | self.parser) if llm is not None else None

    def _fail(self, kind: FailureKind, message: str, cause: Optional[BaseException] = None) -> Failure:
        if kind is FailureKind.RATE_LIMITED:
            logger.warning("---IRRIGATION ADVISOR: provider quota exceeded, using fallback rules---")
        else:
            logger.error("---IRRIGATION ADVISOR: provider error (falling back): %s---", message)
        return Failure(ProviderUnavailable(kind, message, cause))

    async def recommend(self, sample: SensorSample, farm: FarmContext) -> ProviderResult:
        if self.chain is None:
            return self._fail(FailureKind.OTHER, "No AI provider configured.")

        try:
            raw = await asyncio.wait_for(
                self.chain.ainvoke({
                    "crop_type": farm.crop_type,
                    "location": farm.location,
                    "soil_moisture": round(sample.soil_moisture_pct, 1),
                    "temperature": round(sample.temperature_c, 1),
                    "humidity": round(sample.humidity_pct, 1),
                    "soil_ph": round(sample.soil_ph, 1),
                    "format_instructions": self.parser.get_format_instructions(),
                }),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            return self._fail(FailureKind.OTHER, f"Provider timed out after {self.timeout_s}s.", e)
        except Exception as e:
            return self._fail(classify_failure(e), f"{type(e).__name__}: {e}", e)

        try:
            recommendation = AIRecommendation.model_validate(raw)
        except ValidationError as e:
            return self._fail(FailureKind.OTHER, f"Malformed provider response: {e.error_count()} invalid field(s).", e)

        return Success(Decision(
            action=recommendation.action,
            urgency=recommendation.urgency,
            title=recommendation.title,
            reason=recommendation.details,
            duration_minutes=recommendation.duration,
            water_amount=recommendation.waterAmount,
            produced_at=self.clock(),
            source=DecisionSource.AI,
        ))
