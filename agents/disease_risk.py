# agents/disease_risk.py

import asyncio
import logging
from typing import Optional

from langchain_core.language_models import BaseLanguageModel
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.output_parsers.json import JsonOutputParser
from pydantic import ValidationError

from agents.irrigation_advisor import classify_failure
from core.errors import FailureKind
from core.models import AIDiseaseRisk, DecisionSource, DiseaseRisk, SensorSample, Urgency
from core.rules import HUMIDITY_POSTPONE_PCT, in_disease_window

logger = logging.getLogger(__name__)

def assess_disease_risk(sample: SensorSample) -> DiseaseRisk:
    """Rule-based fungal risk used whenever the provider cannot answer."""
    if in_disease_window(sample.temperature_c, sample.humidity_pct):
        return DiseaseRisk(risk=Urgency.HIGH, explanation="Conditions favor fungal growth.", source=DecisionSource.RULE)
    if sample.humidity_pct > HUMIDITY_POSTPONE_PCT:
        return DiseaseRisk(risk=Urgency.MEDIUM, explanation="Humid air, keep an eye on leaves.", source=DecisionSource.RULE)
    return DiseaseRisk(risk=Urgency.LOW, explanation="Monitoring conditions.", source=DecisionSource.RULE)

class DiseaseRiskAgent:
    """Asks the LLM for a fungal disease risk; always answers, falling back to the rules."""

    def __init__(self, llm: Optional[BaseLanguageModel], timeout_s: float = 20.0):
        self.llm = llm
        self.timeout_s = timeout_s
        self.parser = JsonOutputParser(pydantic_object=AIDiseaseRisk)
        self.prompt = ChatPromptTemplate.from_template(
            """Assess the fungal disease risk for {crop_type} based on:
Temperature: {temperature}°C, Humidity: {humidity}%.

{format_instructions}
"""
        )
        self.chain = (self.prompt | self.llm | self.parser) if llm is not None else None

    async def assess(self, sample: SensorSample, crop_type: str) -> DiseaseRisk:
        if self.chain is None:
            return assess_disease_risk(sample)

        try:
            raw = await asyncio.wait_for(
                self.chain.ainvoke({
                    "crop_type": crop_type,
                    "temperature": round(sample.temperature_c, 1),
                    "humidity": round(sample.humidity_pct, 1),
                    "format_instructions": self.parser.get_format_instructions(),
                }),
                timeout=self.timeout_s,
            )
            result = AIDiseaseRisk.model_validate(raw)
        except ValidationError as e:
            logger.error("---DISEASE RISK AGENT: malformed response (%s invalid field(s))---", e.error_count())
            return assess_disease_risk(sample)
        except Exception as e:
            if classify_failure(e) is FailureKind.RATE_LIMITED:
                logger.warning("---DISEASE RISK AGENT: provider quota exceeded, using default---")
            else:
                logger.error("---DISEASE RISK AGENT: provider error: %s---", e)
            return assess_disease_risk(sample)

        return DiseaseRisk(risk=result.risk, explanation=result.explanation, source=DecisionSource.AI)
