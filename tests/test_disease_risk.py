# tests/test_disease_risk.py

import asyncio
import json

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from agents.disease_risk import DiseaseRiskAgent, assess_disease_risk
from core.models import DecisionSource, SensorSample, Urgency

def reading(temperature, humidity):
    return SensorSample(soil_moisture_pct=55, temperature_c=temperature, humidity_pct=humidity, soil_ph=6.5)

def test_rule_assessment_levels():
    assert assess_disease_risk(reading(25, 90)).risk is Urgency.HIGH
    assert assess_disease_risk(reading(32, 90)).risk is Urgency.MEDIUM
    low = assess_disease_risk(reading(25, 50))
    assert low.risk is Urgency.LOW
    assert low.explanation == "Monitoring conditions."
    assert low.source is DecisionSource.RULE

def test_ai_assessment_is_used_when_valid():
    llm = FakeListChatModel(responses=[json.dumps({"risk": "MEDIUM", "explanation": "Warm humid nights."})])
    risk = asyncio.run(DiseaseRiskAgent(llm).assess(reading(25, 50), "Tomato"))
    assert risk.risk is Urgency.MEDIUM
    assert risk.source is DecisionSource.AI

def test_malformed_ai_assessment_falls_back():
    llm = FakeListChatModel(responses=[json.dumps({"risk": "SEVERE"})])
    risk = asyncio.run(DiseaseRiskAgent(llm).assess(reading(25, 90), "Tomato"))
    assert risk.risk is Urgency.HIGH
    assert risk.source is DecisionSource.RULE

def test_provider_error_falls_back():
    async def quota(_):
        raise Exception("429 quota exceeded")

    risk = asyncio.run(DiseaseRiskAgent(RunnableLambda(quota)).assess(reading(25, 50), "Wheat"))
    assert risk.risk is Urgency.LOW
    assert risk.source is DecisionSource.RULE

def test_without_llm_uses_rules():
    risk = asyncio.run(DiseaseRiskAgent(None).assess(reading(25, 90), "Citrus"))
    assert risk.source is DecisionSource.RULE
