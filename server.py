# server.py

import logging
from typing import List, Optional
from datetime import datetime

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from core.ai_gate import AIAttemptGate
from core.config import settings
from core.decision_engine import DecisionEngine
from core.decision_history import DecisionHistoryManager
from core.errors import InvalidSample, PersistenceUnavailable
from core.logger import setup_logging
from core.models import Decision, DecisionRecord, FarmContext, WeatherForecast
from engine import build_cooldown_store, build_decision_engine, build_history, build_llm
from tools.sensor_feed import sanitize_sample

logger = logging.getLogger(__name__)

app = FastAPI(title="Irrigation Decision Server")

class SensorReading(BaseModel):
    soil_moisture_pct: float
    temperature_c: float
    humidity_pct: float
    soil_ph: float
    observed_at: Optional[datetime] = None

class EvaluationRequest(BaseModel):
    farm: FarmContext
    reading: SensorReading
    forecast: Optional[WeatherForecast] = None

_engine: Optional[DecisionEngine] = None
_history: Optional[DecisionHistoryManager] = None
_gate: Optional[AIAttemptGate] = None

def get_engine() -> DecisionEngine:
    global _engine
    if _engine is None:
        _engine = build_decision_engine(build_llm(settings), settings)
    return _engine

def get_history() -> Optional[DecisionHistoryManager]:
    global _history
    if _history is None:
        _history = build_history(settings)
    return _history

def get_gate() -> AIAttemptGate:
    global _gate
    if _gate is None:
        _gate = AIAttemptGate(build_cooldown_store(settings), cooldown_s=settings.ai_cooldown_s)
    return _gate

@app.get("/health")
def health():
    return {"status": "ok"}

@app.post("/decisions/evaluate", response_model=Decision)
async def evaluate_decision(
    request: EvaluationRequest,
    engine: DecisionEngine = Depends(get_engine),
    history: Optional[DecisionHistoryManager] = Depends(get_history),
    gate: AIAttemptGate = Depends(get_gate),
):
    """
    Evaluates one sensor reading for a farm. The AI is consulted only when the
    shared cooldown allows it and no other request is waiting on it; otherwise
    the rules answer straight away.
    """
    try:
        sample = sanitize_sample(**request.reading.model_dump())
    except InvalidSample as e:
        raise HTTPException(status_code=422, detail=str(e))

    if gate.allows_attempt():
        with gate.attempt():
            decision = await engine.decide(sample, request.farm, request.forecast)
    else:
        logger.info("---SERVER: AI cooling down, using rules for farm %s---", request.farm.farm_id)
        decision = engine.fallback(sample, request.farm, request.forecast)

    if history is not None:
        try:
            history.add_decision(request.farm.farm_id, decision)
        except PersistenceUnavailable as e:
            logger.warning("Decision not recorded: %s", e)
    return decision

@app.get("/decisions/latest/{farm_id}", response_model=DecisionRecord)
def latest_decision(farm_id: str, history: Optional[DecisionHistoryManager] = Depends(get_history)):
    if history is None:
        raise HTTPException(status_code=503, detail="Decision history is not configured.")
    try:
        records: List[DecisionRecord] = history.get_recent_decisions(farm_id, limit=1)
    except PersistenceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    if not records:
        raise HTTPException(status_code=404, detail="No data")
    return records[0]

if __name__ == "__main__":
    setup_logging(settings.log_level)
    uvicorn.run(app, host="0.0.0.0", port=8001)
