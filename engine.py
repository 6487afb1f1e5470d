# engine.py

from typing import Optional
from langchain_openai import ChatOpenAI

from agents.irrigation_advisor import IrrigationAdvisor
from agents.disease_risk import DiseaseRiskAgent
from core.config import Settings, settings as default_settings
from core.cooldown_store import FileCooldownStore, InMemoryCooldownStore, MongoCooldownStore
from core.decision_engine import DecisionEngine
from core.decision_history import DecisionHistoryManager
from core.forecast_service import ForecastService
from core.polling_controller import PollingController, SensorSource
from core.models import FarmContext
from tools.sensor_feed import SimulatedSensorSource

# --- INITIALIZE CORE COMPONENTS ---
def build_llm(settings: Settings = default_settings) -> Optional[ChatOpenAI]:
    """The AI provider, or None when no key is configured (rules only)."""
    if not settings.openai_api_key:
        return None
    # One attempt per call: the cooldown, not the SDK, governs retries.
    return ChatOpenAI(
        model=settings.llm_model,
        api_key=settings.openai_api_key,
        timeout=settings.llm_timeout_s,
        max_retries=0,
    )

def build_cooldown_store(settings: Settings = default_settings):
    backend = settings.cooldown_backend.lower()
    if backend == "mongo":
        return MongoCooldownStore(db_name=settings.mongo_db_name)
    if backend == "memory":
        return InMemoryCooldownStore()
    return FileCooldownStore(path=settings.cooldown_file)

def build_decision_engine(llm: Optional[ChatOpenAI] = None, settings: Settings = default_settings) -> DecisionEngine:
    advisor = IrrigationAdvisor(llm, timeout_s=settings.llm_timeout_s)
    return DecisionEngine(advisor, default_crop=settings.default_crop)

def build_history(settings: Settings = default_settings) -> Optional[DecisionHistoryManager]:
    if settings.cooldown_backend.lower() != "mongo":
        return None
    return DecisionHistoryManager(db_name=settings.mongo_db_name)

# --- CONTROLLER WIRING ---
def build_controller(
    farm: FarmContext,
    settings: Settings = default_settings,
    sensor_source: Optional[SensorSource] = None,
    **callbacks,
) -> PollingController:
    llm = build_llm(settings)
    return PollingController(
        farm=farm,
        sensor_source=sensor_source or SimulatedSensorSource(),
        engine=build_decision_engine(llm, settings),
        cooldown_store=build_cooldown_store(settings),
        poll_interval_s=settings.poll_interval_s,
        cooldown_s=settings.ai_cooldown_s,
        forecast_provider=ForecastService() if settings.weather_enabled else None,
        disease_assessor=DiseaseRiskAgent(llm, timeout_s=settings.llm_timeout_s),
        recorder=build_history(settings),
        **callbacks,
    )
