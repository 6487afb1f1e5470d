# core/polling_controller.py

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional, Protocol
from datetime import datetime

from .ai_gate import DEFAULT_AI_COOLDOWN_S, AIAttemptGate
from .cooldown_store import CooldownStore
from .decision_engine import DecisionEngine
from .errors import PersistenceUnavailable
from .models import Decision, DiseaseRisk, FarmContext, SensorSample, WeatherForecast, utc_now
from .scheduler import AsyncioScheduler, Cancellable, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 5.0

class ControllerState(str, Enum):
    IDLE = "IDLE"
    SAMPLING = "SAMPLING"
    SKIPPING_AI = "SKIPPING_AI"
    EVALUATING = "EVALUATING"

class SensorSource(Protocol):
    async def fetch_latest(self, farm_id: str) -> SensorSample:
        ...

class ForecastProvider(Protocol):
    def get(self, location: str) -> Optional[WeatherForecast]:
        ...

class DiseaseAssessor(Protocol):
    async def assess(self, sample: SensorSample, crop_type: str) -> DiseaseRisk:
        ...

class DecisionRecorder(Protocol):
    def add_decision(self, farm_id: str, decision: Decision) -> None:
        ...

class PollingController:
    """
    Drives one farm session: every tick fetches fresh vitals, and at most once
    per cooldown window (and never while an attempt is outstanding) asks the
    decision engine for a new decision.
    """

    def __init__(
        self,
        farm: FarmContext,
        sensor_source: SensorSource,
        engine: DecisionEngine,
        cooldown_store: CooldownStore,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], datetime] = utc_now,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        cooldown_s: float = DEFAULT_AI_COOLDOWN_S,
        forecast_provider: Optional[ForecastProvider] = None,
        disease_assessor: Optional[DiseaseAssessor] = None,
        recorder: Optional[DecisionRecorder] = None,
        on_vitals: Optional[Callable[[SensorSample], None]] = None,
        on_decision: Optional[Callable[[Decision], None]] = None,
    ):
        self.farm = farm
        self.sensor_source = sensor_source
        self.engine = engine
        self.cooldown_store = cooldown_store
        self.scheduler = scheduler or AsyncioScheduler()
        self.clock = clock
        self.poll_interval_s = poll_interval_s
        self.cooldown_s = cooldown_s
        self.forecast_provider = forecast_provider
        self.disease_assessor = disease_assessor
        self.recorder = recorder
        self.on_vitals = on_vitals
        self.on_decision = on_decision

        self.gate = AIAttemptGate(cooldown_store, cooldown_s=cooldown_s, clock=clock)
        self.guard = self.gate.guard
        self.last_outcome: Optional[ControllerState] = None
        self.current_sample: Optional[SensorSample] = None
        self.current_decision: Optional[Decision] = None
        self.current_disease_risk: Optional[DiseaseRisk] = None
        self.ai_attempts = 0

        self._task: Optional[Cancellable] = None
        self._session = 0
        self._sampling = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def state(self) -> ControllerState:
        # Ticks overlap while an attempt is suspended; evaluation dominates.
        if self.guard.in_flight:
            return ControllerState.EVALUATING
        if self._sampling:
            return ControllerState.SAMPLING
        return ControllerState.IDLE

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            return
        logger.info("---POLLING CONTROLLER: started for farm %s (every %ss)---", self.farm.farm_id, self.poll_interval_s)
        self._task = self.scheduler.every(self.poll_interval_s, self.tick)

    def stop(self) -> None:
        """Stops scheduling ticks. Attempts still in flight finish but are not applied."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._session += 1
        logger.info("---POLLING CONTROLLER: stopped for farm %s---", self.farm.farm_id)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    async def tick(self) -> None:
        session = self._session

        self._sampling += 1
        try:
            sample = await self.sensor_source.fetch_latest(self.farm.farm_id)
        except Exception as e:
            logger.warning("Sensor fetch failed for farm %s, keeping previous vitals: %s", self.farm.farm_id, e)
            return
        finally:
            self._sampling -= 1

        if session != self._session:
            return
        self._apply_vitals(sample)

        if not self._cooldown_allows_attempt():
            self.last_outcome = ControllerState.SKIPPING_AI
            logger.debug("Skipping AI evaluation for farm %s this tick", self.farm.farm_id)
            return

        self.last_outcome = ControllerState.EVALUATING
        await self._evaluate(sample, session)

    def _cooldown_allows_attempt(self) -> bool:
        if self.guard.in_flight:
            return False
        if self.current_decision is None:
            return True
        return self.gate.cooldown_elapsed()

    async def _evaluate(self, sample: SensorSample, session: int) -> None:
        decision: Optional[Decision] = None
        disease_risk: Optional[DiseaseRisk] = None

        with self.gate.attempt():
            self.ai_attempts += 1
            forecast: Optional[WeatherForecast] = None
            try:
                forecast = await self._fetch_forecast()
                decision = await self.engine.decide(sample, self.farm, forecast)
                if self.disease_assessor is not None:
                    disease_risk = await self.disease_assessor.assess(sample, self.farm.crop_type)
            except Exception as e:
                logger.error("AI evaluation failed for farm %s: %s", self.farm.farm_id, e)
                if decision is None:
                    decision = self.engine.fallback(sample, self.farm, forecast)

        if session != self._session:
            logger.info("---POLLING CONTROLLER: discarding decision for torn-down session of farm %s---", self.farm.farm_id)
            return

        self._apply_decision(decision, disease_risk)

    async def _fetch_forecast(self) -> Optional[WeatherForecast]:
        if self.forecast_provider is None:
            return None
        return await asyncio.to_thread(self.forecast_provider.get, self.farm.location)

    def _apply_vitals(self, sample: SensorSample) -> None:
        self.current_sample = sample
        if self.on_vitals is not None:
            self.on_vitals(sample)

    def _apply_decision(self, decision: Decision, disease_risk: Optional[DiseaseRisk]) -> None:
        self.current_decision = decision
        if disease_risk is not None:
            self.current_disease_risk = disease_risk
        if self.on_decision is not None:
            self.on_decision(decision)
        if self.recorder is not None:
            try:
                self.recorder.add_decision(self.farm.farm_id, decision)
            except PersistenceUnavailable as e:
                logger.warning("Could not record decision history: %s", e)
