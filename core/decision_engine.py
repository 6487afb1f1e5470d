# core/decision_engine.py

import logging
from typing import Optional, Protocol

from .errors import FailureKind, ProviderUnavailable
from .models import CropThresholds, Decision, FarmContext, SensorSample, WeatherForecast
from .results import Failure, ProviderResult, Success
from .rules import evaluate
from .thresholds import DEFAULT_CROP, get_thresholds

logger = logging.getLogger(__name__)

class RecommendationProvider(Protocol):
    async def recommend(self, sample: SensorSample, farm: FarmContext) -> ProviderResult:
        ...

class DecisionEngine:
    """
    Blends the AI recommendation with the deterministic rules.
    `decide` always resolves to a Decision: AI-sourced when the provider
    answers, rule-sourced otherwise.
    """

    def __init__(self, provider: RecommendationProvider, default_crop: str = DEFAULT_CROP):
        self.provider = provider
        self.default_crop = default_crop

    def thresholds_for(self, farm: FarmContext) -> CropThresholds:
        return get_thresholds(farm.crop_type, self.default_crop)

    def fallback(
        self,
        sample: SensorSample,
        farm: FarmContext,
        forecast: Optional[WeatherForecast] = None,
    ) -> Decision:
        return evaluate(sample, self.thresholds_for(farm), forecast)

    async def decide(
        self,
        sample: SensorSample,
        farm: FarmContext,
        forecast: Optional[WeatherForecast] = None,
    ) -> Decision:
        try:
            result = await self.provider.recommend(sample, farm)
        except Exception as e:
            # Adapters are expected to return a Failure; treat a raise the same way.
            result = Failure(ProviderUnavailable(FailureKind.OTHER, str(e), e))

        if isinstance(result, Success):
            logger.info("---DECISION ENGINE: AI decision for farm %s: %s---", farm.farm_id, result.decision.action.value)
            return result.decision

        logger.info(
            "---DECISION ENGINE: provider unavailable (%s), using rules for farm %s---",
            result.error.kind.value,
            farm.farm_id,
        )
        return self.fallback(sample, farm, forecast)
