"""Running weather engine: comfort scoring, outfit and coaching advice."""

from .config import (
    InvalidInputError,
    load_engine_options,
    load_personalization,
    load_snapshot,
    sanitize_snapshot,
)
from .engine import RunAssessment, RunConditionsEngine
from .models import (
    Advisory,
    Gender,
    OutfitRecommendation,
    Personalization,
    RunType,
    ScoreBreakdown,
    ScoreModel,
    UnitMode,
    WeatherSnapshot,
)

__version__ = "0.1.0"

__all__ = [
    "Advisory",
    "Gender",
    "InvalidInputError",
    "OutfitRecommendation",
    "Personalization",
    "RunAssessment",
    "RunConditionsEngine",
    "RunType",
    "ScoreBreakdown",
    "ScoreModel",
    "UnitMode",
    "WeatherSnapshot",
    "load_engine_options",
    "load_personalization",
    "load_snapshot",
    "sanitize_snapshot",
]
