"""Cost-aware naming pipeline."""

from .engine import NamingPipeline, confidence_for_finish_reason
from .models import NamingFailure, PipelineResult, PipelineStage, PipelineStats, StageCounts
from .pricing import calculate_cost
from .stats import summarize
from .strategy import STRATEGY_PRESETS, StrategyPreset, resolve_strategy

__all__ = [
    "NamingPipeline",
    "NamingFailure",
    "PipelineResult",
    "PipelineStage",
    "PipelineStats",
    "StageCounts",
    "STRATEGY_PRESETS",
    "StrategyPreset",
    "calculate_cost",
    "confidence_for_finish_reason",
    "resolve_strategy",
    "summarize",
]
