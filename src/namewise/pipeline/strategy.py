"""Strategy presets and their resolution against configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict

from namewise.config.models import PipelineSettings
from namewise.prompts.models import PromptMode


@dataclass(frozen=True)
class StrategyPreset:
    """Stage toggles, thresholds, and sampling sizes for one strategy."""

    name: str
    enable_metadata_stage: bool
    enable_cheap_model_stage: bool
    metadata_threshold: float
    cheap_model_threshold: float
    text_chars: int
    image_size: int
    cheap_prompt_mode: PromptMode


STRATEGY_PRESETS: Dict[str, StrategyPreset] = {
    "aggressive": StrategyPreset(
        name="aggressive",
        enable_metadata_stage=True,
        enable_cheap_model_stage=True,
        metadata_threshold=0.7,
        cheap_model_threshold=0.6,
        text_chars=300,
        image_size=128,
        cheap_prompt_mode=PromptMode.ULTRA_MINIMAL,
    ),
    "balanced": StrategyPreset(
        name="balanced",
        enable_metadata_stage=True,
        enable_cheap_model_stage=True,
        metadata_threshold=0.8,
        cheap_model_threshold=0.7,
        text_chars=500,
        image_size=256,
        cheap_prompt_mode=PromptMode.MINIMAL,
    ),
    "quality": StrategyPreset(
        name="quality",
        enable_metadata_stage=False,
        enable_cheap_model_stage=False,
        metadata_threshold=0.95,
        cheap_model_threshold=0.9,
        text_chars=1000,
        image_size=512,
        cheap_prompt_mode=PromptMode.MINIMAL,
    ),
}


def resolve_strategy(settings: PipelineSettings) -> StrategyPreset:
    """Return the preset for ``settings.strategy`` with explicit overrides applied."""
    preset = STRATEGY_PRESETS[settings.strategy]
    overrides = {
        field: value
        for field, value in (
            ("enable_metadata_stage", settings.enable_metadata_stage),
            ("enable_cheap_model_stage", settings.enable_cheap_model_stage),
            ("metadata_threshold", settings.metadata_threshold),
            ("cheap_model_threshold", settings.cheap_model_threshold),
        )
        if value is not None
    }
    return replace(preset, **overrides) if overrides else preset


__all__ = ["StrategyPreset", "STRATEGY_PRESETS", "resolve_strategy"]
