"""Aggregate statistics over pipeline results."""

from __future__ import annotations

from typing import Iterable

from .models import PipelineResult, PipelineStage, PipelineStats, StageCounts

_STAGE_FIELDS = {
    PipelineStage.METADATA: "metadata",
    PipelineStage.CHEAP_MODEL: "cheap_model",
    PipelineStage.PREMIUM_MODEL: "premium_model",
    PipelineStage.BATCH_PATTERN: "batch_pattern",
}


def summarize(results: Iterable[PipelineResult]) -> PipelineStats:
    """Return per-stage counts and token, cost, and confidence totals."""
    counts = StageCounts()
    total = failed = total_tokens = 0
    total_cost = 0.0
    confidence_sum = 0.0

    for result in results:
        total += 1
        if result.stage is not None:
            field = _STAGE_FIELDS[result.stage]
            setattr(counts, field, getattr(counts, field) + 1)
        if result.error is not None:
            failed += 1
        total_tokens += result.tokens_used
        total_cost += result.cost
        confidence_sum += result.confidence

    return PipelineStats(
        total=total,
        by_stage=counts,
        failed=failed,
        total_tokens=total_tokens,
        total_cost=total_cost,
        average_confidence=confidence_sum / total if total else 0.0,
    )


__all__ = ["summarize"]
