"""Token cost estimation."""

from __future__ import annotations

from typing import Mapping

DEFAULT_PRICE_KEY = "default"
FALLBACK_PRICE_PER_MILLION = 0.25


def calculate_cost(tokens: int, model: str, pricing: Mapping[str, float]) -> float:
    """Return the USD cost of ``tokens`` for ``model``.

    Prices are expressed per one million tokens. Models missing from
    ``pricing`` use its ``default`` entry.
    """
    price = pricing.get(model)
    if price is None:
        price = pricing.get(DEFAULT_PRICE_KEY, FALLBACK_PRICE_PER_MILLION)
    return tokens * price / 1_000_000


__all__ = ["calculate_cost"]
