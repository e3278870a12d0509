"""Division-safe helpers for statistics rollups."""

from __future__ import annotations

from typing import Optional


def ratio(numerator, denominator, places: int = 2) -> float:
    """``numerator / denominator`` rounded, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return round(float(numerator) / float(denominator), places)


def completion_rate(completed, total) -> float:
    """Percentage of ``completed`` over ``total`` (0.0 for an empty total)."""
    if not total:
        return 0.0
    return round(float(completed) * 100.0 / float(total), 2)


def rounded(value: Optional[float], places: int = 2) -> float:
    if value is None:
        return 0.0
    return round(float(value), places)
