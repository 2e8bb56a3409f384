"""Placeholder linear model for coastal change likelihood."""

from __future__ import annotations

import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

# likelihood = intercept + a*sea_level + b*erosion_rate + c*precipitation
INTERCEPT = 0.1
COEF_SEA_LEVEL = 0.4
COEF_EROSION_RATE = 0.3
COEF_PRECIPITATION = 0.2


@dataclass(frozen=True)
class PredictionResult:
    region: str | None
    date: str | None
    likelihood: float


def predict(
    sea_level: float,
    erosion_rate: float,
    precipitation: float,
    *,
    region: str | None = None,
    date: str | None = None,
) -> PredictionResult:
    """Return the likelihood of coastal change, clamped to [0, 1]."""
    likelihood = (
        INTERCEPT
        + COEF_SEA_LEVEL * sea_level
        + COEF_EROSION_RATE * erosion_rate
        + COEF_PRECIPITATION * precipitation
    )
    likelihood = max(0.0, min(1.0, likelihood))
    log.info("Prediction for region=%s date=%s: likelihood=%.4f", region, date, likelihood)
    return PredictionResult(region=region, date=date, likelihood=likelihood)
