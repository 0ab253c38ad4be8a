"""
Forecast / weather alignment for SolarCast

A forecast and the weather series shown next to it may come from different
fetches, so rows are matched by timestamp rather than by position. Hours
with no matching weather sample keep a None weather value.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from solarcast.forecast import ForecastPoint
from solarcast.series import WeatherSample, WeatherSeries, parse_timestamp

logger = logging.getLogger(__name__)

BAND_LOW_WEIGHT = 0.5
BAND_HIGH_WEIGHT = 0.3


@dataclass(frozen=True)
class AlignedPoint:
    """A forecast hour joined with the weather observed/forecast for it."""
    point: ForecastPoint
    weather: Optional[WeatherSample]
    confidence_low: float
    confidence_high: float
    efficiency_pct: Optional[float]


def confidence_band(point: ForecastPoint) -> Tuple[float, float]:
    """(low, high) irradiance bounds widened by lack of confidence."""
    spread = 1 - point.confidence
    low = point.predicted_irradiance * (1 - spread * BAND_LOW_WEIGHT)
    high = point.predicted_irradiance * (1 + spread * BAND_HIGH_WEIGHT)
    return low, high


def output_efficiency(point: ForecastPoint, weather: Optional[WeatherSample]) -> Optional[float]:
    """Predicted output as a percentage of the provider's radiation, clamped to [0, 100]."""
    if weather is None or weather.shortwave_radiation <= 0:
        return None
    efficiency = point.predicted_irradiance / weather.shortwave_radiation * 100
    return min(100.0, max(0.0, efficiency))


def join_forecast_with_weather(
    forecast: List[ForecastPoint],
    series: WeatherSeries
) -> List[AlignedPoint]:
    """
    Join each forecast point to the weather sample with the same instant.

    Returns one AlignedPoint per forecast point, in forecast order.
    """
    by_instant = {sample.instant: sample for sample in series}

    aligned: List[AlignedPoint] = []
    unmatched = 0
    for point in forecast:
        weather = by_instant.get(parse_timestamp(point.time))
        if weather is None:
            unmatched += 1
        low, high = confidence_band(point)
        aligned.append(AlignedPoint(
            point=point,
            weather=weather,
            confidence_low=low,
            confidence_high=high,
            efficiency_pct=output_efficiency(point, weather),
        ))

    if unmatched:
        logger.warning(f"[join_forecast_with_weather] {unmatched}/{len(forecast)} forecast hours "
                       f"have no matching weather sample")
    else:
        logger.info(f"[join_forecast_with_weather] Matched all {len(forecast)} forecast hours")

    return aligned
