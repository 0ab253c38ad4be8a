"""
Solar Forecast Engine for SolarCast

Per hour of a WeatherSeries:
1. Solar position -> night short-circuit (0 W/m2, confidence 0.95)
2. Clear-sky GHI (feeds the decomposition clearness index only)
3. Cloud impact x aerosol transmission applied to the provider's
   shortwave radiation
4. Temperature derating above 25 degC, then flat system efficiency
5. DNI/DHI decomposition (advisory, not fed back into the total)
6. Confidence from neighbour cloud stability, sun height and temperature

NOTE: step 3 attenuates radiation that the provider has already
cloud-corrected, so cloud loss is applied twice. Kept as-is so output
matches historical sessions; see DESIGN.md.

Hours are independent of each other (the confidence step only reads
neighbouring cloud values), and output order always matches input order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TypedDict

import pandas as pd

from solarcast.config import (
    CLOUD_VARIANCE_WEIGHT,
    CONFIDENCE_TEMP_HIGH_C,
    CONFIDENCE_TEMP_LOW_C,
    DEFAULT_ENGINE_CONFIG,
    ELEVATION_CONFIDENCE_SCALE,
    EXTREME_TEMP_CONFIDENCE,
    MIN_CONFIDENCE,
    NIGHT_CONFIDENCE,
    NORMAL_TEMP_CONFIDENCE,
    EngineConfig,
)
from solarcast.series import GeoLocation, WeatherSeries, validate_coordinates
from solarcast.solar_physics import (
    calculate_clear_sky_ghi,
    calculate_cloud_impact,
    calculate_solar_position,
    decompose_irradiance,
    estimate_aerosol_factor,
)

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "time", "instant", "elevation", "zenith", "azimuth",
    "clear_sky_ghi", "cloud_impact", "aerosol_factor", "predicted_ghi",
    "temp_loss_factor", "predicted_irradiance", "dni", "dhi", "confidence",
]


@dataclass(frozen=True)
class ForecastPoint:
    """Predicted irradiance for one hour."""
    time: str
    predicted_irradiance: float  # W/m2, >= 0
    confidence: float            # 0.1 - 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "predictedIrradiance": self.predicted_irradiance,
            "confidence": self.confidence,
        }


class ForecastSummary(TypedDict):
    """Aggregate statistics over a forecast run."""
    points: int
    peak_irradiance: float
    average_irradiance: float
    min_irradiance: float
    average_confidence: float
    average_confidence_pct: float
    estimated_energy_kwh: float  # per m2


class DailySummary(TypedDict):
    date: str
    mean_irradiance: float
    peak_irradiance: float
    energy_kwh: float
    mean_confidence: float
    daylight_hours: int


def predict_confidence(
    cloud_cover: float,
    elevation: float,
    temperature: float,
    index: int,
    series: WeatherSeries
) -> float:
    """
    Confidence in [0.1, 1] for one hour of the forecast.

    Night is confidently zero (0.95). By day the score is the product of:
    - cloud stability: 1 - 0.4 * |cloud[i-1] - cloud[i+1]| / 100
      (only when both neighbours exist)
    - sun height: elevation / 80, capped at 1
    - temperature: 0.7 outside [-10, 40] degC, else 0.9
    """
    if elevation < 0:
        return NIGHT_CONFIDENCE

    cloud_variance = 0.0
    if 0 < index < len(series) - 1:
        prev_cloud = series[index - 1].cloud_cover
        next_cloud = series[index + 1].cloud_cover
        cloud_variance = abs(prev_cloud - next_cloud) / 100

    cloud_confidence = 1 - cloud_variance * CLOUD_VARIANCE_WEIGHT
    elevation_confidence = min(1.0, elevation / ELEVATION_CONFIDENCE_SCALE)
    extreme = temperature < CONFIDENCE_TEMP_LOW_C or temperature > CONFIDENCE_TEMP_HIGH_C
    temp_confidence = EXTREME_TEMP_CONFIDENCE if extreme else NORMAL_TEMP_CONFIDENCE

    return max(MIN_CONFIDENCE, cloud_confidence * elevation_confidence * temp_confidence)


class SolarForecastEngine:
    """
    Hour-by-hour irradiance forecaster.

    Stateless apart from its configuration: the same location and series
    always give the same forecast.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_ENGINE_CONFIG
        logger.info(f"[SolarForecastEngine] Initialized (efficiency={self.config.system_efficiency}, "
                    f"temp_coeff={self.config.temperature_coefficient})")

    def temperature_loss_factor(self, temperature: float) -> float:
        """Derating multiplier; 1.0 at or below the reference temperature."""
        deviation = max(0.0, temperature - self.config.reference_temperature_c)
        return 1 + self.config.temperature_coefficient * deviation

    def build_forecast_frame(self, location: GeoLocation, series: WeatherSeries) -> pd.DataFrame:
        """
        Run the model chain over every sample and keep all intermediate values.

        Raises:
            InvalidInputError: if the location's coordinates are not finite/in range
        """
        validate_coordinates(location.latitude, location.longitude)
        logger.info(f"[SolarForecastEngine] Forecasting {len(series)} hours at "
                    f"({location.latitude:.4f}, {location.longitude:.4f})")

        rows = []
        night_hours = 0

        for index, sample in enumerate(series):
            position = calculate_solar_position(location.latitude, location.longitude, sample.instant)
            row = {
                "time": sample.time,
                "instant": sample.instant,
                "elevation": position.elevation,
                "zenith": position.zenith,
                "azimuth": position.azimuth,
            }

            if position.elevation < 0:
                night_hours += 1
                row.update({
                    "clear_sky_ghi": 0.0,
                    "cloud_impact": 0.0,
                    "aerosol_factor": 0.0,
                    "predicted_ghi": 0.0,
                    "temp_loss_factor": 1.0,
                    "predicted_irradiance": 0.0,
                    "dni": 0.0,
                    "dhi": 0.0,
                    "confidence": NIGHT_CONFIDENCE,
                })
                rows.append(row)
                continue

            clear_sky_ghi = calculate_clear_sky_ghi(position.elevation, position.zenith)
            cloud_impact = calculate_cloud_impact(sample.cloud_cover, sample.temperature)
            aerosol_factor = estimate_aerosol_factor(position.elevation)

            predicted_ghi = max(0.0, sample.shortwave_radiation * cloud_impact * aerosol_factor)
            temp_loss_factor = self.temperature_loss_factor(sample.temperature)
            predicted_irradiance = max(0.0, predicted_ghi * self.config.system_efficiency * temp_loss_factor)

            components = decompose_irradiance(predicted_ghi, position.elevation, sample.cloud_cover)
            confidence = predict_confidence(
                sample.cloud_cover, position.elevation, sample.temperature, index, series
            )

            logger.debug(f"[SolarForecastEngine] {sample.time}: elev={position.elevation:.1f} "
                         f"cloud={sample.cloud_cover:.0f}% impact={cloud_impact:.2f} "
                         f"-> {predicted_irradiance:.0f} W/m2 (conf {confidence:.2f})")

            row.update({
                "clear_sky_ghi": clear_sky_ghi,
                "cloud_impact": cloud_impact,
                "aerosol_factor": aerosol_factor,
                "predicted_ghi": predicted_ghi,
                "temp_loss_factor": temp_loss_factor,
                "predicted_irradiance": predicted_irradiance,
                "dni": components.dni,
                "dhi": components.dhi,
                "confidence": confidence,
            })
            rows.append(row)

        logger.info(f"[SolarForecastEngine] {len(rows) - night_hours} daylight / {night_hours} night hours")
        return pd.DataFrame(rows, columns=FRAME_COLUMNS)

    def generate_forecast(self, location: GeoLocation, series: WeatherSeries) -> List[ForecastPoint]:
        """One ForecastPoint per input sample, same order."""
        return self.points_from_frame(self.build_forecast_frame(location, series))

    @staticmethod
    def points_from_frame(frame: pd.DataFrame) -> List[ForecastPoint]:
        """ForecastPoints from an already built forecast frame, in row order."""
        return [
            ForecastPoint(
                time=row.time,
                predicted_irradiance=float(row.predicted_irradiance),
                confidence=float(row.confidence),
            )
            for row in frame.itertuples(index=False)
        ]

    def get_daily_summary(self, frame: pd.DataFrame) -> List[DailySummary]:
        """Aggregate a forecast frame by UTC calendar date."""
        if frame.empty:
            return []

        df = frame.copy()
        df["date"] = pd.to_datetime(df["instant"], utc=True).dt.date
        df["is_daylight"] = df["elevation"] >= 0

        daily = df.groupby("date").agg(
            mean_irradiance=("predicted_irradiance", "mean"),
            peak_irradiance=("predicted_irradiance", "max"),
            total_irradiance=("predicted_irradiance", "sum"),
            mean_confidence=("confidence", "mean"),
            daylight_hours=("is_daylight", "sum"),
        ).reset_index()

        summaries: List[DailySummary] = []
        for _, row in daily.iterrows():
            summaries.append({
                "date": str(row["date"]),
                "mean_irradiance": round(float(row["mean_irradiance"]), 1),
                "peak_irradiance": round(float(row["peak_irradiance"]), 1),
                "energy_kwh": round(float(row["total_irradiance"]) / 1000, 3),
                "mean_confidence": round(float(row["mean_confidence"]), 3),
                "daylight_hours": int(row["daylight_hours"]),
            })

        logger.info(f"[SolarForecastEngine] Generated {len(summaries)} daily summaries")
        return summaries


def summarize_forecast(points: List[ForecastPoint]) -> ForecastSummary:
    """Peak/average/min irradiance, mean confidence and energy for a forecast."""
    if not points:
        return {
            "points": 0,
            "peak_irradiance": 0.0,
            "average_irradiance": 0.0,
            "min_irradiance": 0.0,
            "average_confidence": 0.0,
            "average_confidence_pct": 0.0,
            "estimated_energy_kwh": 0.0,
        }

    irradiance = [p.predicted_irradiance for p in points]
    average_confidence = sum(p.confidence for p in points) / len(points)

    return {
        "points": len(points),
        "peak_irradiance": max(irradiance),
        "average_irradiance": sum(irradiance) / len(irradiance),
        "min_irradiance": min(irradiance),
        "average_confidence": average_confidence,
        "average_confidence_pct": round(average_confidence * 100, 1),
        # Hourly W/m2 summed over the run is Wh/m2
        "estimated_energy_kwh": sum(irradiance) / 1000,
    }


def generate_solar_forecast(
    latitude: float,
    longitude: float,
    series: WeatherSeries,
    config: Optional[EngineConfig] = None
) -> List[ForecastPoint]:
    """
    Convenience wrapper: validate raw coordinates and run the engine.

    Example:
        points = generate_solar_forecast(40.0, -74.0, series)
    """
    validate_coordinates(latitude, longitude)
    location = GeoLocation(latitude=float(latitude), longitude=float(longitude))
    return SolarForecastEngine(config).generate_forecast(location, series)
