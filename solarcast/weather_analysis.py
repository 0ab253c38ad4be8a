"""
Weather Analysis Engine for SolarCast

Summarizes short-term stability of a weather series, independently of the
irradiance forecast:

1. Trends: least-squares slope per hour over the first 24 samples for
   temperature, cloud cover, wind speed, pressure and humidity
2. Alerts: threshold rules on the current hour (sample 0), the first 6
   hours of cloud cover and the pressure trend
3. Forecast quality: variance-based stability score in [0.1, 0.99]

Sparse series are legitimate input: fewer than 2 samples gives flat trends,
an empty series gives quality 0.5 and no alerts. Nothing here raises on
short data.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from solarcast.config import (
    DEFAULT_ENGINE_CONFIG,
    FALLBACK_FORECAST_QUALITY,
    MAX_FORECAST_QUALITY,
    MIN_FORECAST_QUALITY,
    QUALITY_CLOUD_STDEV_SCALE,
    QUALITY_CLOUD_WEIGHT,
    QUALITY_PRECIP_FACTOR,
    QUALITY_PRECIP_WEIGHT,
    QUALITY_STABILITY_FLOOR,
    QUALITY_TEMP_STDEV_SCALE,
    QUALITY_TEMP_WEIGHT,
    EngineConfig,
)
from solarcast.series import WeatherSeries

logger = logging.getLogger(__name__)

# Reference radiation for the solar potential score (W/m2)
POTENTIAL_REFERENCE_RADIATION = 800.0

# Display defaults for the current-conditions snapshot
DISPLAY_HUMIDITY = 50.0
DISPLAY_PRESSURE_HPA = 1013.0

TREND_CHANNELS = {
    "temp_trend": "temperature",
    "cloud_cover_trend": "cloud_cover",
    "wind_speed_trend": "wind_speed",
    "pressure_trend": "pressure",
    "humidity_trend": "humidity",
}

ALERT_LABELS = {
    "cloud_cover_alert": "Heavy clouds",
    "temperature_alert": "Extreme temperature",
    "wind_alert": "High wind",
    "pressure_alert": "Pressure change",
    "precipitation_alert": "Precipitation",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _camel_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_camel(k): v for k, v in data.items()}


@dataclass(frozen=True)
class CurrentConditions:
    """Snapshot of the first hour in the series."""
    temperature: float
    humidity: float
    cloud_cover: float
    wind_speed: float
    wind_direction: float
    pressure: float
    precipitation: float
    uv_index: Optional[float] = None
    visibility: Optional[float] = None


@dataclass(frozen=True)
class WeatherTrends:
    """Slopes per hour: degC, %, m/s, hPa, %."""
    temp_trend: float = 0.0
    cloud_cover_trend: float = 0.0
    wind_speed_trend: float = 0.0
    pressure_trend: float = 0.0
    humidity_trend: float = 0.0


@dataclass(frozen=True)
class WeatherAlerts:
    cloud_cover_alert: bool = False
    temperature_alert: bool = False
    wind_alert: bool = False
    pressure_alert: bool = False
    precipitation_alert: bool = False

    @property
    def active(self) -> List[str]:
        return [name for name, value in asdict(self).items() if value]


@dataclass(frozen=True)
class WeatherAnalysis:
    """Result of one WeatherAnalyzer.analyze() call."""
    current_conditions: CurrentConditions
    weather_trends: WeatherTrends
    weather_alerts: WeatherAlerts
    forecast_quality: float

    def to_dict(self) -> Dict[str, Any]:
        """camelCase structure for UI/export consumers."""
        return {
            "currentConditions": _camel_dict(asdict(self.current_conditions)),
            "weatherTrends": _camel_dict(asdict(self.weather_trends)),
            "weatherAlerts": _camel_dict(asdict(self.weather_alerts)),
            "forecastQuality": self.forecast_quality,
        }


def calculate_trend(values: Sequence[Optional[float]]) -> float:
    """
    Ordinary least-squares slope of values against their index.

    Absent (None) values are skipped but the remaining points keep their
    original index. Returns 0 with fewer than 2 points or zero x-variance.
    """
    points = [(x, y) for x, y in enumerate(values) if y is not None]
    if len(points) < 2:
        return 0.0

    x = np.array([p[0] for p in points], dtype=float)
    y = np.array([p[1] for p in points], dtype=float)

    dx = x - x.mean()
    denominator = float(np.sum(dx ** 2))
    if denominator == 0:
        return 0.0

    return float(np.sum(dx * (y - y.mean())) / denominator)


class WeatherAnalyzer:
    """
    Trend / alert / quality analysis over a weather series.

    All thresholds come from EngineConfig so they can be tuned per deployment.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_ENGINE_CONFIG
        logger.info(f"[WeatherAnalyzer] Initialized (window={self.config.analysis_window_hours}h)")

    def _window(self, series: WeatherSeries) -> int:
        return min(self.config.analysis_window_hours, len(series))

    def analyze_trends(self, series: WeatherSeries) -> WeatherTrends:
        """Hourly slope of each trend channel over the analysis window."""
        n = self._window(series)
        if n < 2:
            logger.warning(f"[WeatherAnalyzer] Only {n} samples - trends default to 0")
            return WeatherTrends()

        slopes = {
            trend: calculate_trend(series.channel(channel, limit=n))
            for trend, channel in TREND_CHANNELS.items()
        }
        logger.debug(f"[WeatherAnalyzer] Trends over {n}h: {slopes}")
        return WeatherTrends(**slopes)

    def generate_alerts(self, series: WeatherSeries, trends: WeatherTrends) -> WeatherAlerts:
        """Threshold alerts evaluated on the current hour and near-term window."""
        if len(series) == 0:
            return WeatherAlerts()

        cfg = self.config
        current = series[0]

        next_clouds = series.channel("cloud_cover", limit=cfg.cloud_variability_window_hours)
        cloud_variability = max(next_clouds) - min(next_clouds) if len(next_clouds) > 1 else 0.0

        wind = current.wind_speed or 0.0
        precipitation = current.precipitation or 0.0

        alerts = WeatherAlerts(
            cloud_cover_alert=(current.cloud_cover > cfg.cloud_alert_pct
                               or cloud_variability > cfg.cloud_variability_alert_pct),
            temperature_alert=(current.temperature < cfg.temp_alert_low_c
                               or current.temperature > cfg.temp_alert_high_c),
            wind_alert=wind > cfg.wind_alert_ms,
            pressure_alert=abs(trends.pressure_trend) > cfg.pressure_trend_alert_hpa,
            precipitation_alert=precipitation > cfg.precipitation_alert_mm,
        )

        if alerts.active:
            logger.warning(f"[WeatherAnalyzer] ALERTS: {', '.join(alerts.active)}")
        return alerts

    def calculate_forecast_quality(self, series: WeatherSeries) -> float:
        """
        Stability score in [0.1, 0.99].

        0.4 * temperature stability + 0.4 * cloud stability + 0.2 * precipitation
        factor, where stability is 1 - stdev/20 (temperature) or 1 - stdev/40
        (cloud), each floored at 0.3, and any rain in the window costs 15%.
        """
        n = self._window(series)
        if n == 0:
            logger.warning("[WeatherAnalyzer] Empty series - fallback quality")
            return FALLBACK_FORECAST_QUALITY

        temps = np.array(series.channel("temperature", limit=n), dtype=float)
        clouds = np.array(series.channel("cloud_cover", limit=n), dtype=float)
        precip = [p for p in series.channel("precipitation", limit=n) if p is not None]

        temp_stability = max(QUALITY_STABILITY_FLOOR,
                             1 - math.sqrt(float(np.var(temps))) / QUALITY_TEMP_STDEV_SCALE)
        cloud_stability = max(QUALITY_STABILITY_FLOOR,
                              1 - math.sqrt(float(np.var(clouds))) / QUALITY_CLOUD_STDEV_SCALE)
        precip_factor = QUALITY_PRECIP_FACTOR if any(p > 0 for p in precip) else 1.0

        quality = (temp_stability * QUALITY_TEMP_WEIGHT
                   + cloud_stability * QUALITY_CLOUD_WEIGHT
                   + precip_factor * QUALITY_PRECIP_WEIGHT)
        return min(MAX_FORECAST_QUALITY, max(MIN_FORECAST_QUALITY, quality))

    def current_conditions(self, series: WeatherSeries) -> CurrentConditions:
        if len(series) == 0:
            return CurrentConditions(
                temperature=0.0, humidity=DISPLAY_HUMIDITY, cloud_cover=0.0, wind_speed=0.0,
                wind_direction=0.0, pressure=DISPLAY_PRESSURE_HPA, precipitation=0.0,
            )

        s = series[0]
        return CurrentConditions(
            temperature=s.temperature,
            humidity=DISPLAY_HUMIDITY if s.humidity is None else s.humidity,
            cloud_cover=s.cloud_cover,
            wind_speed=s.wind_speed or 0.0,
            wind_direction=s.wind_direction or 0.0,
            pressure=DISPLAY_PRESSURE_HPA if s.pressure is None else s.pressure,
            precipitation=s.precipitation or 0.0,
            uv_index=s.uv_index,
            visibility=s.visibility,
        )

    def analyze(self, series: WeatherSeries) -> WeatherAnalysis:
        """Run trends, alerts and quality scoring once over the series."""
        logger.info(f"[WeatherAnalyzer] Analyzing {len(series)} hourly samples...")

        trends = self.analyze_trends(series)
        alerts = self.generate_alerts(series, trends)
        quality = self.calculate_forecast_quality(series)
        conditions = self.current_conditions(series)

        logger.info(f"[WeatherAnalyzer] Quality {quality * 100:.1f}%, "
                    f"{len(alerts.active)} active alerts")

        return WeatherAnalysis(
            current_conditions=conditions,
            weather_trends=trends,
            weather_alerts=alerts,
            forecast_quality=quality,
        )


def _direction(slope: float, threshold: float) -> str:
    if slope > threshold:
        return "rising"
    if slope < -threshold:
        return "falling"
    return "steady"


def generate_weather_summary(analysis: WeatherAnalysis) -> str:
    """Human-readable multi-line summary of a WeatherAnalysis."""
    c = analysis.current_conditions
    t = analysis.weather_trends

    lines = [
        f"Temp {c.temperature:.1f}C | Cloud {c.cloud_cover:.0f}% | "
        f"Humidity {c.humidity:.0f}% | Wind {c.wind_speed:.1f} m/s",
        f"Forecast Quality: {analysis.forecast_quality * 100:.0f}%",
        f"Temp trend: {t.temp_trend:+.2f}C/h ({_direction(t.temp_trend, 0.1)})",
        f"Cloud trend: {t.cloud_cover_trend:+.1f}%/h ({_direction(t.cloud_cover_trend, 1.0)})",
    ]

    active = analysis.weather_alerts.active
    if active:
        lines.append("")
        lines.append("Alerts: " + " | ".join(ALERT_LABELS[name] for name in active))

    return "\n".join(lines)


def calculate_solar_potential(series: WeatherSeries) -> int:
    """
    0-100 score: mean daytime radiation (vs 800 W/m2) scaled by clear-sky share.

    Daytime means radiation > 0; returns 0 when there is none.
    """
    if len(series) == 0:
        return 0

    daytime = [r for r in series.channel("shortwave_radiation") if r > 0]
    if not daytime:
        return 0

    avg_radiation = sum(daytime) / len(daytime)
    clouds = series.channel("cloud_cover")
    avg_cloud = sum(clouds) / len(clouds)

    cloud_factor = (100 - avg_cloud) / 100
    radiation_factor = min(1.0, avg_radiation / POTENTIAL_REFERENCE_RADIATION)

    return int(math.floor(cloud_factor * radiation_factor * 100 + 0.5))


def analyze_weather(series: WeatherSeries, config: Optional[EngineConfig] = None) -> WeatherAnalysis:
    """
    Convenience wrapper around WeatherAnalyzer.analyze().

    Example:
        analysis = analyze_weather(series)
        print(generate_weather_summary(analysis))
    """
    return WeatherAnalyzer(config).analyze(series)
