"""
Engine configuration for SolarCast

Every empirical constant the forecast and analysis engines depend on lives
here as a named value so it can be tuned (or tested) without touching the
model code.

Overrides:
    EngineConfig.from_env() reads SOLARCAST_* variables (a local .env file is
    loaded first via python-dotenv). Anything not set keeps the default below.
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# === SYSTEM MODEL ===
SYSTEM_EFFICIENCY = 0.85          # inverter + wiring losses, flat scalar
TEMPERATURE_COEFFICIENT = -0.004  # -0.4% per degC above reference
REFERENCE_TEMPERATURE_C = 25.0

# === SERIES DEFAULTS (applied when a required channel value is missing) ===
DEFAULT_TEMPERATURE_C = 25.0
DEFAULT_CLOUD_COVER_PCT = 0.0
DEFAULT_SHORTWAVE_RADIATION = 0.0
MAX_FORECAST_HOURS = 168          # 7 days of hourly data

# === CONFIDENCE ===
NIGHT_CONFIDENCE = 0.95
MIN_CONFIDENCE = 0.1
CLOUD_VARIANCE_WEIGHT = 0.4
ELEVATION_CONFIDENCE_SCALE = 80.0
EXTREME_TEMP_CONFIDENCE = 0.7
NORMAL_TEMP_CONFIDENCE = 0.9
CONFIDENCE_TEMP_LOW_C = -10.0     # outside this band the temperature factor drops
CONFIDENCE_TEMP_HIGH_C = 40.0

# === ANALYSIS ===
ANALYSIS_WINDOW_HOURS = 24
CLOUD_VARIABILITY_WINDOW_HOURS = 6
FALLBACK_FORECAST_QUALITY = 0.5
MIN_FORECAST_QUALITY = 0.1
MAX_FORECAST_QUALITY = 0.99
QUALITY_STABILITY_FLOOR = 0.3
QUALITY_TEMP_STDEV_SCALE = 20.0   # degC of stdev that zeroes temperature stability
QUALITY_CLOUD_STDEV_SCALE = 40.0  # % of stdev that zeroes cloud stability
QUALITY_PRECIP_FACTOR = 0.85      # any rain in the window
QUALITY_TEMP_WEIGHT = 0.4
QUALITY_CLOUD_WEIGHT = 0.4
QUALITY_PRECIP_WEIGHT = 0.2

# === ALERT THRESHOLDS ===
CLOUD_ALERT_PCT = 80.0
CLOUD_VARIABILITY_ALERT_PCT = 50.0
TEMP_ALERT_LOW_C = -10.0
TEMP_ALERT_HIGH_C = 40.0
WIND_ALERT_MS = 20.0
PRESSURE_TREND_ALERT_HPA = 1.5
PRECIPITATION_ALERT_MM = 5.0

ENV_PREFIX = "SOLARCAST_"


@dataclass(frozen=True)
class EngineConfig:
    """Tunable parameters shared by the forecast and analysis engines."""
    system_efficiency: float = SYSTEM_EFFICIENCY
    temperature_coefficient: float = TEMPERATURE_COEFFICIENT
    reference_temperature_c: float = REFERENCE_TEMPERATURE_C

    analysis_window_hours: int = ANALYSIS_WINDOW_HOURS
    cloud_variability_window_hours: int = CLOUD_VARIABILITY_WINDOW_HOURS

    cloud_alert_pct: float = CLOUD_ALERT_PCT
    cloud_variability_alert_pct: float = CLOUD_VARIABILITY_ALERT_PCT
    temp_alert_low_c: float = TEMP_ALERT_LOW_C
    temp_alert_high_c: float = TEMP_ALERT_HIGH_C
    wind_alert_ms: float = WIND_ALERT_MS
    pressure_trend_alert_hpa: float = PRESSURE_TREND_ALERT_HPA
    precipitation_alert_mm: float = PRECIPITATION_ALERT_MM

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "EngineConfig":
        """
        Build a config from SOLARCAST_* environment variables.

        The variable name is the upper-cased field name with the prefix,
        e.g. SOLARCAST_SYSTEM_EFFICIENCY=0.8 or SOLARCAST_WIND_ALERT_MS=15.

        Raises:
            ValueError: if a variable is set but is not a valid number
        """
        load_dotenv(dotenv_path)

        overrides = {}
        for f in fields(cls):
            env_name = f"{ENV_PREFIX}{f.name.upper()}"
            raw = os.getenv(env_name)
            if raw is None or raw.strip() == "":
                continue
            caster = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = caster(raw)
            except ValueError:
                raise ValueError(f"{env_name} must be a number, got {raw!r}") from None
            logger.info(f"[EngineConfig] Override from env: {f.name}={overrides[f.name]}")

        return cls(**overrides)


DEFAULT_ENGINE_CONFIG = EngineConfig()
