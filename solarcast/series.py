"""
Weather series data model for SolarCast

A WeatherSeries is an ordered run of hourly WeatherSample records. All
default filling happens here, at construction time, so the physics and
analysis code downstream can assume the three required channels
(temperature, cloud cover, shortwave radiation) are always populated:

    temperature         -> 25 degC
    cloud cover         -> 0 %
    shortwave radiation -> 0 W/m2

Optional channels (humidity, wind, pressure, precipitation, UV, visibility)
stay None when absent. Nothing here is mutated after construction.

Units follow the Open-Meteo contract: degC, %, W/m2, m/s, degrees, hPa, mm.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd

from solarcast.config import (
    DEFAULT_CLOUD_COVER_PCT,
    DEFAULT_SHORTWAVE_RADIATION,
    DEFAULT_TEMPERATURE_C,
    MAX_FORECAST_HOURS,
)

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Structurally invalid engine input (bad coordinates, timestamps, payload shape)."""


# Open-Meteo hourly channel -> WeatherSample field
OPEN_METEO_CHANNELS = {
    "temperature_2m": "temperature",
    "cloud_cover": "cloud_cover",
    "shortwave_radiation": "shortwave_radiation",
    "relative_humidity_2m": "humidity",
    "wind_speed_10m": "wind_speed",
    "wind_direction_10m": "wind_direction",
    "surface_pressure": "pressure",
    "precipitation": "precipitation",
    "uv_index": "uv_index",
    "visibility": "visibility",
}

OPTIONAL_CHANNELS = (
    "humidity",
    "wind_speed",
    "wind_direction",
    "pressure",
    "precipitation",
    "uv_index",
    "visibility",
)


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps (Open-Meteo's default "2024-06-21T16:00") are taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(f"Unparseable timestamp: {value!r}") from None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def localize_timestamp(value: Any, utc_offset_seconds: int) -> str:
    """
    Attach a fixed UTC offset to a naive ISO timestamp.

    Open-Meteo requested with `timezone=auto` returns local wall-clock times
    plus `utc_offset_seconds`. Aware timestamps and a zero offset pass
    through unchanged.
    """
    text = str(value)
    if not utc_offset_seconds or isinstance(value, datetime) or text.strip().endswith("Z"):
        return text
    try:
        dt = datetime.fromisoformat(text.strip())
    except ValueError:
        raise InvalidInputError(f"Unparseable timestamp: {value!r}") from None
    if dt.tzinfo is not None:
        return text
    return dt.replace(tzinfo=timezone(timedelta(seconds=utc_offset_seconds))).isoformat()


def _clean(value: Any) -> Optional[float]:
    """None for missing or non-finite values, float otherwise."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class GeoLocation:
    """A point on the globe in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self):
        validate_coordinates(self.latitude, self.longitude)
        # Payloads often carry coordinates as strings
        object.__setattr__(self, "latitude", float(self.latitude))
        object.__setattr__(self, "longitude", float(self.longitude))


def validate_coordinates(latitude: Any, longitude: Any) -> None:
    """
    Raise InvalidInputError unless both coordinates are finite and in range.
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise InvalidInputError(
            f"Coordinates must be numeric, got ({latitude!r}, {longitude!r})"
        ) from None

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidInputError(f"Coordinates must be finite, got ({lat}, {lon})")
    if not -90.0 <= lat <= 90.0:
        raise InvalidInputError(f"Latitude {lat} outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidInputError(f"Longitude {lon} outside [-180, 180]")


@dataclass(frozen=True)
class WeatherSample:
    """One hour of weather. Build through WeatherSample.create() to get defaults."""
    time: str
    instant: datetime
    temperature: float = DEFAULT_TEMPERATURE_C
    cloud_cover: float = DEFAULT_CLOUD_COVER_PCT
    shortwave_radiation: float = DEFAULT_SHORTWAVE_RADIATION
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    pressure: Optional[float] = None
    precipitation: Optional[float] = None
    uv_index: Optional[float] = None
    visibility: Optional[float] = None

    @classmethod
    def create(
        cls,
        time: str,
        temperature: Any = None,
        cloud_cover: Any = None,
        shortwave_radiation: Any = None,
        **optional: Any
    ) -> "WeatherSample":
        """
        Build a sample, replacing missing or non-finite required values with
        the series defaults and dropping non-finite optional values.
        """
        unknown = set(optional) - set(OPTIONAL_CHANNELS)
        if unknown:
            raise InvalidInputError(f"Unknown weather channels: {sorted(unknown)}")

        temp = _clean(temperature)
        cloud = _clean(cloud_cover)
        radiation = _clean(shortwave_radiation)

        return cls(
            time=str(time),
            instant=parse_timestamp(time),
            temperature=DEFAULT_TEMPERATURE_C if temp is None else temp,
            cloud_cover=DEFAULT_CLOUD_COVER_PCT if cloud is None else cloud,
            shortwave_radiation=DEFAULT_SHORTWAVE_RADIATION if radiation is None else radiation,
            **{name: _clean(optional.get(name)) for name in OPTIONAL_CHANNELS}
        )


@dataclass(frozen=True)
class WeatherSeries:
    """Hourly samples in ascending time order."""
    samples: Sequence[WeatherSample] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "samples", tuple(self.samples))

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[WeatherSample]:
        return iter(self.samples)

    def __getitem__(self, index: int) -> WeatherSample:
        return self.samples[index]

    @property
    def times(self) -> List[str]:
        return [s.time for s in self.samples]

    def channel(self, name: str, limit: Optional[int] = None) -> List[Optional[float]]:
        """Index-aligned values of one channel (None where absent)."""
        samples = self.samples if limit is None else self.samples[:limit]
        return [getattr(s, name) for s in samples]

    def find(self, time: Any) -> Optional[WeatherSample]:
        """Sample whose instant equals `time`, or None when no hour matches."""
        target = parse_timestamp(time)
        for sample in self.samples:
            if sample.instant == target:
                return sample
        return None

    def to_frame(self) -> pd.DataFrame:
        """Tabular view, one row per sample, in series order."""
        rows = [
            {
                "time": s.time,
                "instant": s.instant,
                "temperature": s.temperature,
                "cloud_cover": s.cloud_cover,
                "shortwave_radiation": s.shortwave_radiation,
                **{name: getattr(s, name) for name in OPTIONAL_CHANNELS},
            }
            for s in self.samples
        ]
        columns = ["time", "instant", "temperature", "cloud_cover",
                   "shortwave_radiation", *OPTIONAL_CHANNELS]
        return pd.DataFrame(rows, columns=columns)

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]]) -> "WeatherSeries":
        """Build from row dicts keyed by WeatherSample field names."""
        samples = [WeatherSample.create(**record) for record in records]
        return cls(sorted(samples, key=lambda s: s.instant))

    @classmethod
    def from_open_meteo(
        cls,
        hourly: Dict[str, List[Any]],
        max_hours: int = MAX_FORECAST_HOURS,
        utc_offset_seconds: int = 0
    ) -> "WeatherSeries":
        """
        Build from the `hourly` block of an Open-Meteo forecast/archive response.

        Channels missing from the payload are treated as absent; any channel
        present must have the same length as `time`. Naive times are read as
        local to `utc_offset_seconds` (0 means UTC).
        """
        if not hourly or "time" not in hourly:
            raise InvalidInputError("Open-Meteo payload has no hourly 'time' channel")

        times = list(hourly["time"])
        for key in OPEN_METEO_CHANNELS:
            values = hourly.get(key)
            if values is not None and len(values) != len(times):
                raise InvalidInputError(
                    f"Channel '{key}' has {len(values)} values for {len(times)} timestamps"
                )

        n = min(max_hours, len(times))
        logger.info(f"[WeatherSeries] Building series from {len(times)} Open-Meteo hours (keeping {n})")

        present = {key: field_name for key, field_name in OPEN_METEO_CHANNELS.items()
                   if hourly.get(key) is not None}
        missing = sorted(set(OPEN_METEO_CHANNELS) - set(present))
        if missing:
            logger.debug(f"[WeatherSeries] Absent channels: {missing}")

        records = []
        for i in range(n):
            record = {"time": localize_timestamp(times[i], utc_offset_seconds)}
            for key, field_name in present.items():
                record[field_name] = hourly[key][i]
            records.append(record)

        return cls.from_records(records)

    @classmethod
    def from_open_meteo_response(
        cls,
        response: Dict[str, Any],
        max_hours: int = MAX_FORECAST_HOURS
    ) -> "WeatherSeries":
        """Build from a full Open-Meteo response, honouring its `utc_offset_seconds`."""
        offset = response.get("utc_offset_seconds") or 0
        try:
            offset = int(offset)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Invalid utc_offset_seconds: {offset!r}") from None
        if offset:
            logger.info(f"[WeatherSeries] Local times at UTC offset {offset / 3600:+.1f}h")
        return cls.from_open_meteo(response.get("hourly") or {}, max_hours=max_hours,
                                   utc_offset_seconds=offset)
