"""
Tests for the weather series model and engine configuration

These tests verify that:
1. Required channels are default-filled at construction, optional ones stay absent
2. Timestamps normalize to UTC and lookups match by instant
3. Open-Meteo payloads are validated and truncated to 7 days
4. EngineConfig picks up SOLARCAST_* environment overrides

Run with: python -m pytest tests/test_series.py -v
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Configure test logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

sys.path.insert(0, str(Path(__file__).parent.parent))

from solarcast.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from solarcast.series import (
    GeoLocation,
    InvalidInputError,
    WeatherSample,
    WeatherSeries,
    parse_timestamp,
)


def open_meteo_hourly(hours=3):
    """Shape of the `hourly` block in an Open-Meteo forecast response."""
    return {
        "time": [f"2024-06-21T{h:02d}:00" for h in range(hours)],
        "temperature_2m": [20.0 + h for h in range(hours)],
        "cloud_cover": [10 * h for h in range(hours)],
        "shortwave_radiation": [0.0] * hours,
        "relative_humidity_2m": [60] * hours,
        "wind_speed_10m": [3.5] * hours,
        "surface_pressure": [1012.0] * hours,
        "precipitation": [0.0] * hours,
    }


class TestWeatherSample:
    """Default filling at the series-construction boundary."""

    def test_required_defaults(self):
        sample = WeatherSample.create("2024-06-21T12:00")
        assert sample.temperature == 25.0
        assert sample.cloud_cover == 0.0
        assert sample.shortwave_radiation == 0.0
        assert sample.humidity is None
        assert sample.precipitation is None

    def test_non_finite_values_are_missing(self):
        sample = WeatherSample.create("2024-06-21T12:00", temperature=float("nan"),
                                      cloud_cover=None, shortwave_radiation="bad",
                                      wind_speed=float("inf"))
        assert sample.temperature == 25.0
        assert sample.cloud_cover == 0.0
        assert sample.shortwave_radiation == 0.0
        assert sample.wind_speed is None

    def test_zero_is_kept(self):
        sample = WeatherSample.create("2024-06-21T12:00", temperature=0, cloud_cover=0)
        assert sample.temperature == 0.0

    def test_unknown_channel(self):
        with pytest.raises(InvalidInputError):
            WeatherSample.create("2024-06-21T12:00", snow_depth=3)

    def test_bad_timestamp(self):
        with pytest.raises(InvalidInputError):
            WeatherSample.create("yesterday-ish")


class TestTimestamps:

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-06-21T16:00") == datetime(2024, 6, 21, 16, tzinfo=timezone.utc)

    def test_zulu_and_offsets(self):
        expected = datetime(2024, 6, 21, 16, tzinfo=timezone.utc)
        assert parse_timestamp("2024-06-21T16:00:00Z") == expected
        assert parse_timestamp("2024-06-21T18:00:00+02:00") == expected
        assert parse_timestamp("2024-06-21T18:00:00+02:00").tzinfo == timezone.utc


class TestWeatherSeries:

    def test_from_records_sorts_by_time(self):
        series = WeatherSeries.from_records([
            {"time": "2024-06-21T02:00", "temperature": 12},
            {"time": "2024-06-21T01:00", "temperature": 11},
        ])
        assert series.times == ["2024-06-21T01:00", "2024-06-21T02:00"]
        assert series.channel("temperature") == [11.0, 12.0]

    def test_channel_limit_and_absent_values(self):
        series = WeatherSeries.from_records([
            {"time": f"2024-06-21T{h:02d}:00", "humidity": 50 if h % 2 else None}
            for h in range(6)
        ])
        assert series.channel("humidity", limit=4) == [None, 50.0, None, 50.0]

    def test_find(self):
        series = WeatherSeries.from_open_meteo(open_meteo_hourly())
        assert series.find("2024-06-21T01:00:00Z").temperature == 21.0
        assert series.find("2024-06-22T01:00") is None

    def test_to_frame(self):
        frame = WeatherSeries.from_open_meteo(open_meteo_hourly()).to_frame()
        logger.info(f"[TEST] Frame:\n{frame}")

        assert len(frame) == 3
        assert list(frame["cloud_cover"]) == [0.0, 10.0, 20.0]
        assert frame["uv_index"].isna().all()

    def test_immutable(self):
        series = WeatherSeries.from_open_meteo(open_meteo_hourly())
        with pytest.raises(Exception):
            series[0].temperature = 99


class TestOpenMeteoPayload:

    def test_channel_mapping(self):
        series = WeatherSeries.from_open_meteo(open_meteo_hourly())
        first = series[0]

        assert len(series) == 3
        assert first.temperature == 20.0
        assert first.humidity == 60.0
        assert first.wind_speed == 3.5
        assert first.pressure == 1012.0
        assert first.wind_direction is None

    def test_null_values_in_channel(self):
        hourly = open_meteo_hourly()
        hourly["temperature_2m"][1] = None
        hourly["relative_humidity_2m"][2] = None
        series = WeatherSeries.from_open_meteo(hourly)

        assert series[1].temperature == 25.0
        assert series[2].humidity is None

    def test_truncates_to_seven_days(self):
        hourly = {"time": [f"2024-06-{1 + h // 24:02d}T{h % 24:02d}:00" for h in range(200)]}
        assert len(WeatherSeries.from_open_meteo(hourly)) == 168

    def test_missing_time(self):
        with pytest.raises(InvalidInputError):
            WeatherSeries.from_open_meteo({"temperature_2m": [1, 2]})
        with pytest.raises(InvalidInputError):
            WeatherSeries.from_open_meteo({})

    def test_local_times_use_utc_offset(self):
        hourly = open_meteo_hourly(2)
        series = WeatherSeries.from_open_meteo(hourly, utc_offset_seconds=-14400)

        assert series[0].instant == datetime(2024, 6, 21, 4, tzinfo=timezone.utc)
        assert series[0].time == "2024-06-21T00:00:00-04:00"
        assert series.find("2024-06-21T05:00Z").temperature == 21.0

    def test_full_response_offset(self):
        response = {"utc_offset_seconds": 7200, "hourly": open_meteo_hourly(1)}
        series = WeatherSeries.from_open_meteo_response(response)
        assert series[0].instant == datetime(2024, 6, 20, 22, tzinfo=timezone.utc)

    def test_response_without_offset_is_utc(self):
        series = WeatherSeries.from_open_meteo_response({"hourly": open_meteo_hourly(1)})
        assert series[0].time == "2024-06-21T00:00"
        assert series[0].instant == datetime(2024, 6, 21, 0, tzinfo=timezone.utc)

    def test_offset_ignored_for_aware_times(self):
        hourly = {"time": ["2024-06-21T12:00Z", "2024-06-21T13:00+00:00"]}
        series = WeatherSeries.from_open_meteo(hourly, utc_offset_seconds=3600)
        assert [s.instant.hour for s in series] == [12, 13]

    def test_invalid_offset(self):
        with pytest.raises(InvalidInputError):
            WeatherSeries.from_open_meteo_response(
                {"utc_offset_seconds": "auto", "hourly": open_meteo_hourly(1)}
            )

    def test_length_mismatch(self):
        hourly = open_meteo_hourly()
        hourly["cloud_cover"] = hourly["cloud_cover"][:-1]
        with pytest.raises(InvalidInputError):
            WeatherSeries.from_open_meteo(hourly)


class TestGeoLocation:

    def test_valid(self):
        loc = GeoLocation(latitude=-33.87, longitude=151.21)
        assert loc.latitude == -33.87

    def test_string_coordinates_become_floats(self):
        loc = GeoLocation(latitude="40.7128", longitude=" -74.0060 ")
        assert loc.latitude == 40.7128
        assert loc.longitude == -74.006
        assert isinstance(loc.latitude, float)

    @pytest.mark.parametrize("lat,lon", [(90.1, 0), (0, 180.5), (float("nan"), 0), (None, 0)])
    def test_invalid(self, lat, lon):
        with pytest.raises(InvalidInputError):
            GeoLocation(latitude=lat, longitude=lon)


class TestEngineConfig:
    """EngineConfig defaults and environment overrides."""

    def test_defaults(self):
        assert DEFAULT_ENGINE_CONFIG.system_efficiency == 0.85
        assert DEFAULT_ENGINE_CONFIG.temperature_coefficient == -0.004
        assert DEFAULT_ENGINE_CONFIG.analysis_window_hours == 24
        assert DEFAULT_ENGINE_CONFIG.wind_alert_ms == 20.0

    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SOLARCAST_SYSTEM_EFFICIENCY", "0.9")
        monkeypatch.setenv("SOLARCAST_ANALYSIS_WINDOW_HOURS", "12")
        monkeypatch.setenv("SOLARCAST_WIND_ALERT_MS", "")

        config = EngineConfig.from_env(dotenv_path=str(tmp_path / "missing.env"))
        logger.info(f"[TEST] Config from env: {config}")

        assert config.system_efficiency == 0.9
        assert config.analysis_window_hours == 12
        assert isinstance(config.analysis_window_hours, int)
        assert config.wind_alert_ms == 20.0

    def test_dotenv_file(self, monkeypatch, tmp_path):
        # Register the variable so monkeypatch unsets what load_dotenv writes
        monkeypatch.setenv("SOLARCAST_PRECIPITATION_ALERT_MM", "0")
        monkeypatch.delenv("SOLARCAST_PRECIPITATION_ALERT_MM")
        env_file = tmp_path / ".env"
        env_file.write_text("SOLARCAST_PRECIPITATION_ALERT_MM=2.5\n")

        config = EngineConfig.from_env(dotenv_path=str(env_file))
        assert config.precipitation_alert_mm == 2.5

    def test_invalid_env_value(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SOLARCAST_TEMPERATURE_COEFFICIENT", "minus a bit")
        with pytest.raises(ValueError, match="SOLARCAST_TEMPERATURE_COEFFICIENT"):
            EngineConfig.from_env(dotenv_path=str(tmp_path / "missing.env"))


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
