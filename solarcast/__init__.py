"""
SolarCast: hourly solar irradiance forecasting from weather data

Converts (latitude, longitude, hourly weather) into predicted irradiance and
a confidence per hour, and separately scores the short-term stability of
the weather itself.

Everything here is a pure function of its inputs: no network access, no
persistence, no caching between calls. Fetching weather and rendering the
results belong to the caller.

Architecture:
    config.py           - Named model constants + EngineConfig (env overrides)
    series.py           - GeoLocation / WeatherSample / WeatherSeries, default filling,
                          Open-Meteo hourly payload adapter
    solar_physics.py    - Solar position, clear-sky GHI, cloud impact, aerosol
                          transmission, Erbs DNI/DHI decomposition
    forecast.py         - SolarForecastEngine: per-hour model chain + confidence
    alignment.py        - Timestamp join of a forecast with a weather series
    weather_analysis.py - WeatherAnalyzer: trends, alerts, forecast quality

Entry Points:
    main.py - run both engines over a saved Open-Meteo response
"""

__version__ = "1.0.0"
__author__ = "SolarCast"
