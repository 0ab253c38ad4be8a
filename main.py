"""
SolarCast runner

Loads a saved Open-Meteo forecast response (JSON with an `hourly` block),
runs the irradiance forecast and the weather analysis over it, and prints
the results. Fetching the response is left to the caller, e.g.:

    curl "https://api.open-meteo.com/v1/forecast?latitude=40&longitude=-74&hourly=..." > nyc.json
    python main.py nyc.json

Coordinates default to the `latitude`/`longitude` fields of the response.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from solarcast.config import EngineConfig
from solarcast.forecast import SolarForecastEngine, summarize_forecast
from solarcast.series import GeoLocation, InvalidInputError, WeatherSeries
from solarcast.solar_physics import get_irradiance_category
from solarcast.weather_analysis import (
    WeatherAnalyzer,
    calculate_solar_potential,
    generate_weather_summary,
)

# Load environment variables
load_dotenv()

# Ensure logs directory exists
os.makedirs("logs", exist_ok=True)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler("logs/solarcast.log", mode='a', encoding='utf-8'),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

OUTPUT_DIR = Path("outputs")


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='SolarCast - hourly solar irradiance forecast from Open-Meteo data'
    )
    parser.add_argument('payload', type=Path, help='Open-Meteo forecast response (JSON)')
    parser.add_argument('--lat', type=float, help='Latitude override (degrees)')
    parser.add_argument('--lon', type=float, help='Longitude override (degrees)')
    parser.add_argument('--hours', type=int, default=24, help='Forecast hours to print')
    parser.add_argument('--save', action='store_true', help='Write results to outputs/')
    return parser.parse_args()


def print_banner():
    """Print the system banner."""
    print(f"\n{'=' * 60}")
    print("   SOLARCAST: HOURLY IRRADIANCE FORECAST")
    print(f"{'=' * 60}")


def main() -> int:
    args = parse_args()
    print_banner()

    try:
        with open(args.payload, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"[main] Could not read {args.payload}: {e}")
        return 1

    config = EngineConfig.from_env()

    try:
        location = GeoLocation(
            latitude=args.lat if args.lat is not None else payload.get('latitude'),
            longitude=args.lon if args.lon is not None else payload.get('longitude'),
        )
        series = WeatherSeries.from_open_meteo_response(payload)
    except InvalidInputError as e:
        logger.error(f"[main] Invalid input: {e}")
        return 2

    engine = SolarForecastEngine(config)
    frame = engine.build_forecast_frame(location, series)
    forecast = engine.points_from_frame(frame)
    summary = summarize_forecast(forecast)

    analysis = WeatherAnalyzer(config).analyze(series)

    print(f"\nLocation: {location.latitude:.4f}, {location.longitude:.4f}  ({len(series)} hours)")
    print(f"\n--- Next {min(args.hours, len(forecast))} hours ---")
    for point in forecast[:args.hours]:
        print(f"  {point.time}  {point.predicted_irradiance:7.1f} W/m2  "
              f"conf {point.confidence:.2f}  [{get_irradiance_category(point.predicted_irradiance)}]")

    print("\n--- Daily summary ---")
    for day in engine.get_daily_summary(frame):
        print(f"  {day['date']}: peak {day['peak_irradiance']:.0f} W/m2, "
              f"{day['energy_kwh']:.2f} kWh/m2, conf {day['mean_confidence']:.2f}")

    print("\n--- Forecast summary ---")
    print(f"  Peak {summary['peak_irradiance']:.1f} W/m2 | Avg {summary['average_irradiance']:.1f} W/m2 | "
          f"Energy {summary['estimated_energy_kwh']:.2f} kWh/m2 | Conf {summary['average_confidence_pct']:.0f}%")
    print(f"  Solar potential: {calculate_solar_potential(series)}/100")

    print("\n--- Weather ---")
    print(generate_weather_summary(analysis))

    if args.save:
        OUTPUT_DIR.mkdir(exist_ok=True)
        out_path = OUTPUT_DIR / f"{args.payload.stem}_forecast.json"
        with open(out_path, 'w', encoding='utf-8') as f:
            json.dump({
                "location": {"latitude": location.latitude, "longitude": location.longitude},
                "forecast": [p.to_dict() for p in forecast],
                "summary": summary,
                "weather_analysis": analysis.to_dict(),
            }, f, indent=2)
        logger.info(f"[main] Results written to {out_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
