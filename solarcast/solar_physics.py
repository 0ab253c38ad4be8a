"""
Solar Physics Module for SolarCast

Closed-form models, evaluated one hour at a time:
1. Solar position (Spencer's Fourier series for declination + equation of time)
2. Clear-sky GHI with Kasten-Young airmass
3. Cloud impact (empirical opacity proxy, temperature as cloud-height hint)
4. Aerosol scattering (step function of sun elevation)
5. GHI decomposition into DNI/DHI (Erbs correlation)

Every function is total: out-of-domain inputs collapse to the documented
floor values instead of raising, and none of them returns NaN.

Solar time uses the UTC clock plus 4 minutes per degree of longitude; there
is no timezone or DST lookup.
"""

import math
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

# Spencer (1971) declination coefficients, radians
DECLINATION_COEFFS = (0.006918, -0.399912, 0.070257, -0.006758, 0.000907, -0.00205, 0.00029)

# Equation of time, minutes
EOT_SCALE = 229.18
EOT_COEFFS = (0.017645, -0.033827, -0.00969, -0.00569)

# Clear-sky model
CLEAR_SKY_C0 = 910.6
CLEAR_SKY_C1 = 0.6797
CLEAR_SKY_C2 = -0.00639

# Kasten-Young airmass
AIRMASS_A = 0.50572
AIRMASS_B = 96.07995
AIRMASS_C = -1.6364

# Cloud impact
CLEAR_SKY_CLOUD_PCT = 10
OVERCAST_CLOUD_PCT = 90
CLEAR_SKY_IMPACT = 0.95
OVERCAST_IMPACT = 0.15
CLOUD_OPACITY_EXPONENT = 1.3
CLOUD_OPACITY_WEIGHT = 0.85
MIN_CLOUD_IMPACT = 0.1

# (upper elevation bound in degrees, transmission)
AEROSOL_TIERS = [(10, 0.85), (20, 0.90), (30, 0.93)]
AEROSOL_HIGH_SUN = 0.95

MIN_SIN_ELEVATION = 0.01


@dataclass(frozen=True)
class SolarPosition:
    """Sun position in degrees. Negative elevation means night."""
    elevation: float
    zenith: float
    azimuth: float

    @property
    def is_daylight(self) -> bool:
        return self.elevation >= 0


@dataclass(frozen=True)
class IrradianceComponents:
    """Direct normal and diffuse horizontal irradiance, W/m2."""
    dni: float
    dhi: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def calculate_solar_position(latitude: float, longitude: float, instant: datetime) -> SolarPosition:
    """
    Calculate solar elevation, zenith and azimuth for a UTC instant.

    Args:
        latitude: Degrees, north positive
        longitude: Degrees, east positive
        instant: Aware UTC datetime (naive values are read as UTC)

    Returns:
        SolarPosition in degrees; azimuth is 0 while the sun is down
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone(timezone.utc)

    day_of_year = instant.timetuple().tm_yday
    gamma = 2 * math.pi * (day_of_year - 1) / 365

    c0, c1, s1, c2, s2, c3, s3 = DECLINATION_COEFFS
    declination = (c0
                   + c1 * math.cos(gamma) + s1 * math.sin(gamma)
                   + c2 * math.cos(2 * gamma) + s2 * math.sin(2 * gamma)
                   + c3 * math.cos(3 * gamma) + s3 * math.sin(3 * gamma))

    e_s2, e_c1, e_s1, e_c2 = EOT_COEFFS
    equation_of_time = EOT_SCALE * (e_s2 * math.sin(2 * gamma)
                                    + e_c1 * math.cos(gamma)
                                    + e_s1 * math.sin(gamma)
                                    + e_c2 * math.cos(2 * gamma))

    utc_minutes = instant.hour * 60 + instant.minute
    solar_hours = (utc_minutes + equation_of_time + longitude * 4) / 60
    hour_angle = math.radians((solar_hours - 12) * 15)

    lat_rad = math.radians(latitude)
    sin_elevation = (math.sin(lat_rad) * math.sin(declination) +
                     math.cos(lat_rad) * math.cos(declination) * math.cos(hour_angle))
    elevation = math.asin(_clamp(sin_elevation, -1.0, 1.0))

    azimuth = 0.0
    if elevation > 0:
        denominator = math.cos(elevation) * math.cos(lat_rad)
        # Sun at the zenith or observer at a pole: direction is undefined
        if abs(denominator) > 1e-12:
            cos_azimuth = (math.sin(declination) - math.sin(elevation) * math.sin(lat_rad)) / denominator
            azimuth = math.acos(_clamp(cos_azimuth, -1.0, 1.0))
            if math.sin(hour_angle) > 0:
                azimuth = 2 * math.pi - azimuth

    elevation_deg = math.degrees(elevation)
    return SolarPosition(
        elevation=elevation_deg,
        zenith=90.0 - elevation_deg,
        azimuth=math.degrees(azimuth),
    )


def calculate_clear_sky_ghi(elevation: float, zenith: float) -> float:
    """
    Theoretical cloud-free GHI in W/m2 (0 when the sun is at or below the horizon).

    Only meaningful for zenith < 90; the airmass term is never evaluated otherwise.
    """
    if elevation <= 0:
        return 0.0

    zenith_rad = math.radians(zenith)
    airmass = 1 / (math.cos(zenith_rad) + AIRMASS_A * (AIRMASS_B - zenith) ** AIRMASS_C)

    ghi = CLEAR_SKY_C0 * math.exp(CLEAR_SKY_C1 - CLEAR_SKY_C2 * airmass) * max(0.0, math.cos(zenith_rad))
    return max(0.0, ghi)


def calculate_cloud_impact(cloud_cover: float, temperature: float) -> float:
    """
    Attenuation factor in (0, 1] for a cloud-cover percentage.

    Below 10% the sky counts as clear (0.95, residual scattering); above 90%
    as overcast (0.15). In between, opacity grows as cover^1.3 and warmer
    air (taken as lower, thicker cloud) weighs it more heavily. The result
    never exceeds the clear-sky factor, so the curve is non-increasing.

    NOTE: the uncapped formula exceeds 0.95 from 10% up to 11-13.4% cover,
    depending on temperature (0.966 at 10% and 20 degC). Capping it at 0.95
    keeps attenuation monotonic but departs from the legacy output for that
    narrow band; see DESIGN.md.

    Args:
        cloud_cover: Cloud cover percentage (0-100)
        temperature: Air temperature in degC

    Returns:
        Multiplicative factor applied to irradiance
    """
    if cloud_cover < CLEAR_SKY_CLOUD_PCT:
        return CLEAR_SKY_IMPACT

    if cloud_cover > OVERCAST_CLOUD_PCT:
        return OVERCAST_IMPACT

    opacity = (cloud_cover / 100) ** CLOUD_OPACITY_EXPONENT
    temp_factor = _clamp((temperature + 5) / 45, 0.8, 1.0)

    reduction = 1 - opacity * temp_factor * CLOUD_OPACITY_WEIGHT
    # Light cloud (10-13%) must not beat the clear-sky factor
    return min(CLEAR_SKY_IMPACT, max(MIN_CLOUD_IMPACT, reduction))


def estimate_aerosol_factor(elevation: float) -> float:
    """Atmospheric transmission for a sun elevation; 0 below the horizon."""
    if elevation < 0:
        return 0.0

    for limit, factor in AEROSOL_TIERS:
        if elevation < limit:
            return factor
    return AEROSOL_HIGH_SUN


def decompose_irradiance(ghi: float, elevation: float, cloud_cover: float) -> IrradianceComponents:
    """
    Split GHI into direct-normal and diffuse-horizontal parts (Erbs et al.).

    The clearness index is GHI over the clear-sky GHI for the same elevation,
    capped at 1. `cloud_cover` is accepted for interface parity; the Erbs
    bands are driven by clearness alone.
    """
    if elevation <= 0:
        return IrradianceComponents(dni=0.0, dhi=0.0)

    elevation_rad = math.radians(elevation)
    sin_elevation = math.sin(elevation_rad)
    clear_sky = calculate_clear_sky_ghi(elevation, 90 - elevation)
    clearness = min(1.0, ghi / clear_sky) if clear_sky > 0 else 0.0

    if clearness <= 0.3:
        dhi = ghi * (1.020 - 0.254 * clearness + 0.0123 * sin_elevation)
    elif clearness <= 0.78:
        dhi = ghi * (0.972 - 0.306 * clearness + 0.0311 * sin_elevation)
    else:
        dhi = ghi * (0.29 * clearness + 0.0049 * sin_elevation)

    dni = max(0.0, (ghi - dhi) / max(MIN_SIN_ELEVATION, sin_elevation))

    logger.debug(f"[decompose_irradiance] ghi={ghi:.0f} kt={clearness:.2f} -> dni={dni:.0f} dhi={dhi:.0f}")
    return IrradianceComponents(dni=dni, dhi=max(0.0, dhi))


def get_irradiance_category(watts: float) -> str:
    """
    Categorize irradiance level for display.

    Args:
        watts: Solar irradiance in W/m2

    Returns:
        Category string: 'Minimal', 'Low-Moderate', 'Good', 'Peak Production'
    """
    if watts < 50:
        return "Minimal"
    elif watts < 150:
        return "Low-Moderate"
    elif watts < 400:
        return "Good"
    else:
        return "Peak Production"


if __name__ == "__main__":
    """Exercise the solar physics module."""
    logging.basicConfig(level=logging.DEBUG)

    print("=" * 60)
    print("Testing Solar Physics Module")
    print("=" * 60)

    print("\n1. Solar position, New York, 2024-06-21:")
    for hour in [10, 13, 16, 19, 22]:
        pos = calculate_solar_position(40.0, -74.0, datetime(2024, 6, 21, hour, tzinfo=timezone.utc))
        print(f"   {hour:02d}:00Z -> elev={pos.elevation:5.1f}  az={pos.azimuth:5.1f}")

    print("\n2. Cloud impact at 20C:")
    for cloud in [0, 10, 30, 50, 70, 90, 95]:
        print(f"   {cloud:3d}% -> {calculate_cloud_impact(cloud, 20.0):.3f}")

    print("\n3. Decomposition at 45 deg elevation:")
    for ghi in [100, 400, 800]:
        parts = decompose_irradiance(ghi, 45.0, 0)
        print(f"   GHI={ghi} -> DNI={parts.dni:.0f} DHI={parts.dhi:.0f} [{get_irradiance_category(ghi)}]")

    print("\n" + "=" * 60)
    print("Test complete!")
