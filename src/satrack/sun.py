"""
satrack.sun — Solar Direction & Day/Night Terminator
======================================================

Low-precision analytical solar position (accurate to ~1° over ±50 years
from J2000), expressed in the inertial frame and in the Earth-fixed scene
frame used for night-side masking, plus the terminator ring separating the
lit and unlit hemispheres.

Reference
---------
Meeus, J. (1998). *Astronomical Algorithms*, 2nd ed., Willmann-Bell.
"""
from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from .frames import Geodetic, eci_to_ecr, ecef_to_scene
from .utils import normalize, datetime_to_jd, ecef_to_lla, normalize_longitude, JD_J2000

AU = 149_597_870.700            # Astronomical Unit [km]


def sun_position_eci(jd: float) -> NDArray:
    """Geocentric Sun position in ECI [km] at a Julian Date."""
    T = (jd - JD_J2000) / 36_525.0

    # Mean anomaly and mean longitude of the Sun [deg]
    M = np.deg2rad((357.5291092 + 35999.0502909 * T) % 360.0)
    L0 = (280.46646 + 36000.76983 * T + 0.0003032 * T**2) % 360.0

    # Equation of center [deg]
    C = (1.9146 - 0.004817 * T - 0.000014 * T**2) * np.sin(M) \
      + (0.019993 - 0.000101 * T) * np.sin(2 * M) \
      + 0.00029 * np.sin(3 * M)

    sun_lon = np.deg2rad((L0 + C) % 360.0)

    e_sun = 0.016708634 - 0.000042037 * T - 0.0000001267 * T**2
    nu = M + np.deg2rad(C)
    R_au = 1.000001018 * (1.0 - e_sun**2) / (1.0 + e_sun * np.cos(nu))

    eps = np.deg2rad(23.439291 - 0.0130042 * T - 1.64e-7 * T**2 + 5.04e-7 * T**3)

    # Ecliptic → equatorial
    r = R_au * AU
    return np.array([
        r * np.cos(sun_lon),
        r * np.cos(eps) * np.sin(sun_lon),
        r * np.sin(eps) * np.sin(sun_lon),
    ])


def sun_direction_eci(jd: float) -> NDArray:
    """Unit vector from Earth to Sun in ECI."""
    return normalize(sun_position_eci(jd))


def sun_direction_scene(at_time: datetime) -> NDArray:
    """Unit vector from Earth to Sun in the Earth-fixed scene frame."""
    jd = datetime_to_jd(at_time)
    return normalize(ecef_to_scene(eci_to_ecr(sun_position_eci(jd), jd)))


def subsolar_point(at_time: datetime) -> Geodetic:
    """Geodetic point with the Sun at the zenith."""
    jd = datetime_to_jd(at_time)
    lat, lon, _ = ecef_to_lla(eci_to_ecr(sun_position_eci(jd), jd))
    return Geodetic(latitude=float(np.rad2deg(lat)),
                    longitude=normalize_longitude(float(np.rad2deg(lon))),
                    altitude=0.0)


def terminator_points(sun_direction: NDArray, radius: float,
                      n_points: int = 72) -> NDArray:
    """Great-circle ring where the surface normal is perpendicular to the Sun.

    Parameters
    ----------
    sun_direction : (3,) — Sun direction (any frame, need not be unit)
    radius : float — body radius in the same frame's units
    n_points : int — number of ring points

    Returns
    -------
    ring : (n_points, 3) ndarray
    """
    s = normalize(sun_direction)
    if abs(s[1]) < 0.99:
        perp = normalize(np.cross(s, np.array([0.0, 1.0, 0.0])))
    else:
        perp = normalize(np.cross(s, np.array([1.0, 0.0, 0.0])))
    perp2 = np.cross(s, perp)

    angles = np.linspace(0.0, 2.0 * np.pi, n_points, endpoint=False)
    return radius * (np.outer(np.cos(angles), perp)
                     + np.outer(np.sin(angles), perp2))
