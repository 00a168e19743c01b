"""
satrack.utils — Foundational Utilities
========================================

Constants, vector helpers, time conversions and the WGS-84 ECEF ↔ LLA
mapping shared by every other module.  All lengths are in kilometres.
"""

import math
from datetime import datetime, timezone

import numpy as np
from numpy.typing import NDArray

# ── Physical Constants ──────────────────────────────────────────────────────
MU_EARTH = 398_600.4418          # Earth gravitational parameter  [km³/s²]
R_EARTH = 6378.137               # WGS-84 semi-major axis          [km]
R_EARTH_MEAN = 6371.0            # Mean radius (spherical scene)   [km]
F_EARTH = 1.0 / 298.257223563    # WGS-84 flattening
E2_EARTH = 2 * F_EARTH - F_EARTH ** 2  # First eccentricity squared
OMEGA_EARTH = 7.2921150e-5       # Earth rotation rate              [rad/s]
J2 = 1.08263e-3                  # J2 zonal harmonic

DAILY_SECONDS = 86400.0
JD_J2000 = 2_451_545.0


# ── Vector Helpers ──────────────────────────────────────────────────────────

def normalize(v: NDArray) -> NDArray:
    """Return unit vector.  Works on single vectors or (N,3) arrays."""
    v = np.asarray(v, dtype=np.float64)
    if v.ndim == 1:
        mag = np.linalg.norm(v)
        if mag < 1e-15:
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    elif v.ndim == 2:
        mag = np.linalg.norm(v, axis=1, keepdims=True)
        if np.any(mag < 1e-15):
            raise ValueError("Cannot normalize a near-zero vector.")
        return v / mag
    raise ValueError(f"Expected 1-D or 2-D array, got {v.ndim}-D.")


def as_vector3(v) -> NDArray:
    """Coerce a 3-sequence to a float64 (3,) array."""
    arr = np.asarray(v, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}.")
    return arr


def is_finite(*values) -> bool:
    """True when every scalar / array argument is entirely finite."""
    return all(bool(np.all(np.isfinite(np.asarray(v, dtype=np.float64))))
               for v in values)


def normalize_longitude(lon_deg: float) -> float:
    """Wrap a longitude into the half-open interval (−180°, 180°]."""
    wrapped = math.fmod(lon_deg + 180.0, 360.0)
    if wrapped < 0.0:
        wrapped += 360.0
    wrapped -= 180.0
    return 180.0 if wrapped == -180.0 else wrapped


# ── Time Utilities ──────────────────────────────────────────────────────────

def julian_date(year: int, month: int, day: int,
                hour: float = 0.0, minute: float = 0.0,
                second: float = 0.0) -> float:
    """Compute Julian Date from calendar date (UTC)."""
    if month <= 2:
        year -= 1
        month += 12
    A = int(year / 100)
    B = 2 - A + int(A / 4)
    JD = (int(365.25 * (year + 4716))
          + int(30.6001 * (month + 1))
          + day + B - 1524.5)
    JD += (hour + minute / 60.0 + second / 3600.0) / 24.0
    return JD


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def datetime_to_jd(dt: datetime) -> float:
    """Julian Date of a datetime (naive values are taken as UTC)."""
    dt = ensure_utc(dt)
    return julian_date(dt.year, dt.month, dt.day, dt.hour, dt.minute,
                       dt.second + dt.microsecond / 1e6)


def gmst(jd: float) -> float:
    """Greenwich Mean Sidereal Time [rad] from Julian Date.

    Uses the IAU 1982 model (accurate to ~0.1 arcsec for dates near J2000).
    """
    T = (jd - JD_J2000) / 36_525.0
    # GMST in seconds of time at 0h UT
    theta_sec = 67310.54841 + (876600.0 * 3600.0 + 8640184.812866) * T \
                + 0.093104 * T**2 - 6.2e-6 * T**3
    theta_deg = (theta_sec / 240.0) % 360.0  # seconds → degrees
    return np.deg2rad(theta_deg)


# ── Coordinate Conversions ──────────────────────────────────────────────────

def ecef_to_lla(r_ecef: NDArray) -> NDArray:
    """ECEF [km] → geodetic latitude [rad], longitude [rad], altitude [km].

    Uses Bowring's iterative method (converges in 2-3 iterations).

    Returns
    -------
    lla : (3,) or (N,3) array — [lat, lon, alt]
    """
    r = np.asarray(r_ecef, dtype=np.float64)
    single = r.ndim == 1
    if single:
        r = r.reshape(1, 3)

    x, y, z = r[:, 0], r[:, 1], r[:, 2]
    lon = np.arctan2(y, x)
    p = np.sqrt(x**2 + y**2)
    lat = np.arctan2(z, p * (1.0 - E2_EARTH))

    for _ in range(5):
        sin_lat = np.sin(lat)
        N_phi = R_EARTH / np.sqrt(1.0 - E2_EARTH * sin_lat**2)
        lat = np.arctan2(z + E2_EARTH * N_phi * sin_lat, p)

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    N_phi = R_EARTH / np.sqrt(1.0 - E2_EARTH * sin_lat**2)
    polar = np.abs(cos_lat) < 1e-10
    safe_cos = np.where(polar, 1.0, cos_lat)
    alt = np.where(polar,
                   np.abs(z) - R_EARTH * np.sqrt(1.0 - E2_EARTH),
                   p / safe_cos - N_phi)

    result = np.stack([lat, lon, alt], axis=-1)
    return result[0] if single else result


def lla_to_ecef(lat: float, lon: float, alt: float = 0.0) -> NDArray:
    """Geodetic LLA → ECEF [km].

    Parameters
    ----------
    lat, lon : float — geodetic latitude / longitude [rad]
    alt : float — altitude above WGS-84 ellipsoid [km]
    """
    sin_lat, cos_lat = np.sin(lat), np.cos(lat)
    sin_lon, cos_lon = np.sin(lon), np.cos(lon)
    N = R_EARTH / np.sqrt(1.0 - E2_EARTH * sin_lat**2)
    x = (N + alt) * cos_lat * cos_lon
    y = (N + alt) * cos_lat * sin_lon
    z = (N * (1.0 - E2_EARTH) + alt) * sin_lat
    return np.array([x, y, z])
