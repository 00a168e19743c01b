"""
satrack.frames — Inertial / Earth-Fixed / Geodetic / Scene Frames
===================================================================

Frame Definitions
-----------------

**ECI (inertial)**
  - The propagator's output frame (TEME for SGP4, treated as inertial).
  - X: vernal equinox, Z: celestial pole, Y: completes RHS.

**ECR (Earth-Centered Rotating / ECEF)**
  - X: Greenwich meridian, Z: geographic pole, Y: completes RHS.
  - Obtained from ECI by a z-rotation through GMST (IAU 1982).

**Geodetic**
  - Latitude / longitude [deg] and height [km] above the WGS-84 ellipsoid.
  - Longitude always normalised to (−180°, 180°].

**Scene (presentation)**
  - Earth-fixed, spherical body, Y-up, right-handed::

        x =  r cosφ cosλ
        y =  r sinφ
        z = −r cosφ sinλ

  - This is the frame in which a host supplies camera position and sun
    direction, and in which the engine reports object positions.

Transform Graph
---------------
::

    ECI ──GMST──▶ ECR ──Bowring──▶ Geodetic ──sphere──▶ Scene
"""
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from numpy.typing import NDArray

from .errors import TransformFailure
from .utils import (
    R_EARTH_MEAN, gmst, datetime_to_jd, ecef_to_lla,
    normalize_longitude, is_finite,
)


@dataclass(frozen=True)
class Geodetic:
    latitude: float     # [deg]
    longitude: float    # [deg], (−180, 180]
    altitude: float     # [km]


# ════════════════════════════════════════════════════════════════════════════
#  ECI ↔ ECR
# ════════════════════════════════════════════════════════════════════════════

def _apply_dcm(R: NDArray, vec: NDArray) -> NDArray:
    """Apply 3×3 DCM to a single (3,) or batch (N,3) of vectors."""
    vec = np.asarray(vec, dtype=np.float64)
    if vec.ndim == 1:
        return R @ vec
    return (R @ vec.T).T


def eci_to_ecr_matrix(jd: float) -> NDArray:
    """ECI→ECR 3×3 rotation (z-rotation by GMST) such that r_ecr = R @ r_eci."""
    theta = gmst(jd)
    c, s = np.cos(theta), np.sin(theta)
    return np.array([
        [ c,  s, 0.0],
        [-s,  c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def eci_to_ecr(vec_eci: NDArray, jd: float) -> NDArray:
    """Rotate position vector(s) from ECI to ECR at a Julian Date."""
    return _apply_dcm(eci_to_ecr_matrix(jd), vec_eci)


def ecr_to_eci(vec_ecr: NDArray, jd: float) -> NDArray:
    """Rotate position vector(s) from ECR to ECI at a Julian Date."""
    return _apply_dcm(eci_to_ecr_matrix(jd).T, vec_ecr)


# ════════════════════════════════════════════════════════════════════════════
#  ECI → Geodetic
# ════════════════════════════════════════════════════════════════════════════

def orbital_to_geodetic(position: NDArray, at_time: datetime) -> Geodetic:
    """Inertial position [km] at a time → geodetic latitude/longitude/height.

    Raises
    ------
    TransformFailure — non-finite input or output components
    """
    r = np.asarray(position, dtype=np.float64)
    if r.shape != (3,) or not is_finite(r):
        raise TransformFailure(f"cannot convert non-finite position {r!r}")
    if np.linalg.norm(r) < 1e-9:
        raise TransformFailure("cannot convert a position at the body centre")

    lat, lon, alt = ecef_to_lla(eci_to_ecr(r, datetime_to_jd(at_time)))
    if not is_finite(lat, lon, alt):
        raise TransformFailure(f"geodetic conversion diverged for {r!r}")
    return Geodetic(latitude=float(np.rad2deg(lat)),
                    longitude=normalize_longitude(float(np.rad2deg(lon))),
                    altitude=float(alt))


# ════════════════════════════════════════════════════════════════════════════
#  Geodetic ↔ Scene (spherical)
# ════════════════════════════════════════════════════════════════════════════

def geodetic_to_cartesian(lat: float, lon: float, alt: float = 0.0,
                          radius: float = R_EARTH_MEAN) -> NDArray:
    """Map latitude/longitude [deg] and height to scene Cartesian coordinates.

    Spherical body: the point lies at distance ``radius + alt`` from the
    centre (``alt`` in the same unit as ``radius``).
    """
    lat_r, lon_r = np.deg2rad(lat), np.deg2rad(lon)
    d = radius + alt
    return np.array([
        d * np.cos(lat_r) * np.cos(lon_r),
        d * np.sin(lat_r),
        -d * np.cos(lat_r) * np.sin(lon_r),
    ])


def cartesian_to_geodetic(point: NDArray) -> tuple[float, float, float]:
    """Inverse of :func:`geodetic_to_cartesian`.

    Returns
    -------
    lat, lon : float — [deg], lon in (−180, 180]
    distance : float — distance from the body centre (scene units)
    """
    p = np.asarray(point, dtype=np.float64)
    d = float(np.linalg.norm(p))
    if not is_finite(p) or d < 1e-15:
        raise TransformFailure(f"cannot invert scene point {p!r}")
    lat = np.rad2deg(np.arcsin(np.clip(p[1] / d, -1.0, 1.0)))
    lon = np.rad2deg(np.arctan2(-p[2], p[0]))
    return float(lat), normalize_longitude(float(lon)), d


def ecef_to_scene(vec: NDArray) -> NDArray:
    """Re-axis an Earth-fixed vector into the Y-up scene frame."""
    v = np.asarray(vec, dtype=np.float64)
    return np.array([v[0], v[2], -v[1]])


def scene_to_ecef(vec: NDArray) -> NDArray:
    """Inverse of :func:`ecef_to_scene`."""
    v = np.asarray(vec, dtype=np.float64)
    return np.array([v[0], -v[2], v[1]])
