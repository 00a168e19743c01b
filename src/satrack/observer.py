"""
satrack.observer — Observers, Ground Stations & Look Angles
=============================================================

A fixed ground observer (sea level) and the topocentric azimuth /
elevation / range to an orbiting target, computed through the same GMST
rotation used for ground tracks.  Also holds the static list of reference
ground stations shown alongside the catalog.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .errors import SatrackError
from .frames import eci_to_ecr
from .propagator import Propagator, Sgp4Propagator
from .tle import ElementSet
from .utils import lla_to_ecef, datetime_to_jd, is_finite

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════════════
#  Observer / Station Records
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ObserverLocation:
    """Ground observer at sea level.

    Parameters
    ----------
    latitude : float — geodetic latitude [deg], −90..90
    longitude : float — longitude [deg], −180..180
    name : str — display label
    """
    latitude: float
    longitude: float
    name: str = "My Home Location"

    def __post_init__(self):
        if not is_finite(self.latitude, self.longitude):
            raise ValueError("observer coordinates must be finite")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude {self.latitude} outside [-90, 90]")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude {self.longitude} outside [-180, 180]")

    @property
    def height(self) -> float:
        return 0.0

    def ecef(self) -> NDArray:
        """Observer position in ECEF [km]."""
        return lla_to_ecef(np.deg2rad(self.latitude), np.deg2rad(self.longitude), 0.0)


@dataclass(frozen=True)
class GroundStation:
    name: str
    latitude: float     # [deg]
    longitude: float    # [deg]


DEFAULT_GROUND_STATIONS = (
    GroundStation("NASA Goldstone", 35.33, -116.89),
    GroundStation("ESA Kourou", 5.25, -52.76),
    GroundStation("JAXA Tsukuba", 36.06, 140.13),
    GroundStation("ISRO Bengaluru", 12.97, 77.59),
    GroundStation("China Wenchang", 19.61, 110.95),
)


@dataclass(frozen=True)
class LookAngles:
    azimuth: float      # [deg], 0 = North, 90 = East
    elevation: float    # [deg], negative below the horizon
    range: float        # [km]

    @property
    def above_horizon(self) -> bool:
        return self.elevation > 0.0


# ════════════════════════════════════════════════════════════════════════════
#  Topocentric Geometry
# ════════════════════════════════════════════════════════════════════════════

def topocentric_azel(
    r_sensor_ecef: NDArray, lat: float, lon: float,
    r_target_ecef: NDArray,
) -> tuple[float, float, float]:
    """Compute azimuth, elevation, and range from an observer to a target.

    Parameters
    ----------
    r_sensor_ecef : (3,) — observer ECEF position [km]
    lat, lon : float — observer geodetic latitude/longitude [rad]
    r_target_ecef : (3,) — target ECEF position [km]

    Returns
    -------
    az : float — azimuth [rad], 0=North, π/2=East
    el : float — elevation [rad], 0=horizon, π/2=zenith
    rng : float — slant range [km]
    """
    delta = np.asarray(r_target_ecef, dtype=np.float64) - r_sensor_ecef
    rng = np.linalg.norm(delta)

    sin_lat, cos_lat = np.sin(lat), np.cos(lat)
    sin_lon, cos_lon = np.sin(lon), np.cos(lon)

    # ECEF → SEZ (South-East-Zenith)
    S = (sin_lat * cos_lon * delta[0]
         + sin_lat * sin_lon * delta[1]
         - cos_lat * delta[2])
    E = (-sin_lon * delta[0] + cos_lon * delta[1])
    Z = (cos_lat * cos_lon * delta[0]
         + cos_lat * sin_lon * delta[1]
         + sin_lat * delta[2])

    el = np.arctan2(Z, np.sqrt(S**2 + E**2))
    az = np.arctan2(E, -S) % (2.0 * np.pi)

    return float(az), float(el), float(rng)


def look_angles(element_set: ElementSet,
                observer: Optional[ObserverLocation],
                at_time: datetime,
                propagator: Propagator = None) -> Optional[LookAngles]:
    """Look angles from ``observer`` to the object at ``at_time``.

    Returns None, a valid "cannot currently answer" state, when no
    observer is set or the object cannot be propagated at that time.
    Negative elevation (object below the horizon) is ordinary output.
    """
    if observer is None:
        return None
    propagator = propagator or Sgp4Propagator()
    try:
        state = propagator.propagate(element_set, at_time)
    except SatrackError as ex:
        logger.debug("No look angles for %s: %s", element_set.name, ex)
        return None
    return look_angles_to_position(observer, state.position, at_time)


def look_angles_to_position(observer: ObserverLocation, position_eci: NDArray,
                            at_time: datetime) -> Optional[LookAngles]:
    """Look angles to an already-propagated inertial position [km]."""
    if not is_finite(position_eci):
        return None
    r_target = eci_to_ecr(position_eci, datetime_to_jd(at_time))
    az, el, rng = topocentric_azel(observer.ecef(),
                                   np.deg2rad(observer.latitude),
                                   np.deg2rad(observer.longitude),
                                   r_target)
    if not is_finite(az, el, rng):
        return None
    return LookAngles(azimuth=float(np.rad2deg(az)),
                      elevation=float(np.rad2deg(el)),
                      range=rng)
