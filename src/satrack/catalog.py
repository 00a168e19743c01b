"""
satrack.catalog — Tracked Objects & Catalog
=============================================

Plain data records for the objects the engine tracks, and a catalog whose
membership can change between ticks while each tick iterates a stable
snapshot.  Rendering handles live with the host, keyed by object name.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from numpy.typing import NDArray

from .errors import ParseError
from .frames import Geodetic
from .history import TrackHistory, DEFAULT_MAX_POINTS
from .observer import LookAngles
from .tle import ElementSet, parse_tle, build_element_set

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class StateSample:
    """One object's computed state for one tick.  Replaced, never mutated."""
    time: datetime
    position: NDArray           # inertial [km]
    geodetic: Geodetic
    speed: float                # [km/s]
    scene_position: NDArray     # scene frame
    look_angles: Optional[LookAngles] = None

    @property
    def latitude(self) -> float:
        return self.geodetic.latitude

    @property
    def longitude(self) -> float:
        return self.geodetic.longitude

    @property
    def altitude(self) -> float:
        return self.geodetic.altitude


@dataclass(eq=False)
class TrackedObject:
    element_set: ElementSet
    history: TrackHistory
    sample: Optional[StateSample] = None
    failure: Optional[str] = None

    @property
    def name(self) -> str:
        return self.element_set.name

    @property
    def category(self) -> str:
        return self.element_set.category

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self.element_set.metadata


class Catalog:
    """Name-indexed collection of tracked objects.

    Membership changes take a lock; :meth:`snapshot` returns an immutable
    tuple so a tick never sees a half-applied add or remove.
    """

    def __init__(self, max_points: int = DEFAULT_MAX_POINTS):
        if max_points < 1:
            raise ValueError("max_points must be >= 1")
        self._max_points = max_points
        self._objects: dict = {}
        self._lock = threading.Lock()

    @property
    def max_points(self) -> int:
        return self._max_points

    @max_points.setter
    def max_points(self, value: int):
        """New bound for every history, current and future members alike."""
        if value < 1:
            raise ValueError("max_points must be >= 1")
        with self._lock:
            self._max_points = value
            for obj in self._objects.values():
                obj.history.resize(value)

    def add(self, element_set: ElementSet) -> TrackedObject:
        with self._lock:
            if element_set.name in self._objects:
                raise ValueError(f"duplicate catalog name '{element_set.name}'")
            obj = TrackedObject(element_set=element_set,
                                history=TrackHistory(self._max_points,
                                                     name=element_set.name))
            self._objects[element_set.name] = obj
        return obj

    def remove(self, name: str) -> TrackedObject:
        with self._lock:
            return self._objects.pop(name)

    def get(self, name: str) -> Optional[TrackedObject]:
        with self._lock:
            return self._objects.get(name)

    def snapshot(self) -> tuple:
        with self._lock:
            return tuple(self._objects.values())

    def search(self, query: str) -> list:
        """Case-insensitive substring match on object names."""
        q = query.strip().lower()
        return [obj for obj in self.snapshot() if q in obj.name.lower()]

    def categories(self) -> list:
        return sorted({obj.category for obj in self.snapshot()})

    def __contains__(self, name) -> bool:
        with self._lock:
            return name in self._objects

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def __iter__(self):
        return iter(self.snapshot())


def load_catalog(entries: Iterable[Mapping[str, Any]],
                 max_points: int = DEFAULT_MAX_POINTS,
                 strict: bool = False) -> Catalog:
    """Build a catalog from entries shaped like::

        {"name": ..., "type": <category>, "line1": ..., "line2": ...,
         "details": {...}}

    Invalid entries are logged and skipped unless ``strict``.
    """
    catalog = Catalog(max_points=max_points)
    for entry in entries:
        name = entry.get("name", "")
        try:
            es = parse_tle(name, entry["line1"], entry["line2"],
                           category=entry.get("type", ""),
                           metadata=entry.get("details", {}))
            catalog.add(es)
        except (ParseError, KeyError) as ex:
            if strict:
                raise
            logger.warning("Skipping catalog entry %r: %s", name, ex)
    return catalog


# ════════════════════════════════════════════════════════════════════════════
#  Demo Catalog
# ════════════════════════════════════════════════════════════════════════════

DEMO_EPOCH = datetime(2025, 7, 13, 12, 0, 0, tzinfo=timezone.utc)


def _demo_elements() -> list:
    """(name, category, norad, inc, raan, ecc, argp, M, n, details)."""
    rows = [
        ("ISS (ZARYA)", "ISS", 25544, 51.6416, 119.2942, 0.00057, 248.0673, 111.9327, 15.4988775,
         {"description": "Modular crewed space station in low Earth orbit.",
          "launchDate": "November 20, 1998",
          "operator": "NASA, Roscosmos, JAXA, ESA, CSA",
          "purpose": "Space research laboratory, microgravity research",
          "mass": "450,000 kg (approx)",
          "dimensions": "109 m x 73 m x 20 m (approx)"}),
        ("HUBBLE SPACE TELESCOPE", "Hubble", 20580, 28.47, 200.0, 0.00027, 250.0, 110.0, 15.0,
         {"description": "Space telescope in low Earth orbit since 1990.",
          "launchDate": "April 24, 1990", "operator": "NASA, ESA",
          "purpose": "Astronomical observation, deep space imaging",
          "mass": "11,110 kg", "dimensions": "13.2 m x 4.2 m"}),
    ]
    for i in range(5):
        rows.append((f"GPS (NAVSTAR {75 + i})", "GPS", 48274 + i,
                     55.0, 150.0 + i * 5, 0.005, 180.0 + i * 5, 180.0 - i * 5, 2.0,
                     {"description": "GPS constellation navigation satellite.",
                      "launchDate": f"June {17 + i}, 2021",
                      "operator": "United States Space Force",
                      "purpose": "Navigation, positioning, timing",
                      "mass": "2,030 kg (on-orbit)",
                      "dimensions": "Approx. 2.54 m x 1.27 m x 1.27 m"}))
    for i in range(50):
        rows.append((f"STARLINK-{1000 + i}", "Starlink", 44719 + i,
                     53.0, 300.0 + i * 0.5, 0.0001, 100.0 + i * 0.5, 260.0 - i * 0.5, 15.2,
                     {"description": "SpaceX broadband constellation satellite.",
                      "launchDate": f"November {11 + i % 19}, 2019",
                      "operator": "SpaceX",
                      "purpose": "Satellite Internet access",
                      "mass": "260 kg (approx)",
                      "dimensions": "Approx. 3.2 m x 1.6 m"}))
    rows += [
        ("NOAA 15", "Weather", 25338, 98.74, 30.0, 0.001, 90.0, 270.0, 14.2,
         {"description": "POES polar-orbiting weather satellite.",
          "launchDate": "May 13, 1998", "operator": "NOAA",
          "purpose": "Meteorological observation",
          "mass": "1,440 kg", "dimensions": "4.2 m x 1.8 m"}),
        ("GOES 16", "Weather", 42054, 0.05, 280.0, 0.0003, 120.0, 240.0, 1.0027379,
         {"description": "Geostationary weather satellite over the Americas.",
          "launchDate": "November 19, 2016", "operator": "NOAA",
          "purpose": "Geostationary weather monitoring",
          "mass": "5,192 kg (launch)", "dimensions": "6.1 m x 2.6 m"}),
        ("TERRA (EOS AM-1)", "EarthObservation", 25994, 98.2, 100.0, 0.0001, 150.0, 210.0, 14.5,
         {"description": "Earth Observing System land/atmosphere/ocean monitor.",
          "launchDate": "December 18, 1999", "operator": "NASA",
          "purpose": "Earth observation, climate research",
          "mass": "4,864 kg", "dimensions": "6.5 m x 3.5 m x 3.5 m"}),
        ("AQUA (EOS PM-1)", "EarthObservation", 27424, 98.2, 200.0, 0.0001, 200.0, 160.0, 14.5,
         {"description": "Earth Observing System water-cycle mission.",
          "launchDate": "May 4, 2002", "operator": "NASA",
          "purpose": "Earth observation, water cycle research",
          "mass": "2,850 kg", "dimensions": "6.5 m x 3.5 m x 3.5 m"}),
    ]
    return rows


def load_demo_catalog(max_points: int = DEFAULT_MAX_POINTS,
                      epoch: datetime = DEMO_EPOCH) -> Catalog:
    """The mixed demonstration catalog (ISS, Hubble, GPS, Starlink, ...)."""
    catalog = Catalog(max_points=max_points)
    for name, cat, norad, inc, raan, ecc, argp, ma, n, details in _demo_elements():
        catalog.add(build_element_set(name, cat, norad, epoch, inc, raan, ecc,
                                      argp, ma, n, metadata=details))
    return catalog
