"""
satrack — Real-Time Orbital Tracking Engine
=============================================

Propagates a catalog of Earth-orbiting objects from Two-Line Element sets
and, once per display tick, turns each one into everything a 3-D globe
view needs: inertial and geodetic state, a Y-up scene position, a bounded
orbit trace and an antimeridian-safe ground trace, look angles from a home
observer, and a per-object visibility decision.

Pipeline (one tick)::

    SimulationClock ─▶ Propagator ─▶ ECI ─GMST─▶ ECR ─▶ Geodetic ─▶ Scene
                                                          │
                                  TrackHistory ◀──────────┤
                                  LookAngles   ◀──────────┤
                                  Visibility   ◀──────────┘

Frames
------

**ECI** — propagator output (SGP4 TEME), km and km/s.
**ECR** — Earth-fixed, obtained from ECI by a GMST z-rotation.
**Geodetic** — WGS-84 latitude/longitude [deg], height [km].
**Scene** — spherical, Earth-fixed, Y-up, right-handed; see
:mod:`satrack.frames`.

Everything the renderer owns (meshes, labels, camera control) stays with
the host; the engine only consumes scene-frame vectors and names.
"""

from .errors import (
    SatrackError, ParseError, PropagationFailure, TransformFailure,
)

from .config import TrackerConfig, DEFAULT_CONFIG

from .tle import (
    ElementSet,
    parse_tle, parse_tle_batch,
    verify_tle, tle_checksum,
    format_tle_lines, tle_to_lines, build_element_set,
)

from .propagator import (
    OrbitalState, Propagator, Sgp4Propagator, J2Propagator,
    get_propagator,
)

from .frames import (
    Geodetic,
    eci_to_ecr, ecr_to_eci,
    orbital_to_geodetic,
    geodetic_to_cartesian, cartesian_to_geodetic,
    ecef_to_scene, scene_to_ecef,
)

from .observer import (
    ObserverLocation, GroundStation, DEFAULT_GROUND_STATIONS,
    LookAngles, look_angles, look_angles_to_position,
)

from .history import TrackHistory, detect_discontinuity

from .sun import sun_direction_scene, subsolar_point, terminator_points

from .visibility import (
    VisibilityFlags, visibility_flags, classify, surface_point_visible,
)

from .clock import SimulationClock, ClockState

from .catalog import (
    StateSample, TrackedObject, Catalog, load_catalog, load_demo_catalog,
)

from .engine import (
    TickInputs, TickOutputs, ObjectResult, SelectedReport, TrackingEngine,
)

from .utils import (
    normalize_longitude,
    julian_date, gmst,
    MU_EARTH, R_EARTH, R_EARTH_MEAN,
)

__version__ = "1.0.0"
__all__ = [
    # ── Errors ──
    "SatrackError", "ParseError", "PropagationFailure", "TransformFailure",
    # ── Configuration ──
    "TrackerConfig", "DEFAULT_CONFIG",
    # ── Element sets ──
    "ElementSet", "parse_tle", "parse_tle_batch", "verify_tle",
    "tle_checksum", "format_tle_lines", "tle_to_lines", "build_element_set",
    # ── Propagation ──
    "OrbitalState", "Propagator", "Sgp4Propagator", "J2Propagator",
    "get_propagator",
    # ── Frames ──
    "Geodetic", "eci_to_ecr", "ecr_to_eci", "orbital_to_geodetic",
    "geodetic_to_cartesian", "cartesian_to_geodetic",
    "ecef_to_scene", "scene_to_ecef",
    # ── Observer ──
    "ObserverLocation", "GroundStation", "DEFAULT_GROUND_STATIONS",
    "LookAngles", "look_angles", "look_angles_to_position",
    # ── History ──
    "TrackHistory", "detect_discontinuity",
    # ── Sun ──
    "sun_direction_scene", "subsolar_point", "terminator_points",
    # ── Visibility ──
    "VisibilityFlags", "visibility_flags", "classify", "surface_point_visible",
    # ── Clock ──
    "SimulationClock", "ClockState",
    # ── Catalog ──
    "StateSample", "TrackedObject", "Catalog", "load_catalog",
    "load_demo_catalog",
    # ── Engine ──
    "TickInputs", "TickOutputs", "ObjectResult", "SelectedReport",
    "TrackingEngine",
    # ── Utilities ──
    "normalize_longitude", "julian_date", "gmst",
    "MU_EARTH", "R_EARTH", "R_EARTH_MEAN",
]
