"""
satrack.config — Engine Configuration
=======================================

A single frozen dataclass describing the tunables of the tracking engine.
Values can come from the defaults below, from a plain mapping (e.g. a
host application's settings dict), or from ``SATRACK_*`` environment
variables.
"""

import os
from dataclasses import dataclass, fields, asdict
from typing import Mapping

PROPAGATORS = ("sgp4", "j2")


@dataclass(frozen=True)
class TrackerConfig:
    """
    Tracking engine configuration.

    Fields
    ------
    max_history_points :
        Retained points per history sequence (path and ground track);
        oldest points are evicted first.
    min_rate, max_rate :
        Bounds for the simulation rate multiplier.  Out-of-range requests
        are clamped.
    default_rate :
        Rate multiplier a fresh clock starts with (1 min per second).
    scene_scale :
        Scene units per kilometre.  With the default, Earth's mean radius
        maps to 0.6371 scene units.
    earth_radius_km :
        Radius of the spherical body used for scene coordinates.
    ground_track_lift_km :
        Height above the surface at which ground-track points are placed.
    workers :
        Threads used to shard the per-object loop; 1 runs inline.
    log_level :
        Level the engine applies to the ``satrack`` logger.  Empty leaves
        the logger as the host configured it.
    propagator :
        ``"sgp4"`` (default) or ``"j2"`` (analytic mean-element model).
    """

    max_history_points: int = 5000
    min_rate: int = 1
    max_rate: int = 3600
    default_rate: int = 60
    scene_scale: float = 1e-4
    earth_radius_km: float = 6371.0
    ground_track_lift_km: float = 10.0
    workers: int = 1
    log_level: str = ""
    propagator: str = "sgp4"

    def __post_init__(self):
        if self.max_history_points < 1:
            raise ValueError("max_history_points must be >= 1")
        if not (1 <= self.min_rate <= self.default_rate <= self.max_rate):
            raise ValueError(
                "rates must satisfy 1 <= min_rate <= default_rate <= max_rate, "
                f"got {self.min_rate}, {self.default_rate}, {self.max_rate}")
        if self.scene_scale <= 0.0 or self.earth_radius_km <= 0.0:
            raise ValueError("scene_scale and earth_radius_km must be positive")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.propagator not in PROPAGATORS:
            raise ValueError(f"Unknown propagator '{self.propagator}'. "
                             f"Valid: {PROPAGATORS}")

    @property
    def scene_earth_radius(self) -> float:
        """Body radius in scene units."""
        return self.earth_radius_km * self.scene_scale

    @property
    def scene_ground_radius(self) -> float:
        """Radius of the ground-track shell in scene units."""
        return (self.earth_radius_km + self.ground_track_lift_km) * self.scene_scale

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_mapping(cls, values: Mapping) -> "TrackerConfig":
        """Build a config from a mapping, coercing values to field types."""
        known = {f.name: f for f in fields(cls)}
        unknown = set(values) - set(known)
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        kwargs = {}
        for key, raw in values.items():
            kwargs[key] = _coerce(known[key].type, raw)
        return cls(**kwargs)

    @classmethod
    def from_env(cls, prefix: str = "SATRACK_",
                 environ: Mapping = None) -> "TrackerConfig":
        """Build a config from ``<prefix><FIELD>`` environment variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            key = prefix + f.name.upper()
            if key in environ:
                values[f.name] = environ[key]
        return cls.from_mapping(values)


def _coerce(type_name, raw):
    # dataclass field types are strings under postponed evaluation
    name = type_name if isinstance(type_name, str) else type_name.__name__
    if name == "int":
        return int(raw)
    if name == "float":
        return float(raw)
    return str(raw)


DEFAULT_CONFIG = TrackerConfig()
