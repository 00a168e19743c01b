"""
satrack.engine — Per-Tick Orchestration
=========================================

:class:`TrackingEngine` is invoked once per display frame with the host's
inputs and returns everything the host needs to draw that frame::

    outputs = engine.tick(TickInputs(wall_delta_ms=16.7, camera_position=cam))

Per tick, for every tracked object:

    propagate → geodetic → scene position → (selected) look angles
      → history append → visibility

The clock, observer, sun direction and catalog membership are snapshotted
once at tick start so every object in a tick sees the same values.  Any
object whose propagation or frame conversion fails is reported as not
visible for that tick; the others carry on.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

import numpy as np
from numpy.typing import NDArray

from .catalog import Catalog, StateSample, TrackedObject
from .clock import SimulationClock
from .config import TrackerConfig, DEFAULT_CONFIG
from .errors import SatrackError
from .frames import orbital_to_geodetic, geodetic_to_cartesian
from .logging_utils import get_logger
from .observer import (
    ObserverLocation, LookAngles, DEFAULT_GROUND_STATIONS,
    look_angles_to_position,
)
from .propagator import Propagator, get_propagator
from .sun import sun_direction_scene
from .utils import normalize, as_vector3
from .visibility import (
    VisibilityFlags, visibility_flags, category_enabled, surface_point_visible,
    GROUND_STATION_CATEGORY,
)

logger = get_logger(__name__)


# ════════════════════════════════════════════════════════════════════════════
#  Tick Records
# ════════════════════════════════════════════════════════════════════════════

@dataclass
class TickInputs:
    """Everything the host supplies for one frame (scene-frame vectors)."""
    wall_delta_ms: float = 0.0
    rate_multiplier: Optional[int] = None
    paused: Optional[bool] = None
    observer: Optional[ObserverLocation] = None
    type_filter: Optional[Mapping[str, bool]] = None
    occlusion_enabled: bool = False
    night_mask_enabled: bool = False
    camera_position: Optional[NDArray] = None
    sun_direction: Optional[NDArray] = None
    body_center: Optional[NDArray] = None
    selected: Optional[str] = None


@dataclass(frozen=True, eq=False)
class ObjectResult:
    name: str
    sample: Optional[StateSample]
    visible: bool
    failure: Optional[str] = None
    flags: Optional[VisibilityFlags] = None


@dataclass(frozen=True, eq=False)
class SelectedReport:
    name: str
    sample: Optional[StateSample]
    look_angles: Optional[LookAngles]
    inclination: float      # [deg], orbital-plane tilt
    raan: float             # [deg], orbital-plane node


@dataclass(frozen=True, eq=False)
class TickOutputs:
    time: datetime
    results: Mapping[str, ObjectResult]
    selected: Optional[SelectedReport]
    sun_direction: NDArray
    station_visibility: Mapping[str, bool] = field(default_factory=dict)
    observer_visible: Optional[bool] = None

    @property
    def visible_names(self) -> list:
        return [name for name, r in self.results.items() if r.visible]

    @property
    def failures(self) -> dict:
        return {name: r.failure for name, r in self.results.items() if r.failure}


@dataclass(frozen=True, eq=False)
class _TickFrame:
    """Values shared read-only by every object in one tick."""
    time: datetime
    observer: Optional[ObserverLocation]
    sun_direction: NDArray
    camera_position: Optional[NDArray]
    body_center: NDArray
    type_filter: Optional[Mapping[str, bool]]
    occlusion_enabled: bool
    night_mask_enabled: bool
    selected: Optional[str]


# ════════════════════════════════════════════════════════════════════════════
#  Engine
# ════════════════════════════════════════════════════════════════════════════

class TrackingEngine:
    """
    Parameters
    ----------
    catalog : Catalog — tracked objects (membership may change between ticks)
    config : TrackerConfig
    clock : SimulationClock — default: starts now at ``config.default_rate``
    propagator : Propagator — default: ``get_propagator(config.propagator)``
    stations : sequence of GroundStation — reference markers
    """

    def __init__(self, catalog: Catalog, config: TrackerConfig = DEFAULT_CONFIG,
                 clock: Optional[SimulationClock] = None,
                 propagator: Optional[Propagator] = None,
                 stations=DEFAULT_GROUND_STATIONS):
        self.catalog = catalog
        self.config = config
        self.clock = clock or SimulationClock(rate_multiplier=config.default_rate,
                                              min_rate=config.min_rate,
                                              max_rate=config.max_rate)
        self.propagator = propagator or get_propagator(config.propagator)
        self.stations = tuple(stations)
        self._executor: Optional[ThreadPoolExecutor] = None
        # the engine owns the history bound
        catalog.max_points = config.max_history_points
        if config.log_level:
            get_logger("satrack", level=config.log_level)

    # ── lifecycle ──

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── tick ──

    def tick(self, inputs: TickInputs) -> TickOutputs:
        """Advance the clock and recompute every object once.

        Inputs are validated before anything changes: a rejected tick
        raises ``ValueError`` with the clock and every history untouched.
        """
        if inputs.occlusion_enabled and inputs.camera_position is None:
            raise ValueError("occlusion_enabled requires camera_position")
        if not np.isfinite(inputs.wall_delta_ms):
            raise ValueError(f"wall_delta_ms must be finite, got {inputs.wall_delta_ms}")
        sun = (None if inputs.sun_direction is None
               else normalize(as_vector3(inputs.sun_direction)))
        camera = (None if inputs.camera_position is None
                  else as_vector3(inputs.camera_position))
        center = (np.zeros(3) if inputs.body_center is None
                  else as_vector3(inputs.body_center))

        if inputs.rate_multiplier is not None:
            self.clock.rate_multiplier = inputs.rate_multiplier
        if inputs.paused is not None:
            self.clock.paused = inputs.paused
        now = self.clock.advance(inputs.wall_delta_ms)
        if sun is None:
            sun = sun_direction_scene(now)

        frame = _TickFrame(
            time=now,
            observer=inputs.observer,
            sun_direction=sun,
            camera_position=camera,
            body_center=center,
            type_filter=(None if inputs.type_filter is None
                         else dict(inputs.type_filter)),
            occlusion_enabled=inputs.occlusion_enabled,
            night_mask_enabled=inputs.night_mask_enabled,
            selected=inputs.selected,
        )

        objects = self.catalog.snapshot()
        if self.config.workers > 1 and len(objects) > 1:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.config.workers,
                                                    thread_name_prefix="satrack")
            step_results = list(self._executor.map(lambda o: self._step(o, frame), objects))
        else:
            step_results = [self._step(obj, frame) for obj in objects]

        results = {r.name: r for r in step_results}
        return TickOutputs(
            time=now,
            results=results,
            selected=self._selected_report(frame, objects, results),
            sun_direction=sun,
            station_visibility=self._station_visibility(frame),
            observer_visible=self._observer_visible(frame),
        )

    def _step(self, obj: TrackedObject, frame: _TickFrame) -> ObjectResult:
        cfg = self.config
        try:
            state = self.propagator.propagate(obj.element_set, frame.time)
            geo = orbital_to_geodetic(state.position, frame.time)
        except SatrackError as ex:
            return self._fail(obj, ex)

        scene = frame.body_center + geodetic_to_cartesian(
            geo.latitude, geo.longitude, geo.altitude * cfg.scene_scale,
            radius=cfg.scene_earth_radius)
        ground = frame.body_center + geodetic_to_cartesian(
            geo.latitude, geo.longitude, 0.0, radius=cfg.scene_ground_radius)

        look = None
        if frame.observer is not None and obj.name == frame.selected:
            look = look_angles_to_position(frame.observer, state.position, frame.time)

        sample = StateSample(time=frame.time, position=state.position,
                             geodetic=geo, speed=state.speed,
                             scene_position=scene, look_angles=look)

        appended = obj.history.append(state.position, ground, geo.longitude)
        if appended.discontinuity:
            logger.debug("%s crossed the antimeridian; ground track restarted", obj.name)

        obj.sample = sample
        if obj.failure is not None:
            logger.info("%s recovered at %s", obj.name, frame.time.isoformat())
            obj.failure = None

        flags = visibility_flags(scene, obj.category, frame.camera_position,
                                 frame.sun_direction, frame.type_filter,
                                 frame.occlusion_enabled, frame.night_mask_enabled,
                                 frame.body_center)
        return ObjectResult(name=obj.name, sample=sample, visible=flags.visible,
                            flags=flags)

    def _fail(self, obj: TrackedObject, ex: SatrackError) -> ObjectResult:
        reason = str(ex)
        if obj.failure is None:
            logger.warning("%s (%s) hidden this tick: %s",
                           obj.name, obj.category or "uncategorised", reason)
        else:
            logger.debug("%s still failing: %s", obj.name, reason)
        obj.failure = reason
        obj.sample = None
        return ObjectResult(name=obj.name, sample=None, visible=False, failure=reason)

    def _selected_report(self, frame, objects, results) -> Optional[SelectedReport]:
        if frame.selected is None or frame.selected not in results:
            return None
        obj = next(o for o in objects if o.name == frame.selected)
        sample = results[frame.selected].sample
        return SelectedReport(
            name=obj.name,
            sample=sample,
            look_angles=None if sample is None else sample.look_angles,
            inclination=float(np.rad2deg(obj.element_set.inclination)),
            raan=float(np.rad2deg(obj.element_set.raan)),
        )

    def _marker_visible(self, frame, lat: float, lon: float) -> bool:
        if frame.camera_position is None:
            return True
        point = frame.body_center + geodetic_to_cartesian(
            lat, lon, 0.0, radius=self.config.scene_earth_radius)
        return surface_point_visible(point, frame.camera_position, frame.body_center)

    def _station_visibility(self, frame) -> dict:
        enabled = category_enabled(GROUND_STATION_CATEGORY, frame.type_filter)
        return {s.name: enabled and self._marker_visible(frame, s.latitude, s.longitude)
                for s in self.stations}

    def _observer_visible(self, frame) -> Optional[bool]:
        if frame.observer is None:
            return None
        return self._marker_visible(frame, frame.observer.latitude,
                                    frame.observer.longitude)
