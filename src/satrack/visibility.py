"""
satrack.visibility — Per-Object Visibility Classification
===========================================================

Pure geometric decisions, evaluated in the scene frame, about whether an
object should be exposed this tick.  An object is visible when all of:

1. its category is enabled in the type filter;
2. (occlusion on) it is not on the far side of the body from the camera:
   ``(p − c) · (camera − c) ≥ 0``;
3. (night mask on) it is not over the unlit hemisphere:
   ``(p − c) · sun ≥ 0``.

No hidden state: identical inputs always give identical outputs.
"""
from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np
from numpy.typing import NDArray

GROUND_STATION_CATEGORY = "GroundStations"


@dataclass(frozen=True)
class VisibilityFlags:
    type_enabled: bool
    occluded: bool = False
    night_side: bool = False

    @property
    def visible(self) -> bool:
        return self.type_enabled and not self.occluded and not self.night_side


def category_enabled(category: str, type_filter: Optional[Mapping[str, bool]]) -> bool:
    """None enables everything; otherwise a missing category is disabled."""
    if type_filter is None:
        return True
    return bool(type_filter.get(category, False))


def _relative(vec, body_center) -> NDArray:
    v = np.asarray(vec, dtype=np.float64)
    if body_center is None:
        return v
    return v - np.asarray(body_center, dtype=np.float64)


def visibility_flags(
    position: NDArray, category: str,
    camera_position: Optional[NDArray] = None,
    sun_direction: Optional[NDArray] = None,
    type_filter: Optional[Mapping[str, bool]] = None,
    occlusion_enabled: bool = False,
    night_mask_enabled: bool = False,
    body_center: Optional[NDArray] = None,
) -> VisibilityFlags:
    """Evaluate the filter, occlusion and night-side tests in order.

    Later tests are skipped (reported False) once an earlier one hides the
    object.

    Parameters
    ----------
    position : (3,) — object position, scene frame
    category : str — object category tag
    camera_position : (3,) — camera position, scene frame
    sun_direction : (3,) — direction toward the Sun, scene frame
    type_filter : mapping category → enabled, or None for all enabled
    occlusion_enabled, night_mask_enabled : bool — toggles
    body_center : (3,) — primary body centre (default origin)
    """
    if not category_enabled(category, type_filter):
        return VisibilityFlags(type_enabled=False)

    rel = _relative(position, body_center)

    if occlusion_enabled:
        if camera_position is None:
            raise ValueError("occlusion test needs a camera position")
        if float(np.dot(rel, _relative(camera_position, body_center))) < 0.0:
            return VisibilityFlags(type_enabled=True, occluded=True)

    if night_mask_enabled:
        if sun_direction is None:
            raise ValueError("night-side test needs a sun direction")
        if float(np.dot(rel, np.asarray(sun_direction, dtype=np.float64))) < 0.0:
            return VisibilityFlags(type_enabled=True, night_side=True)

    return VisibilityFlags(type_enabled=True)


def classify(obj, camera_position: Optional[NDArray],
             sun_direction: Optional[NDArray],
             type_filter: Optional[Mapping[str, bool]],
             occlusion_enabled: bool,
             night_mask_enabled: bool,
             body_center: Optional[NDArray] = None) -> bool:
    """Visibility of a tracked object from its current sample.

    ``obj`` needs ``category`` and ``sample`` (with ``scene_position``);
    an object without a current sample is never visible.
    """
    sample = getattr(obj, "sample", None)
    if sample is None:
        return False
    return visibility_flags(sample.scene_position, obj.category,
                            camera_position, sun_direction, type_filter,
                            occlusion_enabled, night_mask_enabled,
                            body_center).visible


def surface_point_visible(point: NDArray, camera_position: NDArray,
                          body_center: Optional[NDArray] = None) -> bool:
    """True if a surface marker faces the camera (strictly positive dot)."""
    rel = _relative(point, body_center)
    cam = _relative(camera_position, body_center)
    return float(np.dot(rel, cam)) > 0.0
