"""
satrack.history — Bounded Track Histories
===========================================

Per-object point buffers for the orbit trace (inertial positions) and the
ground trace (surface-projected scene positions).  Both are FIFO-bounded;
the ground trace is additionally restarted whenever consecutive samples
jump across the antimeridian so a renderer never draws a line around the
back of the globe.
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .utils import normalize_longitude, is_finite

logger = logging.getLogger(__name__)

DEFAULT_MAX_POINTS = 5000


def detect_discontinuity(prev_longitude: float, curr_longitude: float) -> bool:
    """True when two longitudes [deg] differ by more than 180° after
    normalisation to (−180°, 180°]."""
    delta = abs(normalize_longitude(prev_longitude)
                - normalize_longitude(curr_longitude))
    return delta > 180.0


@dataclass(frozen=True)
class AppendResult:
    """Outcome of one :meth:`TrackHistory.append` call."""
    path_accepted: bool
    ground_accepted: bool
    discontinuity: bool = False

    @property
    def rejected(self) -> bool:
        return not (self.path_accepted and self.ground_accepted)


class TrackHistory:
    """Two independently bounded point sequences for one tracked object.

    Parameters
    ----------
    max_points : int — retained points per sequence (oldest evicted first)
    name : str — owner identity, used in diagnostics
    """

    def __init__(self, max_points: int = DEFAULT_MAX_POINTS, name: str = ""):
        if max_points < 1:
            raise ValueError("max_points must be >= 1")
        self.max_points = max_points
        self.name = name
        self._path = deque(maxlen=max_points)
        self._ground = deque(maxlen=max_points)
        self.last_longitude: Optional[float] = None
        self.rejected_count = 0

    # ── Views ──

    @property
    def path_points(self) -> list:
        return list(self._path)

    @property
    def ground_track_points(self) -> list:
        return list(self._ground)

    def path_array(self) -> NDArray:
        """(N,3) array of the orbit trace."""
        return np.array(self._path, dtype=np.float64).reshape(-1, 3)

    def ground_track_array(self) -> NDArray:
        """(N,3) array of the current ground-trace segment."""
        return np.array(self._ground, dtype=np.float64).reshape(-1, 3)

    # ── Mutation ──

    def append_path(self, point: NDArray) -> bool:
        """Push an orbit-trace point; False (and nothing stored) if non-finite."""
        p = np.asarray(point, dtype=np.float64)
        if p.shape != (3,) or not is_finite(p):
            self._reject("path", p)
            return False
        self._path.append(p.copy())
        return True

    def append_ground(self, point: NDArray, longitude: float) -> tuple[bool, bool]:
        """Push a ground-trace point with its longitude [deg].

        Returns
        -------
        accepted : bool — False if the point or longitude is non-finite
        discontinuity : bool — True if the trace was restarted first
        """
        p = np.asarray(point, dtype=np.float64)
        if p.shape != (3,) or not is_finite(p, longitude):
            self._reject("ground", p)
            return False, False

        jump = (self.last_longitude is not None
                and detect_discontinuity(self.last_longitude, longitude))
        if jump:
            self._ground.clear()
        self._ground.append(p.copy())
        self.last_longitude = normalize_longitude(float(longitude))
        return True, jump

    def append(self, path_point: NDArray, ground_point: NDArray,
               longitude: float) -> AppendResult:
        """Push one sample's points into both sequences."""
        path_ok = self.append_path(path_point)
        ground_ok, jump = self.append_ground(ground_point, longitude)
        return AppendResult(path_accepted=path_ok, ground_accepted=ground_ok,
                            discontinuity=jump)

    def resize(self, max_points: int):
        """Change the bound, keeping the newest points of each sequence."""
        if max_points < 1:
            raise ValueError("max_points must be >= 1")
        if max_points == self.max_points:
            return
        self.max_points = max_points
        self._path = deque(self._path, maxlen=max_points)
        self._ground = deque(self._ground, maxlen=max_points)

    def clear_ground_track(self):
        self._ground.clear()
        self.last_longitude = None

    def clear(self):
        self._path.clear()
        self.clear_ground_track()

    def _reject(self, which: str, point):
        self.rejected_count += 1
        logger.debug("Rejected non-finite %s point for %s: %r",
                     which, self.name or "<unnamed>", point)

    def __repr__(self):
        return (f"TrackHistory(name={self.name!r}, path={len(self._path)}, "
                f"ground={len(self._ground)}, max_points={self.max_points})")
