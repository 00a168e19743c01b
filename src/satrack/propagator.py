"""
satrack.propagator — Element Set Propagation
==============================================

Advances an :class:`~satrack.tle.ElementSet` to an absolute time and returns
the inertial position/velocity.  Two interchangeable models sit behind the
:class:`Propagator` interface:

- :class:`Sgp4Propagator` — full SGP4/SDP4 via the ``sgp4`` package
  (TEME output, treated as the inertial frame).
- :class:`J2Propagator` — analytic mean elements with Brouwer J2 secular
  rates on RAAN and argument of perigee plus a first-order drag term from
  the TLE's ndot.  Adequate to ~1 km over hours for near-circular LEO.

Either model raises :class:`~satrack.errors.PropagationFailure` instead of
returning non-finite components.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from numpy.typing import NDArray
from sgp4.api import SGP4_ERRORS, jday

from .errors import PropagationFailure
from .tle import ElementSet
from .utils import MU_EARTH, R_EARTH, J2, DAILY_SECONDS, ensure_utc, is_finite


@dataclass(frozen=True, eq=False)
class OrbitalState:
    """Inertial state of one object at one instant."""
    time: datetime
    position: NDArray           # [km]
    velocity: NDArray           # [km/s]
    length_unit: str = "km"
    velocity_unit: str = "km/s"

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


class Propagator(ABC):
    """Capability contract: element set + absolute time → inertial state."""

    name = "abstract"

    @abstractmethod
    def propagate(self, element_set: ElementSet, at_time: datetime) -> OrbitalState:
        """Return the finite inertial state or raise PropagationFailure."""

    def _finish(self, element_set, at_time, r, v) -> OrbitalState:
        r = np.asarray(r, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        if not is_finite(r, v):
            raise PropagationFailure(
                f"{self.name} produced a non-finite state for "
                f"{element_set.name} at {at_time.isoformat()}")
        return OrbitalState(time=at_time, position=r, velocity=v)


# ════════════════════════════════════════════════════════════════════════════
#  SGP4
# ════════════════════════════════════════════════════════════════════════════

class Sgp4Propagator(Propagator):
    """SGP4/SDP4 through the element set's precomputed ``Satrec``."""

    name = "sgp4"

    def propagate(self, element_set: ElementSet, at_time: datetime) -> OrbitalState:
        satrec = element_set.satrec
        if satrec is None:
            raise PropagationFailure(f"{element_set.name} has no SGP4 record")
        at_time = ensure_utc(at_time)
        jd, fr = jday(at_time.year, at_time.month, at_time.day,
                      at_time.hour, at_time.minute,
                      at_time.second + at_time.microsecond / 1e6)
        error, r, v = satrec.sgp4(jd, fr)
        if error != 0:
            reason = SGP4_ERRORS.get(error, "unknown SGP4 error")
            raise PropagationFailure(
                f"SGP4 error {error} for {element_set.name}: {reason}",
                code=error)
        return self._finish(element_set, at_time, r, v)


# ════════════════════════════════════════════════════════════════════════════
#  Analytic J2
# ════════════════════════════════════════════════════════════════════════════

def solve_kepler(M: float, e: float, tol: float = 1e-12,
                 max_iter: int = 50) -> float:
    """Solve Kepler's equation  M = E − e sin(E)  via Newton–Raphson.

    Raises PropagationFailure when the iteration does not converge.
    """
    E = M + 0.85 * e * np.sign(np.sin(M)) if e < 0.8 else np.pi
    for _ in range(max_iter):
        dE = -(E - e * np.sin(E) - M) / (1.0 - e * np.cos(E))
        E += dE
        if abs(dE) < tol:
            return E
    raise PropagationFailure(f"Kepler solver did not converge (M={M}, e={e})")


def _rot1(angle: float) -> NDArray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rot3(angle: float) -> NDArray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def elements_to_state(a: float, e: float, inc: float, raan: float,
                      argp: float, M: float,
                      mu: float = MU_EARTH) -> tuple[NDArray, NDArray]:
    """Mean anomaly form of Keplerian elements → inertial (r, v) [km, km/s]."""
    E = solve_kepler(M % (2.0 * np.pi), e)
    cos_E, sin_E = np.cos(E), np.sin(E)
    root = np.sqrt(1.0 - e**2)

    # Perifocal position / velocity straight from the eccentric anomaly
    r_pqw = a * np.array([cos_E - e, root * sin_E, 0.0])
    r_mag = a * (1.0 - e * cos_E)
    v_pqw = np.sqrt(mu * a) / r_mag * np.array([-sin_E, root * cos_E, 0.0])

    Q = _rot3(raan) @ _rot1(inc) @ _rot3(argp)
    return Q @ r_pqw, Q @ v_pqw


class J2Propagator(Propagator):
    """Mean-element propagation with J2 secular drift and ndot drag."""

    name = "j2"

    def propagate(self, element_set: ElementSet, at_time: datetime) -> OrbitalState:
        at_time = ensure_utc(at_time)
        es = element_set
        dt = (at_time - es.epoch).total_seconds()

        n = es.mean_motion
        e = es.eccentricity
        p = es.semi_major_axis * (1.0 - e**2)

        factor = -1.5 * n * J2 * (R_EARTH / p) ** 2
        raan_dot = factor * np.cos(es.inclination)
        argp_dot = factor * (2.0 - 2.5 * np.sin(es.inclination) ** 2)

        # ndot is in rev/day² from TLE line 1
        n_dot = es.ndot * 2.0 * np.pi / DAILY_SECONDS**2
        n_at_t = n + n_dot * dt
        if not n_at_t > 0.0:
            raise PropagationFailure(
                f"{es.name}: mean motion decayed to {n_at_t} rad/s "
                f"at {at_time.isoformat()}")
        a_at_t = (MU_EARTH / n_at_t**2) ** (1.0 / 3.0)
        if a_at_t * (1.0 - e) < R_EARTH:
            raise PropagationFailure(
                f"{es.name}: perigee below the surface at {at_time.isoformat()}")

        M = es.mean_anomaly + n * dt + 0.5 * n_dot * dt**2
        r, v = elements_to_state(a_at_t, e, es.inclination,
                                 es.raan + raan_dot * dt,
                                 es.argp + argp_dot * dt, M)
        return self._finish(es, at_time, r, v)


PROPAGATORS = {
    Sgp4Propagator.name: Sgp4Propagator,
    J2Propagator.name: J2Propagator,
}


def get_propagator(name: str = "sgp4") -> Propagator:
    """Instantiate a propagator by name ('sgp4' or 'j2')."""
    try:
        return PROPAGATORS[name]()
    except KeyError:
        raise ValueError(f"Unknown propagator '{name}'. "
                         f"Valid: {sorted(PROPAGATORS)}") from None
