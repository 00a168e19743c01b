"""
satrack.tle — Two-Line Element Sets
=====================================

Parses and validates NORAD Two-Line Element sets into immutable
:class:`ElementSet` records carrying a ready-to-run SGP4 satellite record,
and formats structured orbital elements back into checksummed TLE text.

Every element set — whether read from text or built from fields — goes
through :func:`parse_tle`, so checksum, column layout and physical range
checks are applied uniformly.

Reference
---------
Hoots, F.R. & Roehrich, R.L. (1980). SPACETRACK Report No. 3.
Vallado, D.A. (2013). *Fundamentals of Astrodynamics*, 4th ed., §9.4.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Mapping

import numpy as np
from sgp4.api import Satrec

from .errors import ParseError
from .utils import MU_EARTH, R_EARTH, DAILY_SECONDS, ensure_utc, julian_date

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69


@dataclass(frozen=True)
class ElementSet:
    """Validated Two-Line Element set.  Immutable after construction."""
    # ── Identity ──
    name: str
    category: str
    norad_id: int
    line1: str
    line2: str

    # ── Line 1 fields ──
    classification: str = "U"
    intl_designator: str = ""
    epoch_year: int = 2000
    epoch_day: float = 1.0
    ndot: float = 0.0           # 1st derivative of mean motion [rev/day²]
    nddot: float = 0.0          # 2nd derivative of mean motion [rev/day³]
    bstar: float = 0.0          # B* drag term [1/R_earth]
    element_number: int = 0

    # ── Line 2 fields ──
    inclination: float = 0.0    # [rad]
    raan: float = 0.0           # [rad]
    eccentricity: float = 0.0
    argp: float = 0.0           # [rad]
    mean_anomaly: float = 0.0   # [rad]
    mean_motion: float = 0.0    # [rad/s]
    rev_number: int = 0

    # ── Derived ──
    epoch_jd: float = 0.0
    semi_major_axis: float = 0.0  # [km]

    # ── Pass-through display metadata (opaque to the engine) ──
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)

    # ── Propagator state ──
    satrec: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def epoch(self) -> datetime:
        """TLE epoch as an aware UTC datetime."""
        return (datetime(self.epoch_year, 1, 1, tzinfo=timezone.utc)
                + timedelta(days=self.epoch_day - 1.0))

    @property
    def mean_motion_rev_day(self) -> float:
        return self.mean_motion * DAILY_SECONDS / (2.0 * np.pi)

    @property
    def period(self) -> float:
        """Full orbit period in minutes"""
        return (24. * 60.) / self.mean_motion_rev_day

    @property
    def apogee(self) -> float:
        """Apogee altitude [km]."""
        return self.semi_major_axis * (1 + self.eccentricity) - R_EARTH

    @property
    def perigee(self) -> float:
        """Perigee altitude [km]."""
        return self.semi_major_axis * (1 - self.eccentricity) - R_EARTH

    def orbit_type(self) -> str:
        """
        Returns orbit type string: LEO, HEO, MEO or GEO
        """
        if self.period < 225:
            return "LEO"
        elif self.eccentricity >= 0.3:
            return "HEO"
        elif self.period < 800:
            return "MEO"
        return "GEO"


# ════════════════════════════════════════════════════════════════════════════
#  Checksum & Structural Verification
# ════════════════════════════════════════════════════════════════════════════

def tle_checksum(line: str) -> int:
    """Compute the modulo-10 checksum for a TLE line.

    Each digit contributes its face value, '-' counts as 1,
    all other characters count as 0.  The result is sum mod 10.
    """
    s = 0
    for ch in line[:68]:
        if ch.isdigit():
            s += int(ch)
        elif ch == '-':
            s += 1
    return s % 10


def verify_checksum(line: str) -> bool:
    """True if column 69 holds the correct modulo-10 checksum."""
    if len(line) < TLE_LINE_LENGTH or not line[68].isdigit():
        return False
    return tle_checksum(line) == int(line[68])


def verify_tle(line1: str, line2: str) -> dict:
    """Verify checksums and basic structural validity of a TLE pair.

    Returns
    -------
    dict with:
        'valid' : bool — both lines pass all checks
        'line1_checksum', 'line2_checksum' : bool
        'line1_prefix', 'line2_prefix' : bool
        'length' : bool — both lines are exactly 69 characters
        'norad_match' : bool — catalog numbers match between lines
        'errors' : list[str]
    """
    errors = []

    length_ok = len(line1) == TLE_LINE_LENGTH and len(line2) == TLE_LINE_LENGTH
    if not length_ok:
        errors.append(f"line lengths must be {TLE_LINE_LENGTH}, "
                      f"got {len(line1)} and {len(line2)}")

    l1_pfx = line1.startswith("1 ")
    l2_pfx = line2.startswith("2 ")
    if not l1_pfx:
        errors.append("line1 does not start with '1 '")
    if not l2_pfx:
        errors.append("line2 does not start with '2 '")

    l1_ck = verify_checksum(line1)
    l2_ck = verify_checksum(line2)
    if not l1_ck:
        errors.append(f"line1 checksum: expected {tle_checksum(line1)}, "
                      f"got {line1[68] if len(line1) >= 69 else '?'}")
    if not l2_ck:
        errors.append(f"line2 checksum: expected {tle_checksum(line2)}, "
                      f"got {line2[68] if len(line2) >= 69 else '?'}")

    try:
        id1 = int(line1[2:7].strip())
        id2 = int(line2[2:7].strip())
        norad_ok = id1 == id2
        if not norad_ok:
            errors.append(f"NORAD ID mismatch: line1={id1}, line2={id2}")
    except (ValueError, IndexError):
        norad_ok = False
        errors.append("could not parse NORAD IDs")

    return {
        "valid": length_ok and l1_pfx and l2_pfx and l1_ck and l2_ck and norad_ok,
        "line1_checksum": l1_ck,
        "line2_checksum": l2_ck,
        "line1_prefix": l1_pfx,
        "line2_prefix": l2_pfx,
        "length": length_ok,
        "norad_match": norad_ok,
        "errors": errors,
    }


# ════════════════════════════════════════════════════════════════════════════
#  Parsing
# ════════════════════════════════════════════════════════════════════════════

def _parse_exp_field(text: str) -> float:
    """Decode TLE's assumed-decimal exponent notation, e.g. ' 10270-3'."""
    s = text.strip()
    if not s:
        return 0.0
    sign = -1.0 if s[0] == '-' else 1.0
    body = s.lstrip('+-')
    if len(body) < 3 or body[-2] not in "+-":
        raise ValueError(f"bad exponent field {text!r}")
    mantissa = float("0." + body[:-2].replace(" ", "0"))
    return sign * mantissa * 10.0 ** int(body[-2:])


def _epoch_to_jd(year: int, day_of_year: float) -> float:
    """Convert TLE epoch (year, fractional day) to Julian Date."""
    return julian_date(year, 1, 1) + day_of_year - 1.0


def _check_ranges(inc_deg, raan_deg, ecc, argp_deg, ma_deg, mm_rev_day,
                  epoch_day) -> list:
    errors = []
    if not 0.0 <= ecc < 1.0:
        errors.append(f"eccentricity {ecc} outside [0, 1)")
    if not 0.0 <= inc_deg <= 180.0:
        errors.append(f"inclination {inc_deg}° outside [0°, 180°]")
    for label, value in (("RAAN", raan_deg), ("argument of perigee", argp_deg),
                         ("mean anomaly", ma_deg)):
        if not 0.0 <= value < 360.0:
            errors.append(f"{label} {value}° outside [0°, 360°)")
    if not mm_rev_day > 0.0:
        errors.append(f"mean motion {mm_rev_day} rev/day must be positive")
    if not 1.0 <= epoch_day < 367.0:
        errors.append(f"epoch day {epoch_day} outside [1, 367)")
    return errors


def parse_tle(*lines, category: str = "",
              metadata: Mapping[str, Any] = None) -> ElementSet:
    """Parse a two- or three-line TLE (optional name + line 1 + line 2).

    Parameters
    ----------
    lines : str — ``(line1, line2)`` or ``(name, line1, line2)``
    category : str — tag used for visibility filtering
    metadata : mapping — opaque display data passed through unchanged

    Returns
    -------
    element_set : ElementSet

    Raises
    ------
    ParseError — bad structure, checksum, field format or value range
    """
    if len(lines) == 3:
        line0, line1, line2 = lines
    elif len(lines) == 2:
        line0 = ""
        line1, line2 = lines
    else:
        raise ParseError(f"expected 2 or 3 lines, got {len(lines)}")

    name = line0.strip()
    line1 = line1.rstrip()
    line2 = line2.rstrip()

    check = verify_tle(line1, line2)
    if not check["valid"]:
        raise ParseError("; ".join(check["errors"]), name=name,
                         errors=check["errors"])

    try:
        norad_id = int(line1[2:7])
        yr = int(line1[18:20])
        epoch_year = yr + (1900 if yr >= 57 else 2000)
        epoch_day = float(line1[20:32])
        ndot = float(line1[33:43])
        nddot = _parse_exp_field(line1[44:52])
        bstar = _parse_exp_field(line1[53:61])
        element_number = int(line1[64:68]) if line1[64:68].strip() else 0

        inc_deg = float(line2[8:16])
        raan_deg = float(line2[17:25])
        ecc_digits = line2[26:33].strip()
        if not ecc_digits.isdigit():
            raise ValueError(f"bad eccentricity field {line2[26:33]!r}")
        ecc = float("0." + ecc_digits)
        argp_deg = float(line2[34:42])
        ma_deg = float(line2[43:51])
        mm_rev_day = float(line2[52:63])
        rev_number = int(line2[63:68]) if line2[63:68].strip() else 0
    except ValueError as ex:
        raise ParseError(f"malformed field: {ex}", name=name) from ex

    errors = _check_ranges(inc_deg, raan_deg, ecc, argp_deg, ma_deg,
                           mm_rev_day, epoch_day)
    if errors:
        raise ParseError("; ".join(errors), name=name, errors=errors)

    try:
        satrec = Satrec.twoline2rv(line1, line2)
    except ValueError as ex:
        raise ParseError(f"rejected by SGP4 reader: {ex}", name=name) from ex
    if satrec.error != 0:
        raise ParseError(f"SGP4 initialisation failed (code {satrec.error})",
                         name=name)

    mean_motion = mm_rev_day * 2.0 * np.pi / DAILY_SECONDS
    return ElementSet(
        name=name or f"{norad_id:05d}",
        category=category,
        norad_id=norad_id,
        line1=line1,
        line2=line2,
        classification=line1[7],
        intl_designator=line1[9:17].strip(),
        epoch_year=epoch_year,
        epoch_day=epoch_day,
        ndot=ndot,
        nddot=nddot,
        bstar=bstar,
        element_number=element_number,
        inclination=np.deg2rad(inc_deg),
        raan=np.deg2rad(raan_deg),
        eccentricity=ecc,
        argp=np.deg2rad(argp_deg),
        mean_anomaly=np.deg2rad(ma_deg),
        mean_motion=mean_motion,
        rev_number=rev_number,
        epoch_jd=_epoch_to_jd(epoch_year, epoch_day),
        semi_major_axis=(MU_EARTH / mean_motion**2) ** (1.0 / 3.0),
        metadata=metadata or {},
        satrec=satrec,
    )


def parse_tle_batch(text: str, category: str = "",
                    strict: bool = False) -> list[ElementSet]:
    """Parse multiple TLEs from a multi-line string.

    Handles both 2-line (no name) and 3-line (name + lines) formats.
    Entries that fail to parse are logged and skipped unless ``strict``,
    in which case the first :class:`ParseError` propagates.
    """
    lines = [l.rstrip() for l in text.strip().splitlines() if l.strip()]
    sets = []
    i = 0
    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            entry, i = ("", lines[i], lines[i + 1]), i + 2
        elif (i + 2 < len(lines) and lines[i + 1].startswith("1 ")
              and lines[i + 2].startswith("2 ")):
            entry, i = (lines[i], lines[i + 1], lines[i + 2]), i + 3
        else:
            logger.debug("Skipping unpaired TLE line: %r", lines[i])
            i += 1
            continue
        try:
            sets.append(parse_tle(*entry, category=category))
        except ParseError as ex:
            if strict:
                raise
            logger.warning("Skipping invalid element set: %s", ex)
    return sets


# ════════════════════════════════════════════════════════════════════════════
#  Export (fields → text)
# ════════════════════════════════════════════════════════════════════════════

def _format_exp_field(value: float) -> str:
    """Format a value in TLE's special exponent notation.

    TLE format: ±NNNNN±E  where value = ±0.NNNNN × 10^±E
    Example: 0.000123 → ' 12300-3'
             -0.00456 → '-45600-2'

    Raises ParseError when the rounded value needs a two-digit exponent.
    """
    if value == 0.0:
        return " 00000-0"
    if not np.isfinite(value):
        raise ParseError(f"exponent field value {value} is not finite")

    sign = '-' if value < 0 else ' '
    val = abs(value)
    exp = int(np.floor(np.log10(val))) + 1
    mantissa = round(val / (10.0 ** exp), 5)
    if mantissa >= 1.0:
        # rounding carried into the next decade
        mantissa /= 10.0
        exp += 1
    if abs(exp) > 9:
        raise ParseError(f"exponent field value {value} does not fit 8 columns")
    digits = f"{mantissa:.5f}"[2:7]
    exp_sign = '+' if exp >= 0 else '-'
    return f"{sign}{digits}{exp_sign}{abs(exp)}"


def _format_ndot(value: float) -> str:
    """Format ndot as a 10-character ' .NNNNNNNN' field (leading zero dropped)."""
    sign = '-' if value < 0 else ' '
    return sign + f"{abs(value):.8f}".removeprefix("0")


def format_tle_lines(norad_id: int, epoch: datetime,
                     inclination_deg: float, raan_deg: float,
                     eccentricity: float, argp_deg: float,
                     mean_anomaly_deg: float, mean_motion_rev_day: float,
                     ndot: float = 0.0, nddot: float = 0.0, bstar: float = 0.0,
                     classification: str = "U", intl_designator: str = "",
                     element_number: int = 999,
                     rev_number: int = 0) -> tuple[str, str]:
    """Produce standard 69-character TLE lines with valid checksums.

    Raises ParseError for values the fixed-width fields cannot hold.
    """
    epoch = ensure_utc(epoch)
    start = datetime(epoch.year, 1, 1, tzinfo=timezone.utc)
    day = 1.0 + (epoch - start).total_seconds() / DAILY_SECONDS
    epoch_str = f"{epoch.year % 100:02d}{day:012.8f}"

    line1_body = (
        f"1 {norad_id % 100000:05d}{classification} "
        f"{intl_designator:<8.8s} "
        f"{epoch_str} "
        f"{_format_ndot(ndot)} "
        f"{_format_exp_field(nddot)} "
        f"{_format_exp_field(bstar)} "
        f"0 "
        f"{element_number % 10000:4d}"
    )
    line1_body = f"{line1_body:<68s}"[:68]
    line1 = line1_body + str(tle_checksum(line1_body))

    ecc_str = f"{eccentricity:.7f}"
    if not ecc_str.startswith("0."):
        raise ParseError(f"eccentricity {eccentricity} does not fit the "
                         f"7-digit field")
    ecc_str = ecc_str[2:]
    line2_body = (
        f"2 {norad_id % 100000:05d} "
        f"{inclination_deg % 360:8.4f} "
        f"{raan_deg % 360:8.4f} "
        f"{ecc_str} "
        f"{argp_deg % 360:8.4f} "
        f"{mean_anomaly_deg % 360:8.4f} "
        f"{mean_motion_rev_day:11.8f}"
        f"{rev_number % 100000:5d}"
    )
    line2_body = f"{line2_body:<68s}"[:68]
    line2 = line2_body + str(tle_checksum(line2_body))
    return line1, line2


def tle_to_lines(es: ElementSet) -> tuple[str, str]:
    """Re-export an ElementSet's fields as TLE lines."""
    return format_tle_lines(
        es.norad_id, es.epoch,
        np.rad2deg(es.inclination), np.rad2deg(es.raan), es.eccentricity,
        np.rad2deg(es.argp), np.rad2deg(es.mean_anomaly),
        es.mean_motion_rev_day,
        ndot=es.ndot, nddot=es.nddot, bstar=es.bstar,
        classification=es.classification, intl_designator=es.intl_designator,
        element_number=es.element_number, rev_number=es.rev_number,
    )


def build_element_set(name: str, category: str, norad_id: int,
                      epoch: datetime, inclination_deg: float,
                      raan_deg: float, eccentricity: float, argp_deg: float,
                      mean_anomaly_deg: float, mean_motion_rev_day: float,
                      metadata: Mapping[str, Any] = None,
                      **line_fields) -> ElementSet:
    """Build an ElementSet from structured orbital elements.

    The fields are formatted to TLE text and parsed back, so the result is
    validated exactly like catalog text.  Extra keyword arguments are
    forwarded to :func:`format_tle_lines` (``ndot``, ``bstar``, ...).
    """
    for label, value in (("inclination", inclination_deg), ("RAAN", raan_deg),
                         ("argument of perigee", argp_deg),
                         ("mean anomaly", mean_anomaly_deg)):
        if not np.isfinite(value):
            raise ParseError(f"{label} is not finite", name=name)
    if not 0.0 <= eccentricity < 1.0:
        raise ParseError(f"eccentricity {eccentricity} outside [0, 1)", name=name)
    if not 0.0 <= inclination_deg <= 180.0:
        raise ParseError(f"inclination {inclination_deg}° outside [0°, 180°]",
                         name=name)
    if not mean_motion_rev_day > 0.0:
        raise ParseError(f"mean motion {mean_motion_rev_day} rev/day "
                         f"must be positive", name=name)
    try:
        line1, line2 = format_tle_lines(
            norad_id, epoch, inclination_deg, raan_deg, eccentricity, argp_deg,
            mean_anomaly_deg, mean_motion_rev_day, **line_fields)
    except ParseError as ex:
        raise ParseError(str(ex), name=name) from ex
    return parse_tle(name, line1, line2, category=category, metadata=metadata)
