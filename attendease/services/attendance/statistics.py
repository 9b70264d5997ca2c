"""
Attendance statistics.

Pure functions: given per-status counts for one student in one enrollment,
derive the attendance percentage, the GOOD/WARNING/CRITICAL standing and
the number of consecutive attended sessions needed to reach the target.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import Mapping, Optional

from attendease.config.settings import settings
from attendease.models.enums import AttendanceStanding, AttendanceStatus
from attendease.schemas.attendance.stats import AttendanceStats

_TWO_PLACES = Decimal("0.01")


def round_half_up(value: Fraction, places: Decimal = _TWO_PLACES) -> float:
    """Round an exact fraction half-up (0.125 -> 0.13, never banker's rounding)."""
    exact = Decimal(value.numerator) / Decimal(value.denominator)
    return float(exact.quantize(places, rounding=ROUND_HALF_UP))


def percentage_of(part: int, whole: int) -> float:
    """``part / whole * 100`` rounded half-up to 2 decimals; 0 for an empty whole."""
    if whole <= 0:
        return 0.0
    return round_half_up(Fraction(part * 100, whole))


def classify(
    percentage: float,
    critical_threshold: Optional[float] = None,
    good_threshold: Optional[float] = None,
) -> AttendanceStanding:
    critical = settings.ATTENDANCE_CRITICAL_THRESHOLD if critical_threshold is None else critical_threshold
    good = settings.ATTENDANCE_GOOD_THRESHOLD if good_threshold is None else good_threshold

    if percentage < critical:
        return AttendanceStanding.CRITICAL
    if percentage < good:
        return AttendanceStanding.WARNING
    return AttendanceStanding.GOOD


def compute_attendance_stats(
    total_sessions: int,
    present: int = 0,
    absent: int = 0,
    late: int = 0,
    excused: int = 0,
) -> AttendanceStats:
    """
    Build the statistics for one student in one enrollment.

    ``total_sessions`` counts every session of the enrollment, including those
    where the student has no record; such sessions lower the percentage but
    are not counted as ``absent``.
    """
    attended = present + late + excused
    percentage = percentage_of(attended, total_sessions)

    return AttendanceStats(
        total_sessions=total_sessions,
        present=present,
        absent=absent,
        late=late,
        excused=excused,
        attended=attended,
        percentage=percentage,
        status=classify(percentage),
    )


def stats_from_counts(total_sessions: int, counts: Mapping[AttendanceStatus, int]) -> AttendanceStats:
    """Adapter from a ``{status: count}`` mapping as returned by the record repository."""
    return compute_attendance_stats(
        total_sessions=total_sessions,
        present=counts.get(AttendanceStatus.PRESENT, 0),
        absent=counts.get(AttendanceStatus.ABSENT, 0),
        late=counts.get(AttendanceStatus.LATE, 0),
        excused=counts.get(AttendanceStatus.EXCUSED, 0),
    )


def sessions_needed(stats: AttendanceStats, target_percentage: Optional[float] = None) -> int:
    """
    Consecutive attended sessions needed to reach the target percentage.

    Smallest ``x`` with ``(attended + x) / (total + x) >= target``, i.e.
    ``ceil((target * total - attended) / (1 - target))``, and never less than 1.
    At a 75% target this is ``max(3 * total - 4 * attended, 1)``.
    """
    target_value = settings.ATTENDANCE_GOOD_THRESHOLD if target_percentage is None else target_percentage
    target = Fraction(str(target_value)) / 100

    needed = math.ceil((target * stats.total_sessions - stats.attended) / (1 - target))
    return max(needed, 1)
