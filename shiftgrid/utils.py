import logging
import math
from .constants import (
    WORK_START,
    WORK_END,
    SLOT_STEP,
    OVERLAP_STRICT,
    OVERLAP_TOUCH,
    OVERLAP_POLICIES,
)

logger = logging.getLogger(__name__)


def to_hour_float(time_str):
    """Convert a time string (HH:MM) to an hour-float, e.g. "10:30" -> 10.5.

    Business hours are not checked here.

    Args:
        time_str (str): Clock value as entered in a form

    Returns:
        float|None: Hour-float, or None for empty or non-numeric input
    """
    if not time_str:
        return None
    parts = str(time_str).split(":")
    if len(parts) < 2:
        logger.debug(f"Time value without minutes: {time_str!r}")
        return None
    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError:
        logger.debug(f"Non-numeric time value: {time_str!r}")
        return None
    return hour + minute / 60


def format_hour_label(time):
    """Format an hour-float as HH:MM (floor for hours, minutes rounded)."""
    hours = math.floor(time)
    minutes = int(round((time - hours) * 60))
    return f"{hours:02d}:{minutes:02d}"


def to_time_input_value(value):
    """Same as format_hour_label, but None becomes an empty form value."""
    if value is None:
        return ""
    return format_hour_label(value)


def is_half_hour(time_str):
    """Check that the minutes of a HH:MM value are exactly 00 or 30.

    An empty value is accepted, completeness is checked elsewhere.
    """
    if not time_str:
        return True
    parts = str(time_str).split(":")
    if len(parts) != 2:
        return False
    try:
        minutes = int(parts[1])
    except ValueError:
        return False
    return minutes in (0, 30)


class TimeSlots:
    """Slot start times from `start` up to (not including) `end`.

    Iterating twice yields the same sequence; nothing is materialised
    until iteration.
    """

    def __init__(self, start=WORK_START, end=WORK_END, step=SLOT_STEP):
        if step <= 0:
            raise ValueError("Slot step must be positive.")
        if end <= start:
            raise ValueError("Slot range end must be after its start.")
        self.start = start
        self.end = end
        self.step = step

    def __len__(self):
        return int(round((self.end - self.start) / self.step))

    def __iter__(self):
        for index in range(len(self)):
            yield self.start + index * self.step

    def labels(self):
        return [format_hour_label(slot) for slot in self]


def overlaps(start_a, end_a, start_b, end_b, policy=OVERLAP_STRICT):
    """Check whether interval A overlaps interval B.

    Args:
        start_a, end_a (float): First interval; the grid passes the slot here
        start_b, end_b (float): Second interval; the shift or break
        policy (str): OVERLAP_STRICT treats intervals as half-open, so
            touching edges never overlap. OVERLAP_TOUCH additionally counts
            A ending exactly where B starts as an overlap, so a slot that
            ends where a shift begins is marked, and the slot starting at
            the shift end never is.

    Returns:
        bool: True when the intervals overlap under the given policy
    """
    if policy not in OVERLAP_POLICIES:
        raise ValueError(f"Unknown overlap policy: {policy}")
    if max(start_a, start_b) < min(end_a, end_b):
        return True
    if policy == OVERLAP_TOUCH:
        return end_a == start_b
    return False


def calculate_shift_hours(shift):
    """Duration in hours of a {shiftStart, shiftEnd} mapping, 0.0 for None."""
    if not shift:
        return 0.0
    return shift["shiftEnd"] - shift["shiftStart"]


def calculate_work_hours(employee):
    """Calculate scheduled hours for one employee of either roster shape.

    Single-shift employees subtract their break; dual-shift employees sum
    whichever of shift1/shift2 is present.

    Args:
        employee (dict): Employee record

    Returns:
        float: Scheduled work hours
    """
    if "shift1" in employee or "shift2" in employee:
        return calculate_shift_hours(employee.get("shift1")) + calculate_shift_hours(
            employee.get("shift2")
        )

    total_shift = employee["shiftEnd"] - employee["shiftStart"]
    break_start = employee.get("breakStart")
    break_end = employee.get("breakEnd")
    if break_start is not None and break_end is not None:
        return total_shift - (break_end - break_start)
    return total_shift


def calculate_total_work_hours(employees):
    """Sum of calculate_work_hours over every employee."""
    return sum(calculate_work_hours(employee) for employee in employees)


def format_work_duration(value):
    """Render an hour-float as "H 小時" or "H 小時 M 分"."""
    total_minutes = int(round(value * 60))
    hours = total_minutes // 60
    minutes = total_minutes % 60
    if minutes == 0:
        return f"{hours} 小時"
    return f"{hours} 小時 {minutes} 分"


def format_business_hours(start=WORK_START, end=WORK_END):
    return f"{format_hour_label(start)} ~ {format_hour_label(end)}"
