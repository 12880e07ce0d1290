"""Form validation for both roster shapes.

Validators never raise. They return ``(values, error)`` where exactly one
side is None. ``error`` is a dict with the error ``code``, its ``category``
and ``fields``: form input identifiers mapped to the message to show next
to that input. Checks run in a fixed order and the first failing check wins.
"""
import logging
from .constants import (
    WORK_START,
    WORK_END,
    MAX_EMPLOYEES,
    SHIFT_KEYS,
    FIELD_ROOT,
    FIELD_NAME,
    FIELD_ROLE,
    FIELD_SHIFT_START,
    FIELD_SHIFT_END,
    FIELD_BREAK_START,
    FIELD_BREAK_END,
)
from .utils import to_hour_float, is_half_hour, format_business_hours

logger = logging.getLogger(__name__)

# Error categories
INPUT_INCOMPLETE = "input-incomplete"
INPUT_INVALID = "input-invalid"
INPUT_OUT_OF_RANGE = "input-out-of-range"
CAPACITY_EXCEEDED = "capacity-exceeded"
DECODE_MALFORMED = "decode-malformed"
NOT_FOUND = "not-found"

# Error codes
ROSTER_FULL = "ROSTER_FULL"
EMPTY_NAME = "EMPTY_NAME"
EMPTY_ROLE = "EMPTY_ROLE"
INCOMPLETE_SHIFT = "INCOMPLETE_SHIFT"
INCOMPLETE_SHIFT_TIME = "INCOMPLETE_SHIFT_TIME"
NO_SHIFT_SELECTED = "NO_SHIFT_SELECTED"
MISALIGNED_TIME = "MISALIGNED_TIME"
OUT_OF_BUSINESS_HOURS = "OUT_OF_BUSINESS_HOURS"
INVERTED_SHIFT = "INVERTED_SHIFT"
INCOMPLETE_BREAK = "INCOMPLETE_BREAK"
BREAK_OUT_OF_SHIFT = "BREAK_OUT_OF_SHIFT"
INVERTED_BREAK = "INVERTED_BREAK"
EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"

ERROR_CATEGORIES = {
    ROSTER_FULL: CAPACITY_EXCEEDED,
    EMPTY_NAME: INPUT_INCOMPLETE,
    EMPTY_ROLE: INPUT_INCOMPLETE,
    INCOMPLETE_SHIFT: INPUT_INCOMPLETE,
    INCOMPLETE_SHIFT_TIME: INPUT_INCOMPLETE,
    NO_SHIFT_SELECTED: INPUT_INCOMPLETE,
    INCOMPLETE_BREAK: INPUT_INCOMPLETE,
    MISALIGNED_TIME: INPUT_INVALID,
    INVERTED_SHIFT: INPUT_INVALID,
    INVERTED_BREAK: INPUT_INVALID,
    OUT_OF_BUSINESS_HOURS: INPUT_OUT_OF_RANGE,
    BREAK_OUT_OF_SHIFT: INPUT_OUT_OF_RANGE,
    EMPLOYEE_NOT_FOUND: NOT_FOUND,
}

SHIFT_LABELS = {"shift1": "第一段班", "shift2": "第二段班"}
HALF_HOUR_MESSAGE = "分鐘僅能為 00 或 30。"


def make_error(code, fields):
    return {"code": code, "category": ERROR_CATEGORIES[code], "fields": fields}


def _text(form, key):
    value = form.get(key)
    if value is None:
        return ""
    return str(value).strip()


def check_roster_capacity(employee_count, is_editing, max_employees=MAX_EMPLOYEES):
    """Reject new submissions once the roster is full; edits always pass."""
    if not is_editing and employee_count >= max_employees:
        logger.info(f"Roster full ({employee_count}/{max_employees}), rejecting submission")
        return make_error(ROSTER_FULL, {FIELD_ROOT: f"已達 {max_employees} 位員工的上限。"})
    return None


def _misaligned_fields(form, keys):
    fields = {}
    for key in keys:
        text = _text(form, key)
        if text and (to_hour_float(text) is None or not is_half_hour(text)):
            fields[key] = HALF_HOUR_MESSAGE
    return fields


def validate_single_shift_form(
    form,
    employee_count=0,
    is_editing=False,
    work_start=WORK_START,
    work_end=WORK_END,
    max_employees=MAX_EMPLOYEES,
):
    """Validate a single-shift form (name, role, one shift, optional break).

    Args:
        form (dict): Raw form values, times as HH:MM strings
        employee_count (int): Current roster size, for the capacity check
        is_editing (bool): True when replacing an existing employee
        work_start, work_end (float): Business hours

    Returns:
        tuple: (dict|None, dict|None) - (parsed values, error)
    """
    capacity_error = check_roster_capacity(employee_count, is_editing, max_employees)
    if capacity_error:
        return None, capacity_error

    name = _text(form, FIELD_NAME)
    role = _text(form, FIELD_ROLE)
    if not name:
        return None, make_error(EMPTY_NAME, {FIELD_NAME: "請輸入員工姓名。"})
    if not role:
        return None, make_error(EMPTY_ROLE, {FIELD_ROLE: "請輸入工作項目。"})

    shift_start = to_hour_float(_text(form, FIELD_SHIFT_START))
    shift_end = to_hour_float(_text(form, FIELD_SHIFT_END))
    if shift_start is None or shift_end is None:
        message = "請輸入完整的上班時段。"
        return None, make_error(
            INCOMPLETE_SHIFT, {FIELD_SHIFT_START: message, FIELD_SHIFT_END: message}
        )

    misaligned = _misaligned_fields(
        form, [FIELD_SHIFT_START, FIELD_SHIFT_END, FIELD_BREAK_START, FIELD_BREAK_END]
    )
    if misaligned:
        return None, make_error(MISALIGNED_TIME, misaligned)

    if shift_start < work_start or shift_end > work_end:
        message = f"上班時間需介於 {format_business_hours(work_start, work_end)}。"
        fields = {}
        if shift_start < work_start:
            fields[FIELD_SHIFT_START] = message
        if shift_end > work_end:
            fields[FIELD_SHIFT_END] = message
        return None, make_error(OUT_OF_BUSINESS_HOURS, fields)

    if shift_start >= shift_end:
        return None, make_error(
            INVERTED_SHIFT, {FIELD_SHIFT_END: "上班開始時間需早於結束時間。"}
        )

    break_start_text = _text(form, FIELD_BREAK_START)
    break_end_text = _text(form, FIELD_BREAK_END)
    break_start = to_hour_float(break_start_text) if break_start_text else None
    break_end = to_hour_float(break_end_text) if break_end_text else None

    if (break_start is None) != (break_end is None):
        message = "請輸入完整的休息起迄時間，或全部留空。"
        return None, make_error(
            INCOMPLETE_BREAK, {FIELD_BREAK_START: message, FIELD_BREAK_END: message}
        )

    if break_start is not None:
        if break_start < shift_start or break_end > shift_end:
            message = "休息時段需介於上班時段之內。"
            fields = {}
            if break_start < shift_start:
                fields[FIELD_BREAK_START] = message
            if break_end > shift_end:
                fields[FIELD_BREAK_END] = message
            return None, make_error(BREAK_OUT_OF_SHIFT, fields)
        if break_start >= break_end:
            return None, make_error(
                INVERTED_BREAK, {FIELD_BREAK_END: "休息開始時間需早於結束時間。"}
            )

    values = {
        "name": name,
        "role": role,
        "shiftStart": shift_start,
        "shiftEnd": shift_end,
        "breakStart": break_start,
        "breakEnd": break_end,
    }
    return values, None


def validate_dual_shift_form(
    form,
    employee_count=0,
    is_editing=False,
    work_start=WORK_START,
    work_end=WORK_END,
    max_employees=MAX_EMPLOYEES,
):
    """Validate a dual-shift form (name plus up to two independent shifts).

    A shift counts as present only when its role is filled in; its time
    fields carry defaults and say nothing about presence. Overlap between
    shift1 and shift2 is not checked.

    Args:
        form (dict): Raw form values (shift1Role, shift1Start, ... shift2End)
        employee_count (int): Current roster size, for the capacity check
        is_editing (bool): True when replacing an existing employee
        work_start, work_end (float): Business hours

    Returns:
        tuple: (dict|None, dict|None) - (parsed values, error)
    """
    capacity_error = check_roster_capacity(employee_count, is_editing, max_employees)
    if capacity_error:
        return None, capacity_error

    name = _text(form, FIELD_NAME)
    if not name:
        return None, make_error(EMPTY_NAME, {FIELD_NAME: "請輸入員工姓名。"})

    present = [key for key in SHIFT_KEYS if _text(form, f"{key}Role")]

    missing = {}
    for key in present:
        label = SHIFT_LABELS[key]
        if to_hour_float(_text(form, f"{key}Start")) is None:
            missing[f"{key}Start"] = f"請輸入{label}的開始時間。"
        if to_hour_float(_text(form, f"{key}End")) is None:
            missing[f"{key}End"] = f"請輸入{label}的結束時間。"
    if missing:
        return None, make_error(INCOMPLETE_SHIFT_TIME, missing)

    misaligned = _misaligned_fields(
        form, [f"{key}{part}" for key in present for part in ("Start", "End")]
    )
    if misaligned:
        return None, make_error(MISALIGNED_TIME, misaligned)

    if not present:
        return None, make_error(NO_SHIFT_SELECTED, {FIELD_ROOT: "請至少選擇一段班。"})

    values = {"name": name, "shift1": None, "shift2": None}
    for key in present:
        start_field = f"{key}Start"
        end_field = f"{key}End"
        shift_start = to_hour_float(_text(form, start_field))
        shift_end = to_hour_float(_text(form, end_field))
        if shift_start >= shift_end:
            return None, make_error(
                INVERTED_SHIFT,
                {end_field: f"{SHIFT_LABELS[key]}的開始時間需早於結束時間。"},
            )
        if shift_start < work_start or shift_end > work_end:
            message = f"上班時間需介於 {format_business_hours(work_start, work_end)}。"
            fields = {}
            if shift_start < work_start:
                fields[start_field] = message
            if shift_end > work_end:
                fields[end_field] = message
            return None, make_error(OUT_OF_BUSINESS_HOURS, fields)
        values[key] = {
            "role": _text(form, f"{key}Role"),
            "shiftStart": shift_start,
            "shiftEnd": shift_end,
        }
    return values, None
