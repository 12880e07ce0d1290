"""Project roster records onto the half-hour staffing grid.

Nothing here is cached: every call recomputes the full grid from the
employee records it is given.
"""
import logging
from .constants import (
    WORK_START,
    WORK_END,
    SLOT_STEP,
    SHIFT_KEYS,
    SHIFT_MODE_SINGLE,
    SHIFT_MODE_DUAL,
    OVERLAP_STRICT,
    STATUS_OFF,
    STATUS_WORK,
    STATUS_BREAK,
)
from .colors import static_role_color
from .utils import (
    TimeSlots,
    overlaps,
    format_hour_label,
    calculate_work_hours,
    format_work_duration,
)

logger = logging.getLogger(__name__)


def classify_single_shift_slot(employee, slot_start, step=SLOT_STEP, policy=OVERLAP_STRICT):
    """Return STATUS_OFF, STATUS_BREAK or STATUS_WORK for one slot."""
    slot_end = slot_start + step
    if not overlaps(slot_start, slot_end, employee["shiftStart"], employee["shiftEnd"], policy):
        return STATUS_OFF

    break_start = employee.get("breakStart")
    break_end = employee.get("breakEnd")
    if (
        break_start is not None
        and break_end is not None
        and overlaps(slot_start, slot_end, break_start, break_end, policy)
    ):
        return STATUS_BREAK

    return STATUS_WORK


def classify_dual_shift_slot(employee, slot_start, step=SLOT_STEP, policy=OVERLAP_STRICT):
    """Return (status, role) for one slot; shift1 is checked before shift2."""
    slot_end = slot_start + step
    for key in SHIFT_KEYS:
        shift = employee.get(key)
        if shift and overlaps(slot_start, slot_end, shift["shiftStart"], shift["shiftEnd"], policy):
            return STATUS_WORK, shift["role"]
    return STATUS_OFF, None


def _single_shift_row(employee, slots, policy, registry):
    color = employee.get("color")
    if not color and registry is not None:
        color = registry.color_for(employee["role"])
    cells = []
    for slot in slots:
        status = classify_single_shift_slot(employee, slot, slots.step, policy)
        cells.append(
            {
                "slot": slot,
                "label": format_hour_label(slot),
                "status": status,
                "role": employee["role"] if status != STATUS_OFF else None,
                "color": color if status != STATUS_OFF else None,
            }
        )
    return {
        "id": employee["id"],
        "name": employee["name"],
        "role": employee["role"],
        "color": color,
        "cells": cells,
    }


def _dual_shift_row(employee, slots, policy, role_colors):
    cells = []
    for slot in slots:
        status, role = classify_dual_shift_slot(employee, slot, slots.step, policy)
        cells.append(
            {
                "slot": slot,
                "label": format_hour_label(slot),
                "status": status,
                "role": role,
                "color": static_role_color(role, role_colors) if role else None,
            }
        )
    roles = [employee[key]["role"] for key in SHIFT_KEYS if employee.get(key)]
    return {"id": employee["id"], "name": employee["name"], "roles": roles, "cells": cells}


def build_legend(employees, mode, registry=None, role_colors=None):
    """Role/colour pairs to show next to the grid.

    Single-shift rosters list the registry entries; dual-shift rosters list
    the roles in use, in first-seen order.
    """
    if mode == SHIFT_MODE_SINGLE:
        return registry.legend() if registry is not None else []

    legend = []
    seen = set()
    for employee in employees:
        for key in SHIFT_KEYS:
            shift = employee.get(key)
            if shift and shift["role"] not in seen:
                seen.add(shift["role"])
                legend.append({"role": shift["role"], "color": static_role_color(shift["role"], role_colors)})
    return legend


def project_grid(
    employees,
    mode=SHIFT_MODE_SINGLE,
    registry=None,
    policy=OVERLAP_STRICT,
    work_start=WORK_START,
    work_end=WORK_END,
    step=SLOT_STEP,
    role_colors=None,
):
    """Build the full staffing grid for a roster.

    Args:
        employees (list): Employee records, all of the same shape
        mode (str): SHIFT_MODE_SINGLE or SHIFT_MODE_DUAL
        registry (RoleColorRegistry): Colour source for single-shift rosters
        policy (str): Overlap policy used to classify slots
        work_start, work_end, step (float): Grid range and slot width
        role_colors (dict): Static role colour table for dual-shift rosters

    Returns:
        dict: slots, per-employee rows with cells and hours, legend, totals
    """
    if mode not in (SHIFT_MODE_SINGLE, SHIFT_MODE_DUAL):
        raise ValueError(f"Unknown shift mode: {mode}")

    slots = TimeSlots(work_start, work_end, step)
    rows = []
    total_hours = 0.0
    for employee in employees:
        if mode == SHIFT_MODE_SINGLE:
            row = _single_shift_row(employee, slots, policy, registry)
        else:
            row = _dual_shift_row(employee, slots, policy, role_colors)
        hours = calculate_work_hours(employee)
        row["workHours"] = hours
        row["workHoursLabel"] = format_work_duration(hours)
        total_hours += hours
        rows.append(row)

    logger.debug(f"Projected {len(rows)} employees onto {len(slots)} slots ({mode}, {policy})")
    return {
        "mode": mode,
        "policy": policy,
        "slots": list(slots),
        "slotLabels": slots.labels(),
        "rows": rows,
        "legend": build_legend(employees, mode, registry, role_colors),
        "totalWorkHours": total_hours,
        "totalWorkHoursLabel": format_work_duration(total_hours),
    }
