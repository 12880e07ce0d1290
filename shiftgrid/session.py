"""In-memory roster with create, edit, delete and wholesale replace."""
import logging
import uuid
from .constants import (
    WORK_START,
    WORK_END,
    SLOT_STEP,
    MAX_EMPLOYEES,
    SHIFT_KEYS,
    SHIFT_MODES,
    SHIFT_MODE_SINGLE,
    OVERLAP_STRICT,
)
from .colors import RoleColorRegistry
from .grid import project_grid
from .utils import to_time_input_value
from .validation import (
    validate_single_shift_form,
    validate_dual_shift_form,
    make_error,
    EMPLOYEE_NOT_FOUND,
)

logger = logging.getLogger(__name__)


def generate_employee_id():
    return uuid.uuid4().hex


class RosterSession:
    """In-memory roster for one deployment, in exactly one shift mode.

    Holds the employees and, for single-shift rosters, the role colour
    registry. Every mutation either completes or leaves the roster as it
    was; a failed validation never touches state.
    """

    def __init__(
        self,
        mode=SHIFT_MODE_SINGLE,
        employees=None,
        registry=None,
        max_employees=MAX_EMPLOYEES,
        work_start=WORK_START,
        work_end=WORK_END,
        step=SLOT_STEP,
    ):
        if mode not in SHIFT_MODES:
            raise ValueError(f"Unknown shift mode: {mode}")
        self.mode = mode
        self.registry = registry if registry is not None else RoleColorRegistry()
        self.max_employees = max_employees
        self.work_start = work_start
        self.work_end = work_end
        self.step = step
        self.employees = []
        if employees:
            self.replace_all(employees)

    @property
    def is_single_shift(self):
        return self.mode == SHIFT_MODE_SINGLE

    def get(self, employee_id):
        for employee in self.employees:
            if employee["id"] == employee_id:
                return employee
        return None

    def validate(self, form, is_editing=False):
        validator = (
            validate_single_shift_form if self.is_single_shift else validate_dual_shift_form
        )
        return validator(
            form,
            employee_count=len(self.employees),
            is_editing=is_editing,
            work_start=self.work_start,
            work_end=self.work_end,
            max_employees=self.max_employees,
        )

    def submit(self, form, editing_id=None):
        """Create an employee, or fully replace `editing_id` keeping its id.

        Args:
            form (dict): Raw form values for the session's shift mode
            editing_id (str|None): Employee being edited, None for a new one

        Returns:
            tuple: (dict|None, dict|None) - (stored employee, error)
        """
        original = None
        if editing_id is not None:
            original = self.get(editing_id)
            if original is None:
                return None, make_error(
                    EMPLOYEE_NOT_FOUND, {"root": "找不到要編輯的員工。"}
                )

        values, error = self.validate(form, is_editing=original is not None)
        if error:
            logger.info(f"Submission rejected: {error['code']} on {sorted(error['fields'])}")
            return None, error

        if self.is_single_shift:
            values["color"] = self.registry.assign(values["role"])

        if original is None:
            employee = {"id": generate_employee_id(), **values}
            self.employees.append(employee)
            logger.info(f"Added employee {employee['id']} ({len(self.employees)} total)")
            return employee, None

        employee = {"id": original["id"], **values}
        index = self.employees.index(original)
        self.employees[index] = employee
        if self.is_single_shift and original["role"] != employee["role"]:
            self.registry.release(original["role"], self.employees)
        logger.info(f"Updated employee {employee['id']}")
        return employee, None

    def delete(self, employee_id):
        """Remove an employee; returns the removed record or None."""
        employee = self.get(employee_id)
        if employee is None:
            return None
        self.employees.remove(employee)
        if self.is_single_shift:
            self.registry.release(employee["role"], self.employees)
        logger.info(f"Deleted employee {employee_id} ({len(self.employees)} left)")
        return employee

    def replace_all(self, employees):
        """Swap in a roster loaded wholesale (file or share token)."""
        self.employees = [dict(employee) for employee in employees]
        if not self.is_single_shift:
            for employee in self.employees:
                for key in SHIFT_KEYS:
                    employee.setdefault(key, None)
        else:
            self.registry.restore(self.employees)
            for employee in self.employees:
                employee.setdefault("breakStart", None)
                employee.setdefault("breakEnd", None)
                employee["color"] = self.registry.color_for(employee["role"])

    def form_values(self, employee_id):
        """Form prefill for editing, times rendered back to HH:MM."""
        employee = self.get(employee_id)
        if employee is None:
            return None
        if self.is_single_shift:
            return {
                "name": employee["name"],
                "role": employee["role"],
                "shiftStart": to_time_input_value(employee["shiftStart"]),
                "shiftEnd": to_time_input_value(employee["shiftEnd"]),
                "breakStart": to_time_input_value(employee.get("breakStart")),
                "breakEnd": to_time_input_value(employee.get("breakEnd")),
            }
        values = {"name": employee["name"]}
        for key in SHIFT_KEYS:
            shift = employee.get(key) or {}
            values[f"{key}Role"] = shift.get("role", "")
            values[f"{key}Start"] = to_time_input_value(shift.get("shiftStart"))
            values[f"{key}End"] = to_time_input_value(shift.get("shiftEnd"))
        return values

    def grid(self, policy=OVERLAP_STRICT):
        return project_grid(
            self.employees,
            mode=self.mode,
            registry=self.registry if self.is_single_shift else None,
            policy=policy,
            work_start=self.work_start,
            work_end=self.work_end,
            step=self.step,
        )
