"""Role colours: the dynamic single-shift registry and the static dual-shift table."""
import logging
from .constants import COLOR_PALETTE, ROLE_COLOR_OVERRIDES, NEUTRAL_ROLE_COLOR

logger = logging.getLogger(__name__)


class RoleColorRegistry:
    """Role -> display colour bookkeeping for the single-shift roster.

    Overridden roles always get their fixed colour. Any other role takes the
    next palette colour the first time it is used and keeps it until no
    employee refers to it any more. ``palette_index`` only ever grows, so a
    reclaimed colour is not handed out again until the palette wraps.
    """

    def __init__(
        self,
        palette=None,
        overrides=None,
        role_colors=None,
        palette_index=0,
    ):
        self.palette = list(palette) if palette else list(COLOR_PALETTE)
        self.overrides = dict(ROLE_COLOR_OVERRIDES if overrides is None else overrides)
        self.role_colors = dict(role_colors or {})
        self.palette_index = palette_index

    def assign(self, role):
        """Return the colour for `role`, allocating a palette slot if needed."""
        override = self.overrides.get(role)
        if override:
            if self.role_colors.get(role) != override:
                self.role_colors[role] = override
            return override

        color = self.role_colors.get(role)
        if color:
            return color

        color = self.palette[self.palette_index % len(self.palette)]
        self.role_colors[role] = color
        self.palette_index += 1
        logger.debug(f"Assigned {color} to role '{role}' (palette index now {self.palette_index})")
        return color

    def release(self, role, employees):
        """Drop `role` when none of `employees` still uses it.

        Args:
            role (str): Role the changed or deleted employee used to have
            employees (list): Roster after the change

        Returns:
            bool: True if the entry was removed
        """
        if any(employee.get("role") == role for employee in employees):
            return False
        if role in self.role_colors:
            del self.role_colors[role]
            logger.debug(f"Released colour for unused role '{role}'")
            return True
        return False

    def restore(self, employees):
        """Rebuild the registry from a roster loaded wholesale.

        Stored employee colours win so a reloaded chart looks the same; the
        palette index continues after the number of non-overridden roles.
        """
        self.role_colors = {}
        dynamic_roles = 0
        for employee in employees:
            role = employee.get("role")
            if not role or role in self.role_colors:
                continue
            if role in self.overrides:
                self.role_colors[role] = self.overrides[role]
                continue
            self.role_colors[role] = employee.get("color") or self.palette[
                dynamic_roles % len(self.palette)
            ]
            dynamic_roles += 1
        self.palette_index = max(self.palette_index, dynamic_roles)

    def color_for(self, role):
        return self.role_colors.get(role, NEUTRAL_ROLE_COLOR)

    def legend(self):
        return [{"role": role, "color": color} for role, color in self.role_colors.items()]

    def to_dict(self):
        return {"roleColors": dict(self.role_colors), "paletteIndex": self.palette_index}


def static_role_color(role, table=None, default=NEUTRAL_ROLE_COLOR):
    """Dual-shift colour lookup: fixed table only, `default` for unknown roles."""
    table = ROLE_COLOR_OVERRIDES if table is None else table
    if not role:
        return default
    return table.get(role, default)
