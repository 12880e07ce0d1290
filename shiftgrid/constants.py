WORK_START = 10
WORK_END = 23
SLOT_STEP = 0.5

MAX_EMPLOYEES = 15

SHIFT_MODE_SINGLE = "single"
SHIFT_MODE_DUAL = "dual"
SHIFT_MODES = [SHIFT_MODE_SINGLE, SHIFT_MODE_DUAL]

OVERLAP_STRICT = "strict"
OVERLAP_TOUCH = "touch"
OVERLAP_POLICIES = [OVERLAP_STRICT, OVERLAP_TOUCH]

STATUS_OFF = "off"
STATUS_WORK = "work"
STATUS_BREAK = "break"

COLOR_PALETTE = [
    "#4F46E5",
    "#F97316",
    "#10B981",
    "#EC4899",
    "#14B8A6",
    "#6366F1",
    "#E11D48",
    "#0EA5E9",
    "#A855F7",
    "#F59E0B",
    "#84CC16",
    "#D946EF",
    "#FACC15",
    "#FB7185",
    "#22D3EE",
]

ROLE_COLOR_OVERRIDES = {
    "菜口": "#1d4ed8",
    "跑菜": "#60a5fa",
}

# Dual-shift roles missing from the override table render with this colour
NEUTRAL_ROLE_COLOR = "#9CA3AF"

ROLE_OPTIONS = ["客服", "菜口", "跑菜", "內場", "外場"]

# Form input identifiers, errors are keyed by these
FIELD_ROOT = "root"
FIELD_NAME = "name"
FIELD_ROLE = "role"
FIELD_SHIFT_START = "shiftStart"
FIELD_SHIFT_END = "shiftEnd"
FIELD_BREAK_START = "breakStart"
FIELD_BREAK_END = "breakEnd"

SHIFT_KEYS = ["shift1", "shift2"]

DEFAULT_SINGLE_FORM = {
    "name": "",
    "role": "",
    "shiftStart": "10:00",
    "shiftEnd": "18:00",
    "breakStart": "",
    "breakEnd": "",
}

DEFAULT_DUAL_FORM = {
    "name": "",
    "shift1Role": "",
    "shift1Start": "10:00",
    "shift1End": "18:00",
    "shift2Role": "",
    "shift2Start": "10:00",
    "shift2End": "18:00",
}

REMOTE_TABLE = "scheduling"
REMOTE_OWNER_ID = "c59d57f2-60d4-431d-ad6c-1d311dc81fb3"
REMOTE_TIMEOUT_SECONDS = 10
