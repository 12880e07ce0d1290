"""Wholesale roster persistence: JSON files and URL-safe share tokens.

A share token is the roster JSON, percent-encoded the way the browser's
encodeURIComponent does it, then base64 encoded, so the front end can put
it in a URL fragment and read it back with atob/decodeURIComponent.
"""
import base64
import binascii
import json
import logging
import os
from urllib.parse import quote, unquote
from .constants import MAX_EMPLOYEES, SHIFT_KEYS, SHIFT_MODE_SINGLE, SHIFT_MODE_DUAL

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched besides letters and digits
URI_COMPONENT_SAFE = "-_.!~*'()"


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_valid_shift(shift):
    return (
        isinstance(shift, dict)
        and isinstance(shift.get("role"), str)
        and _is_number(shift.get("shiftStart"))
        and _is_number(shift.get("shiftEnd"))
    )


def is_valid_record(record, mode=SHIFT_MODE_SINGLE):
    """Structural check of one decoded employee record.

    Args:
        record: Decoded JSON value
        mode (str): Roster shape the record must have

    Returns:
        bool: True if the record can be loaded into the roster
    """
    if not isinstance(record, dict):
        return False
    if not isinstance(record.get("id"), str) or not isinstance(record.get("name"), str):
        return False

    if mode == SHIFT_MODE_DUAL:
        shifts = [record.get(key) for key in SHIFT_KEYS]
        if all(shift is None for shift in shifts):
            return False
        return all(shift is None or _is_valid_shift(shift) for shift in shifts)

    if not _is_valid_shift(record):
        return False
    for key in ("breakStart", "breakEnd"):
        value = record.get(key)
        if value is not None and not _is_number(value):
            return False
    return True


def validate_records(records, mode=SHIFT_MODE_SINGLE, max_employees=MAX_EMPLOYEES):
    """Return the records if the batch is loadable as a whole, otherwise None.

    Every record must be valid, ids must be unique and the batch may not
    exceed the roster cap.
    """
    if not isinstance(records, list):
        return None
    if len(records) > max_employees:
        logger.warning(f"Rejecting roster: {len(records)} records exceed the limit of {max_employees}")
        return None
    seen_ids = set()
    for index, record in enumerate(records):
        if not is_valid_record(record, mode):
            logger.warning(f"Rejecting roster: record {index} is malformed")
            return None
        if record["id"] in seen_ids:
            logger.warning(f"Rejecting roster: duplicate id {record['id']}")
            return None
        seen_ids.add(record["id"])
    return records


def encode_roster_token(employees):
    payload = json.dumps(employees, ensure_ascii=False, separators=(",", ":"))
    encoded = quote(payload, safe=URI_COMPONENT_SAFE)
    return base64.b64encode(encoded.encode("ascii")).decode("ascii")


def decode_roster_token(token, mode=SHIFT_MODE_SINGLE, max_employees=MAX_EMPLOYEES):
    """Decode a share token produced by encode_roster_token.

    Args:
        token (str): Base64 share token
        mode (str): Roster shape expected in the token
        max_employees (int): Largest roster the token may carry

    Returns:
        list|None: Employee records, or None if anything about the token
            is malformed. No partial import happens.
    """
    if not token or not isinstance(token, str):
        return None
    try:
        encoded = base64.b64decode(token.encode("ascii"), validate=True).decode("ascii")
        records = json.loads(unquote(encoded, errors="strict"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.warning(f"Could not decode roster token: {e}")
        return None
    return validate_records(records, mode, max_employees)


def load_roster_file(path, mode=SHIFT_MODE_SINGLE, max_employees=MAX_EMPLOYEES):
    """Read a roster JSON array; missing or malformed files give an empty roster."""
    if not path or not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read roster file {path}: {e}")
        return []
    records = validate_records(records, mode, max_employees)
    if records is None:
        logger.warning(f"Roster file {path} is malformed, starting with an empty roster")
        return []
    logger.info(f"Loaded {len(records)} employees from {path}")
    return records


def save_roster_file(path, employees):
    """Write the whole roster to `path`.

    Returns:
        bool: False if the write failed (the failure is logged)
    """
    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(employees, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Could not save roster to {path}: {e}", exc_info=True)
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError as cleanup_error:
                logger.warning(f"Could not remove {tmp_path}: {cleanup_error}")
        return False
    return True
