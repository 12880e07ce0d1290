"""Best-effort copy of single-shift submissions to the Supabase table.

The local roster is the source of truth. Failures here are logged and
reported as None, never raised.
"""
import logging
import requests
from .constants import REMOTE_TABLE, REMOTE_OWNER_ID, REMOTE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

REMOTE_FIELDS = ["name", "role", "shiftStart", "shiftEnd", "breakStart", "breakEnd"]


def build_schedule_row(form, owner_id=REMOTE_OWNER_ID):
    """Flatten a single-shift form into the row stored remotely.

    Values are sent as entered, times stay HH:MM strings.
    """
    row = {"user_id": owner_id}
    for field in REMOTE_FIELDS:
        row[field] = form.get(field, "")
    return row


def insert_schedule_row(
    form,
    base_url=None,
    api_key=None,
    owner_id=REMOTE_OWNER_ID,
    table=REMOTE_TABLE,
    timeout=REMOTE_TIMEOUT_SECONDS,
):
    """Insert one schedule row through the Supabase REST API.

    Args:
        form (dict): Submitted single-shift form values
        base_url (str): Supabase project URL
        api_key (str): Supabase anon key
        owner_id (str): Fixed owner tag stored with every row

    Returns:
        list|None: Inserted rows as returned by the API, or None if the
            insert was skipped or failed
    """
    if not base_url or not api_key:
        logger.debug("Remote insert skipped: Supabase URL or key not configured")
        return None

    url = f"{base_url.rstrip('/')}/rest/v1/{table}"
    headers = {
        "apikey": api_key,
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }
    try:
        response = requests.post(
            url, json=build_schedule_row(form, owner_id), headers=headers, timeout=timeout
        )
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        logger.error(f"Remote insert into '{table}' failed: {e}")
        return None
    except ValueError as e:
        logger.error(f"Remote insert into '{table}' returned invalid JSON: {e}")
        return None

    logger.info(f"Remote insert into '{table}' stored {len(data) if isinstance(data, list) else 1} row(s)")
    return data
