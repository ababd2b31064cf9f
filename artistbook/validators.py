# artistbook/validators.py
"""Request input validation shared by routers."""

import re
from datetime import date

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_uuid(value: str) -> bool:
    return bool(_UUID_RE.match(value))


def parse_target_date(value: str) -> date | None:
    """Parse "YYYY-MM-DD". None if malformed or not a real date."""
    if not _ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
