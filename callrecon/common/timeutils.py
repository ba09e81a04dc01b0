"""
Timestamp helpers.

PBX exports mix Unix seconds, Unix milliseconds and numeric strings for the
same logical field. Everything the matcher compares goes through to_millis.
"""

import math
from typing import Any, Optional

# Values below this are treated as seconds.
MILLIS_THRESHOLD = 10_000_000_000


def to_millis(value: Any, threshold: int = MILLIS_THRESHOLD) -> Optional[float]:
    """
    Normalize a Unix timestamp to milliseconds.

    Args:
        value: int, float or numeric string, in seconds or milliseconds
        threshold: magnitude below which the value is read as seconds

    Returns:
        float: Milliseconds, or None if the value is absent, zero or not numeric
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value == 0:
        return None
    return value * 1000 if value < threshold else float(value)
