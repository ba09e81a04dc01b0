"""
Extension classification.

Queue extensions live in 8000-8999; anything else a call is transferred to
is a direct agent line.
"""

from typing import Any

QUEUE_EXTENSION_MIN = 8000
QUEUE_EXTENSION_MAX = 8999


def is_queue_extension(extension: Any) -> bool:
    """
    Check whether an extension denotes a routing queue.

    Accepts strings or numbers. Anything that is not a four character
    numeric string starting with '8' is rejected, never raised on.

    Args:
        extension: Extension value as found in the record

    Returns:
        bool: True for "8000" through "8999"
    """
    if extension is None or extension == '' or isinstance(extension, bool):
        return False

    ext_str = str(extension)
    if len(ext_str) != 4 or not ext_str.startswith('8'):
        return False
    if not (ext_str.isascii() and ext_str.isdigit()):
        return False

    return QUEUE_EXTENSION_MIN <= int(ext_str) <= QUEUE_EXTENSION_MAX
