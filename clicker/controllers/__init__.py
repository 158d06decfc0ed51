"""
Request controllers for the clicker API.

Controllers are plain functions that take request parameters, call the
service layer, and return a :data:`ResponseData` tuple of response body,
status code and headers. Client errors are raised as
:class:`werkzeug.exceptions.HTTPException` subclasses.
"""

from typing import Any, Tuple

from werkzeug.exceptions import BadRequest

ResponseData = Tuple[Any, int, dict]

MIN_ID = -2 ** 63
MAX_ID = 2 ** 63 - 1
"""Identifiers and cursors are stored as signed 64-bit integers."""


def parse_id(value: str, message: str) -> int:
    """
    Parse an integer identifier supplied by the client.

    Raises
    ------
    :class:`BadRequest`
        Raised with ``message`` if ``value`` is not an integer, or does not
        fit in a signed 64-bit integer.

    """
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise BadRequest(message) from e
    if not MIN_ID <= parsed <= MAX_ID:
        raise BadRequest(message)
    return parsed
