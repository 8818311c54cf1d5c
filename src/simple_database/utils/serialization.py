"""JSON serialization for parameter logging and CLI output, backed by orjson.

orjson covers datetime, date, time, UUID and dataclasses on its own; the
default handler below deals with the remaining types drivers hand back.
"""

import base64
import datetime
import decimal
from typing import Any

import orjson


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Raises:
        TypeError: If object cannot be serialized
    """
    # MySQL DECIMAL columns; keep full precision
    if isinstance(obj, decimal.Decimal):
        return str(obj)

    # TIME columns come back from PyMySQL as timedelta
    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()

    if isinstance(obj, (bytes, bytearray, memoryview)):
        data = bytes(obj)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(data).decode("ascii")

    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)

    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def dumps(obj: Any) -> str:
    """
    Serialize object to a JSON string.

    Values orjson cannot serialize even with the default handler fall back
    to their ``str()`` form instead of failing the caller's log line.
    """
    try:
        return orjson.dumps(obj, default=_default_handler).decode("utf-8")
    except TypeError:
        return orjson.dumps(obj, default=str).decode("utf-8")


def convert_row_to_json_safe(row: Any) -> Any:
    """Convert one fetched row (dict, tuple or scalar) to JSON-safe values."""
    return orjson.loads(dumps(row))


def convert_rows_to_json_safe(rows: list[Any]) -> list[Any]:
    """Convert all fetched rows to JSON-safe values."""
    return [convert_row_to_json_safe(row) for row in rows]
