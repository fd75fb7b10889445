# src/mysqlconn/converters.py
"""Conversion of driver values to the text form returned by query results.

mysql-connector-python hands back typed values (``int``, ``Decimal``,
``datetime``, ``bytes``...). Every result shape exposes them as strings, with
SQL NULL kept as ``None``.
"""

import datetime
from typing import Any, Optional


def timedelta_to_text(value: datetime.timedelta) -> str:
    """Render a TIME column value the way MySQL prints it.

    mysql-connector-python returns ``datetime.timedelta`` for TIME columns,
    whose range (-838:59:59 to 838:59:59) does not fit ``datetime.time``.
    """
    total = value.days * 86400 + value.seconds
    microseconds = value.microseconds
    sign = ''
    if total < 0:
        sign = '-'
        total = -total
        if microseconds:
            total -= 1
            microseconds = 1000000 - microseconds

    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if microseconds:
        text += f".{microseconds:06d}"
    return text


def to_text(value: Any) -> Optional[str]:
    """Convert one column value to text, keeping NULL as ``None``."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    if isinstance(value, datetime.timedelta):
        return timedelta_to_text(value)
    if isinstance(value, (set, frozenset)):
        # SET columns; the driver returns an unordered set, so members come back
        # sorted rather than in column-definition order
        return ','.join(sorted(to_text(member) for member in value))
    return str(value)
