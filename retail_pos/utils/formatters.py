"""
Formatting utilities for timestamps, dates and money.

Timestamps are kept as naive local datetimes throughout the application;
stored ISO strings carrying an offset (e.g. the ``Z`` suffix written by
browsers) are converted to local time on the way in.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp into a naive local datetime.

    Examples:
        parse_timestamp("2026-01-12T15:30:00") -> datetime(2026, 1, 12, 15, 30)
        parse_timestamp("2026-01-12T15:30:00.000Z") -> local time of that instant

    Raises:
        ValueError: if the value is not an ISO timestamp.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a YYYY-MM-DD date. Empty values give None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValueError(f'Invalid date: {value}')


def money(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount with exactly two decimals.

    Examples:
        money(198) -> "198.00"
        money(Decimal("17.5")) -> "17.50"
        money(None) -> "0.00"
    """
    if value is None or value == "":
        return "0.00"
    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "0.00"
    return f"{num:.2f}"


def date_us(value: Union[date, datetime, None]) -> str:
    """Format a date as M/D/YYYY, the way the exported CSV files show it."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.month}/{value.day}/{value.year}"


def time_us(value: Optional[datetime]) -> str:
    """Format a time as h:MM:SS AM/PM."""
    if value is None:
        return ""
    hour = value.hour % 12 or 12
    suffix = 'AM' if value.hour < 12 else 'PM'
    return f"{hour}:{value.minute:02d}:{value.second:02d} {suffix}"


def parse_bool(value, field: str = 'value') -> bool:
    """
    Accept a JSON boolean only.

    Strings such as "false" and numbers are rejected, not coerced.

    Raises:
        ValueError: if the value is not True or False.
    """
    if isinstance(value, bool):
        return value
    raise ValueError(f'{field} must be true or false')
