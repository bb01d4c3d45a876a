"""Shared utility functions for the workflow services.

parse_date_input: raises ValueError on bad input
catalog_id:       accepts ``{"id": 19}`` or ``19`` for catalog references
"""
from datetime import date, datetime


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Empty input means "no date" and returns None. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD/MM/YYYY (UK format)
    - date / datetime objects
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError as exc:
        raise ValueError(
            f"Invalid date {value!r}. Use YYYY-MM-DD or DD/MM/YYYY."
        ) from exc


def catalog_id(entry):
    """Return the catalog id from a condition/advisory reference."""
    if isinstance(entry, dict):
        return int(entry["id"])
    return int(entry)
