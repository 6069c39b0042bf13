"""Parsing for ``--date`` arguments."""

import re
from datetime import date, timedelta

from nomnom.domain.errors import ValidationError

_OFFSET_PATTERN = re.compile(r"^[+-]?\d+$")


def parse_date_arg(raw: str | None, today: date) -> date:
    """Return the day for a signed offset (``-1``), ``YYYY-MM-DD`` or nothing."""
    if raw is None or not raw.strip():
        return today
    value = raw.strip()
    try:
        if _OFFSET_PATTERN.match(value):
            return today + timedelta(days=int(value))
        return date.fromisoformat(value)
    except (OverflowError, ValueError) as exc:
        raise ValidationError(
            f"Invalid date: {raw} (use a day offset like -1 or YYYY-MM-DD)"
        ) from exc
