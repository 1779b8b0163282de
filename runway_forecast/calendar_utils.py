"""Calendar-month utilities for "YYYY-MM" labels."""

from __future__ import annotations

import math
import numbers
import re
from typing import Any

import pandas as pd


MONTH_LABEL_FORMAT = "%Y-%m"
_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def parse_month(month: str) -> pd.Period:
    """Parse a strict "YYYY-MM" label into a monthly period."""
    text = str(month)
    if not _MONTH_PATTERN.match(text):
        raise ValueError(f"Invalid month label: {month!r} (expected YYYY-MM).")
    return pd.Period(text, freq="M")


def add_months(month: str, n: int) -> str:
    """Return the label `n` calendar months after `month`, rolling over years."""
    return (parse_month(month) + int(n)).strftime(MONTH_LABEL_FORMAT)


def months_between(start: str, end: str) -> int:
    """Signed number of calendar months from `start` to `end`."""
    return int(parse_month(end).ordinal - parse_month(start).ordinal)


def month_labels(start: str, count: int) -> list[str]:
    if count <= 0:
        parse_month(start)
        return []
    periods = pd.period_range(start=parse_month(start), periods=int(count), freq="M")
    return [p.strftime(MONTH_LABEL_FORMAT) for p in periods]


def date_to_month(value: Any) -> str:
    """Truncate a date, datetime, timestamp or date string to its UTC year-month.

    Plain numbers are epoch milliseconds.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert {value!r} to a month label.")
    if isinstance(value, numbers.Real):
        if not math.isfinite(float(value)):
            raise ValueError(f"Cannot convert {value!r} to a month label.")
        ts = pd.Timestamp(float(value), unit="ms", tz="UTC")
    else:
        ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"Cannot convert {value!r} to a month label.")
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC")
    return ts.strftime(MONTH_LABEL_FORMAT)
