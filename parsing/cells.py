"""
Results Ingest: Cell Coercion
Typed conversion of raw openpyxl cell values for the row parsers

Every helper takes the semantic field name first so failures name the column
that was wrong, e.g. ``FieldError("year_credit", "'abc' is not a number")``.
"""

import re
from datetime import date, datetime, time
from typing import Any, List, Optional

from core.errors import FieldError

# Joins the fragments of a cell collected from continuation rows
SEPARATOR = "\x03"

# Left behind in multi-line text by an earlier export/import round trip
CORRUPT_PLACEHOLDER = "_x000D_"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not clean_text(value).strip(SEPARATOR + " \t\r\n")
    return False


def format_number(value: float) -> str:
    """Render a number the way it reads in the sheet (``45.0`` becomes ``"45"``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def split_lines(text: str) -> List[str]:
    return _LINE_BREAK.split(text)


def clean_text(text: str) -> str:
    """Drop placeholder lines and placeholder noise from cell text."""
    if CORRUPT_PLACEHOLDER not in text:
        return text
    lines = [line for line in split_lines(text) if line.strip() != CORRUPT_PLACEHOLDER]
    return "\n".join(lines).replace(CORRUPT_PLACEHOLDER, "")


def clean_value(value: Any) -> Any:
    if isinstance(value, str):
        return clean_text(value)
    return value


def fragments(text: str) -> List[str]:
    """Split merged cell text back into the fragments from each physical row."""
    return text.split(SEPARATOR)


def candidates(value: Any) -> List[str]:
    """
    Ordered list of non-empty candidate values in a possibly merged cell.

    The most recently entered value is last.
    """
    if value is None:
        return []
    if is_number(value):
        return [format_number(value)]

    found = []
    for fragment in fragments(clean_text(str(value))):
        found.extend(line.strip() for line in split_lines(fragment) if line.strip())
    return found


# ============================================
# Text
# ============================================

def optional_text(field: str, value: Any) -> Optional[str]:
    """Text content of a cell, fragments of a merged cell on separate lines."""
    if is_blank(value):
        return None
    if is_number(value):
        return format_number(value)
    if not isinstance(value, str):
        raise FieldError(field, f"expected text, found {type(value).__name__}", value)

    parts = [p.strip() for p in fragments(clean_text(value))]
    return "\n".join(p for p in parts if p)


def as_text(field: str, value: Any) -> str:
    text = optional_text(field, value)
    if text is None:
        raise FieldError(field, "missing value", value)
    return text


# ============================================
# Numbers
# ============================================

def _to_float(field: str, text: str, value: Any) -> float:
    try:
        return float(text)
    except ValueError:
        raise FieldError(field, f"{text!r} is not a number", value) from None


def optional_float(field: str, value: Any) -> Optional[float]:
    if is_blank(value):
        return None
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        return _to_float(field, clean_text(value).strip(), value)
    raise FieldError(field, f"expected a number, found {type(value).__name__}", value)


def latest_float(field: str, value: Any) -> Optional[float]:
    """
    The last number in a merged cell.

    Every candidate must be numeric; blank fragments are ignored.
    """
    if is_blank(value):
        return None
    if not (is_number(value) or isinstance(value, str)):
        raise FieldError(field, f"expected a number, found {type(value).__name__}", value)

    numbers = [_to_float(field, c, value) for c in candidates(value)]
    return numbers[-1] if numbers else None


def optional_int(field: str, value: Any) -> Optional[int]:
    number = optional_float(field, value)
    if number is None:
        return None
    if not number.is_integer():
        raise FieldError(field, f"{value!r} is not a whole number", value)
    return int(number)


def as_int(field: str, value: Any) -> int:
    number = optional_int(field, value)
    if number is None:
        raise FieldError(field, "missing value", value)
    return number


# ============================================
# Flags, dates and times
# ============================================

def as_flag(field: str, value: Any) -> bool:
    """A Y/N column. Anything other than exactly "Y" or "N" is rejected, blanks included."""
    if value == "Y":
        return True
    if value == "N":
        return False
    raise FieldError(field, f"expected 'Y' or 'N', found {value!r}", value)


def optional_datetime(field: str, value: Any) -> Optional[datetime]:
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    raise FieldError(field, f"expected a date, found {value!r}", value)


def text_or_time(field: str, value: Any) -> Optional[str]:
    """Text, or a time-formatted cell rendered as ``HH:MM``."""
    if is_blank(value):
        return None
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return as_text(field, value)
