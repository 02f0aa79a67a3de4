"""
Results Ingest: Module Cells
Parse the multi-line module cells of the result and resit reports into Mark

Result report (0A) module cell, one value per line, blank lines ignored:

    COMP        COMP
    101         101
    72          20      <- credit
                72

Resit report (0C, 0D) course cell on a single row:

    COMP
    101
    20          <- credit, blank means 10
    45          <- mark
    55          <- first retake (optional)
                <- second retake (optional)

When the course continues on later rows the first fragment only holds the
code (and optionally the credit) and each later fragment holds a mark:

    "COMP\\n101\\n20" SEPARATOR "45" SEPARATOR "55"
"""

from typing import Any, List, Optional

from core.errors import FieldError
from core.models import Mark
from parsing.cells import SEPARATOR, clean_text, fragments, is_number, split_lines

DEFAULT_CREDIT = 10
MAX_ATTEMPTS = 3  # first mark + two retakes


def _invalid(field: str, reason: str, value: Any) -> FieldError:
    return FieldError(field, f"invalid course cell ({reason})", value)


def _non_empty(lines: List[str]) -> List[str]:
    return [line.strip() for line in lines if line.strip()]


def _credit(field: str, text: str, value: Any) -> int:
    try:
        number = float(text)
    except ValueError:
        raise _invalid(field, f"credit {text!r} is not a number", value) from None
    if not number.is_integer():
        raise _invalid(field, f"credit {text!r} is not a whole number", value)
    return int(number)


def _build_mark(field: str, code: str, credit: int, marks: List[str], value: Any) -> Mark:
    if not marks:
        raise _invalid(field, "no mark", value)
    if len(marks) > MAX_ATTEMPTS:
        raise _invalid(field, f"{len(marks)} marks, expected at most {MAX_ATTEMPTS}", value)

    attempts: List[Optional[float]] = []
    for text in marks:
        try:
            attempts.append(float(text))
        except ValueError:
            raise _invalid(field, f"mark {text!r} is not a number", value) from None
    attempts.extend([None] * (MAX_ATTEMPTS - len(attempts)))

    try:
        return Mark(
            code=code,
            credit=credit,
            mark=attempts[0],
            retake1=attempts[1],
            retake2=attempts[2],
        )
    except ValueError as e:
        raise _invalid(field, str(e), value) from e


def _cell_text(field: str, value: Any) -> str:
    if is_number(value) or not isinstance(value, str):
        raise _invalid(field, f"expected text, found {type(value).__name__}", value)
    return clean_text(value)


def parse_module_cell(value: Any, field: str = "modules") -> Mark:
    """
    Parse a result report module cell.

    Three lines are code, code, mark (credit 10); four lines are code,
    code, credit, mark. Status and fill are left for the caller.
    """
    lines = _non_empty(split_lines(_cell_text(field, value)))

    if len(lines) == 3:
        credit, marks = DEFAULT_CREDIT, lines[2:]
    elif len(lines) == 4:
        credit, marks = _credit(field, lines[2], value), lines[3:]
    else:
        raise _invalid(field, f"{len(lines)} lines, expected 3 or 4", value)

    return _build_mark(field, lines[0] + lines[1], credit, marks, value)


def parse_course_cell(value: Any, field: str = "course") -> Mark:
    """Parse a resit report course cell, merged or not."""
    text = _cell_text(field, value)

    if SEPARATOR in text:
        head, *rest = fragments(text)
        info = _non_empty(split_lines(head))

        if len(info) == 3:
            credit = _credit(field, info[2], value)
        elif len(info) == 2:
            credit = DEFAULT_CREDIT
        else:
            raise _invalid(field, f"{len(info)} code lines before the marks, expected 2 or 3", value)

        marks = [m for fragment in rest for m in _non_empty(split_lines(fragment))]
        return _build_mark(field, "".join(info[:2]), credit, marks, value)

    lines = split_lines(text)
    while lines and not lines[-1].strip():
        lines.pop()
    if len(lines) < 3:
        raise _invalid(field, f"{len(lines)} lines, expected code, code and a mark", value)

    code = (lines[0].strip() + lines[1].strip())
    rest = lines[2:]
    if len(rest) == 1:
        credit, marks = DEFAULT_CREDIT, rest
    else:
        slot = rest[0].strip()
        credit = _credit(field, slot, value) if slot else DEFAULT_CREDIT
        marks = rest[1:]

    return _build_mark(field, code, credit, _non_empty(marks), value)
