"""
Results Ingest: Continuation Row Merger

Resit sheets sometimes spread one student over several physical rows. Only
the first row carries the student ID; the following rows leave it blank and
add more courses or later retake marks.

Rows are folded into one logical row per student, column by column:

    blank + anything          -> the new value
    text  + text or number    -> "old" SEPARATOR "new"
    anything else             -> the old value

so every fragment survives in arrival order and can be split out again.
"""

import logging
from dataclasses import dataclass, field
from itertools import zip_longest
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from parsing.cells import SEPARATOR, format_number, is_blank, is_number

logger = logging.getLogger(__name__)


@dataclass
class MergedRow:
    """A logical row and the sheet row it started on"""
    row_number: int
    cells: List[Any] = field(default_factory=list)
    physical_rows: int = 1


def merge_cell(current: Any, new: Any) -> Any:
    if current is None or current == "":
        return new
    if isinstance(current, str):
        if isinstance(new, str):
            return current + SEPARATOR + new
        if is_number(new):
            return current + SEPARATOR + format_number(new)
    return current


def merge_row(current: Sequence[Any], new: Sequence[Any]) -> List[Any]:
    """Merge a continuation row into the accumulated row."""
    return [merge_cell(c, n) for c, n in zip_longest(current, new, fillvalue=None)]


def merge_continuation_rows(
    rows: Iterable[Tuple[int, Sequence[Any]]],
    id_column: int,
    first_row: int = 1,
) -> List[MergedRow]:
    """
    Fold physical data rows into logical rows.

    Args:
        rows: (sheet row number, cell values) pairs in sheet order, header
            rows excluded
        id_column: Zero-based index of the student ID column
        first_row: Sheet row number of the first data row

    Returns:
        One MergedRow per student. A sheet without data rows still yields
        one empty row; the row parser rejects it for its missing ID.
    """
    merged: List[MergedRow] = []
    current: Optional[MergedRow] = None

    for row_number, cells in rows:
        cells = list(cells)
        student_id = cells[id_column] if id_column < len(cells) else None

        if not is_blank(student_id):
            if current is not None:
                merged.append(current)
            current = MergedRow(row_number, cells)
        elif current is None:
            if any(not is_blank(c) for c in cells):
                logger.warning(f"Row {row_number} continues a record but no record precedes it, skipping")
        else:
            current.cells = merge_row(current.cells, cells)
            current.physical_rows += 1
            logger.debug(f"Row {row_number} merged into the record starting at row {current.row_number}")

    merged.append(current if current is not None else MergedRow(first_row))
    return merged
