"""
Results Ingest: Workbook Access
openpyxl workbook opening and row extraction shared by every report parser
"""

import logging
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Tuple, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from core.config import ErrorPolicy
from core.errors import ArchiveOpenError, ReportParseError, WorksheetError
from core.models import ReportParseResult

logger = logging.getLogger(__name__)

SheetRows = List[Tuple[int, List[Any]]]


@contextmanager
def open_workbook(path: Union[str, Path]) -> Iterator[Workbook]:
    """
    Open a report workbook for reading cell values.

    The workbook is closed on every exit path.
    """
    path = Path(path)
    try:
        wb = openpyxl.load_workbook(path, data_only=True)
    except FileNotFoundError:
        raise ArchiveOpenError(str(path), "file not found") from None
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ArchiveOpenError(str(path), f"unable to open workbook ({e})") from e

    try:
        yield wb
    finally:
        wb.close()


def get_worksheet(wb: Workbook, name: str) -> Worksheet:
    if name not in wb.sheetnames:
        raise WorksheetError(name, f"not found, workbook has {wb.sheetnames}")
    return wb[name]


def last_worksheet(wb: Workbook) -> Worksheet:
    if not wb.worksheets:
        raise WorksheetError(None, "workbook has no worksheets")
    return wb.worksheets[-1]


def sheet_rows(ws: Worksheet) -> SheetRows:
    """All rows of a worksheet as (one-based row number, values)."""
    return [
        (number, list(values))
        for number, values in enumerate(ws.iter_rows(min_row=1, min_col=1, values_only=True), start=1)
    ]


def split_header_rows(rows: SheetRows, count: int, sheet: str) -> Tuple[List[Sequence[Any]], SheetRows]:
    """
    Separate the header rows from the data rows.

    Raises:
        WorksheetError: If the worksheet has fewer than `count` rows.
    """
    names = ["header row", "sub-header row"]
    if len(rows) < count:
        raise WorksheetError(sheet, f"no {names[min(len(rows), len(names) - 1)]}")
    return [values for _, values in rows[:count]], rows[count:]


def is_blank_row(values: Sequence[Any]) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in values)


def handle_error(result: ReportParseResult, error: ReportParseError, policy: ErrorPolicy) -> None:
    """Raise the error, or record it and let parsing continue."""
    if policy is ErrorPolicy.ABORT:
        raise error
    logger.warning(f"{Path(result.source_file).name}: {error}")
    result.errors.append(error)
