"""
Results Ingest: Primary Result Report (0A)

One worksheet per cohort, two header rows, one student per row. Each module
cell holds code, credit and mark on separate lines; the module outcome is
the cell's fill colour, recovered through the workbook's Styles part.
"""

import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from openpyxl.worksheet.worksheet import Worksheet

from core.config import ErrorPolicy, ParserConfig, get_config
from core.errors import (
    FieldError,
    FillClassificationError,
    InvalidHeaderError,
    ModuleFormattingError,
    RowError,
    WorksheetError,
)
from core.models import Mark, ReportLayout, ReportParseResult, StudentInfo, StudentResult
from parsing.cells import as_int, as_text, clean_value, is_blank, optional_float, optional_int, optional_text
from parsing.columns import cell_reference
from parsing.headers import ResultHeader, resolve_result_headers
from parsing.marks import parse_module_cell
from parsing.spreadsheet_ml import SheetRow, SpreadsheetArchive, Styles
from parsing.styles import classify_fill, resolve_cell_fill
from parsing.workbook import handle_error, is_blank_row, open_workbook, sheet_rows, split_header_rows

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = frozenset({
    ResultHeader.AUTUMN_CREDIT,
    ResultHeader.AUTUMN_MEAN,
    ResultHeader.FULL_CREDIT,
    ResultHeader.FULL_MEAN,
    ResultHeader.SPRING_CREDIT,
    ResultHeader.SPRING_MEAN,
    ResultHeader.YEAR_CREDIT,
    ResultHeader.YEAR_PROG_AVERAGE,
    ResultHeader.CREDITS_L3_LT30,
    ResultHeader.CREDITS_L3_30_39,
    ResultHeader.CREDITS_L4_LT40,
    ResultHeader.CREDITS_L4_40_49,
})

REQUIRED_INFO = ("id", "last_name", "first_name")
REQUIRED_RESULT = ("year_of_program", "progression")


def _module_mark(
    value: Any,
    column: int,
    row_number: int,
    sheet_name: str,
    styles: Styles,
    raw_row: Optional[SheetRow],
) -> Mark:
    mark = parse_module_cell(value, ResultHeader.MODULES.field)

    fill = resolve_cell_fill(sheet_name, column, row_number, styles, raw_row)
    if fill is None:
        return mark

    try:
        status = classify_fill(fill)
    except FillClassificationError as e:
        raise ModuleFormattingError(
            ResultHeader.MODULES.field,
            str(e),
            cell_reference=f"{sheet_name}!{cell_reference(column, row_number)}",
        ) from e
    return dataclasses.replace(mark, status=status, fill=fill)


def parse_result_row(
    tags: Sequence[ResultHeader],
    values: Sequence[Any],
    row_number: int,
    sheet_name: str,
    styles: Styles,
    raw_row: Optional[SheetRow],
) -> StudentResult:
    """
    Build a StudentResult from one worksheet row.

    Raises:
        FieldError: Naming the first column that failed.
    """
    info: Dict[str, Any] = {}
    fields: Dict[str, Any] = {}
    modules: List[Mark] = []

    for column, tag in enumerate(tags):
        value = clean_value(values[column]) if column < len(values) else None

        if tag is ResultHeader.NO:
            fields["no"] = optional_int(tag.field, value)
        elif tag is ResultHeader.ID:
            info["id"] = as_int(tag.field, value)
        elif tag in (ResultHeader.LAST_NAME, ResultHeader.FIRST_NAME, ResultHeader.PLAN):
            info[tag.value] = as_text(tag.field, value)
        elif tag in (ResultHeader.YEAR_OF_PROGRAM, ResultHeader.PROGRESSION):
            fields[tag.value] = as_text(tag.field, value)
        elif tag in NUMERIC_FIELDS:
            fields[tag.value] = optional_float(tag.field, value)
        elif tag is ResultHeader.MODULES:
            if not is_blank(value):
                modules.append(_module_mark(value, column, row_number, sheet_name, styles, raw_row))
        elif tag is ResultHeader.REMARKS:
            fields["remarks"] = optional_text(tag.field, value)

    for name in REQUIRED_INFO:
        if name not in info:
            raise FieldError(name, "column not found")
    for name in REQUIRED_RESULT:
        if name not in fields:
            raise FieldError(name, "column not found")

    return StudentResult(student_info=StudentInfo(**info), modules=tuple(modules), **fields)


def parse_result_worksheet(
    ws: Worksheet,
    archive: SpreadsheetArchive,
    styles: Styles,
    result: ReportParseResult,
    policy: ErrorPolicy = ErrorPolicy.ABORT,
) -> List[StudentResult]:
    """Parse every student row of one result worksheet."""
    (headers, sub_headers), data = split_header_rows(sheet_rows(ws), 2, ws.title)
    tags = resolve_result_headers(headers, sub_headers, ws.title)
    raw_rows = archive.worksheet(ws.title).rows_by_number()

    records = []
    for row_number, values in data:
        if is_blank_row(values):
            logger.debug(f"{ws.title!r} row {row_number} is blank, skipping")
            continue
        try:
            records.append(
                parse_result_row(tags, values, row_number, ws.title, styles, raw_rows.get(row_number))
            )
        except FieldError as e:
            handle_error(result, RowError(row_number, e, ws.title), policy)

    logger.info(f"Parsed {len(records)} results from worksheet {ws.title!r}")
    return records


def parse_result_report(
    path: Union[str, Path],
    config: Optional[ParserConfig] = None,
) -> ReportParseResult:
    """
    Parse every worksheet of a primary result report (0A).

    Usage:
        report = parse_result_report("results.xlsx")
        for student in report.records:
            print(student.id, [m.status for m in student.modules])
    """
    config = config or get_config().parser
    result = ReportParseResult(layout=ReportLayout.RESULT, source_file=str(path))

    with SpreadsheetArchive(path) as archive, open_workbook(path) as wb:
        styles = archive.styles()

        for ws in wb.worksheets:
            try:
                records = parse_result_worksheet(ws, archive, styles, result, config.error_policy)
            except (WorksheetError, InvalidHeaderError) as e:
                handle_error(result, e, config.error_policy)
                continue
            result.records.extend(records)
            result.sheets_parsed.append(ws.title)

    return result
