"""
Results Ingest: Resit Reports (0C May, 0D August)

Two header rows. A student may continue over several rows with a blank ID;
those rows are merged before parsing (see `parsing.merger`). Numeric
columns of a merged row keep the most recently entered value, and each
course cell becomes one Mark with up to two retakes.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from core.config import ParserConfig, get_config
from core.errors import FieldError, InvalidHeaderError, RowError, WorksheetError
from core.models import Mark, ReportLayout, ReportParseResult, StudentInfo, StudentResult
from parsing.cells import as_int, as_text, clean_value, is_blank, latest_float, optional_int, optional_text
from parsing.headers import AugResitHeader, MayResitHeader, TagT, resolve_resit_headers
from parsing.marks import parse_course_cell
from parsing.merger import merge_continuation_rows
from parsing.workbook import (
    get_worksheet,
    handle_error,
    last_worksheet,
    open_workbook,
    sheet_rows,
    split_header_rows,
)

logger = logging.getLogger(__name__)

HEADER_ROWS = 2

# Tag name -> StudentResult attribute for the numeric columns
NUMERIC_FIELDS = {
    "AUTUMN_CREDIT": "autumn_credit",
    "AUTUMN_MEAN": "autumn_mean",
    "SUMMER_CREDIT": "summer_credit",
    "SUMMER_MEAN": "summer_mean",
    "FULL_CREDIT": "full_credit",
    "FULL_MEAN": "full_mean",
    "SPRING_CREDIT": "spring_credit",
    "SPRING_MEAN": "spring_mean",
    "YEAR_CREDIT": "year_credit",
    "YEAR_PROG_AVERAGE": "year_prog_average",
    "CREDITS_L3_LT30": "credits_l3_lt30",
    "CREDITS_L3_30_39": "credits_l3_30_39",
}

# Columns carried in the sheet but not stored. May's Spring Mean holds row bookkeeping.
IGNORED = {
    ReportLayout.RESIT_MAY: frozenset({"SPRING_MEAN", "EMPTY"}),
    ReportLayout.RESIT_AUG: frozenset({"EMPTY", "EMPTY_CREDIT", "EMPTY_MEAN"}),
}

TAGS: Dict[ReportLayout, Type] = {
    ReportLayout.RESIT_MAY: MayResitHeader,
    ReportLayout.RESIT_AUG: AugResitHeader,
}

REQUIRED_INFO = ("id", "last_name", "first_name")
REQUIRED_RESULT = ("year_of_program", "progression")


def parse_resit_row(
    tags: Sequence[TagT],
    values: Sequence[Any],
    layout: ReportLayout = ReportLayout.RESIT_MAY,
) -> StudentResult:
    """
    Build a StudentResult from one merged resit row.

    Raises:
        FieldError: Naming the first column that failed.
    """
    ignored = IGNORED[layout]
    info: Dict[str, Any] = {}
    fields: Dict[str, Any] = {}
    modules: List[Mark] = []

    for column, tag in enumerate(tags):
        if tag.name in ignored:
            continue
        value = clean_value(values[column]) if column < len(values) else None

        if tag.name == "NO":
            fields["no"] = optional_int(tag.field, latest_float(tag.field, value))
        elif tag.name == "ID":
            info["id"] = as_int(tag.field, value)
        elif tag.name in ("LAST_NAME", "FIRST_NAME", "PLAN"):
            info[tag.field] = as_text(tag.field, value)
        elif tag.name in ("YEAR_OF_PROGRAM", "PROGRESSION"):
            fields[tag.field] = as_text(tag.field, value)
        elif tag.name in NUMERIC_FIELDS:
            fields[NUMERIC_FIELDS[tag.name]] = latest_float(tag.field, value)
        elif tag.name == "COURSE":
            if not is_blank(value):
                modules.append(parse_course_cell(value, tag.field))
        elif tag.name == "REMARKS":
            fields["remarks"] = optional_text(tag.field, value)

    for name in REQUIRED_INFO:
        if name not in info:
            raise FieldError(name, "column not found")
    for name in REQUIRED_RESULT:
        if name not in fields:
            raise FieldError(name, "column not found")

    return StudentResult(student_info=StudentInfo(**info), modules=tuple(modules), **fields)


def parse_resit_worksheet(
    ws: Worksheet,
    layout: ReportLayout,
    result: ReportParseResult,
    config: ParserConfig,
) -> List[StudentResult]:
    """Merge continuation rows and parse one record per student."""
    tag_type = TAGS[layout]
    (headers, sub_headers), data = split_header_rows(sheet_rows(ws), HEADER_ROWS, ws.title)
    tags = resolve_resit_headers(headers, sub_headers, tag_type, ws.title)

    id_column = tags.index(tag_type.ID) if tag_type.ID in tags else 1
    merged = merge_continuation_rows(data, id_column, first_row=HEADER_ROWS + 1)

    records = []
    for row in merged:
        try:
            records.append(parse_resit_row(tags, row.cells, layout))
        except FieldError as e:
            handle_error(result, RowError(row.row_number, e, ws.title), config.error_policy)

    logger.info(
        f"Parsed {len(records)} resit results from worksheet {ws.title!r} "
        f"({len(data)} rows, {len(merged)} students)"
    )
    return records


def _parse_resit_report(
    path: Union[str, Path],
    layout: ReportLayout,
    config: Optional[ParserConfig],
) -> ReportParseResult:
    config = config or get_config().parser
    result = ReportParseResult(layout=layout, source_file=str(path))

    with open_workbook(path) as wb:
        try:
            ws = _resit_worksheet(wb, layout, config)
            records = parse_resit_worksheet(ws, layout, result, config)
        except (WorksheetError, InvalidHeaderError) as e:
            handle_error(result, e, config.error_policy)
            return result

    result.records.extend(records)
    result.sheets_parsed.append(ws.title)
    return result


def _resit_worksheet(wb: Workbook, layout: ReportLayout, config: ParserConfig) -> Worksheet:
    if layout is ReportLayout.RESIT_MAY:
        return get_worksheet(wb, config.resit_may_sheet)
    if config.resit_aug_sheet:
        return get_worksheet(wb, config.resit_aug_sheet)
    return last_worksheet(wb)


def parse_resit_may_report(
    path: Union[str, Path],
    config: Optional[ParserConfig] = None,
) -> ReportParseResult:
    """Parse a May resit report (0C)."""
    return _parse_resit_report(path, ReportLayout.RESIT_MAY, config)


def parse_resit_aug_report(
    path: Union[str, Path],
    config: Optional[ParserConfig] = None,
) -> ReportParseResult:
    """Parse an August resit report (0D). Uses the last worksheet unless configured."""
    return _parse_resit_report(path, ReportLayout.RESIT_AUG, config)
