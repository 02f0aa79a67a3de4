"""
Results Ingest: Award Report (0B)
Degree award decisions, one header row and one student per row
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

from core.config import ParserConfig, get_config
from core.errors import FieldError, InvalidHeaderError, RowError, WorksheetError
from core.models import ReportLayout, ReportParseResult, StudentInfo
from parsing.cells import (
    as_flag,
    as_int,
    as_text,
    clean_value,
    optional_datetime,
    optional_float,
    optional_int,
    optional_text,
    text_or_time,
)
from parsing.headers import AwardHeader, resolve_award_headers
from parsing.workbook import (
    get_worksheet,
    handle_error,
    is_blank_row,
    open_workbook,
    sheet_rows,
    split_header_rows,
)

logger = logging.getLogger(__name__)

# Column -> (StudentInfo attribute, converter)
COLUMNS: Dict[AwardHeader, Tuple[str, Callable[[str, Any], Any]]] = {
    AwardHeader.ID: ("id", as_int),
    AwardHeader.LAST_NAME: ("last_name", as_text),
    AwardHeader.FIRST_NAME: ("first_name", as_text),
    AwardHeader.CAREER_NUMBER: ("career_number", optional_int),
    AwardHeader.ACADEMIC_PROGRAM: ("academic_program", optional_text),
    AwardHeader.PROGRAM_DESCRIPTION: ("program_description", optional_text),
    AwardHeader.ACADEMIC_PLAN: ("plan", as_text),
    AwardHeader.PLAN_DESCRIPTION: ("plan_description", optional_text),
    AwardHeader.INTAKE: ("intake", optional_text),
    AwardHeader.QAA_EFFECTIVE_DATE: ("qaa_effective_date", optional_datetime),
    AwardHeader.CALCULATION_MODEL: ("calculation_model", optional_text),
    AwardHeader.RAW_MARK: ("raw_mark", optional_float),
    AwardHeader.TRUNCATED_MARK: ("truncated_mark", optional_float),
    AwardHeader.FINAL_MARK: ("final_mark", optional_int),
    AwardHeader.BORDERLINE: ("borderline", optional_text),
    AwardHeader.CALCULATION_REVIEW: ("calculation_review", as_flag),
    AwardHeader.DEGREE_AWARD: ("degree_award", text_or_time),
    AwardHeader.SELECTED: ("selected", as_flag),
    AwardHeader.EXCEPTION_DATA: ("exception_data", optional_text),
    AwardHeader.RECOMMENDATION: ("recommendation", optional_text),
}

REQUIRED = ("id", "last_name", "first_name")


def parse_award_row(tags: Sequence[AwardHeader], values: Sequence[Any]) -> StudentInfo:
    """
    Build a StudentInfo from one award report row.

    Raises:
        FieldError: Naming the first column that failed.
    """
    info: Dict[str, Any] = {}

    for column, tag in enumerate(tags):
        if tag not in COLUMNS:
            continue
        attribute, convert = COLUMNS[tag]
        value = clean_value(values[column]) if column < len(values) else None
        info[attribute] = convert(tag.field, value)

    for name in REQUIRED:
        if name not in info:
            raise FieldError(name, "column not found")

    return StudentInfo(**info)


def parse_award_report(
    path: Union[str, Path],
    config: Optional[ParserConfig] = None,
) -> ReportParseResult:
    """Parse the award worksheet of an award report (0B)."""
    config = config or get_config().parser
    result = ReportParseResult(layout=ReportLayout.AWARD, source_file=str(path))
    sheet = config.award_sheet

    with open_workbook(path) as wb:
        try:
            ws = get_worksheet(wb, sheet)
            (headers,), data = split_header_rows(sheet_rows(ws), 1, sheet)
            tags = resolve_award_headers(headers, sheet)
        except (WorksheetError, InvalidHeaderError) as e:
            handle_error(result, e, config.error_policy)
            return result

        for row_number, values in data:
            if is_blank_row(values):
                logger.debug(f"{sheet!r} row {row_number} is blank, skipping")
                continue
            try:
                result.records.append(parse_award_row(tags, values))
            except FieldError as e:
                handle_error(result, RowError(row_number, e, sheet), config.error_policy)

    result.sheets_parsed.append(sheet)
    logger.info(f"Parsed {len(result.records)} award records from worksheet {sheet!r}")
    return result
