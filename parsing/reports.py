"""
Results Ingest: Report Dispatch
Pick the parser for a report layout
"""

from pathlib import Path
from typing import Callable, Dict, Optional, Union

from core.config import ParserConfig
from core.models import ReportLayout, ReportParseResult
from parsing.award_report import parse_award_report
from parsing.result_report import parse_result_report
from parsing.resit_report import parse_resit_aug_report, parse_resit_may_report

ReportParser = Callable[..., ReportParseResult]

PARSERS: Dict[ReportLayout, ReportParser] = {
    ReportLayout.RESULT: parse_result_report,
    ReportLayout.AWARD: parse_award_report,
    ReportLayout.RESIT_MAY: parse_resit_may_report,
    ReportLayout.RESIT_AUG: parse_resit_aug_report,
}


def parse_report(
    layout: Union[ReportLayout, str],
    path: Union[str, Path],
    config: Optional[ParserConfig] = None,
) -> ReportParseResult:
    """
    Parse a report workbook of the given layout.

    Usage:
        report = parse_report(ReportLayout.RESIT_MAY, "resit_may.xlsx")
        report = parse_report("award", "award.xlsx")
    """
    return PARSERS[ReportLayout(layout)](path, config)
