# Results Ingest Parsing Layer
# Report workbooks to typed student records

from parsing.award_report import parse_award_report
from parsing.reports import PARSERS, parse_report
from parsing.result_report import parse_result_report
from parsing.resit_report import parse_resit_aug_report, parse_resit_may_report
from parsing.spreadsheet_ml import SpreadsheetArchive, get_data

__all__ = [
    "PARSERS",
    "parse_report",
    "parse_result_report",
    "parse_award_report",
    "parse_resit_may_report",
    "parse_resit_aug_report",
    "SpreadsheetArchive",
    "get_data",
]
