"""Results Ingest Core - records, errors and configuration"""

from .config import ErrorPolicy, IngestConfig, ParserConfig, DatabaseConfig, get_config, set_config
from .errors import (
    ReportParseError,
    ContainerError,
    WorksheetError,
    InvalidHeaderError,
    FieldError,
    ModuleFormattingError,
    RowError,
)
from .models import (
    AcademicYear,
    ColourValue,
    Mark,
    ModuleStatus,
    ReportLayout,
    ReportParseResult,
    StudentInfo,
    StudentResult,
    parse_argb,
)

__all__ = [
    "ErrorPolicy",
    "IngestConfig",
    "ParserConfig",
    "DatabaseConfig",
    "get_config",
    "set_config",
    "ReportParseError",
    "ContainerError",
    "WorksheetError",
    "InvalidHeaderError",
    "FieldError",
    "ModuleFormattingError",
    "RowError",
    "AcademicYear",
    "ColourValue",
    "Mark",
    "ModuleStatus",
    "ReportLayout",
    "ReportParseResult",
    "StudentInfo",
    "StudentResult",
    "parse_argb",
]
