"""
Results Ingest: Errors
Exception hierarchy raised by the report parsers

Container errors are fatal for the whole workbook. Worksheet and header
errors are fatal for one worksheet. Row errors wrap the field that failed
together with the sheet row number.
"""

from typing import Any, Optional


class ReportParseError(Exception):
    """Base class for every error raised while parsing a report."""
    pass


# ============================================
# Container level
# ============================================

class ContainerError(ReportParseError):
    """A part of the workbook archive could not be read."""

    def __init__(self, part: str, detail: str):
        self.part = part
        self.detail = detail
        super().__init__(f"{part}: {detail}")


class ArchiveOpenError(ContainerError):
    """The workbook file is missing or is not a ZIP archive."""
    pass


class MissingPartError(ContainerError):
    """A required member is absent from the archive."""
    pass


class MalformedPartError(ContainerError):
    """An archive member is not well-formed XML."""
    pass


class InvalidPartError(ContainerError):
    """An archive member does not match the expected document schema."""
    pass


# ============================================
# Worksheet and header level
# ============================================

class WorksheetError(ReportParseError):
    """A worksheet is missing or lacks its header rows."""

    def __init__(self, sheet: Optional[str], reason: str):
        self.sheet = sheet
        self.reason = reason
        where = f"worksheet {sheet!r}" if sheet else "workbook"
        super().__init__(f"{where}: {reason}")


class InvalidHeaderError(ReportParseError):
    """A header (or header plus sub-header) is not part of the layout."""

    def __init__(self, text: str, sheet: Optional[str] = None):
        self.text = text
        self.sheet = sheet
        super().__init__(f"Invalid header found: {text!r}")


# ============================================
# Field and row level
# ============================================

class FieldError(ReportParseError):
    """A single cell failed its type, format or categorical check."""

    def __init__(self, field: str, reason: str, value: Any = None):
        self.field = field
        self.reason = reason
        self.value = value
        super().__init__(f"No/Invalid {field}: {reason}")


class ModuleFormattingError(FieldError):
    """The fill of a module cell could not be resolved or classified."""

    def __init__(self, field: str, reason: str, cell_reference: Optional[str] = None):
        self.cell_reference = cell_reference
        where = f" at {cell_reference}" if cell_reference else ""
        super().__init__(field, f"cannot resolve module formatting{where}: {reason}")


class FillClassificationError(ReportParseError):
    """A fill colour is not one of the module status colours."""

    def __init__(self, colour: Any, reason: str):
        self.colour = colour
        self.reason = reason
        super().__init__(f"{reason}: {colour}")


class RowError(ReportParseError):
    """A data row failed to parse."""

    def __init__(self, row: int, error: FieldError, sheet: Optional[str] = None):
        self.row = row
        self.error = error
        self.sheet = sheet
        where = f"{sheet!r} row {row}" if sheet else f"row {row}"
        super().__init__(f"Invalid data in {where}: {error}")

    @property
    def field(self) -> str:
        return self.error.field
