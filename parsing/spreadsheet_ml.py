"""
Results Ingest: SpreadsheetML Parts

openpyxl gives us cell values but not the raw style ids behind each cell,
so the few parts of the Office Open XML package that carry fill colours
are read straight out of the ZIP archive:

- the Styles part (fills and cell formats),
- the Workbook part (worksheet names and relationship ids),
- the workbook relationships (relationship id to worksheet file),
- a worksheet's raw rows (cell reference and style id per cell).

Each part is converted from XML into a plain dict and validated with a
pydantic model, so a missing attribute or a bad colour fails with the name
of the archive member it came from.
"""

import logging
import posixpath
import xml.etree.ElementTree as ET
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.errors import (
    ArchiveOpenError,
    InvalidPartError,
    MalformedPartError,
    MissingPartError,
    WorksheetError,
)
from core.models import ColourValue, parse_argb

logger = logging.getLogger(__name__)

STYLES_PART = "xl/styles.xml"
WORKBOOK_PART = "xl/workbook.xml"
RELATIONSHIPS_PART = "xl/_rels/workbook.xml.rels"


class _Part(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# ============================================
# Styles Part
# ============================================

class FgColor(_Part):
    """Foreground colour of a pattern fill. Only `rgb` colours are resolvable."""
    rgb: Optional[ColourValue] = None
    theme: Optional[int] = None
    indexed: Optional[int] = None

    @field_validator("rgb", mode="before")
    @classmethod
    def _parse_rgb(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_argb(value)
        return value


class PatternFill(_Part):
    pattern_type: Optional[str] = Field(default=None, alias="patternType")
    fg_color: Optional[FgColor] = Field(default=None, alias="fgColor")


class Fill(_Part):
    pattern_fill: Optional[PatternFill] = Field(default=None, alias="patternFill")


class CellFormat(_Part):
    """An `<xf>` record of `cellXfs`."""
    fill_id: int = Field(default=0, alias="fillId")


class Styles(_Part):
    fills: List[Fill]
    cell_xfs: List[CellFormat] = Field(alias="cellXfs")


# ============================================
# Workbook Part and Relationships
# ============================================

class Sheet(_Part):
    name: str
    sheet_id: int = Field(alias="sheetId")
    rid: str = Field(alias="id")


class Workbook(_Part):
    sheets: List[Sheet]

    def sheet(self, name: str) -> Optional[Sheet]:
        return next((s for s in self.sheets if s.name == name), None)


class Relationship(_Part):
    id: str = Field(alias="Id")
    target: str = Field(alias="Target")
    type: Optional[str] = Field(default=None, alias="Type")


class Relationships(_Part):
    relationships: List[Relationship]

    def target(self, rid: str) -> Optional[str]:
        return next((r.target for r in self.relationships if r.id == rid), None)


# ============================================
# Worksheet rows
# ============================================

class SheetCell(_Part):
    reference: str = Field(alias="r")
    # An absent style attribute means the default format (index 0)
    style: str = Field(default="0", alias="s")


class SheetRow(_Part):
    number: Optional[int] = Field(default=None, alias="r")
    cells: List[SheetCell] = Field(default_factory=list)

    def cell(self, reference: str) -> Optional[SheetCell]:
        return next((c for c in self.cells if c.reference == reference), None)


class WorksheetData(_Part):
    rows: List[SheetRow]

    def rows_by_number(self) -> Dict[int, SheetRow]:
        """Index rows by their one-based row number."""
        indexed: Dict[int, SheetRow] = {}
        previous = 0
        for row in self.rows:
            number = row.number if row.number is not None else previous + 1
            indexed[number] = row
            previous = number
        return indexed


# ============================================
# XML to dict
# ============================================

def _local(tag: str) -> str:
    """Strip the namespace from an element or attribute name."""
    return tag.rsplit("}", 1)[-1]


def _attrs(element: ET.Element) -> Dict[str, str]:
    return {_local(k): v for k, v in element.attrib.items()}


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(iter(_children(element, name)), None)


def _styles_document(root: ET.Element) -> Dict[str, Any]:
    doc: Dict[str, Any] = {}

    fills = _child(root, "fills")
    if fills is not None:
        doc["fills"] = []
        for fill in _children(fills, "fill"):
            entry: Dict[str, Any] = {}
            pattern = _child(fill, "patternFill")
            if pattern is not None:
                entry["patternFill"] = _attrs(pattern)
                fg = _child(pattern, "fgColor")
                if fg is not None:
                    entry["patternFill"]["fgColor"] = _attrs(fg)
            doc["fills"].append(entry)

    xfs = _child(root, "cellXfs")
    if xfs is not None:
        doc["cellXfs"] = [_attrs(xf) for xf in _children(xfs, "xf")]

    return doc


def _workbook_document(root: ET.Element) -> Dict[str, Any]:
    sheets = _child(root, "sheets")
    if sheets is None:
        return {}
    return {"sheets": [_attrs(sheet) for sheet in _children(sheets, "sheet")]}


def _relationships_document(root: ET.Element) -> Dict[str, Any]:
    return {"relationships": [_attrs(rel) for rel in _children(root, "Relationship")]}


def _worksheet_document(root: ET.Element) -> Dict[str, Any]:
    data = _child(root, "sheetData")
    if data is None:
        return {}

    rows = []
    for row in _children(data, "row"):
        entry: Dict[str, Any] = {"cells": [_attrs(c) for c in _children(row, "c")]}
        if "r" in row.attrib:
            entry["r"] = row.attrib["r"]
        rows.append(entry)
    return {"rows": rows}


PartT = TypeVar("PartT", bound=_Part)

_DOCUMENTS: Dict[type, Callable[[ET.Element], Dict[str, Any]]] = {
    Styles: _styles_document,
    Workbook: _workbook_document,
    Relationships: _relationships_document,
    WorksheetData: _worksheet_document,
}


def resolve_worksheet_path(target: str) -> str:
    """
    Turn a relationship target into an archive member name.

    Targets are either absolute within the package ("/xl/worksheets/sheet1.xml")
    or relative to the workbook part ("worksheets/sheet1.xml").
    """
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join("xl", target))


# ============================================
# Archive
# ============================================

class SpreadsheetArchive:
    """
    An open workbook archive.

    Usage:
        with SpreadsheetArchive("results.xlsx") as archive:
            styles = archive.styles()
            rows = archive.worksheet("Sheet1").rows_by_number()
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._zip: Optional[zipfile.ZipFile] = None
        self._workbook: Optional[Workbook] = None
        self._relationships: Optional[Relationships] = None

    def __enter__(self) -> "SpreadsheetArchive":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self) -> None:
        if self._zip is not None:
            return
        try:
            self._zip = zipfile.ZipFile(self.path)
        except FileNotFoundError:
            raise ArchiveOpenError(str(self.path), "file not found") from None
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveOpenError(str(self.path), f"not a workbook archive ({e})") from e

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def read_part(self, member: str) -> bytes:
        """Read an archive member in full."""
        if self._zip is None:
            self.open()
        try:
            return self._zip.read(member)
        except KeyError:
            raise MissingPartError(member, f"not found in {self.path.name}") from None

    def load(self, member: str, schema: Type[PartT]) -> PartT:
        """Read an archive member and validate it against a part schema."""
        data = self.read_part(member)
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise MalformedPartError(member, f"malformed XML ({e})") from e

        document = _DOCUMENTS[schema](root)
        try:
            return schema.model_validate(document)
        except ValidationError as e:
            raise InvalidPartError(member, str(e)) from e

    def styles(self) -> Styles:
        return self.load(STYLES_PART, Styles)

    def workbook(self) -> Workbook:
        if self._workbook is None:
            self._workbook = self.load(WORKBOOK_PART, Workbook)
        return self._workbook

    def relationships(self) -> Relationships:
        if self._relationships is None:
            self._relationships = self.load(RELATIONSHIPS_PART, Relationships)
        return self._relationships

    def worksheet_path(self, name: str) -> str:
        """Follow sheet name to relationship id to worksheet member."""
        sheet = self.workbook().sheet(name)
        if sheet is None:
            raise WorksheetError(name, f"not listed in {WORKBOOK_PART}")

        target = self.relationships().target(sheet.rid)
        if target is None:
            raise WorksheetError(name, f"relationship {sheet.rid!r} not found in {RELATIONSHIPS_PART}")

        path = resolve_worksheet_path(target)
        logger.debug(f"Worksheet {name!r} (sheet id {sheet.sheet_id}) is stored at {path}")
        return path

    def worksheet(self, name: str) -> WorksheetData:
        return self.load(self.worksheet_path(name), WorksheetData)


def get_data(path: Union[str, Path], member: str, schema: Type[PartT]) -> PartT:
    """Open a workbook, read one part and close it again."""
    with SpreadsheetArchive(path) as archive:
        return archive.load(member, schema)
