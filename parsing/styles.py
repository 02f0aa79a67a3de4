"""
Results Ingest: Module Fill Status

Module outcomes in the primary result report are encoded only as the
background colour of the module cell:

    Orange (255, 255, 235, 156)                  -> Component Fail (CF)
    Green  (255, 198, 235|239, 156|206)          -> Soft Fail (SF)
    Red    (255, 255, 199, 206)                  -> Hard Fail (HF)
    No fill                                      -> Pass

The colour is found by following cell reference -> style id -> cell
format -> fill through the raw worksheet rows and the Styles part.
"""

import logging
from typing import Optional

from core.errors import FillClassificationError, ModuleFormattingError
from core.models import ColourValue, ModuleStatus
from parsing.columns import cell_reference
from parsing.spreadsheet_ml import SheetRow, Styles

logger = logging.getLogger(__name__)

MODULES_FIELD = "modules"

# Two template revisions use slightly different greens for soft fails
SOFT_FAIL_GREENS = (235, 239)
SOFT_FAIL_BLUES = (156, 206)


def resolve_cell_fill(
    sheet_name: str,
    column: int,
    row_number: int,
    styles: Styles,
    row: Optional[SheetRow],
) -> Optional[ColourValue]:
    """
    Find the fill colour of a cell.

    Args:
        sheet_name: Worksheet the cell belongs to (for error messages)
        column: Zero-based column index
        row_number: One-based sheet row number
        styles: The workbook's Styles part
        row: Raw cells of that sheet row

    Returns:
        The foreground colour of the cell's pattern fill, or None when the
        cell has no fill.

    Raises:
        ModuleFormattingError: If the cell, its style or its fill cannot be found.
    """
    reference = cell_reference(column, row_number)
    where = f"{sheet_name}!{reference}"

    def fail(reason: str) -> ModuleFormattingError:
        return ModuleFormattingError(MODULES_FIELD, reason, cell_reference=where)

    cell = row.cell(reference) if row is not None else None
    if cell is None:
        raise fail("cell not found in the worksheet data")

    try:
        style_id = int(cell.style)
    except ValueError:
        raise fail(f"style id {cell.style!r} is not a number") from None

    if not 0 <= style_id < len(styles.cell_xfs):
        raise fail(f"style id {style_id} is out of range ({len(styles.cell_xfs)} cell formats)")
    fill_id = styles.cell_xfs[style_id].fill_id

    if not 0 <= fill_id < len(styles.fills):
        raise fail(f"fill id {fill_id} is out of range ({len(styles.fills)} fills)")
    pattern = styles.fills[fill_id].pattern_fill

    if pattern is None or pattern.pattern_type == "none" or pattern.fg_color is None:
        return None

    if pattern.fg_color.rgb is None:
        # Theme and indexed colours cannot be mapped to a status
        raise fail("fill colour is not an ARGB value")

    logger.debug(f"{where}: style {style_id} -> fill {fill_id} -> {pattern.fg_color.rgb.to_hex()}")
    return pattern.fg_color.rgb


def classify_fill(colour: ColourValue) -> ModuleStatus:
    """
    Map a fill colour to a module status.

    Raises:
        FillClassificationError: For a transparent or unrecognised colour.
    """
    if colour.alpha != 255:
        raise FillClassificationError(colour.to_hex(), "Unexpected transparency in module fill")

    if colour.red == 255 and colour.green == 235 and colour.blue == 156:
        return ModuleStatus.COMPONENT_FAIL
    if colour.red == 198 and colour.green in SOFT_FAIL_GREENS and colour.blue in SOFT_FAIL_BLUES:
        return ModuleStatus.SOFT_FAIL
    if colour.red == 255 and colour.green == 199 and colour.blue == 206:
        return ModuleStatus.HARD_FAIL

    raise FillClassificationError(colour.to_hex(), "Unrecognised module fill")
