"""
Results Ingest Unit Tests: Continuation Row Merger
==================================================

Tests:
- Cell merge rules (blank, text + text, text + number, number + anything)
- Rows with a blank ID fold into the preceding record
- Fragments survive in arrival order
- Empty sheets and leading continuation rows
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from parsing.cells import SEPARATOR, fragments
from parsing.merger import MergedRow, merge_cell, merge_continuation_rows, merge_row


# =============================================================================
# Cell Rules
# =============================================================================

@pytest.mark.unit
class TestMergeCell:
    """Tests for merging one cell into the accumulator"""

    @pytest.mark.parametrize("current,new,expected", [
        (None, "45", "45"),
        ("", 45, 45),
        (None, None, None),
        ("COMP\n101", "45", "COMP\n101" + SEPARATOR + "45"),
        ("COMP\n101", 45, "COMP\n101" + SEPARATOR + "45"),
        ("COMP\n101", 45.5, "COMP\n101" + SEPARATOR + "45.5"),
        ("COMP\n101", None, "COMP\n101"),
        (60, 70, 60),
        (60, "x", 60),
    ])
    def test_rules(self, current, new, expected):
        assert merge_cell(current, new) == expected

    def test_text_merge_is_associative(self):
        """Test folding left or right gives the same fragments"""
        a, b, c = "COMP\n101", "45", "55"
        assert merge_cell(merge_cell(a, b), c) == merge_cell(a, merge_cell(b, c))

    def test_merge_row_pads_shorter_rows(self):
        assert merge_row(["a", None], ["b", "c", "d"]) == ["a" + SEPARATOR + "b", "c", "d"]


# =============================================================================
# Row Folding
# =============================================================================

@pytest.mark.unit
class TestMergeContinuationRows:
    """Tests for folding physical rows into records"""

    def test_one_row_per_student(self):
        rows = [
            (3, [1, 100, "COMP\n101\n20"]),
            (4, [None, None, 45]),
            (5, [None, None, "55"]),
            (6, [2, 200, "MATH\n102\n60"]),
        ]
        merged = merge_continuation_rows(rows, id_column=1, first_row=3)

        assert [m.row_number for m in merged] == [3, 6]
        assert [m.physical_rows for m in merged] == [3, 1]
        assert fragments(merged[0].cells[2]) == ["COMP\n101\n20", "45", "55"]
        assert merged[1].cells == [2, 200, "MATH\n102\n60"]

    def test_numeric_accumulator_keeps_first_value(self):
        rows = [(3, [1, 100, 60]), (4, [None, None, 70])]
        merged = merge_continuation_rows(rows, id_column=1)
        assert merged[0].cells[2] == 60

    def test_whitespace_id_is_blank(self):
        """Test an ID cell holding only spaces continues the record"""
        rows = [(3, ["a", 100]), (4, ["b", "  "])]
        merged = merge_continuation_rows(rows, id_column=1)
        assert len(merged) == 1
        assert merged[0].cells[0] == "a" + SEPARATOR + "b"

    def test_empty_sheet_yields_one_empty_row(self):
        """Test no data rows still flushes one empty record"""
        assert merge_continuation_rows([], id_column=1, first_row=3) == [MergedRow(3)]

    def test_leading_continuation_row_dropped(self):
        """Test rows before the first ID have nothing to join"""
        rows = [(3, [None, None, "orphan"]), (4, [1, 100, "x"])]
        merged = merge_continuation_rows(rows, id_column=1)

        assert len(merged) == 1
        assert merged[0].row_number == 4

    def test_short_row_without_id_column(self):
        rows = [(3, [1, 100]), (4, ["extra"])]
        merged = merge_continuation_rows(rows, id_column=1)
        assert merged[0].cells == [1, 100]
