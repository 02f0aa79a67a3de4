"""
Results Ingest Unit Tests: Header Resolvers
===========================================

Tests:
- Result report group headers combined with their sub-headers
- Result report modules block over blank-headed columns
- Award report verbatim headers
- Resit report copy-forward, Course continuation and Empty placeholders
- Invalid headers carry the offending text
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.errors import InvalidHeaderError
from parsing.headers import (
    AugResitHeader,
    AwardHeader,
    MayResitHeader,
    ResultHeader,
    normalize_result_header,
    resolve_award_headers,
    resolve_resit_headers,
    resolve_result_headers,
)
from tests.conftest import (
    AUG_HEADERS,
    AUG_SUB_HEADERS,
    AWARD_HEADERS,
    MAY_HEADERS,
    MAY_SUB_HEADERS,
    RESULT_HEADERS,
    RESULT_SUB_HEADERS,
)


# =============================================================================
# Result Report
# =============================================================================

@pytest.mark.unit
class TestResultHeaders:
    """Tests for the primary result report resolver"""

    def test_group_header_spans_two_columns(self):
        """Test "Autumn" over "Credit" and "Mean" """
        tags = resolve_result_headers(["Autumn", ""], ["Credit", "Mean"])
        assert tags == [ResultHeader.AUTUMN_CREDIT, ResultHeader.AUTUMN_MEAN]

    def test_credit_band_groups(self):
        tags = resolve_result_headers(
            ["Credits (L4)", None, "Year", None],
            ["<40", "40-49", "Credit", "Prog Average"],
        )
        assert tags == [
            ResultHeader.CREDITS_L4_LT40,
            ResultHeader.CREDITS_L4_40_49,
            ResultHeader.YEAR_CREDIT,
            ResultHeader.YEAR_PROG_AVERAGE,
        ]

    def test_full_layout(self):
        """Test a complete header row pair"""
        tags = resolve_result_headers(RESULT_HEADERS, RESULT_SUB_HEADERS, "Cohort A")

        assert len(tags) == len(RESULT_HEADERS)
        assert tags[:6] == [
            ResultHeader.NO,
            ResultHeader.ID,
            ResultHeader.LAST_NAME,
            ResultHeader.FIRST_NAME,
            ResultHeader.PLAN,
            ResultHeader.YEAR_OF_PROGRAM,
        ]
        assert tags[14:16] == [ResultHeader.CREDITS_L3_LT30, ResultHeader.CREDITS_L3_30_39]
        assert tags[17:20] == [ResultHeader.MODULES] * 3
        assert tags[20] is ResultHeader.REMARKS

    def test_modules_block_ignores_sub_headers(self):
        """Test blank-headed columns after Modules are all module columns"""
        tags = resolve_result_headers(["Modules", "", "", ""], ["", "anything", "", ""])
        assert tags == [ResultHeader.MODULES] * 4

    def test_multi_line_header(self):
        """Test embedded line breaks are normalized"""
        assert resolve_result_headers(["Year of\nProgram"], [None]) == [ResultHeader.YEAR_OF_PROGRAM]

    def test_invalid_header(self):
        """Test an unknown header fails with its normalized text"""
        with pytest.raises(InvalidHeaderError) as exc_info:
            resolve_result_headers(["ID", "Favourite Colour"], [None, None], "Cohort A")

        assert exc_info.value.text == "favourite_colour"
        assert exc_info.value.sheet == "Cohort A"

    def test_invalid_sub_header(self):
        with pytest.raises(InvalidHeaderError, match="autumn_total"):
            resolve_result_headers(["Autumn", ""], ["Total", "Mean"])

    @pytest.mark.parametrize("raw,normalized", [
        ("Credits (L3)", "credits_l3"),
        ("<30", "lt30"),
        ("30-39", "30_39"),
        ("  Last   Name ", "last_name"),
        (None, ""),
    ])
    def test_normalize(self, raw, normalized):
        assert normalize_result_header(raw) == normalized


# =============================================================================
# Award Report
# =============================================================================

@pytest.mark.unit
class TestAwardHeaders:
    """Tests for the award report resolver"""

    def test_full_layout(self):
        tags = resolve_award_headers(AWARD_HEADERS, "Award Report")

        assert tags[1] is AwardHeader.ID
        assert tags[15] is AwardHeader.BORDERLINE
        assert tags[20] is AwardHeader.EMPTY
        assert tags[-1] is AwardHeader.RECOMMENDATION

    def test_headers_are_case_sensitive(self):
        with pytest.raises(InvalidHeaderError, match="student id"):
            resolve_award_headers(["No", "student id"])


# =============================================================================
# Resit Reports
# =============================================================================

@pytest.mark.unit
class TestResitHeaders:
    """Tests for the resit report resolver"""

    def test_copy_forward_once(self):
        """Test a blank header repeats the previous one for one column"""
        tags = resolve_resit_headers(["Autumn", ""], ["Credit", "Mean"], MayResitHeader)
        assert tags == [MayResitHeader.AUTUMN_CREDIT, MayResitHeader.AUTUMN_MEAN]

    def test_course_continues(self):
        """Test Course covers every following blank column"""
        tags = resolve_resit_headers(["Course", "", "", "Remarks"], [], MayResitHeader)
        assert tags == [MayResitHeader.COURSE] * 3 + [MayResitHeader.REMARKS]

    def test_blank_without_state_is_empty(self):
        """Test a blank after a copied group becomes the Empty placeholder"""
        tags = resolve_resit_headers(["Spring", "", "", ""], ["Credit", "Mean", "", ""], MayResitHeader)
        assert tags[2:] == [MayResitHeader.EMPTY, MayResitHeader.EMPTY]

    def test_may_layout(self):
        tags = resolve_resit_headers(MAY_HEADERS, MAY_SUB_HEADERS, MayResitHeader, "Sheet1")

        assert len(tags) == len(MAY_HEADERS)
        assert tags[8:10] == [MayResitHeader.SUMMER_CREDIT, MayResitHeader.SUMMER_MEAN]
        assert tags[16:18] == [MayResitHeader.CREDITS_L3_LT30, MayResitHeader.CREDITS_L3_30_39]
        assert tags[18] is MayResitHeader.PROGRESSION
        assert tags[19:21] == [MayResitHeader.COURSE] * 2

    def test_aug_layout(self):
        """Test the unnamed column pair after Spring"""
        tags = resolve_resit_headers(AUG_HEADERS, AUG_SUB_HEADERS, AugResitHeader, "August")

        assert tags[12:14] == [AugResitHeader.EMPTY_CREDIT, AugResitHeader.EMPTY_MEAN]
        assert tags[19:22] == [AugResitHeader.COURSE] * 3
        assert tags[22] is AugResitHeader.REMARKS

    def test_summer_not_in_aug_layout(self):
        """Test the combined text is reported"""
        with pytest.raises(InvalidHeaderError) as exc_info:
            resolve_resit_headers(["Summer"], ["Credit"], AugResitHeader)
        assert exc_info.value.text == "Summer Credit"

    def test_sub_header_row_may_be_shorter(self):
        tags = resolve_resit_headers(["No", "ID", "Last Name"], ["", ""], MayResitHeader)
        assert tags == [MayResitHeader.NO, MayResitHeader.ID, MayResitHeader.LAST_NAME]
