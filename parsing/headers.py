"""
Results Ingest: Header Resolvers
Turn the raw header rows of a report worksheet into one semantic tag per column

Primary result report (0A): two header rows. Group headers ("Autumn",
"Credits (L3)", ...) are printed once over two columns and combined with the
sub-header below each column ("Autumn" + "Credit" -> autumn_credit). The
"Modules" header is printed once over a run of blank-headed columns.

Award report (0B): one header row, matched verbatim.

Resit reports (0C, 0D): two header rows taken almost verbatim. A blank header
repeats the previous one once ("Autumn" over "Credit" and "Mean"), or for as
long as needed after "Course".
"""

import logging
import re
from enum import Enum
from itertools import zip_longest
from typing import Any, List, Optional, Sequence, Type, TypeVar

from core.errors import InvalidHeaderError

logger = logging.getLogger(__name__)


class _Tag(str, Enum):
    @property
    def field(self) -> str:
        """Field name used in error messages"""
        return self.name.lower()


class ResultHeader(_Tag):
    NO = "no"
    ID = "id"
    LAST_NAME = "last_name"
    FIRST_NAME = "first_name"
    PLAN = "plan"
    YEAR_OF_PROGRAM = "year_of_program"
    AUTUMN_CREDIT = "autumn_credit"
    AUTUMN_MEAN = "autumn_mean"
    FULL_CREDIT = "full_credit"
    FULL_MEAN = "full_mean"
    SPRING_CREDIT = "spring_credit"
    SPRING_MEAN = "spring_mean"
    YEAR_CREDIT = "year_credit"
    YEAR_PROG_AVERAGE = "year_prog_average"
    CREDITS_L3_LT30 = "credits_l3_lt30"
    CREDITS_L3_30_39 = "credits_l3_30_39"
    CREDITS_L4_LT40 = "credits_l4_lt40"
    CREDITS_L4_40_49 = "credits_l4_40_49"
    PROGRESSION = "progression"
    MODULES = "modules"
    REMARKS = "remarks"


class AwardHeader(_Tag):
    NO = "No"
    ID = "Student ID"
    LAST_NAME = "Surname"
    FIRST_NAME = "First Name"
    CAREER_NUMBER = "Career Number"
    ACADEMIC_PROGRAM = "Academic Program"
    PROGRAM_DESCRIPTION = "Program Description"
    ACADEMIC_PLAN = "Academic Plan"
    PLAN_DESCRIPTION = "Plan Description"
    INTAKE = "Intake"
    QAA_EFFECTIVE_DATE = "QAA Effective Date"
    CALCULATION_MODEL = "Degree Calculation Model"
    RAW_MARK = "Raw Final Mark"
    TRUNCATED_MARK = "Truncated Final Mark"
    FINAL_MARK = "Final Mark"
    BORDERLINE = "Borderline?"
    CALCULATION_REVIEW = "Calculation Review Rqd"
    DEGREE_AWARD = "Degree Award"
    SELECTED = "Selected"
    EXCEPTION_DATA = "Exception Data"
    EMPTY = ""
    RECOMMENDATION = "Recommendation"


class MayResitHeader(_Tag):
    NO = "No"
    ID = "ID"
    LAST_NAME = "Last Name"
    FIRST_NAME = "First Name"
    PLAN = "Plan"
    YEAR_OF_PROGRAM = "Year Of Program"
    AUTUMN_CREDIT = "Autumn Credit"
    AUTUMN_MEAN = "Autumn Mean"
    SUMMER_CREDIT = "Summer Credit"
    SUMMER_MEAN = "Summer Mean"
    FULL_CREDIT = "Full Credit"
    FULL_MEAN = "Full Mean"
    SPRING_CREDIT = "Spring Credit"
    SPRING_MEAN = "Spring Mean"
    YEAR_CREDIT = "Year Credit"
    YEAR_PROG_AVERAGE = "Year Prog Average"
    CREDITS_L3_LT30 = "Credits <30"
    CREDITS_L3_30_39 = "Credits 30-39"
    PROGRESSION = "Progression"
    COURSE = "Course"
    REMARKS = "Remarks"
    EMPTY = "Empty"


class AugResitHeader(_Tag):
    NO = "No"
    ID = "ID"
    LAST_NAME = "Last Name"
    FIRST_NAME = "First Name"
    PLAN = "Plan"
    YEAR_OF_PROGRAM = "Year Of Program"
    AUTUMN_CREDIT = "Autumn Credit"
    AUTUMN_MEAN = "Autumn Mean"
    FULL_CREDIT = "Full Credit"
    FULL_MEAN = "Full Mean"
    SPRING_CREDIT = "Spring Credit"
    SPRING_MEAN = "Spring Mean"
    EMPTY_CREDIT = "Empty Credit"
    EMPTY_MEAN = "Empty Mean"
    YEAR_CREDIT = "Year Credit"
    YEAR_PROG_AVERAGE = "Year Prog Average"
    CREDITS_L3_LT30 = "Credits <30"
    CREDITS_L3_30_39 = "Credits 30-39"
    PROGRESSION = "Progression"
    COURSE = "Course"
    REMARKS = "Remarks"
    EMPTY = "Empty"


TagT = TypeVar("TagT", bound=_Tag)

# Result report headers printed once over a credit and a mean column
RESULT_GROUPS = frozenset({"autumn", "full", "spring", "year", "credits_l3", "credits_l4"})
RESIT_BLANK = "Empty"
RESIT_COURSE = "Course"

_WHITESPACE = re.compile(r"\s+")


def _cell_text(value: Any) -> str:
    """Header cell as single-line text."""
    if value is None:
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip()


def _lookup(tags: Type[TagT], text: str, sheet: Optional[str]) -> TagT:
    try:
        return tags(text)
    except ValueError:
        raise InvalidHeaderError(text, sheet) from None


def _pairs(headers: Sequence[Any], sub_headers: Sequence[Any]):
    return zip_longest(headers, sub_headers, fillvalue=None)


# ============================================
# Primary result report (0A)
# ============================================

class _ResultState(Enum):
    CONTINUE = "continue"
    CONCAT_SUBHEADER = "concat_subheader"
    MODULE = "module"


def normalize_result_header(value: Any) -> str:
    """
    Lower-case a result report header and make it identifier-like.

    >>> normalize_result_header("Credits (L3)"), normalize_result_header("30-39")
    ('credits_l3', '30_39')
    """
    text = _cell_text(value).lower()
    text = text.replace("<", "lt").replace("-", "_")
    text = text.replace("(", "").replace(")", "")
    return text.replace(" ", "_")


def resolve_result_headers(
    headers: Sequence[Any],
    sub_headers: Sequence[Any],
    sheet: Optional[str] = None,
) -> List[ResultHeader]:
    """
    Resolve the two header rows of a primary result worksheet.

    Raises:
        InvalidHeaderError: If a column does not resolve to a known tag.
    """
    tags: List[ResultHeader] = []
    state, group = _ResultState.CONTINUE, ""

    for raw_header, raw_sub in _pairs(headers, sub_headers):
        header = normalize_result_header(raw_header)
        sub_header = normalize_result_header(raw_sub)

        if state is _ResultState.MODULE:
            if not header:
                tags.append(ResultHeader.MODULES)
                continue
            # First named column after the module block
            state = _ResultState.CONTINUE

        if state is _ResultState.CONCAT_SUBHEADER:
            text = f"{group}_{sub_header}"
            state, group = _ResultState.CONTINUE, ""
        elif header in RESULT_GROUPS:
            text = f"{header}_{sub_header}"
            state, group = _ResultState.CONCAT_SUBHEADER, header
        elif header == ResultHeader.MODULES.value:
            text = header
            state = _ResultState.MODULE
        else:
            text = header

        tags.append(_lookup(ResultHeader, text, sheet))

    logger.debug(f"Resolved {len(tags)} result columns for {sheet or 'worksheet'}")
    return tags


# ============================================
# Award report (0B)
# ============================================

def resolve_award_headers(headers: Sequence[Any], sheet: Optional[str] = None) -> List[AwardHeader]:
    return [_lookup(AwardHeader, _cell_text(h), sheet) for h in headers]


# ============================================
# Resit reports (0C, 0D)
# ============================================

class _ResitState(Enum):
    COPY = "copy"
    COURSE = "course"
    NONE = "none"


def resolve_resit_headers(
    headers: Sequence[Any],
    sub_headers: Sequence[Any],
    tags: Type[TagT],
    sheet: Optional[str] = None,
) -> List[TagT]:
    """
    Resolve the two header rows of a resit worksheet.

    Args:
        headers: First header row
        sub_headers: Second header row
        tags: MayResitHeader or AugResitHeader
        sheet: Worksheet name for error messages

    Raises:
        InvalidHeaderError: With the combined "header sub-header" text that
            did not match.
    """
    resolved: List[TagT] = []
    state, previous = _ResitState.NONE, ""

    for raw_header, raw_sub in _pairs(headers, sub_headers):
        header = _cell_text(raw_header)
        sub_header = _cell_text(raw_sub)

        if not header:
            if state is _ResitState.COPY:
                header = previous
                state = _ResitState.NONE
            elif state is _ResitState.COURSE:
                header = previous
            else:
                header = RESIT_BLANK
        else:
            state = _ResitState.COURSE if header == RESIT_COURSE else _ResitState.COPY

        combined = f"{header} {sub_header}" if sub_header else header
        previous = header
        resolved.append(_lookup(tags, combined, sheet))

    return resolved
