"""
Results Ingest Test Configuration
=================================

Fixtures:
- Real .xlsx report workbooks built with openpyxl in tmp_path, one per layout
- Module status fills (solid pattern fills with 8 digit ARGB colours)
- In-memory SQLite engine and session
- Clean configuration (no RESULTS_* environment leaking into tests)
"""

import os
import sys
from datetime import datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from openpyxl import Workbook
from openpyxl.styles import PatternFill

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import set_config
from database.connection import create_db_engine, create_session_factory, init_db


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (real workbooks and database)")


ENV_VARS = (
    "RESULTS_ERROR_POLICY",
    "RESULTS_AWARD_SHEET",
    "RESULTS_RESIT_MAY_SHEET",
    "RESULTS_RESIT_AUG_SHEET",
    "RESULTS_LOG_LEVEL",
    "DATABASE_URL",
    "DB_ECHO",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Every test starts from the default configuration"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


# =============================================================================
# Workbook Builder
# =============================================================================

# Module status fills as the student-records system exports them
COMPONENT_FAIL_FILL = "FFFFEB9C"
SOFT_FAIL_FILL = "FFC6EFCE"
SOFT_FAIL_FILL_OLD = "FFC6EB9C"
HARD_FAIL_FILL = "FFFFC7CE"

Fills = Dict[Tuple[str, str], str]


def write_workbook(
    path: Path,
    sheets: Dict[str, List[List[Any]]],
    fills: Optional[Fills] = None,
) -> Path:
    """
    Write an .xlsx file.

    Args:
        path: Output file
        sheets: Worksheet name -> rows of cell values, in workbook order
        fills: (worksheet name, cell reference) -> ARGB solid fill colour
    """
    wb = Workbook()
    wb.remove(wb.active)

    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)

    for (sheet, reference), argb in (fills or {}).items():
        wb[sheet][reference].fill = PatternFill(fill_type="solid", start_color=argb, end_color=argb)

    wb.save(path)
    return path


# =============================================================================
# Primary Result Report (0A)
# =============================================================================

RESULT_HEADERS = [
    "No", "ID", "Last Name", "First Name", "Plan", "Year of Program",
    "Autumn", None, "Spring", None, "Full", None, "Year", None,
    "Credits (L3)", None, "Progression", "Modules", None, None, "Remarks",
]
RESULT_SUB_HEADERS = [
    None, None, None, None, None, None,
    "Credit", "Mean", "Credit", "Mean", "Credit", "Mean", "Credit", "Prog Average",
    "<30", "30-39", None, None, None, None, None,
]

# Columns R, S, T hold modules
RESULT_ROWS = [
    [1, 20123456, "Tan", "Mei Ling", "UG-CS", "1", 60, 65.5, 60, 58.0, None, None, 120, 61.75, 0, 10,
     "Proceed", "COMP\n1001\n72", "COMP\n1002\n20\n38", "MATH\n1003\n45", None],
    [2, 20123457, "Lee", "Ahmad", "UG-EE", "2", 50, 44.0, 60, 39.5, None, None, 110, 41.2, 20, 10,
     "Resit", "EEEE\n2001\n31", None, None, "Hard fail in EEEE2001"],
]

RESULT_FILLS = {
    ("Cohort A", "S3"): SOFT_FAIL_FILL,
    ("Cohort A", "T3"): COMPONENT_FAIL_FILL,
    ("Cohort A", "R4"): HARD_FAIL_FILL,
}


@pytest.fixture
def result_workbook(tmp_path) -> Path:
    """A primary result report with one worksheet and module fills"""
    return write_workbook(
        tmp_path / "result.xlsx",
        {"Cohort A": [RESULT_HEADERS, RESULT_SUB_HEADERS] + RESULT_ROWS},
        RESULT_FILLS,
    )


# =============================================================================
# Resit Reports (0C, 0D)
# =============================================================================

MAY_HEADERS = [
    "No", "ID", "Last Name", "First Name", "Plan", "Year Of Program",
    "Autumn", None, "Summer", None, "Full", None, "Spring", None, "Year", None,
    "Credits", None, "Progression", "Course", None, "Remarks",
]
MAY_SUB_HEADERS = [
    None, None, None, None, None, None,
    "Credit", "Mean", "Credit", "Mean", "Credit", "Mean", "Credit", "Mean", "Credit", "Prog Average",
    "<30", "30-39", None, None, None, None,
]


def may_row(
    no=None, student_id=None, last=None, first=None, plan=None, year=None,
    year_credit=None, year_average=None, progression=None,
    course1=None, course2=None, remarks=None, spring_mean=None,
) -> List[Any]:
    """A May resit data row; columns not named stay blank"""
    return [
        no, student_id, last, first, plan, year,
        None, None, None, None, None, None, None, spring_mean, year_credit, year_average,
        None, None, progression, course1, course2, remarks,
    ]


AUG_HEADERS = [
    "No", "ID", "Last Name", "First Name", "Plan", "Year Of Program",
    "Autumn", None, "Full", None, "Spring", None, None, None, "Year", None,
    "Credits", None, "Progression", "Course", None, None, "Remarks",
]
AUG_SUB_HEADERS = [
    None, None, None, None, None, None,
    "Credit", "Mean", "Credit", "Mean", "Credit", "Mean", "Credit", "Mean", "Credit", "Prog Average",
    "<30", "30-39", None, None, None, None, None,
]


@pytest.fixture
def resit_may_workbook(tmp_path) -> Path:
    """A May resit report: student 1 spans rows 3-4, student 2 is row 5"""
    rows = [
        MAY_HEADERS,
        MAY_SUB_HEADERS,
        may_row(1, 20123456, "Tan", "Mei Ling", "UG-CS", "Year 1", year_credit="110", year_average="48.5",
                progression="Resit", course1="COMP\n1001\n\n35\n45", remarks="Resit in August",
                spring_mean="row 3"),
        may_row(year_credit=120, course2="MATH\n1003\n\n52", remarks="Passed retake"),
        may_row(2, 20123457, "Lee", "Ahmad", "UG-EE", "Year 2", year_credit=120, year_average=61.0,
                progression="Proceed", course1="EEEE\n2001\n20\n61"),
    ]
    return write_workbook(tmp_path / "resit_may.xlsx", {"Sheet1": rows})


@pytest.fixture
def resit_aug_workbook(tmp_path) -> Path:
    """An August resit report whose data is on the last worksheet"""
    row = [
        1, 20123456, "Tan", "Mei Ling", "UG-CS", "Year 1",
        60, 55.0, None, None, 60, 47.0, "x", "y", 120, 51.0,
        10, None, "Proceed", "COMP\n1001\n20", None, None, None,
    ]
    continuation = [None] * 23
    continuation[19] = 45
    second_retake = [None] * 23
    second_retake[19] = "55"

    return write_workbook(
        tmp_path / "resit_aug.xlsx",
        {
            "Notes": [["Exported from the student-records system"]],
            "August": [AUG_HEADERS, AUG_SUB_HEADERS, row, continuation, second_retake],
        },
    )


# =============================================================================
# Award Report (0B)
# =============================================================================

AWARD_HEADERS = [
    "No", "Student ID", "Surname", "First Name", "Career Number", "Academic Program",
    "Program Description", "Academic Plan", "Plan Description", "Intake", "QAA Effective Date",
    "Degree Calculation Model", "Raw Final Mark", "Truncated Final Mark", "Final Mark",
    "Borderline?", "Calculation Review Rqd", "Degree Award", "Selected", "Exception Data",
    None, "Recommendation",
]


def award_row(student_id, last, first, selected="Y", review="N", degree_award="First Class") -> List[Any]:
    return [
        1, student_id, last, first, 0, "UGCS", "BSc Computer Science", "UG-CS",
        "Computer Science (Hons)", "2021/2022 Sep", datetime(2021, 9, 1),
        "Standard", 71.256, 71.25, 71, "No", review, degree_award, selected, None,
        None, "Award",
    ]


@pytest.fixture
def award_workbook(tmp_path) -> Path:
    rows = [
        AWARD_HEADERS,
        award_row(20123456, "Tan", "Mei Ling"),
        award_row(20123457, "Lee", "Ahmad", selected="N", review="Y", degree_award=time(14, 30)),
    ]
    return write_workbook(tmp_path / "award.xlsx", {"Award Report": rows})


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created"""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = create_session_factory(engine)()
    yield session
    session.rollback()
    session.close()
