"""
Results Ingest: Data Models
Typed records produced by the report parsers

Every record is built once per parsed row and never mutated afterwards.
The persistence layer (see `database/`) attaches the academic year when
the records are stored.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime
from typing import List, Optional, Tuple, Union


class ReportLayout(str, Enum):
    """The four report exports produced by the student-records system"""
    RESULT = "result"          # 0A: primary results, module status as cell fill
    AWARD = "award"            # 0B: degree awards
    RESIT_MAY = "resit_may"    # 0C: May resit
    RESIT_AUG = "resit_aug"    # 0D: August resit


class ModuleStatus(str, Enum):
    """
    Outcome of a module attempt.

    The value is the short code stored in the database. A module cell
    without any fill is a pass.
    """
    PASS = "Pass"
    SOFT_FAIL = "SF"
    HARD_FAIL = "HF"
    COMPONENT_FAIL = "CF"

    def __str__(self) -> str:
        return self.value


# ============================================
# Colours
# ============================================

_ARGB_PATTERN = re.compile(r"^[0-9A-Fa-f]{8}$")


@dataclass(frozen=True)
class ColourValue:
    """An ARGB fill colour recovered from the styles part of a workbook."""
    alpha: int
    red: int
    green: int
    blue: int

    def to_hex(self) -> str:
        return f"{self.alpha:02X}{self.red:02X}{self.green:02X}{self.blue:02X}"


def parse_argb(text: str) -> ColourValue:
    """
    Parse an 8 digit hexadecimal ARGB string such as ``"FFFFEB9C"``.

    The four two-digit groups are alpha, red, green and blue.

    Raises:
        ValueError: If the string is not exactly 8 hexadecimal digits.
    """
    if not isinstance(text, str):
        raise ValueError(f"expected an 8 digit hexadecimal string, got {type(text).__name__}")
    if len(text) != 8:
        raise ValueError(f"the colour {text!r} is {len(text)} characters long and not 8")
    if not _ARGB_PATTERN.match(text):
        raise ValueError(f"the colour {text!r} is not a hexadecimal number")

    channels = [int(text[i:i + 2], 16) for i in range(0, 8, 2)]
    return ColourValue(*channels)


# ============================================
# Academic Year
# ============================================

@dataclass(frozen=True)
class AcademicYear:
    """A pair of consecutive years, rendered as ``"2024/2025"``."""
    start: int
    end: int

    def __post_init__(self):
        if self.end != self.start + 1:
            raise ValueError(
                "The end of the academic year should be one year later than the start. "
                f"Expected: {self.start + 1}, Found: {self.end}"
            )

    @classmethod
    def from_start(cls, start: int) -> "AcademicYear":
        return cls(start, start + 1)

    @classmethod
    def parse(cls, text: str) -> "AcademicYear":
        """Parse ``"<start>/<end>"``."""
        parts = text.strip().split("/")
        if len(parts) != 2:
            raise ValueError(
                f"The academic year should be two numbers separated by \"/\", got {text!r}"
            )
        try:
            start, end = (int(p) for p in parts)
        except ValueError:
            raise ValueError(f"The academic year {text!r} does not contain two integers") from None
        return cls(start, end)

    def __str__(self) -> str:
        return f"{self.start}/{self.end}"


# ============================================
# Student records
# ============================================

@dataclass(frozen=True)
class Mark:
    """One module attempt taken by a student"""
    code: str
    mark: float
    credit: int = 10
    status: ModuleStatus = ModuleStatus.PASS
    fill: Optional[ColourValue] = None
    retake1: Optional[float] = None
    retake2: Optional[float] = None

    def __post_init__(self):
        if not self.code:
            raise ValueError("A module mark needs a module code")
        if "\n" in self.code or "\r" in self.code:
            raise ValueError(f"Module code {self.code!r} contains a line break")
        if self.retake2 is not None and self.retake1 is None:
            raise ValueError(f"Module {self.code} has a second retake without a first retake")

    @property
    def retakes(self) -> List[float]:
        return [r for r in (self.retake1, self.retake2) if r is not None]


@dataclass(frozen=True)
class StudentInfo:
    """Identity, programme and award data for one student."""
    id: int
    last_name: str
    first_name: str
    career_number: Optional[int] = None
    academic_program: Optional[str] = None
    program_description: Optional[str] = None
    plan: Optional[str] = None
    plan_description: Optional[str] = None
    intake: Optional[str] = None
    qaa_effective_date: Optional[datetime] = None
    calculation_model: Optional[str] = None
    raw_mark: Optional[float] = None
    truncated_mark: Optional[float] = None
    final_mark: Optional[int] = None
    borderline: Optional[str] = None
    calculation_review: Optional[bool] = None
    degree_award: Optional[str] = None
    selected: Optional[bool] = None
    exception_data: Optional[str] = None
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class StudentResult:
    """
    One student's outcome for an academic year.

    `modules` holds the module lines exactly as they appeared for the
    student in the source sheet, in source order.
    """
    student_info: StudentInfo
    year_of_program: str
    progression: str
    no: Optional[int] = None
    autumn_credit: Optional[float] = None
    autumn_mean: Optional[float] = None
    spring_credit: Optional[float] = None
    spring_mean: Optional[float] = None
    full_credit: Optional[float] = None
    full_mean: Optional[float] = None
    summer_credit: Optional[float] = None
    summer_mean: Optional[float] = None
    year_credit: Optional[float] = None
    year_prog_average: Optional[float] = None
    credits_l3_lt30: Optional[float] = None
    credits_l3_30_39: Optional[float] = None
    credits_l4_lt40: Optional[float] = None
    credits_l4_40_49: Optional[float] = None
    modules: Tuple[Mark, ...] = ()
    remarks: Optional[str] = None

    @property
    def id(self) -> int:
        return self.student_info.id


Record = Union[StudentResult, StudentInfo]


@dataclass
class ReportParseResult:
    """Result of parsing one report workbook"""
    layout: ReportLayout
    source_file: str
    records: List[Record] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    sheets_parsed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __len__(self) -> int:
        return len(self.records)
