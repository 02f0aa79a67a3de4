"""
Results Ingest Database Repositories
Data access layer for storing parsed report records

Insert semantics:
- academic year, module: insert or ignore
- student (from results): insert or ignore, intake year = the report's year
- student (from award / info reports): insert or update every field
- fill colour: get or create
- result (student, year) and mark (student, module): insert or update
- mark from a resit report: mark and retakes only, status and fill are kept
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.models import AcademicYear, ColourValue, Mark, StudentInfo, StudentResult
from database.models import (
    AcademicYearRecord,
    FillColourRecord,
    MarkRecord,
    ModuleRecord,
    ResultRecord,
    StudentRecord,
)

logger = logging.getLogger(__name__)

INFO_FIELDS = (
    "last_name",
    "first_name",
    "career_number",
    "academic_program",
    "program_description",
    "plan",
    "plan_description",
    "intake",
    "qaa_effective_date",
    "calculation_model",
    "raw_mark",
    "truncated_mark",
    "final_mark",
    "borderline",
    "calculation_review",
    "degree_award",
    "selected",
    "exception_data",
    "recommendation",
)


# ============================================
# Academic Year Repository
# ============================================

class AcademicYearRepository:
    """Repository for academic year operations."""

    def __init__(self, session: Session):
        self.session = session

    def ensure(self, year: AcademicYear) -> AcademicYearRecord:
        """Insert the academic year unless it exists."""
        record = self.session.get(AcademicYearRecord, str(year))
        if record is None:
            record = AcademicYearRecord(academic_year=str(year))
            self.session.add(record)
            self.session.flush()
        return record

    def list_all(self) -> List[str]:
        result = self.session.execute(
            select(AcademicYearRecord.academic_year).order_by(AcademicYearRecord.academic_year)
        )
        return list(result.scalars().all())


# ============================================
# Student Repository
# ============================================

class StudentRepository:
    """Repository for student info operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, student_id: int) -> Optional[StudentRecord]:
        return self.session.get(StudentRecord, student_id)

    def insert_or_ignore(self, info: StudentInfo, intake_year: AcademicYear) -> StudentRecord:
        """Store a student seen in a results report; existing rows are kept as they are."""
        record = self.get_by_id(info.id)
        if record is not None:
            return record

        record = StudentRecord(
            id=info.id,
            last_name=info.last_name,
            first_name=info.first_name,
            plan=info.plan,
            intake_year=str(intake_year),
        )
        self.session.add(record)
        self.session.flush()
        return record

    def upsert(
        self,
        info: StudentInfo,
        academic_year: AcademicYear,
        graduation_year: Optional[AcademicYear] = None,
    ) -> StudentRecord:
        """Insert a student or overwrite every info field of an existing one."""
        record = self.get_by_id(info.id)
        if record is None:
            record = StudentRecord(id=info.id, intake_year=str(academic_year))
            self.session.add(record)

        for name in INFO_FIELDS:
            setattr(record, name, getattr(info, name))
        record.graduation_year = str(graduation_year) if graduation_year else None

        self.session.flush()
        return record

    def count(self) -> int:
        return self.session.execute(select(func.count()).select_from(StudentRecord)).scalar_one()


# ============================================
# Module and Fill Colour Repositories
# ============================================

class ModuleRepository:
    """Repository for module operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_code(self, code: str) -> Optional[ModuleRecord]:
        return self.session.get(ModuleRecord, code)

    def insert_or_ignore(self, code: str, credit: int) -> ModuleRecord:
        record = self.get_by_code(code)
        if record is None:
            record = ModuleRecord(code=code, credit=credit)
            self.session.add(record)
            self.session.flush()
        return record


class FillColourRepository:
    """Repository for fill colour operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_or_create(self, colour: ColourValue) -> FillColourRecord:
        result = self.session.execute(
            select(FillColourRecord).where(
                FillColourRecord.alpha == colour.alpha,
                FillColourRecord.red == colour.red,
                FillColourRecord.green == colour.green,
                FillColourRecord.blue == colour.blue,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = FillColourRecord(
                alpha=colour.alpha,
                red=colour.red,
                green=colour.green,
                blue=colour.blue,
            )
            self.session.add(record)
            self.session.flush()
        return record


# ============================================
# Mark and Result Repositories
# ============================================

class MarkRepository:
    """Repository for module mark operations."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, student_id: int, module_code: str) -> Optional[MarkRecord]:
        return self.session.get(MarkRecord, (student_id, module_code))

    def upsert(
        self,
        student_id: int,
        mark: Mark,
        fill_id: Optional[int] = None,
        update_status: bool = True,
    ) -> MarkRecord:
        """
        Insert or update a module mark.

        Without `update_status` an existing row keeps its status and fill;
        only the mark and retakes change.
        """
        record = self.get(student_id, mark.code)
        if record is None:
            record = MarkRecord(student_id=student_id, module_code=mark.code)
            self.session.add(record)
            update_status = True

        record.mark = mark.mark
        record.retake1 = mark.retake1
        record.retake2 = mark.retake2
        if update_status:
            record.status = mark.status.value
            record.fill_id = fill_id

        self.session.flush()
        return record

    def list_for_student(self, student_id: int) -> List[MarkRecord]:
        result = self.session.execute(
            select(MarkRecord)
            .where(MarkRecord.student_id == student_id)
            .order_by(MarkRecord.module_code)
        )
        return list(result.scalars().all())


class ResultRepository:
    """Repository for yearly result operations."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, student_id: int, academic_year: AcademicYear) -> Optional[ResultRecord]:
        return self.session.get(ResultRecord, (student_id, str(academic_year)))

    def upsert(self, result: StudentResult, academic_year: AcademicYear) -> ResultRecord:
        record = self.get(result.id, academic_year)
        if record is None:
            record = ResultRecord(student_id=result.id, academic_year=str(academic_year))
            self.session.add(record)

        record.year_of_study = result.year_of_program
        record.autumn_credits = result.autumn_credit
        record.autumn_mean = result.autumn_mean
        record.spring_credits = result.spring_credit
        record.spring_mean = result.spring_mean
        record.full_credits = result.full_credit
        record.full_mean = result.full_mean
        record.summer_credits = result.summer_credit
        record.summer_mean = result.summer_mean
        record.year_credits = result.year_credit
        record.year_mean = result.year_prog_average
        record.credits_l3_lt30 = result.credits_l3_lt30
        record.credits_l3_30_39 = result.credits_l3_30_39
        record.credits_l4_lt40 = result.credits_l4_lt40
        record.credits_l4_40_49 = result.credits_l4_40_49
        record.progression = result.progression
        record.remarks = result.remarks

        self.session.flush()
        return record

    def list_by_year(self, academic_year: AcademicYear) -> List[ResultRecord]:
        result = self.session.execute(
            select(ResultRecord)
            .where(ResultRecord.academic_year == str(academic_year))
            .order_by(ResultRecord.student_id)
        )
        return list(result.scalars().all())


# ============================================
# Bulk inserts
# ============================================

@dataclass
class InsertStats:
    """Counts of what a bulk insert touched."""
    students: int = 0
    results: int = 0
    marks: int = 0


def insert_student_results(
    session: Session,
    results: Iterable[StudentResult],
    academic_year: AcademicYear,
    update_status: bool = True,
) -> InsertStats:
    """
    Store parsed results for an academic year.

    Resit reports carry no fill colours, so they are stored with
    `update_status=False` to keep the status classified from a result report.
    Does not commit; the caller owns the transaction (see `session_scope`).
    """
    years = AcademicYearRepository(session)
    students = StudentRepository(session)
    modules = ModuleRepository(session)
    colours = FillColourRepository(session)
    marks = MarkRepository(session)
    yearly = ResultRepository(session)

    stats = InsertStats()
    years.ensure(academic_year)

    for result in results:
        students.insert_or_ignore(result.student_info, academic_year)
        yearly.upsert(result, academic_year)
        stats.students += 1
        stats.results += 1

        for mark in result.modules:
            modules.insert_or_ignore(mark.code, mark.credit)
            fill_id = colours.get_or_create(mark.fill).id if mark.fill is not None else None
            marks.upsert(result.id, mark, fill_id, update_status=update_status)
            stats.marks += 1

    logger.info(
        f"Stored {stats.results} results and {stats.marks} marks for {academic_year}"
    )
    return stats


def insert_student_infos(
    session: Session,
    infos: Iterable[StudentInfo],
    academic_year: AcademicYear,
    award: bool = True,
) -> InsertStats:
    """
    Store student info records, e.g. from an award report.

    With `award` the academic year is recorded as the graduation year.
    Does not commit.
    """
    AcademicYearRepository(session).ensure(academic_year)
    students = StudentRepository(session)

    stats = InsertStats()
    for info in infos:
        students.upsert(info, academic_year, graduation_year=academic_year if award else None)
        stats.students += 1

    logger.info(f"Stored {stats.students} student records for {academic_year}")
    return stats
