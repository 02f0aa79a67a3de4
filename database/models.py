"""
Results Ingest Database Models
SQLAlchemy models for students, modules, marks and yearly results
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from core.models import ModuleStatus


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ============================================
# Reference Tables
# ============================================

class AcademicYearRecord(Base):
    """An academic year such as 2024/2025."""
    __tablename__ = "academic_years"

    academic_year: Mapped[str] = mapped_column(String(9), primary_key=True)


class ModuleRecord(Base):
    """A module, keyed by its code."""
    __tablename__ = "modules"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    credit: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255))


class FillColourRecord(Base):
    """A module cell fill colour seen in a result report."""
    __tablename__ = "fill_colours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    alpha: Mapped[int] = mapped_column(Integer, nullable=False)
    red: Mapped[int] = mapped_column(Integer, nullable=False)
    green: Mapped[int] = mapped_column(Integer, nullable=False)
    blue: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("alpha", "red", "green", "blue", name="uq_fill_colours_argb"),
    )


# ============================================
# Student Tables
# ============================================

class StudentRecord(Base):
    """Identity, programme and award data for a student."""
    __tablename__ = "student_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    career_number: Mapped[Optional[int]] = mapped_column(Integer)
    academic_program: Mapped[Optional[str]] = mapped_column(String(100))
    program_description: Mapped[Optional[str]] = mapped_column(Text)
    plan: Mapped[Optional[str]] = mapped_column(String(100))
    plan_description: Mapped[Optional[str]] = mapped_column(Text)
    intake: Mapped[Optional[str]] = mapped_column(String(100))
    qaa_effective_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    calculation_model: Mapped[Optional[str]] = mapped_column(String(100))
    raw_mark: Mapped[Optional[float]] = mapped_column(Float)
    truncated_mark: Mapped[Optional[float]] = mapped_column(Float)
    final_mark: Mapped[Optional[int]] = mapped_column(Integer)
    borderline: Mapped[Optional[str]] = mapped_column(String(100))
    calculation_review: Mapped[Optional[bool]] = mapped_column(Boolean)
    degree_award: Mapped[Optional[str]] = mapped_column(String(255))
    selected: Mapped[Optional[bool]] = mapped_column(Boolean)
    exception_data: Mapped[Optional[str]] = mapped_column(Text)
    recommendation: Mapped[Optional[str]] = mapped_column(Text)
    intake_year: Mapped[str] = mapped_column(
        String(9),
        ForeignKey("academic_years.academic_year"),
        nullable=False
    )
    graduation_year: Mapped[Optional[str]] = mapped_column(
        String(9),
        ForeignKey("academic_years.academic_year")
    )

    # Relationships
    marks: Mapped[List["MarkRecord"]] = relationship(
        "MarkRecord", back_populates="student", cascade="all, delete-orphan"
    )
    results: Mapped[List["ResultRecord"]] = relationship(
        "ResultRecord", back_populates="student", cascade="all, delete-orphan"
    )


class MarkRecord(Base):
    """A student's mark in a module, with up to two retakes."""
    __tablename__ = "marks"

    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("student_info.id"), primary_key=True)
    module_code: Mapped[str] = mapped_column(String(50), ForeignKey("modules.code"), primary_key=True)
    mark: Mapped[float] = mapped_column(Float, nullable=False)
    retake1: Mapped[Optional[float]] = mapped_column(Float)
    retake2: Mapped[Optional[float]] = mapped_column(Float)
    extra: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(4), nullable=False, default=ModuleStatus.PASS.value)
    fill_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("fill_colours.id"))

    # Relationships
    student: Mapped["StudentRecord"] = relationship("StudentRecord", back_populates="marks")
    module: Mapped["ModuleRecord"] = relationship("ModuleRecord")
    fill: Mapped[Optional["FillColourRecord"]] = relationship("FillColourRecord")

    __table_args__ = (
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s.value}'" for s in ModuleStatus)),
            name="ck_marks_status",
        ),
        Index("idx_marks_module", "module_code"),
    )


class ResultRecord(Base):
    """A student's outcome for one academic year."""
    __tablename__ = "results"

    student_id: Mapped[int] = mapped_column(Integer, ForeignKey("student_info.id"), primary_key=True)
    academic_year: Mapped[str] = mapped_column(
        String(9),
        ForeignKey("academic_years.academic_year"),
        primary_key=True
    )
    year_of_study: Mapped[str] = mapped_column(String(50), nullable=False)
    autumn_credits: Mapped[Optional[float]] = mapped_column(Float)
    autumn_mean: Mapped[Optional[float]] = mapped_column(Float)
    spring_credits: Mapped[Optional[float]] = mapped_column(Float)
    spring_mean: Mapped[Optional[float]] = mapped_column(Float)
    full_credits: Mapped[Optional[float]] = mapped_column(Float)
    full_mean: Mapped[Optional[float]] = mapped_column(Float)
    summer_credits: Mapped[Optional[float]] = mapped_column(Float)
    summer_mean: Mapped[Optional[float]] = mapped_column(Float)
    year_credits: Mapped[Optional[float]] = mapped_column(Float)
    year_mean: Mapped[Optional[float]] = mapped_column(Float)
    credits_l3_lt30: Mapped[Optional[float]] = mapped_column(Float)
    credits_l3_30_39: Mapped[Optional[float]] = mapped_column(Float)
    credits_l4_lt40: Mapped[Optional[float]] = mapped_column(Float)
    credits_l4_40_49: Mapped[Optional[float]] = mapped_column(Float)
    progression: Mapped[Optional[str]] = mapped_column(Text)
    remarks: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    student: Mapped["StudentRecord"] = relationship("StudentRecord", back_populates="results")

    __table_args__ = (
        Index("idx_results_academic_year", "academic_year"),
    )
