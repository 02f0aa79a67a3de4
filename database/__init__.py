# Results Ingest Database Layer
# SQLAlchemy storage for parsed student records (SQLite by default)

from database.connection import create_db_engine, init_db, session_scope
from database.models import (
    Base,
    AcademicYearRecord,
    StudentRecord,
    ModuleRecord,
    FillColourRecord,
    MarkRecord,
    ResultRecord,
)
from database.repositories import InsertStats, insert_student_infos, insert_student_results

__all__ = [
    "create_db_engine",
    "init_db",
    "session_scope",
    "Base",
    "AcademicYearRecord",
    "StudentRecord",
    "ModuleRecord",
    "FillColourRecord",
    "MarkRecord",
    "ResultRecord",
    "InsertStats",
    "insert_student_infos",
    "insert_student_results",
]
