#!/usr/bin/env python3
"""
Results Ingest CLI - Command Line Interface
===========================================

Parse student-records report exports and store them in the results database.

Usage:
  results-ingest 2024/2025 results.db --result 0A.xlsx --award 0B.xlsx
  results-ingest 2024/2025 results.db --resit-may 0C.xlsx --resit-aug 0D.xlsx
  results-ingest 2024/2025 sqlite:///results.db --result 0A.xlsx --dry-run
"""

import argparse
import copy
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from core.config import ErrorPolicy, get_config
from core.errors import ReportParseError
from core.models import AcademicYear, ReportLayout, ReportParseResult
from database.connection import create_db_engine, health_check, init_db, session_scope
from database.repositories import insert_student_infos, insert_student_results
from parsing.reports import parse_report

logger = logging.getLogger("results_ingest")

console = Console()
error_console = Console(stderr=True)

# Store order: results set the intake year before awards add graduation data
LAYOUT_OPTIONS = [
    (ReportLayout.RESULT, "result", "Primary result report (0A)"),
    (ReportLayout.RESIT_MAY, "resit_may", "May resit report (0C)"),
    (ReportLayout.RESIT_AUG, "resit_aug", "August resit report (0D)"),
    (ReportLayout.AWARD, "award", "Award report (0B)"),
]


def academic_year(text: str) -> AcademicYear:
    """argparse type for "2024/2025"."""
    try:
        return AcademicYear.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def database_url(target: str) -> str:
    """Accept a SQLAlchemy URL or a path to an SQLite file."""
    if "://" in target:
        return target
    return f"sqlite:///{Path(target).expanduser()}"


def setup_logging(level: str, verbose: bool = False, quiet: bool = False) -> None:
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "CRITICAL"

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="results-ingest",
        description="Parse student results report exports into the results database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  results-ingest 2024/2025 results.db --result 0A.xlsx --award 0B.xlsx
  results-ingest 2024/2025 results.db --resit-may 0C.xlsx --collect-errors
        """
    )
    parser.add_argument("academic_year", type=academic_year, help="Academic year, e.g. 2024/2025")
    parser.add_argument("database", help="SQLite file or SQLAlchemy database URL")

    for layout, dest, help_text in LAYOUT_OPTIONS:
        parser.add_argument(
            f"--{dest.replace('_', '-')}",
            dest=dest,
            action="append",
            default=[],
            metavar="FILE",
            help=f"{help_text}; may be repeated",
        )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="No log output")

    parser.add_argument(
        "--collect-errors",
        action="store_true",
        help="Skip invalid rows and worksheets and report them, instead of stopping at the first",
    )
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not touch the database")
    return parser


def print_summary(reports: List[ReportParseResult], show_errors: bool) -> None:
    table = Table(title="Parsed reports", box=box.ROUNDED)
    table.add_column("File", style="cyan")
    table.add_column("Layout", style="white")
    table.add_column("Worksheets", style="white")
    table.add_column("Records", style="green", justify="right")
    table.add_column("Errors", style="red", justify="right")

    for report in reports:
        table.add_row(
            Path(report.source_file).name,
            report.layout.value,
            ", ".join(report.sheets_parsed) or "-",
            str(len(report)),
            str(len(report.errors)),
        )
    console.print(table)

    if show_errors:
        for report in reports:
            for error in report.errors:
                console.print(f"  [red]✗[/red] {Path(report.source_file).name}: {error}")


def store(reports: List[ReportParseResult], year: AcademicYear, url: str) -> bool:
    """Store every report in one transaction. Returns False if the database is unreachable."""
    engine = create_db_engine(url)
    status = health_check(engine)
    if status["status"] != "healthy":
        logger.error(f"Database unavailable: {status['error']}")
        engine.dispose()
        return False

    init_db(engine)
    with session_scope(engine) as session:
        for report in reports:
            if report.layout is ReportLayout.AWARD:
                insert_student_infos(session, report.records, year, award=True)
            else:
                # Resit layouts have no fill colours to classify a status from
                insert_student_results(
                    session,
                    report.records,
                    year,
                    update_status=report.layout is ReportLayout.RESULT,
                )
    engine.dispose()
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    setup_logging(config.log_level, verbose=args.verbose, quiet=args.quiet)

    parser_config = copy.copy(config.parser)
    if args.collect_errors:
        parser_config.error_policy = ErrorPolicy.COLLECT

    jobs: List[Tuple[ReportLayout, str]] = [
        (layout, path) for layout, dest, _ in LAYOUT_OPTIONS for path in getattr(args, dest)
    ]
    if not jobs:
        parser.error("no report files given")

    reports = []
    for layout, path in jobs:
        try:
            reports.append(parse_report(layout, path, parser_config))
        except ReportParseError as e:
            error_console.print(f"[red]✗ {path}: {e}[/red]")
            return 1

    print_summary(reports, show_errors=parser_config.error_policy is ErrorPolicy.COLLECT)

    if args.dry_run:
        console.print("[yellow]Dry run, nothing stored.[/yellow]")
    elif not store(reports, args.academic_year, database_url(args.database)):
        error_console.print(f"[red]✗ Cannot reach database {args.database}[/red]")
        return 1
    else:
        console.print(f"[green]✓ Stored {sum(len(r) for r in reports)} records for {args.academic_year}[/green]")

    return 0 if all(r.ok for r in reports) else 1


if __name__ == "__main__":
    sys.exit(main())
