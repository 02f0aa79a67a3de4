"""
Results Ingest Configuration
Environment-based configuration for the report parsers and the database
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ErrorPolicy(str, Enum):
    """What a parser does with a worksheet or row that fails"""
    ABORT = "abort"        # Raise the first error (default)
    COLLECT = "collect"    # Record the error and carry on with the next row


@dataclass
class ParserConfig:
    """Configuration for the report parsers"""
    error_policy: ErrorPolicy = ErrorPolicy.ABORT

    # Worksheet names per layout
    award_sheet: str = "Award Report"
    resit_may_sheet: str = "Sheet1"
    resit_aug_sheet: Optional[str] = None  # None means the last worksheet

    def __post_init__(self):
        """Load from environment variables"""
        policy = os.getenv("RESULTS_ERROR_POLICY")
        if policy:
            self.error_policy = ErrorPolicy(policy.strip().lower())
        self.award_sheet = os.getenv("RESULTS_AWARD_SHEET", self.award_sheet)
        self.resit_may_sheet = os.getenv("RESULTS_RESIT_MAY_SHEET", self.resit_may_sheet)
        self.resit_aug_sheet = os.getenv("RESULTS_RESIT_AUG_SHEET", self.resit_aug_sheet)


@dataclass
class DatabaseConfig:
    """Configuration for the results database"""
    url: str = "sqlite:///results.db"
    echo: bool = False

    def __post_init__(self):
        """Load from environment variables"""
        self.url = os.getenv("DATABASE_URL", self.url)
        self.echo = os.getenv("DB_ECHO", str(self.echo)).lower() == "true"


@dataclass
class IngestConfig:
    """Master configuration for results ingestion"""
    parser: ParserConfig = field(default_factory=ParserConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = "WARNING"

    def __post_init__(self):
        self.log_level = os.getenv("RESULTS_LOG_LEVEL", self.log_level).upper()

    @classmethod
    def from_env(cls) -> "IngestConfig":
        """Create configuration from environment variables"""
        return cls(
            parser=ParserConfig(),
            database=DatabaseConfig(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of issues"""
        issues = []

        if not isinstance(logging.getLevelName(self.log_level), int):
            issues.append(f"RESULTS_LOG_LEVEL {self.log_level!r} is not a logging level")
        if not self.database.url:
            issues.append("DATABASE_URL is empty")
        if not self.parser.award_sheet:
            issues.append("RESULTS_AWARD_SHEET is empty")
        if not self.parser.resit_may_sheet:
            issues.append("RESULTS_RESIT_MAY_SHEET is empty")

        return issues


# Global configuration instance
_config: Optional[IngestConfig] = None


def get_config() -> IngestConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = IngestConfig.from_env()
    return _config


def set_config(config: Optional[IngestConfig]) -> None:
    """Set (or with None, reset) the global configuration instance"""
    global _config
    _config = config
