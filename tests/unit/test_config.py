"""
Results Ingest Unit Tests: Configuration
========================================

Tests:
- Defaults without environment variables
- Environment overrides for parser, database and logging
- Validation issues
- Global configuration instance
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.config import (
    DatabaseConfig,
    ErrorPolicy,
    IngestConfig,
    ParserConfig,
    get_config,
    set_config,
)


@pytest.mark.unit
class TestDefaults:
    """Tests for default configuration"""

    def test_parser_defaults(self):
        config = ParserConfig()
        assert config.error_policy is ErrorPolicy.ABORT
        assert config.award_sheet == "Award Report"
        assert config.resit_may_sheet == "Sheet1"
        assert config.resit_aug_sheet is None

    def test_database_defaults(self):
        config = DatabaseConfig()
        assert config.url == "sqlite:///results.db"
        assert config.echo is False

    def test_defaults_are_valid(self):
        assert IngestConfig.from_env().validate() == []


@pytest.mark.unit
class TestEnvironment:
    """Tests for environment overrides"""

    def test_parser_overrides(self, monkeypatch):
        monkeypatch.setenv("RESULTS_ERROR_POLICY", "Collect")
        monkeypatch.setenv("RESULTS_AWARD_SHEET", "Awards")
        monkeypatch.setenv("RESULTS_RESIT_AUG_SHEET", "August")

        config = ParserConfig()
        assert config.error_policy is ErrorPolicy.COLLECT
        assert config.award_sheet == "Awards"
        assert config.resit_aug_sheet == "August"

    def test_unknown_policy_rejected(self, monkeypatch):
        monkeypatch.setenv("RESULTS_ERROR_POLICY", "ignore")
        with pytest.raises(ValueError):
            ParserConfig()

    def test_database_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
        monkeypatch.setenv("DB_ECHO", "TRUE")

        config = DatabaseConfig()
        assert config.url == "sqlite:///other.db"
        assert config.echo is True

    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("RESULTS_LOG_LEVEL", "debug")
        assert IngestConfig.from_env().log_level == "DEBUG"


@pytest.mark.unit
class TestValidation:
    """Tests for configuration validation"""

    def test_bad_log_level(self, monkeypatch):
        monkeypatch.setenv("RESULTS_LOG_LEVEL", "chatty")
        issues = IngestConfig.from_env().validate()
        assert len(issues) == 1
        assert "CHATTY" in issues[0]

    def test_empty_sheet_names(self, monkeypatch):
        monkeypatch.setenv("RESULTS_AWARD_SHEET", "")
        monkeypatch.setenv("RESULTS_RESIT_MAY_SHEET", "")
        issues = IngestConfig.from_env().validate()
        assert len(issues) == 2


@pytest.mark.unit
class TestGlobalConfig:
    """Tests for the global configuration instance"""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_set_config(self):
        custom = IngestConfig(parser=ParserConfig(error_policy=ErrorPolicy.COLLECT))
        set_config(custom)
        assert get_config().parser.error_policy is ErrorPolicy.COLLECT

        set_config(None)
        assert get_config() is not custom
