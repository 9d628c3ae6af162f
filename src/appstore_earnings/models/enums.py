"""
Enums for type safety in the earnings reporter.
"""

from enum import Enum


class ReportStatus(Enum):
    """Outcome of a single earnings report run."""
    OK = "ok"
    NOT_FOUND = "not_found"
    FETCH_FAILED = "fetch_failed"
    EMPTY_REPORT = "empty_report"
    NO_EARNINGS = "no_earnings"


class ConfigSource(Enum):
    """Where the finance credentials were resolved from."""
    ENV = "env"
    DOTENV = "dotenv"
    CONFIG = "config"
    NONE = "none"
