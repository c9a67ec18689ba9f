"""Exceptions raised by pkg-audit."""

from pathlib import Path
from typing import Optional


class AuditError(Exception):
    """Base exception for pkg-audit errors."""
    pass


class ConfigMissingError(AuditError):
    """Raised when a required configuration setting is absent."""

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(f"{setting} is missing")


class FetchError(AuditError):
    """Raised when the audit file cannot be fetched or extracted."""

    def __init__(self, message: str, not_found: bool = False) -> None:
        self.not_found = not_found
        super().__init__(message)


class AdvisoryFileError(AuditError):
    """Raised when the audit file cannot be opened or read."""

    def __init__(self, path: Path, reason: str, not_found: bool = False) -> None:
        self.path = path
        self.not_found = not_found
        super().__init__(f"unable to open audit file {path}: {reason}")


class MalformedAdvisoryLine(AuditError):
    """Raised for an audit file line that cannot be parsed.

    Recoverable: the parser logs a warning and keeps going.
    """

    def __init__(self, line_number: Optional[int], reason: str) -> None:
        self.line_number = line_number
        self.reason = reason
        location = f"line {line_number}" if line_number is not None else "line"
        super().__init__(f"malformed audit file {location}: {reason}")


class PackageDatabaseError(AuditError):
    """Raised when the installed package database cannot be queried."""

    def __init__(self, message: str, missing: bool = False) -> None:
        self.missing = missing
        super().__init__(message)
