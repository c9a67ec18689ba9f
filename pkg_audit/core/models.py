"""Data models shared by the advisory parser, index and matcher."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .versions import VersionBound


@dataclass(frozen=True)
class Package:
    """An installed package: name plus version."""

    name: str
    version: str

    def __post_init__(self) -> None:
        """Validate the package."""
        if not self.name:
            raise ValueError("Package name cannot be empty")
        if not self.version:
            raise ValueError(f"Package version cannot be empty: {self.name}")

    @classmethod
    def from_string(cls, value: str) -> "Package":
        """Parse a ``name-version`` string.

        The version starts after the last hyphen, so names may contain
        hyphens themselves (``py39-foo-1.2``).

        Args:
            value: Package string

        Returns:
            Parsed package

        Raises:
            ValueError: If the string has no hyphen-separated version
        """
        name, sep, version = value.strip().rpartition("-")
        if not sep or not name or not version:
            raise ValueError(f"bad package name format: {value}")
        return cls(name=name, version=version)

    def __str__(self) -> str:
        return f"{self.name}-{self.version}"


@dataclass(frozen=True)
class AdvisoryEntry:
    """One audit file record.

    ``lower`` is the first comparator/version pair on the line and ``upper``
    the second; either may be absent.
    """

    name_pattern: str
    lower: Optional[VersionBound] = None
    upper: Optional[VersionBound] = None
    url: str = ""
    description: str = ""
    line_number: Optional[int] = None

    @property
    def version_range(self) -> str:
        """Human-readable version range, e.g. ``>=1.0.0<1.0.2``."""
        return "".join(str(bound) for bound in (self.lower, self.upper) if bound)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name_pattern": self.name_pattern,
            "version_range": self.version_range,
            "url": self.url,
            "description": self.description,
            "line_number": self.line_number,
        }
