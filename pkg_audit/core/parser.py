"""Audit file parser.

Each non-comment line of the audit file holds one advisory::

    name[cmp]version[cmp]version|url|description

where ``cmp`` is one of ``=``, ``<``, ``<=``, ``>``, ``>=``.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..exceptions import AdvisoryFileError, MalformedAdvisoryLine
from ..utils.logging import get_logger
from .models import AdvisoryEntry
from .versions import Comparison, VersionBound

FIELD_SEPARATOR = "|"
COMMENT_PREFIX = "#"
MAX_BOUNDS = 2

# Two-character tokens first so "<=" is not read as "<" followed by "=".
_COMPARATOR_TOKENS: Tuple[Tuple[str, Comparison], ...] = (
    ("<=", Comparison.LTE),
    (">=", Comparison.GTE),
    ("<", Comparison.LT),
    (">", Comparison.GT),
    ("=", Comparison.EQ),
)


def _comparator_at(text: str, pos: int) -> Optional[Tuple[str, Comparison]]:
    for token, comparison in _COMPARATOR_TOKENS:
        if text.startswith(token, pos):
            return token, comparison
    return None


class NameSpecScanner:
    """Single-pass scanner for the ``name[cmp]version[cmp]version`` field.

    Walks positions over the immutable field text. The text before the first
    comparator is the name pattern; each following comparator opens a bound
    whose value runs to the next comparator or the end of the field.
    """

    def __init__(self, text: str, line_number: Optional[int] = None) -> None:
        self.text = text
        self.line_number = line_number
        self.logger = get_logger("NameSpecScanner")

    def scan(self) -> Tuple[str, Optional[VersionBound], Optional[VersionBound]]:
        """Scan the field.

        Returns:
            Tuple of (name pattern, first bound, second bound)
        """
        text = self.text
        name: Optional[str] = None
        bounds: List[VersionBound] = []
        pending: Optional[Comparison] = None
        start = 0
        pos = 0

        while pos < len(text):
            found = _comparator_at(text, pos)
            if found is None:
                pos += 1
                continue

            token, comparison = found
            chunk = text[start:pos]
            if pending is None:
                name = chunk
            else:
                bounds.append(VersionBound(chunk, pending))

            if len(bounds) == MAX_BOUNDS:
                self.logger.warning(
                    f"line {self.line_number}: more than {MAX_BOUNDS} version bounds, "
                    f"ignoring {text[pos:]!r}"
                )
                pending = None
                start = len(text)
                break

            pending = comparison
            pos += len(token)
            start = pos

        tail = text[start:]
        if name is None:
            name = tail
        elif pending is not None:
            bounds.append(VersionBound(tail, pending))

        lower = bounds[0] if bounds else None
        upper = bounds[1] if len(bounds) > 1 else None
        return name.strip(), lower, upper


class AdvisoryParser:
    """Parser for the line-oriented audit file."""

    def __init__(self) -> None:
        """Initialize the parser."""
        self.logger = get_logger("AdvisoryParser")

    def parse_file(self, file_path: Path) -> List[AdvisoryEntry]:
        """Parse an audit file.

        Args:
            file_path: Path to the audit file

        Returns:
            Parsed advisory entries, in file order

        Raises:
            AdvisoryFileError: If the file cannot be opened or read
        """
        try:
            with open(file_path, "r", encoding="utf-8", errors="replace") as f:
                entries = self.parse_lines(f)
        except FileNotFoundError as e:
            raise AdvisoryFileError(file_path, e.strerror or str(e), not_found=True) from e
        except OSError as e:
            raise AdvisoryFileError(file_path, e.strerror or str(e)) from e

        self.logger.debug(f"Parsed {len(entries)} advisories from {file_path}")
        return entries

    def parse_lines(self, lines: Iterable[str]) -> List[AdvisoryEntry]:
        """Parse audit file lines from any iterable of text, such as an open file.

        Args:
            lines: Lines to parse

        Returns:
            Parsed advisory entries
        """
        entries = []
        for line_number, line in enumerate(lines, 1):
            entry = self.parse_line(line, line_number)
            if entry is not None:
                entries.append(entry)
        return entries

    def parse_line(self, line: str, line_number: Optional[int] = None) -> Optional[AdvisoryEntry]:
        """Parse a single audit file line.

        Malformed lines never abort parsing: they are logged and turned into
        an entry with an empty name pattern, which matches nothing.

        Args:
            line: Raw line, trailing newline allowed
            line_number: Line number for diagnostics

        Returns:
            Advisory entry, or None for comments and blank lines
        """
        line = line.rstrip("\r\n")

        if line.startswith(COMMENT_PREFIX):
            return None
        if not line.strip():
            self.logger.debug(f"line {line_number}: blank line skipped")
            return None

        try:
            return self._parse_record(line, line_number)
        except MalformedAdvisoryLine as e:
            self.logger.warning(str(e))
            return AdvisoryEntry(name_pattern="", line_number=line_number)

    def _parse_record(self, line: str, line_number: Optional[int]) -> AdvisoryEntry:
        if FIELD_SEPARATOR not in line:
            raise MalformedAdvisoryLine(line_number, "no field separator")

        columns = line.split(FIELD_SEPARATOR)
        if len(columns) > 3:
            self.logger.warning(f"line {line_number}: extra column in audit file")
        columns += [""] * (3 - len(columns))

        name, lower, upper = NameSpecScanner(columns[0], line_number).scan()
        if not name:
            raise MalformedAdvisoryLine(line_number, "empty package name")

        return AdvisoryEntry(
            name_pattern=name,
            lower=lower,
            upper=upper,
            url=columns[1].strip(),
            description=columns[2].strip(),
            line_number=line_number,
        )


def parse_file(file_path: Path) -> List[AdvisoryEntry]:
    """Parse an audit file with a default parser."""
    return AdvisoryParser().parse_file(file_path)
