"""pkg-audit - check installed packages against a vulnerability audit file."""

__version__ = "0.1.0"

from .auditfile import AuditDatabase, fetch_and_extract
from .core.index import PrefixIndex, build_index
from .core.matcher import MatchResult, VulnerabilityMatcher, query
from .core.models import AdvisoryEntry, Package
from .core.parser import AdvisoryParser
from .output.formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "AdvisoryEntry",
    "AdvisoryParser",
    "AuditDatabase",
    "ConsoleFormatter",
    "JSONFormatter",
    "MatchResult",
    "Package",
    "PrefixIndex",
    "VulnerabilityMatcher",
    "build_index",
    "fetch_and_extract",
    "query",
]
