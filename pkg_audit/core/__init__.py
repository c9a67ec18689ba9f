"""Advisory parsing, indexing and version matching for pkg-audit."""

from .index import IndexedEntry, PrefixIndex, PrefixIndexBuilder, build_index
from .matcher import MatchResult, VulnerabilityMatcher, query
from .models import AdvisoryEntry, Package
from .parser import AdvisoryParser, parse_file
from .versions import Comparison, VersionBound, get_comparator, matches

__all__ = [
    "AdvisoryEntry",
    "AdvisoryParser",
    "Comparison",
    "IndexedEntry",
    "MatchResult",
    "Package",
    "PrefixIndex",
    "PrefixIndexBuilder",
    "VersionBound",
    "VulnerabilityMatcher",
    "build_index",
    "get_comparator",
    "matches",
    "parse_file",
    "query",
]
