"""Vulnerability query engine for pkg-audit."""

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from ..utils.logging import get_logger
from .index import IndexedEntry, PrefixIndex, first_byte
from .models import AdvisoryEntry, Package
from .versions import VersionComparator, in_range, pkg_version_cmp

# Characters that stay special to fnmatchcase and must be bracketed to
# match literally.
_FNMATCH_SPECIAL = frozenset("*?[")


@lru_cache(maxsize=None)
def fnmatch_pattern(pattern: str) -> str:
    """Rewrite fnmatch(3) backslash escapes for :func:`fnmatch.fnmatchcase`.

    ``\\x`` matches ``x`` literally; Python's fnmatch has no escape character,
    so escaped glob characters become one-character classes (``\\*`` -> ``[*]``)
    and other escaped characters lose their backslash. A trailing backslash
    matches itself.
    """
    if "\\" not in pattern:
        return pattern

    translated = []
    position = 0
    while position < len(pattern):
        char = pattern[position]
        if char == "\\" and position + 1 < len(pattern):
            position += 1
            char = pattern[position]
            translated.append(f"[{char}]" if char in _FNMATCH_SPECIAL else char)
        else:
            translated.append(char)
        position += 1
    return "".join(translated)


@dataclass(frozen=True)
class MatchResult:
    """Advisories matching one package; empty means not vulnerable."""

    package: Package
    advisories: Tuple[AdvisoryEntry, ...] = field(default_factory=tuple)

    @property
    def is_vulnerable(self) -> bool:
        return bool(self.advisories)

    def __bool__(self) -> bool:
        return self.is_vulnerable

    def __len__(self) -> int:
        return len(self.advisories)

    def __iter__(self) -> Iterator[AdvisoryEntry]:
        return iter(self.advisories)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": {"name": self.package.name, "version": self.package.version},
            "advisories": [advisory.to_dict() for advisory in self.advisories],
        }


class VulnerabilityMatcher:
    """Matches packages against a :class:`PrefixIndex`.

    The matcher holds no per-query state, so one instance can serve any
    number of queries against any number of indexes.
    """

    def __init__(self, compare: VersionComparator = pkg_version_cmp) -> None:
        """Initialize the vulnerability matcher.

        Args:
            compare: Three-way version comparator
        """
        self.compare = compare
        self.logger = get_logger("VulnerabilityMatcher")

    def query(self, index: PrefixIndex, package: Package) -> MatchResult:
        """Find every advisory that matches a package.

        Args:
            index: Prefix index built from the audit file
            package: Package to check

        Returns:
            Match result, possibly empty
        """
        entries = index.entries
        name = package.name
        matched: List[AdvisoryEntry] = []

        # Leading-wildcard patterns can match any name.
        empty_prefix = index.empty_prefix_count
        if empty_prefix:
            self._check_run(entries[:empty_prefix], package, matched)

        position = index.first_byte[first_byte(name)]
        while position < len(entries):
            head = entries[position]
            candidate = name[:head.literal_prefix_len]
            prefix = head.literal_prefix

            if candidate > prefix:
                position += head.group_skip
                continue
            if candidate < prefix:
                # Every later prefix is larger still.
                break

            self._check_run(entries[position:position + head.group_skip], package, matched)
            position += head.group_skip

        if matched:
            self.logger.debug(f"MATCH: {package} matches {len(matched)} advisories")
        return MatchResult(package=package, advisories=tuple(matched))

    def _check_run(
        self,
        run: Iterable[IndexedEntry],
        package: Package,
        matched: List[AdvisoryEntry]
    ) -> None:
        for entry in run:
            advisory = entry.advisory
            if not advisory.name_pattern:
                continue
            if not fnmatchcase(package.name, fnmatch_pattern(advisory.name_pattern)):
                continue
            if in_range(package.version, advisory.lower, advisory.upper, self.compare):
                matched.append(advisory)
            else:
                self.logger.debug(
                    f"NO MATCH: {package} is outside {advisory.name_pattern}{advisory.version_range}"
                )

    def match_packages(
        self,
        index: PrefixIndex,
        packages: Iterable[Package]
    ) -> Iterator[MatchResult]:
        """Query every package in turn.

        Args:
            index: Prefix index built from the audit file
            packages: Packages to check

        Yields:
            One match result per package, vulnerable or not
        """
        for package in packages:
            yield self.query(index, package)


def query(
    index: PrefixIndex,
    package: Package,
    compare: VersionComparator = pkg_version_cmp
) -> MatchResult:
    """Query a prefix index for one package."""
    return VulnerabilityMatcher(compare).query(index, package)
