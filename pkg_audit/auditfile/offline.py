"""Local audit file client."""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..core.index import PrefixIndex, PrefixIndexBuilder
from ..core.matcher import MatchResult, VulnerabilityMatcher
from ..core.models import AdvisoryEntry, Package
from ..core.parser import AdvisoryParser
from ..core.versions import VersionComparator, pkg_version_cmp
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor


class AuditDatabase:
    """Loads the audit file, indexes it and answers package queries."""

    def __init__(
        self,
        audit_file: Path,
        compare: VersionComparator = pkg_version_cmp,
        performance_monitor: Optional[PerformanceMonitor] = None
    ) -> None:
        """Initialize the audit database.

        Args:
            audit_file: Path to the audit file
            compare: Three-way version comparator used for queries
            performance_monitor: Optional shared performance monitor
        """
        self.audit_file = Path(audit_file)
        self.logger = get_logger("AuditDatabase")
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self.parser = AdvisoryParser()
        self.builder = PrefixIndexBuilder()
        self.matcher = VulnerabilityMatcher(compare)
        self._advisories: List[AdvisoryEntry] = []
        self._index: Optional[PrefixIndex] = None

    def load_advisories(self) -> List[AdvisoryEntry]:
        """Parse every advisory in the audit file.

        Returns:
            Parsed advisories

        Raises:
            AdvisoryFileError: If the audit file cannot be read
        """
        with self.performance_monitor.measure("load_advisories"):
            self._advisories = self.parser.parse_file(self.audit_file)

        self.logger.info(f"Loaded {len(self._advisories)} advisories from {self.audit_file}")
        return self._advisories

    def build_index(self, advisories: Optional[Iterable[AdvisoryEntry]] = None) -> PrefixIndex:
        """Build the prefix index.

        Args:
            advisories: Advisories to index; defaults to the loaded ones

        Returns:
            The new index
        """
        with self.performance_monitor.measure("build_index"):
            self._index = self.builder.build(
                self._advisories if advisories is None else advisories
            )

        self.logger.info(f"Built index over {len(self._index)} advisories")
        return self._index

    def load(self) -> PrefixIndex:
        """Load the audit file and build its index in one step."""
        return self.build_index(self.load_advisories())

    @property
    def index(self) -> PrefixIndex:
        if self._index is None:
            raise RuntimeError("Audit index not built. Call load() or build_index() first.")
        return self._index

    def find_vulnerabilities_for_package(self, package: Package) -> MatchResult:
        """Find the advisories matching one package.

        Args:
            package: Package to check

        Returns:
            Match result, empty when the package is not vulnerable
        """
        return self.matcher.query(self.index, package)

    def scan_packages(self, packages: Iterable[Package]) -> Iterator[MatchResult]:
        """Query every package against the index.

        Args:
            packages: Installed packages

        Yields:
            One match result per package
        """
        return self.matcher.match_packages(self.index, packages)

    def get_database_stats(self) -> Dict[str, Any]:
        """Get audit database statistics.

        Returns:
            Dictionary with database statistics
        """
        index = self.index
        runs = index.runs()
        return {
            "audit_file": str(self.audit_file),
            "total_advisories": len(index),
            "prefix_runs": len(runs),
            "largest_run": max((len(run) for run in runs), default=0),
            "leading_wildcard_advisories": sum(
                1 for entry in index.entries
                if entry.literal_prefix_len == 0 and entry.advisory.name_pattern
            ),
            "unmatchable_advisories": sum(
                1 for entry in index.entries if not entry.advisory.name_pattern
            ),
        }

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get performance summary.

        Returns:
            Performance summary dictionary
        """
        return self.performance_monitor.get_summary()

    def print_performance_summary(self) -> None:
        """Print performance summary to console."""
        self.performance_monitor.print_summary()
