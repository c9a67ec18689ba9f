"""Output formatters for pkg-audit results."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console

from ..core.matcher import MatchResult
from ..utils.logging import get_logger


class ConsoleFormatter:
    """Plain-text report printed through a rich console."""

    def __init__(self, console: Optional[Console] = None, quiet: bool = False) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
            quiet: Only print ``name-version`` for each match
        """
        self.console = console or Console(highlight=False)
        self.quiet = quiet

    def _print(self, text: str = "") -> None:
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def format_match(self, result: MatchResult) -> None:
        """Print every advisory matching one package.

        Args:
            result: Match result for a package; nothing is printed when empty
        """
        package = result.package
        for advisory in result.advisories:
            if self.quiet:
                self._print(f"{package.name}-{package.version}")
            else:
                self._print(f"{package.name}-{package.version} is vulnerable:")
                self._print(advisory.description)
                self._print(f"WWW: {advisory.url}")
                self._print()

    def format_summary(self, vulnerable_packages: int) -> None:
        """Print the closing summary line of a bulk audit.

        Args:
            vulnerable_packages: Number of vulnerable packages found
        """
        if not self.quiet:
            self._print(f"{vulnerable_packages} problem(s) in your installed packages found.")

    def format_stats(self, stats: Dict[str, Any]) -> None:
        """Print audit database statistics."""
        for key, value in stats.items():
            self._print(f"{key.replace('_', ' ')}: {value}")

    def format_error(self, error: str, hint: Optional[str] = None) -> None:
        """Print a one-line diagnostic to stderr.

        Args:
            error: Error message
            hint: Optional follow-up suggestion
        """
        message = f"pkg-audit: {error}"
        if hint:
            message += f", {hint}"
        Console(stderr=True, highlight=False).print(message, markup=False, soft_wrap=True)


class JSONFormatter:
    """JSON formatter for pkg-audit output."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_scan_results(
        self,
        results: List[MatchResult],
        total_packages: int,
        scan_time: float,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format audit results as JSON.

        Args:
            results: Match results of vulnerable packages
            total_packages: Total packages checked
            scan_time: Scan time in seconds
            metadata: Optional additional metadata

        Returns:
            Formatted JSON data
        """
        vulnerable = [result for result in results if result.is_vulnerable]

        result = {
            "scan_summary": {
                "total_packages": total_packages,
                "vulnerable_packages": len(vulnerable),
                "total_advisories_matched": sum(len(r) for r in vulnerable),
                "scan_time_seconds": scan_time,
                "timestamp": datetime.now().isoformat()
            },
            "vulnerabilities": [r.to_dict() for r in vulnerable]
        }

        if metadata:
            result["metadata"] = metadata

        return result

    def save_results(
        self,
        results: Dict[str, Any],
        output_file: Optional[Path] = None
    ) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        file_path = output_file or self.output_file
        if not file_path:
            raise ValueError("No output file specified")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(results, f, indent=2, ensure_ascii=False)

            self.logger.info(f"Results saved to {file_path}")
        except IOError as e:
            self.logger.error(f"Failed to save results to {file_path}: {e}")
            raise
