"""Main CLI interface for pkg-audit."""

import os
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from ..auditfile.offline import AuditDatabase
from ..auditfile.online import FetchStatus, fetch_and_extract
from ..config import AuditConfig
from ..core.matcher import MatchResult
from ..core.models import Package
from ..core.versions import get_comparator
from ..exceptions import (
    AdvisoryFileError,
    ConfigMissingError,
    FetchError,
    PackageDatabaseError,
)
from ..output.formatters import ConsoleFormatter, JSONFormatter
from ..stores import PackageListStore, PackageStore, SQLitePackageStore
from ..utils.logging import get_logger, setup_logging
from ..utils.performance import PerformanceMonitor

app = typer.Typer(
    name="pkg-audit",
    help="Check installed packages against the vulnerability audit file",
    add_completion=False
)

console = Console(highlight=False)
logger = get_logger("CLI")

# sysexits(3) style exit codes
EX_OK = 0
EX_VULNERABLE = 1
EX_USAGE = 64
EX_DATAERR = 65
EX_IOERR = 74
EX_CONFIG = 78


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _load_config(formatter: ConsoleFormatter, **options: object) -> AuditConfig:
    try:
        return AuditConfig.from_environment(**options)
    except ConfigMissingError as e:
        formatter.format_error(str(e))
        raise typer.Exit(EX_CONFIG)
    except ValueError as e:
        formatter.format_error(str(e))
        raise typer.Exit(EX_USAGE)


def _fetch_audit_file(config: AuditConfig, formatter: ConsoleFormatter) -> None:
    """Refresh the audit file, exiting on any failure."""
    try:
        site = config.require_audit_site()
    except ConfigMissingError as e:
        formatter.format_error(str(e))
        raise typer.Exit(EX_CONFIG)

    try:
        status = fetch_and_extract(site, config.audit_file)
    except FetchError as e:
        hint = f"check {site}" if e.not_found else None
        formatter.format_error(f"cannot fetch audit file: {e}", hint)
        raise typer.Exit(EX_IOERR)

    if status is FetchStatus.UP_TO_DATE:
        console.print("Audit file up-to-date.", markup=False)


def _load_database(database: AuditDatabase, formatter: ConsoleFormatter) -> None:
    """Load and index the audit file, exiting when it cannot be read."""
    try:
        database.load()
    except AdvisoryFileError as e:
        if e.not_found:
            formatter.format_error(
                "unable to open audit file",
                "try running 'pkg-audit audit --fetch' first"
            )
        else:
            formatter.format_error(str(e))
        raise typer.Exit(EX_DATAERR)


def _package_store(config: AuditConfig, packages_file: Optional[Path]) -> PackageStore:
    if packages_file is not None:
        return PackageListStore(packages_file)
    return SQLitePackageStore(config.package_database)


def _write_json(output: Path, results: List[MatchResult], total_packages: int, scan_time: float) -> None:
    json_formatter = JSONFormatter(output)
    json_formatter.save_results(
        json_formatter.format_scan_results(
            results=results,
            total_packages=total_packages,
            scan_time=scan_time
        )
    )


@app.command()
def audit(
    package: Optional[str] = typer.Argument(
        None,
        help="Single package to check, as NAME-VERSION (default: all installed packages)"
    ),
    fetch: bool = typer.Option(
        False,
        "--fetch",
        "-F",
        help="Fetch the audit file before checking"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only print NAME-VERSION of vulnerable packages"
    ),
    db_dir: Optional[Path] = typer.Option(
        None,
        "--db-dir",
        help="Package database directory holding the audit file (default: $PKG_DBDIR or /var/db/pkg)"
    ),
    site: Optional[str] = typer.Option(
        None,
        "--site",
        help="Audit file archive URL (default: $PORTAUDIT_SITE)"
    ),
    package_db: Optional[Path] = typer.Option(
        None,
        "--package-db",
        help="Installed package database (default: <db-dir>/local.sqlite)"
    ),
    packages_file: Optional[Path] = typer.Option(
        None,
        "--packages-file",
        help="Read installed packages from a NAME-VERSION listing instead"
    ),
    scheme: str = typer.Option(
        "pkg",
        "--scheme",
        help="Version ordering: 'pkg' or 'pep440'"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    performance: bool = typer.Option(
        False,
        "--performance",
        help="Show performance summary"
    )
) -> None:
    """Check installed packages, or a single package, for known vulnerabilities."""
    setup_logging(verbose=verbose)
    formatter = ConsoleFormatter(console, quiet=quiet)
    config = _load_config(
        formatter,
        database_dir=db_dir,
        audit_site=site,
        package_db=package_db,
        version_scheme=scheme,
    )

    if fetch:
        _fetch_audit_file(config, formatter)

    monitor = PerformanceMonitor()
    database = AuditDatabase(config.audit_file, get_comparator(config.version_scheme), monitor)
    results: List[MatchResult] = []
    start_time = time.perf_counter()

    if package is not None:
        try:
            target = Package.from_string(package)
        except ValueError as e:
            formatter.format_error(str(e))
            raise typer.Exit(EX_USAGE)

        _load_database(database, formatter)
        result = database.find_vulnerabilities_for_package(target)
        formatter.format_match(result)
        results.append(result)
        total_packages = 1
    else:
        store = _package_store(config, packages_file)
        total_packages = 0
        try:
            with store:
                _load_database(database, formatter)
                with monitor.measure("scan_packages"):
                    for result in database.scan_packages(store.iter_packages()):
                        total_packages += 1
                        if result:
                            formatter.format_match(result)
                            results.append(result)
        except PackageDatabaseError as e:
            # Without the default package database there is nothing installed,
            # unless we are root and it should have been there. Paths given
            # on the command line must exist.
            if e.missing and packages_file is None and package_db is None and not _is_root():
                logger.info(str(e))
                raise typer.Exit(EX_OK)
            formatter.format_error(str(e))
            raise typer.Exit(EX_IOERR)

        formatter.format_summary(sum(1 for result in results if result))

    scan_time = time.perf_counter() - start_time
    vulnerable = [result for result in results if result]

    if output:
        _write_json(output, vulnerable, total_packages, scan_time)

    if performance:
        monitor.print_summary()

    raise typer.Exit(EX_VULNERABLE if vulnerable else EX_OK)


@app.command()
def fetch(
    db_dir: Optional[Path] = typer.Option(
        None,
        "--db-dir",
        help="Package database directory holding the audit file (default: $PKG_DBDIR or /var/db/pkg)"
    ),
    site: Optional[str] = typer.Option(
        None,
        "--site",
        help="Audit file archive URL (default: $PORTAUDIT_SITE)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    )
) -> None:
    """Fetch the audit file without checking any package."""
    setup_logging(verbose=verbose)
    formatter = ConsoleFormatter(console)
    config = _load_config(formatter, database_dir=db_dir, audit_site=site)
    _fetch_audit_file(config, formatter)


@app.command()
def stats(
    db_dir: Optional[Path] = typer.Option(
        None,
        "--db-dir",
        help="Package database directory holding the audit file (default: $PKG_DBDIR or /var/db/pkg)"
    )
) -> None:
    """Show statistics about the local audit file."""
    setup_logging()
    formatter = ConsoleFormatter(console)
    config = _load_config(formatter, database_dir=db_dir)

    database = AuditDatabase(config.audit_file)
    _load_database(database, formatter)
    formatter.format_stats(database.get_database_stats())


def main() -> None:
    """Main entry point for pkg-audit CLI."""
    app()


if __name__ == "__main__":
    main()
