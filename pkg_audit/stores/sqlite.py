"""Installed package store backed by the pkg SQLite database."""

import sqlite3
from pathlib import Path
from typing import Iterator, Optional

from ..core.models import Package
from ..exceptions import PackageDatabaseError
from ..utils.logging import get_logger
from .base import PackageStore

PACKAGES_QUERY = "SELECT name, version FROM packages ORDER BY name"


class SQLitePackageStore(PackageStore):
    """Reads installed packages from ``local.sqlite``."""

    def __init__(self, database_path: Path) -> None:
        """Initialize the store.

        Args:
            database_path: Path to the package database
        """
        self.database_path = Path(database_path)
        self.logger = get_logger("SQLitePackageStore")
        self._connection: Optional[sqlite3.Connection] = None

    def open(self) -> None:
        """Open a read-only connection to the database.

        Raises:
            PackageDatabaseError: If the database is missing or unreadable;
                ``missing`` is set when the file does not exist
        """
        if not self.database_path.exists():
            raise PackageDatabaseError(
                f"package database does not exist: {self.database_path}", missing=True
            )

        uri = f"{self.database_path.resolve().as_uri()}?mode=ro"
        try:
            self._connection = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise PackageDatabaseError(f"cannot open {self.database_path}: {e}") from e

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def iter_packages(self) -> Iterator[Package]:
        if self._connection is None:
            raise PackageDatabaseError("package database is not open")

        try:
            cursor = self._connection.execute(PACKAGES_QUERY)
            for name, version in cursor:
                try:
                    yield Package(name=name, version=version)
                except ValueError as e:
                    self.logger.warning(f"Skipping invalid package row: {e}")
        except sqlite3.Error as e:
            raise PackageDatabaseError(f"cannot query local database: {e}") from e
