"""Sources of installed packages."""

from .base import PackageStore
from .listing import PackageListStore
from .sqlite import SQLitePackageStore

__all__ = [
    "PackageStore",
    "PackageListStore",
    "SQLitePackageStore",
]
