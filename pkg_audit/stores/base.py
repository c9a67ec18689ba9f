"""Base class for installed package sources."""

from abc import ABC, abstractmethod
from typing import Iterator

from ..core.models import Package


class PackageStore(ABC):
    """Abstract source of installed ``(name, version)`` pairs.

    Stores are context managers: ``open()`` acquires whatever the store reads
    from and ``close()`` releases it.
    """

    def open(self) -> None:
        """Acquire the underlying resource."""

    def close(self) -> None:
        """Release the underlying resource."""

    def __enter__(self) -> "PackageStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @abstractmethod
    def iter_packages(self) -> Iterator[Package]:
        """Iterate over installed packages.

        Yields:
            Installed packages

        Raises:
            PackageDatabaseError: If the store cannot be read
        """
        pass
