"""Installed package store backed by a plain ``name-version`` listing."""

from pathlib import Path
from typing import Iterator

from ..core.models import Package
from ..exceptions import PackageDatabaseError
from ..utils.logging import get_logger
from .base import PackageStore


class PackageListStore(PackageStore):
    """Reads one ``name-version`` per line; ``#`` starts a comment line."""

    def __init__(self, list_path: Path) -> None:
        self.list_path = Path(list_path)
        self.logger = get_logger("PackageListStore")

    def iter_packages(self) -> Iterator[Package]:
        try:
            with open(self.list_path, "r", encoding="utf-8") as f:
                for line_number, line in enumerate(f, 1):
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue

                    try:
                        yield Package.from_string(line)
                    except ValueError as e:
                        self.logger.warning(f"{self.list_path}:{line_number}: {e}")
        except FileNotFoundError as e:
            raise PackageDatabaseError(
                f"package list does not exist: {self.list_path}", missing=True
            ) from e
        except UnicodeDecodeError as e:
            raise PackageDatabaseError(f"cannot decode {self.list_path}: {e}") from e
        except OSError as e:
            raise PackageDatabaseError(f"cannot read {self.list_path}: {e}") from e
