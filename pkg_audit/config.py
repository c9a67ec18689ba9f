"""Runtime configuration for pkg-audit."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.versions import COMPARATORS
from .exceptions import ConfigMissingError

DEFAULT_DBDIR = Path("/var/db/pkg")
DEFAULT_AUDIT_SITE = "http://portaudit.FreeBSD.org/auditfile.tbz"
AUDIT_FILE_NAME = "auditfile"
PACKAGE_DB_NAME = "local.sqlite"

DBDIR_ENV_VAR = "PKG_DBDIR"
AUDIT_SITE_ENV_VAR = "PORTAUDIT_SITE"


@dataclass
class AuditConfig:
    """Where the audit file and the package database live."""

    database_dir: Optional[Path] = DEFAULT_DBDIR
    audit_site: Optional[str] = DEFAULT_AUDIT_SITE
    package_db: Optional[Path] = None
    version_scheme: str = "pkg"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.database_dir or not str(self.database_dir).strip():
            raise ConfigMissingError(DBDIR_ENV_VAR)
        self.database_dir = Path(self.database_dir)

        if self.version_scheme not in COMPARATORS:
            raise ValueError(f"Unknown version scheme: {self.version_scheme}")

    @classmethod
    def from_environment(cls, **overrides: object) -> "AuditConfig":
        """Build a configuration from PKG_DBDIR / PORTAUDIT_SITE.

        Explicit keyword overrides that are not None win over the
        environment.
        """
        values = {
            "database_dir": os.environ.get(DBDIR_ENV_VAR, str(DEFAULT_DBDIR)),
            "audit_site": os.environ.get(AUDIT_SITE_ENV_VAR, DEFAULT_AUDIT_SITE),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def audit_file(self) -> Path:
        return self.database_dir / AUDIT_FILE_NAME

    @property
    def package_database(self) -> Path:
        return self.package_db or self.database_dir / PACKAGE_DB_NAME

    def require_audit_site(self) -> str:
        """Return the audit file URL, which fetching cannot do without.

        Raises:
            ConfigMissingError: If no site is configured
        """
        if not self.audit_site or not self.audit_site.strip():
            raise ConfigMissingError(AUDIT_SITE_ENV_VAR)
        return self.audit_site.strip()
