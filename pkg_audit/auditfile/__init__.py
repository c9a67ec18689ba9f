"""Audit file access: local loading and indexing, remote fetching."""

from .offline import AuditDatabase
from .online import AuditFileFetcher, FetchStatus, extract_audit_file, fetch_and_extract

__all__ = [
    "AuditDatabase",
    "AuditFileFetcher",
    "FetchStatus",
    "extract_audit_file",
    "fetch_and_extract",
]
