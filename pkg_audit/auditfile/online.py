"""Audit file fetcher.

Downloads the compressed audit file archive, honouring the mtime of the
current audit file as a not-modified-since check, and extracts it into
place.
"""

import asyncio
import os
import shutil
import ssl
import tarfile
import tempfile
from email.utils import formatdate
from enum import Enum
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import aiohttp
import certifi
from aiohttp import ClientTimeout

from ..config import AUDIT_FILE_NAME
from ..exceptions import FetchError
from ..utils.logging import get_logger

logger = get_logger("auditfile")


class FetchStatus(Enum):
    """Outcome of a successful fetch."""

    FETCHED = "fetched"
    UP_TO_DATE = "up-to-date"


class AuditFileFetcher:
    """Async client for downloading the audit file archive."""

    TIMEOUT = ClientTimeout(total=30)

    def __init__(self, session: Optional[aiohttp.ClientSession] = None) -> None:
        """Initialize the fetcher.

        Args:
            session: Optional aiohttp session for connection reuse
        """
        self.logger = get_logger("AuditFileFetcher")
        self._session = session
        self._owns_session = session is None
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def __aenter__(self) -> "AuditFileFetcher":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp ClientSession
        """
        if not self._session or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(
                timeout=self.TIMEOUT,
                connector=connector
            )
            self._owns_session = True
        return self._session

    async def fetch(
        self,
        url: str,
        destination: Path,
        modified_since: Optional[float] = None
    ) -> FetchStatus:
        """Fetch ``url`` into ``destination``.

        Args:
            url: http(s) or file URL, or a plain local path
            destination: Where to write the downloaded archive
            modified_since: POSIX timestamp of the copy we already have

        Returns:
            FETCHED, or UP_TO_DATE when the remote copy is not newer

        Raises:
            FetchError: If the archive cannot be fetched
        """
        parsed = urlparse(url)
        if parsed.scheme in ("http", "https"):
            return await self._fetch_http(url, Path(destination), modified_since)
        if parsed.scheme == "file":
            return self._fetch_local(Path(unquote(parsed.path)), Path(destination), modified_since)
        if parsed.scheme == "":
            return self._fetch_local(Path(url), Path(destination), modified_since)

        raise FetchError(f"Unsupported URL scheme for audit file: {url}")

    async def _fetch_http(
        self,
        url: str,
        destination: Path,
        modified_since: Optional[float]
    ) -> FetchStatus:
        headers = {}
        if modified_since is not None:
            headers["If-Modified-Since"] = formatdate(modified_since, usegmt=True)

        session = self._get_session()
        try:
            async with session.get(url, headers=headers) as response:
                if response.status == 304:
                    self.logger.debug(f"{url} not modified")
                    return FetchStatus.UP_TO_DATE
                if response.status == 404:
                    raise FetchError(f"{url}: not found", not_found=True)
                if response.status != 200:
                    raise FetchError(f"{url}: HTTP {response.status}")

                data = await response.read()
        except aiohttp.ClientError as e:
            raise FetchError(f"{url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"{url}: timed out") from e

        try:
            destination.write_bytes(data)
        except OSError as e:
            raise FetchError(f"cannot write {destination}: {e}") from e

        self.logger.info(f"Downloaded {len(data)} bytes from {url}")
        return FetchStatus.FETCHED

    def _fetch_local(
        self,
        source: Path,
        destination: Path,
        modified_since: Optional[float]
    ) -> FetchStatus:
        try:
            source_mtime = source.stat().st_mtime
        except FileNotFoundError as e:
            raise FetchError(f"{source}: not found", not_found=True) from e
        except OSError as e:
            raise FetchError(f"{source}: {e}") from e

        if modified_since is not None and source_mtime <= modified_since:
            self.logger.debug(f"{source} not modified")
            return FetchStatus.UP_TO_DATE

        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            raise FetchError(f"cannot copy {source}: {e}") from e

        return FetchStatus.FETCHED


def _select_member(tar: tarfile.TarFile) -> Optional[tarfile.TarInfo]:
    """Pick the audit file out of the archive: by name, else the first file."""
    files = [member for member in tar.getmembers() if member.isfile()]
    for member in files:
        if Path(member.name).name == AUDIT_FILE_NAME:
            return member
    return files[0] if files else None


def extract_audit_file(archive: Path, destination: Path) -> None:
    """Extract the audit file from ``archive`` and move it to ``destination``.

    The data is written to a temporary file next to ``destination`` and
    renamed over it, so a failed extraction leaves the old audit file intact.

    Raises:
        FetchError: If the archive cannot be read or holds no file
    """
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "r:*") as tar:
            member = _select_member(tar)
            if member is None:
                raise FetchError(f"{archive}: archive contains no audit file")

            source = tar.extractfile(member)
            fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=".auditfile.")
            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "wb") as out, source:
                    shutil.copyfileobj(source, out)
                os.chmod(tmp_path, 0o644)
                os.replace(tmp_path, destination)
            finally:
                if tmp_path.exists():
                    tmp_path.unlink()
    except tarfile.TarError as e:
        raise FetchError(f"cannot extract {archive}: {e}") from e
    except OSError as e:
        raise FetchError(f"cannot write {destination}: {e}") from e

    logger.info(f"Extracted {member.name} to {destination}")


async def _download(url: str, archive: Path, modified_since: Optional[float]) -> FetchStatus:
    async with AuditFileFetcher() as fetcher:
        return await fetcher.fetch(url, archive, modified_since)


def fetch_and_extract(url: str, destination: Path) -> FetchStatus:
    """Fetch the audit file archive from ``url`` and extract it to ``destination``.

    The archive is downloaded into a temporary file under $TMPDIR which is
    removed on every exit path.

    Args:
        url: Audit file archive location
        destination: Path of the audit file to refresh

    Returns:
        FETCHED or UP_TO_DATE

    Raises:
        FetchError: If fetching or extracting fails
    """
    destination = Path(destination)
    modified_since = destination.stat().st_mtime if destination.exists() else None

    fd, tmp_name = tempfile.mkstemp(prefix="auditfile.", suffix=".tbz")
    os.close(fd)
    archive = Path(tmp_name)
    try:
        status = asyncio.run(_download(url, archive, modified_since))
        if status is FetchStatus.FETCHED:
            extract_audit_file(archive, destination)
        return status
    finally:
        if archive.exists():
            archive.unlink()
