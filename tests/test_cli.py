"""Tests for the pkg-audit command line."""

import io
import json
import os
import sqlite3
import tarfile

import pytest
from typer.testing import CliRunner

from pkg_audit.cli.main import (
    EX_CONFIG,
    EX_DATAERR,
    EX_IOERR,
    EX_OK,
    EX_USAGE,
    EX_VULNERABLE,
    app,
)

AUDIT_TEXT = (
    "openssl>=1.0.0<1.0.2|http://example/adv|heartbleed\n"
    "py??-foo<2.0|http://example/foo|foo issue\n"
    "zlib<1.2.12|http://example/zlib|zlib issue\n"
)

runner = CliRunner()


@pytest.fixture
def db_dir(tmp_path):
    """Package database directory holding an audit file."""
    directory = tmp_path / "pkg"
    directory.mkdir()
    (directory / "auditfile").write_text(AUDIT_TEXT)
    return directory


@pytest.fixture
def packages_file(tmp_path):
    listing = tmp_path / "packages.txt"
    listing.write_text("openssl-1.0.1\npy39-foo-2.1\nzlib-1.2.11\nbash-5.0\n")
    return listing


@pytest.fixture
def site_archive(tmp_path):
    """Audit file archive served from a local path."""
    archive = tmp_path / "auditfile.tbz"
    data = AUDIT_TEXT.encode()
    with tarfile.open(archive, "w:bz2") as tar:
        info = tarfile.TarInfo("auditfile")
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))
    return archive


class TestAuditSinglePackage:
    """Test checking one package given on the command line."""

    def test_vulnerable(self, db_dir):
        """Test the full report for a vulnerable package."""
        result = runner.invoke(app, ["audit", "openssl-1.0.1", "--db-dir", str(db_dir)])

        assert result.exit_code == EX_VULNERABLE
        assert "openssl-1.0.1 is vulnerable:" in result.output
        assert "heartbleed" in result.output
        assert "WWW: http://example/adv" in result.output

    def test_not_vulnerable(self, db_dir):
        """Test a fixed version prints nothing."""
        result = runner.invoke(app, ["audit", "openssl-1.0.2", "--db-dir", str(db_dir)])

        assert result.exit_code == EX_OK
        assert "vulnerable" not in result.output

    def test_quiet(self, db_dir):
        """Test quiet output is just the package."""
        result = runner.invoke(app, ["audit", "-q", "openssl-1.0.1", "--db-dir", str(db_dir)])

        assert result.exit_code == EX_VULNERABLE
        assert "openssl-1.0.1" in result.output
        assert "WWW:" not in result.output

    def test_bad_package_format(self, db_dir):
        """Test an argument without a version."""
        result = runner.invoke(app, ["audit", "openssl", "--db-dir", str(db_dir)])

        assert result.exit_code == EX_USAGE
        assert "bad package name format" in result.output

    def test_missing_audit_file(self, tmp_path):
        """Test auditing before the audit file was fetched."""
        result = runner.invoke(app, ["audit", "openssl-1.0.1", "--db-dir", str(tmp_path)])

        assert result.exit_code == EX_DATAERR
        assert "try running" in result.output

    def test_unknown_scheme(self, db_dir):
        """Test an unknown version scheme."""
        result = runner.invoke(
            app, ["audit", "openssl-1.0.1", "--db-dir", str(db_dir), "--scheme", "semver"]
        )

        assert result.exit_code == EX_USAGE

    def test_missing_db_dir_setting(self):
        """Test an empty PKG_DBDIR without --db-dir."""
        result = runner.invoke(app, ["audit", "openssl-1.0.1"], env={"PKG_DBDIR": ""})

        assert result.exit_code == EX_CONFIG
        assert "PKG_DBDIR is missing" in result.output


class TestAuditInstalledPackages:
    """Test checking every installed package."""

    def test_packages_file(self, db_dir, packages_file):
        """Test a listing with one vulnerable package."""
        result = runner.invoke(
            app, ["audit", "--db-dir", str(db_dir), "--packages-file", str(packages_file)]
        )

        assert result.exit_code == EX_VULNERABLE
        assert "zlib-1.2.11 is vulnerable:" in result.output
        assert "py39-foo" not in result.output
        assert "2 problem(s) in your installed packages found." in result.output

    def test_package_database(self, db_dir):
        """Test reading local.sqlite from the database directory."""
        connection = sqlite3.connect(db_dir / "local.sqlite")
        connection.execute("CREATE TABLE packages (name TEXT, version TEXT)")
        connection.execute("INSERT INTO packages VALUES ('bash', '5.0')")
        connection.commit()
        connection.close()

        result = runner.invoke(app, ["audit", "--db-dir", str(db_dir)])

        assert result.exit_code == EX_OK
        assert "0 problem(s) in your installed packages found." in result.output

    def test_quiet_has_no_summary(self, db_dir, packages_file):
        """Test quiet mode prints only package names."""
        result = runner.invoke(
            app, ["audit", "-q", "--db-dir", str(db_dir), "--packages-file", str(packages_file)]
        )

        assert result.exit_code == EX_VULNERABLE
        assert "openssl-1.0.1" in result.output
        assert "problem(s)" not in result.output

    def test_missing_package_database(self, db_dir):
        """Test a missing package database is only an error for root."""
        result = runner.invoke(app, ["audit", "--db-dir", str(db_dir)])

        expected = EX_IOERR if os.geteuid() == 0 else EX_OK
        assert result.exit_code == expected

    def test_missing_packages_file(self, db_dir, tmp_path):
        """Test an explicitly named listing must exist."""
        result = runner.invoke(
            app,
            ["audit", "--db-dir", str(db_dir), "--packages-file", str(tmp_path / "nope.txt")]
        )

        assert result.exit_code == EX_IOERR

    def test_missing_explicit_package_database(self, db_dir, tmp_path):
        """Test a named package database must exist, whoever runs the audit."""
        result = runner.invoke(
            app,
            ["audit", "--db-dir", str(db_dir), "--package-db", str(tmp_path / "nope.sqlite")]
        )

        assert result.exit_code == EX_IOERR
        assert "package database does not exist" in result.output

    def test_undecodable_packages_file(self, db_dir, tmp_path):
        """Test a listing that is not UTF-8 is an I/O error, not a finding."""
        listing = tmp_path / "packages.txt"
        listing.write_bytes(b"zlib-1.0\n\xff\xfe-1.0\n")

        result = runner.invoke(
            app, ["audit", "--db-dir", str(db_dir), "--packages-file", str(listing)]
        )

        assert result.exit_code == EX_IOERR
        assert "cannot decode" in result.output

    def test_json_output(self, db_dir, packages_file, tmp_path):
        """Test results are written as JSON."""
        output = tmp_path / "results.json"

        result = runner.invoke(app, [
            "audit", "--db-dir", str(db_dir),
            "--packages-file", str(packages_file),
            "-o", str(output),
        ])

        assert result.exit_code == EX_VULNERABLE
        data = json.loads(output.read_text())
        assert data["scan_summary"]["total_packages"] == 4
        assert data["scan_summary"]["vulnerable_packages"] == 2
        names = {v["package"]["name"] for v in data["vulnerabilities"]}
        assert names == {"openssl", "zlib"}

    def test_fetch_before_audit(self, tmp_path, packages_file, site_archive):
        """Test -F downloads the audit file first."""
        db_dir = tmp_path / "fresh"

        result = runner.invoke(app, [
            "audit", "-F", "--db-dir", str(db_dir),
            "--site", str(site_archive),
            "--packages-file", str(packages_file),
        ])

        assert result.exit_code == EX_VULNERABLE
        assert (db_dir / "auditfile").read_text() == AUDIT_TEXT


class TestFetchCommand:
    """Test the fetch command."""

    def test_fetch_and_up_to_date(self, tmp_path, site_archive):
        """Test fetching twice from an unchanged site."""
        db_dir = tmp_path / "pkg"
        args = ["fetch", "--db-dir", str(db_dir), "--site", str(site_archive)]

        first = runner.invoke(app, args)
        assert first.exit_code == EX_OK
        assert (db_dir / "auditfile").exists()

        os.utime(site_archive, (1000000000, 1000000000))
        second = runner.invoke(app, args)
        assert second.exit_code == EX_OK
        assert "Audit file up-to-date." in second.output

    def test_missing_site_setting(self, tmp_path):
        """Test an empty PORTAUDIT_SITE."""
        result = runner.invoke(
            app, ["fetch", "--db-dir", str(tmp_path)], env={"PORTAUDIT_SITE": ""}
        )

        assert result.exit_code == EX_CONFIG
        assert "PORTAUDIT_SITE is missing" in result.output

    def test_unreachable_site(self, tmp_path):
        """Test a site that does not exist."""
        result = runner.invoke(
            app, ["fetch", "--db-dir", str(tmp_path), "--site", str(tmp_path / "missing.tbz")]
        )

        assert result.exit_code == EX_IOERR
        assert "cannot fetch audit file" in result.output


class TestStatsCommand:
    """Test the stats command."""

    def test_stats(self, db_dir):
        """Test statistics are printed."""
        result = runner.invoke(app, ["stats", "--db-dir", str(db_dir)])

        assert result.exit_code == EX_OK
        assert "total advisories: 3" in result.output
