"""Tests for release notes and the Subversion client."""

import subprocess
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from release_engine.core.release_notes import ReleaseNotesGenerator
from release_engine.core.release_registry import ReleaseRegistry, write_version_file
from release_engine.core.source_control import LogEntry, SubversionClient, parse_log_xml
from release_engine.exceptions import SourceControlError
from release_engine.models.config import RepositoryConfig
from release_engine.models.descriptor import ApplicationDescriptor

from .conftest import descriptor_xml

LOG_XML = """<?xml version="1.0"?>
<log>
  <logentry revision="498"><author>alice</author><date>2025-03-01T09:30:00.000000Z</date><msg>Fix totals
Second line</msg></logentry>
  <logentry revision="500"><author>bob</author><msg></msg></logentry>
</log>
"""


class TestReleaseNotes:
    """Test ReleaseNotesGenerator."""

    def _generator(self, tmp_path, prod_version=None):
        registry = ReleaseRegistry(tmp_path / "Releases", tmp_path / "state")
        if prod_version:
            version_file = write_version_file(tmp_path, "WIDGETS", prod_version)
            registry.update_current_version(version_file, "WIDGETS", "PROD")
        source_control = MagicMock()
        source_control.log.return_value = [
            LogEntry(498, "alice", datetime(2025, 3, 1, 9, 30), "Fix totals"),
        ]
        return ReleaseNotesGenerator(source_control, registry, "PROD"), source_control

    def test_lower_bound(self, tmp_path):
        generator, _ = self._generator(tmp_path, prod_version=480)
        assert generator.lower_bound("WIDGETS", 500) == 481
        assert generator.lower_bound("WIDGETS", 470) == 470

    def test_lower_bound_without_baseline(self, tmp_path):
        generator, _ = self._generator(tmp_path)
        assert generator.lower_bound("WIDGETS", 500) == 500

    def test_generate(self, tmp_path):
        generator, source_control = self._generator(tmp_path, prod_version=480)
        descriptor = ApplicationDescriptor.from_string(descriptor_xml(source_path="trunk/Widgets"))

        path = generator.generate(descriptor, 500, tmp_path)

        source_control.log.assert_called_once_with("trunk/Widgets", 481, 500)
        content = path.read_text()
        assert path.name == "ReleaseNotes.txt"
        assert "r498 | alice | 2025-03-01 09:30:00" in content
        assert "    Fix totals" in content

    def test_no_source_path(self, tmp_path):
        generator, source_control = self._generator(tmp_path)
        descriptor = ApplicationDescriptor.from_string(descriptor_xml())

        assert generator.generate(descriptor, 500, tmp_path) is None
        source_control.log.assert_not_called()


class TestSubversionClient:
    """Test the svn command wrapper."""

    def test_parse_log_xml(self):
        entries = parse_log_xml(LOG_XML)

        assert [e.revision for e in entries] == [498, 500]
        assert entries[0].date == datetime(2025, 3, 1, 9, 30)
        assert entries[0].message == "Fix totals\nSecond line"
        assert entries[1].date is None

    def test_head_revision(self):
        client = SubversionClient(RepositoryConfig(url="svn://repo/main/", username="builder"))
        completed = subprocess.CompletedProcess([], 0, stdout="500\n", stderr="")

        with patch("release_engine.core.source_control.subprocess.run", return_value=completed) as run:
            assert client.head_revision() == 500

        cmd = run.call_args[0][0]
        assert cmd[:4] == ["svn", "--non-interactive", "--username", "builder"]
        assert cmd[-1] == "svn://repo/main"

    def test_command_failure(self):
        client = SubversionClient(RepositoryConfig(url="svn://repo/main"))
        error = subprocess.CalledProcessError(1, ["svn"], stderr="E170013: Unable to connect")

        with patch("release_engine.core.source_control.subprocess.run", side_effect=error):
            with pytest.raises(SourceControlError, match="E170013"):
                client.export("AppConfigs", "/tmp/out", 500)

    def test_missing_client(self):
        client = SubversionClient(RepositoryConfig(url="svn://repo/main", executable="no-svn"))

        with patch("release_engine.core.source_control.subprocess.run", side_effect=FileNotFoundError):
            with pytest.raises(SourceControlError, match="not found"):
                client.head_revision()
