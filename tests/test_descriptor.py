"""Tests for the application descriptor model."""

import pytest

from release_engine.exceptions import DescriptorInvalidError, TargetResolutionError
from release_engine.models.descriptor import (
    ApplicationDescriptor,
    find_descriptor_file,
    list_application_names,
)

from .conftest import descriptor_xml


class TestDescriptorParsing:
    """Test the validating parse step."""

    def test_valid_descriptor(self):
        descriptor = ApplicationDescriptor.from_string(descriptor_xml(
            name="widgets",
            emails=["a@example.com", "b@example.com"],
            build_tasks='<Task Type="Command" Executable="make"/>',
            database='<Database Name="WidgetsDb" PrimaryServer="sql-a" SecondaryServer="sql-b"/>',
        ))

        assert descriptor.name == "WIDGETS"
        assert descriptor.notification_emails == ["a@example.com", "b@example.com"]
        assert descriptor.nicknames == ["QA", "PROD"]
        assert len(list(descriptor.build_tasks)) == 1
        assert descriptor.database.servers == ["sql-a", "sql-b"]
        assert descriptor.database.scripts_folder == "Database"

    def test_target_child_elements(self):
        xml = descriptor_xml(targets={}).replace(
            "<DeployTargets></DeployTargets>",
            "<DeployTargets><Target><Name>dev-web01</Name><NickName>dev</NickName></Target></DeployTargets>",
        )
        descriptor = ApplicationDescriptor.from_string(xml)
        assert descriptor.resolve_target("DEV").server == "dev-web01"

    def test_missing_notification_emails(self):
        with pytest.raises(DescriptorInvalidError, match="NotificationEmails"):
            ApplicationDescriptor.from_string(descriptor_xml(emails=[]))

    def test_missing_name(self):
        with pytest.raises(DescriptorInvalidError, match="General/Name"):
            ApplicationDescriptor.from_string(descriptor_xml(name=""))

    def test_malformed_xml(self):
        with pytest.raises(DescriptorInvalidError, match="Malformed XML"):
            ApplicationDescriptor.from_string("<Application><General>")

    def test_wrong_root(self):
        with pytest.raises(DescriptorInvalidError, match="Root element"):
            ApplicationDescriptor.from_string("<Package/>")

    def test_duplicate_nickname(self):
        xml = descriptor_xml(targets={"QA": "qa-web01"}).replace(
            "</DeployTargets>", '<Target Name="qa-web02" NickName="qa"/></DeployTargets>'
        )
        with pytest.raises(DescriptorInvalidError, match="Duplicate"):
            ApplicationDescriptor.from_string(xml)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DescriptorInvalidError, match="not found"):
            ApplicationDescriptor.from_file(tmp_path / "NOPE.xml")


class TestTargetResolution:
    """Test nickname resolution."""

    def test_case_insensitive(self):
        descriptor = ApplicationDescriptor.from_string(descriptor_xml())
        assert descriptor.resolve_target("qa").server == "qa-web01"

    def test_unknown_nickname(self):
        descriptor = ApplicationDescriptor.from_string(descriptor_xml())
        with pytest.raises(TargetResolutionError) as exc_info:
            descriptor.resolve_target("DEVWEB")
        assert exc_info.value.valid_nicknames == ["QA", "PROD"]


class TestDescriptorDirectory:
    """Test descriptor directory helpers."""

    def test_list_and_find(self, tmp_path):
        (tmp_path / "widgets.xml").write_text(descriptor_xml())
        (tmp_path / "GADGETS.xml").write_text(descriptor_xml(name="GADGETS"))
        (tmp_path / "notes.txt").write_text("ignored")

        assert list_application_names(tmp_path) == ["GADGETS", "WIDGETS"]
        assert find_descriptor_file(tmp_path, "WIDGETS") == tmp_path / "widgets.xml"
        assert find_descriptor_file(tmp_path, "MISSING") is None

    def test_missing_directory(self, tmp_path):
        assert list_application_names(tmp_path / "missing") == []
