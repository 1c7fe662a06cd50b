"""Tests for the build workspace and attempt logs."""

import logging

import pytest

from release_engine.core.attempt_log import AttemptLog, make_log_prefix
from release_engine.core.workspace import BuildWorkspace, make_workspace_name
from release_engine.exceptions import WorkspaceIOError


class TestBuildWorkspace:
    """Test workspace layout and lifecycle."""

    def test_names_are_unique(self):
        names = {make_workspace_name() for _ in range(20)}
        assert len(names) == 20

    def test_layout(self, tmp_path):
        workspace = BuildWorkspace(tmp_path, "widgets", 500, name="ws")
        workspace.create()
        workspace.prepare_folders()

        assert workspace.root == tmp_path / "ws"
        assert workspace.release_folder == tmp_path / "ws" / "WIDGETS_500"
        assert workspace.build_logs.is_dir()
        assert workspace.zip_folder.is_dir()
        assert workspace.log_dir.is_dir()

    def test_create_twice_fails(self, tmp_path):
        workspace = BuildWorkspace(tmp_path, "WIDGETS", 1, name="ws")
        workspace.create()
        with pytest.raises(WorkspaceIOError):
            workspace.create()

    def test_zip_content_and_cleanup(self, tmp_path):
        workspace = BuildWorkspace(tmp_path, "WIDGETS", 1, name="ws")
        workspace.create()
        workspace.prepare_folders()
        assert not workspace.has_zip_content()

        (workspace.zip_folder / "nested").mkdir()
        (workspace.zip_folder / "nested" / "app.dll").write_bytes(b"\x00")
        assert workspace.has_zip_content()

        assert workspace.cleanup() is True
        assert not workspace.root.exists()


class TestAttemptLog:
    """Test per-attempt log capture."""

    def test_prefix(self):
        from datetime import datetime

        prefix = make_log_prefix("WIDGETS", 500, "Build", now=datetime(2025, 1, 2, 3, 4, 5))
        assert prefix == "20250102_030405_WIDGETS_500_Build"

    def test_captures_engine_logging(self, tmp_path):
        log = AttemptLog(tmp_path, "attempt")
        with log:
            logging.getLogger("release_engine.tests").info("captured line")
        logging.getLogger("release_engine.tests").info("after close")

        content = log.path.read_text()
        assert "captured line" in content
        assert "after close" not in content
        assert not log.is_open

    def test_close_twice_and_files(self, tmp_path):
        log = AttemptLog(tmp_path, "attempt")
        log.open()
        (tmp_path / "attempt_Compile.log").write_text("task output")
        (tmp_path / "other.log").write_text("unrelated")
        log.close()
        log.close()

        assert [p.name for p in log.files()] == ["attempt.log", "attempt_Compile.log"]

    def test_restores_logger_level(self, tmp_path):
        logger = logging.getLogger("release_engine")
        previous = logger.level
        logger.setLevel(logging.ERROR)
        try:
            with AttemptLog(tmp_path, "attempt"):
                assert logger.level == logging.INFO
            assert logger.level == logging.ERROR
        finally:
            logger.setLevel(previous)
