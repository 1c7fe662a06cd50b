"""Ephemeral build workspace"""

import logging
import os
import random
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..constants import BUILD_LOGS_DIR, DESCRIPTOR_EXPORT_DIR, WORK_LOGS_DIR, ZIP_FOLDER_NAME
from ..exceptions import WorkspaceIOError
from .release_registry import release_folder_name

logger = logging.getLogger(__name__)


def make_workspace_name(prefix: str = "build", now: Optional[datetime] = None) -> str:
    """Unique folder name for concurrent invocations on one host

    Combines the process id, a random suffix seeded from the pid and the
    clock, and a sub-second timestamp.
    """
    now = now or datetime.now()
    pid = os.getpid()
    rng = random.Random(pid ^ time.perf_counter_ns())
    return f"{prefix}_{pid}_{rng.randint(0, 999999):06d}_{now.strftime('%Y%m%d%H%M%S%f')}"


class BuildWorkspace:
    """Build-root folder layout for one build attempt.

    Deleted on success; kept on failure for post-mortem inspection.
    """

    def __init__(self, parent: Path, application: str, version: int, name: Optional[str] = None):
        self.parent = Path(parent)
        self.application = application.upper()
        self.version = version
        self.root = self.parent / (name or make_workspace_name())

    @property
    def descriptor_dir(self) -> Path:
        return self.root / DESCRIPTOR_EXPORT_DIR

    @property
    def zip_folder(self) -> Path:
        return self.root / ZIP_FOLDER_NAME

    @property
    def release_folder(self) -> Path:
        return self.root / release_folder_name(self.application, self.version)

    @property
    def build_logs(self) -> Path:
        return self.release_folder / BUILD_LOGS_DIR

    @property
    def log_dir(self) -> Path:
        return self.root / WORK_LOGS_DIR

    def create(self) -> Path:
        """Create the workspace root

        Raises:
            WorkspaceIOError: If the folder cannot be created
        """
        try:
            self.root.mkdir(parents=True, exist_ok=False)
            self.log_dir.mkdir()
        except OSError as e:
            raise WorkspaceIOError(f"Failed to create build workspace {self.root}: {e}")
        logger.debug("Created workspace %s", self.root)
        return self.root

    def prepare_folders(self) -> None:
        """Create the zip folder and the release folder's build-log folder"""
        for folder in (self.zip_folder, self.build_logs):
            try:
                folder.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise WorkspaceIOError(f"Failed to create folder {folder}: {e}")

    def has_zip_content(self) -> bool:
        return self.zip_folder.is_dir() and any(p.is_file() for p in self.zip_folder.rglob("*"))

    def cleanup(self) -> bool:
        """Delete the workspace; returns False if removal failed"""
        try:
            shutil.rmtree(self.root)
            return True
        except OSError as e:
            logger.warning("Could not remove workspace %s: %s", self.root, e)
            return False
