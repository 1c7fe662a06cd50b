"""Durable release state: Releases root, current-version pointers, deploy history"""

import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import aiofiles

from ..constants import (
    CURRENT_VERSIONS_DIR,
    HISTORY_FILE,
    LOGS_ARCHIVE_DIR,
    PACKAGES_DIR,
    RELEASE_FOLDER_PATTERN,
    RELEASE_FOLDER_REGEX,
    VERSION_FILE_PATTERN,
)
from ..exceptions import (
    AlreadyBuiltError,
    DeployIOError,
    PublishIOError,
    VersionFileInvalidError,
)
from ..models.history import DeployRecord

logger = logging.getLogger(__name__)


def release_folder_name(application: str, version: int) -> str:
    return RELEASE_FOLDER_PATTERN.format(application=application.upper(), version=version)


def version_file_name(application: str) -> str:
    return VERSION_FILE_PATTERN.format(application=application.upper())


def write_version_file(folder: Path, application: str, version: int) -> Path:
    """Write the plain-text version file into a folder"""
    path = folder / version_file_name(application)
    path.write_text(f"{version}\n", encoding="utf-8")
    return path


def read_version_file(path: Union[str, Path]) -> int:
    """Read a version file

    Raises:
        VersionFileInvalidError: Missing file or content not a positive integer
    """
    path = Path(path)
    if not path.is_file():
        raise VersionFileInvalidError(str(path), "file not found")

    text = path.read_text(encoding="utf-8").strip()
    if not text.isdigit() or int(text) <= 0:
        raise VersionFileInvalidError(str(path), f"expected a positive integer, found {text!r}")
    return int(text)


@dataclass
class ReleaseInfo:
    """A published release folder"""
    application: str
    version: int
    path: Path

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.path.stat().st_mtime)


class ReleaseRegistry:
    """Filesystem-backed release registry.

    ``releases_root`` holds one immutable folder per application+version.
    ``state_root`` holds target-side state: current-version pointers, the
    logs archive, received packages and the deploy history file.
    """

    def __init__(self, releases_root: Union[str, Path], state_root: Optional[Union[str, Path]] = None):
        self.releases_root = Path(releases_root)
        self.state_root = Path(state_root) if state_root else self.releases_root.parent / "state"

    # ------------------------------------------------------------------
    # Releases root
    # ------------------------------------------------------------------

    def release_path(self, application: str, version: int) -> Path:
        return self.releases_root / release_folder_name(application, version)

    def is_built(self, application: str, version: int) -> bool:
        return self.release_path(application, version).exists()

    def descriptor_path(self, application: str, version: int) -> Path:
        return self.release_path(application, version) / f"{application.upper()}.xml"

    def list_releases(self, application: Optional[str] = None) -> List[ReleaseInfo]:
        """List published releases, newest version first"""
        if not self.releases_root.is_dir():
            return []

        releases = []
        for entry in self.releases_root.iterdir():
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            match = RELEASE_FOLDER_REGEX.match(entry.name)
            if not match:
                continue
            if application and match.group("application") != application.upper():
                continue
            releases.append(ReleaseInfo(
                application=match.group("application"),
                version=int(match.group("version")),
                path=entry,
            ))

        return sorted(releases, key=lambda r: (r.application, -r.version))

    def latest_release(self, application: str) -> Optional[int]:
        releases = self.list_releases(application)
        return releases[0].version if releases else None

    def publish(self, source_folder: Path, application: str, version: int) -> Path:
        """Publish a release folder into the Releases root

        The folder is copied to a hidden temporary sibling and renamed into
        place, so the release never becomes visible half-copied.

        Raises:
            AlreadyBuiltError: The release already exists (including when a
                concurrent build published it first)
            PublishIOError: Copy or rename failed
        """
        destination = self.release_path(application, version)
        if destination.exists():
            raise AlreadyBuiltError(application, version)

        temp = self.releases_root / f".{destination.name}.{uuid.uuid4().hex[:8]}.tmp"
        try:
            self.releases_root.mkdir(parents=True, exist_ok=True)
            shutil.copytree(source_folder, temp)
        except OSError as e:
            shutil.rmtree(temp, ignore_errors=True)
            raise PublishIOError(f"Failed to copy release to {self.releases_root}: {e}")

        try:
            os.rename(temp, destination)
        except OSError as e:
            shutil.rmtree(temp, ignore_errors=True)
            if destination.exists():
                raise AlreadyBuiltError(application, version)
            raise PublishIOError(f"Failed to publish {destination}: {e}")

        logger.info("Published %s", destination)
        return destination

    # ------------------------------------------------------------------
    # Target-side state
    # ------------------------------------------------------------------

    @property
    def current_versions_root(self) -> Path:
        return self.state_root / CURRENT_VERSIONS_DIR

    @property
    def logs_archive_root(self) -> Path:
        return self.state_root / LOGS_ARCHIVE_DIR

    @property
    def packages_root(self) -> Path:
        return self.state_root / PACKAGES_DIR

    @property
    def history_file(self) -> Path:
        return self.state_root / HISTORY_FILE

    def pointer_dir(self, nickname: str) -> Path:
        return self.current_versions_root / nickname.upper()

    def pointer_file(self, application: str, nickname: str) -> Path:
        return self.pointer_dir(nickname) / version_file_name(application)

    def logs_archive_dir(self, application: str, version: Optional[int]) -> Path:
        if version is None:
            return self.logs_archive_root / f"{application.upper()}_unknown"
        return self.logs_archive_root / release_folder_name(application, version)

    def package_path(self, application: str, version: int) -> Path:
        return self.packages_root / release_folder_name(application, version)

    def ensure_structure(self, application: str, version: int, nickname: str) -> List[Path]:
        """Ensure the persisted folders and the history file exist

        Each step is independent and safe to repeat.

        Returns:
            Paths that were created by this call

        Raises:
            DeployIOError: On the first step that fails
        """
        folders = [
            self.current_versions_root,
            self.pointer_dir(nickname),
            self.logs_archive_root,
            self.logs_archive_dir(application, version),
            self.packages_root,
        ]

        created = []
        for folder in folders:
            if folder.is_dir():
                continue
            try:
                folder.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DeployIOError(f"Failed to create folder {folder}: {e}")
            created.append(folder)

        if not self.history_file.exists():
            try:
                self.history_file.parent.mkdir(parents=True, exist_ok=True)
                self.history_file.touch()
            except OSError as e:
                raise DeployIOError(f"Failed to create history file {self.history_file}: {e}")
            created.append(self.history_file)

        return created

    def read_current_version(self, application: str, nickname: str) -> Optional[int]:
        """Last successfully deployed version for an environment, if any"""
        pointer = self.pointer_file(application, nickname)
        if not pointer.exists():
            return None
        try:
            return read_version_file(pointer)
        except VersionFileInvalidError:
            logger.warning("Ignoring unreadable version pointer %s", pointer)
            return None

    def current_versions(self, application: str) -> Dict[str, int]:
        """Current version per environment nickname"""
        result = {}
        if not self.current_versions_root.is_dir():
            return result
        for folder in sorted(self.current_versions_root.iterdir()):
            if folder.is_dir():
                version = self.read_current_version(application, folder.name)
                if version is not None:
                    result[folder.name] = version
        return result

    def update_current_version(self, version_file: Path, application: str, nickname: str) -> Path:
        """Copy a package's version file over the environment pointer"""
        pointer = self.pointer_file(application, nickname)
        temp = pointer.with_name(f".{pointer.name}.{uuid.uuid4().hex[:8]}")
        try:
            pointer.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(version_file, temp)
            os.replace(temp, pointer)
        except OSError as e:
            if temp.exists():
                temp.unlink()
            raise DeployIOError(f"Failed to update current version pointer {pointer}: {e}")
        return pointer

    def restore_current_version(self, application: str, nickname: str, version: Optional[int]) -> None:
        """Put an environment pointer back to a previously read version; None removes it"""
        pointer = self.pointer_file(application, nickname)
        try:
            if version is None:
                if pointer.exists():
                    pointer.unlink()
            else:
                write_version_file(pointer.parent, application, version)
        except OSError as e:
            raise DeployIOError(f"Failed to restore current version pointer {pointer}: {e}")
        logger.warning("Current version pointer %s restored to %s", pointer, version or "none")

    async def append_history(self, record: DeployRecord) -> None:
        """Append one record to the deploy history file"""
        try:
            self.history_file.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.history_file, "a", encoding="utf-8") as f:
                await f.write(record.to_line() + "\n")
        except OSError as e:
            raise DeployIOError(f"Failed to append to history file {self.history_file}: {e}")

    def read_history(self,
                     application: Optional[str] = None,
                     nickname: Optional[str] = None) -> List[DeployRecord]:
        """Read deploy history, oldest first"""
        if not self.history_file.exists():
            return []

        records = []
        with open(self.history_file, "r", encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    record = DeployRecord.from_line(line)
                except ValueError:
                    logger.warning("Skipping malformed history line: %s", line.strip())
                    continue
                if application and record.application != application.upper():
                    continue
                if nickname and record.environment_nickname != nickname.upper():
                    continue
                records.append(record)
        return records
