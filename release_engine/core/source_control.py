"""Subversion client used for HEAD lookup, export and log queries"""

import logging
import subprocess
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..exceptions import SourceControlError
from ..models.config import RepositoryConfig

logger = logging.getLogger(__name__)


@dataclass
class LogEntry:
    """A single revision from `svn log`"""
    revision: int
    author: str
    date: Optional[datetime]
    message: str


class SubversionClient:
    """Thin wrapper around the `svn` command line client"""

    def __init__(self, config: RepositoryConfig):
        """Initialize client

        Args:
            config: Repository settings (url, credentials, executable)
        """
        self.config = config

    def url_for(self, repository_path: str = "") -> str:
        """Build a full repository URL for a path inside the repository"""
        base = self.config.url.rstrip("/")
        repository_path = (repository_path or "").strip("/")
        return f"{base}/{repository_path}" if repository_path else base

    def head_revision(self, repository_path: str = "") -> int:
        """Get the HEAD revision number of the repository

        Returns:
            HEAD revision
        """
        output = self._run(["info", "--show-item", "revision", self.url_for(repository_path)])
        try:
            return int(output.strip())
        except ValueError:
            raise SourceControlError(f"Unexpected revision output: {output.strip()!r}")

    def export(self, repository_path: str, destination: Path, revision: Optional[int] = None) -> Path:
        """Export a repository path to a local folder

        Args:
            repository_path: Path inside the repository
            destination: Local destination (must not exist yet, or is overwritten)
            revision: Revision to export (HEAD when omitted)

        Returns:
            Destination path
        """
        args = ["export", "--force"]
        if revision is not None:
            args += ["-r", str(revision)]
        args += [self.url_for(repository_path), str(destination)]
        self._run(args)
        return destination

    def log(self, repository_path: str, start: int, end: int) -> List[LogEntry]:
        """Get log entries for an inclusive revision range"""
        output = self._run(["log", "--xml", "-r", f"{start}:{end}", self.url_for(repository_path)])
        return parse_log_xml(output)

    def _run(self, args: List[str]) -> str:
        cmd = [self.config.executable, "--non-interactive"]
        if self.config.username:
            cmd += ["--username", self.config.username]
        if self.config.password:
            cmd += ["--password", self.config.password]
        cmd += args

        logger.debug("svn %s", " ".join(args))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError:
            raise SourceControlError(f"Subversion client not found: {self.config.executable}")
        except subprocess.CalledProcessError as e:
            raise SourceControlError(f"svn {args[0]} failed: {(e.stderr or '').strip()}")

        return result.stdout


def parse_log_xml(text: str) -> List[LogEntry]:
    """Parse `svn log --xml` output"""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise SourceControlError(f"Unreadable svn log output: {e}")

    entries = []
    for node in root.findall("logentry"):
        date_text = node.findtext("date")
        date = None
        if date_text:
            try:
                date = datetime.strptime(date_text[:19], "%Y-%m-%dT%H:%M:%S")
            except ValueError:
                date = None
        entries.append(LogEntry(
            revision=int(node.get("revision", "0")),
            author=node.findtext("author") or "",
            date=date,
            message=(node.findtext("msg") or "").strip(),
        ))
    return entries
