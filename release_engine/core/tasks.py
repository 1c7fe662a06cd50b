"""Built-in task types"""

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from ..constants import ENV_TASK_PREFIX
from ..exceptions import DescriptorInvalidError, SourceControlError, TaskProcessError
from ..models.context import TaskContext
from .task_process import Task, render

logger = logging.getLogger(__name__)


def _resolve(path: str, context: TaskContext) -> Path:
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = context.root_folder / resolved
    return resolved


class CommandTask(Task):
    """Run an external program.

    <Task Type="Command" Name="Compile" Executable="make" WorkingDirectory="${root}" Timeout="600">
        <Arg>release</Arg>
    </Task>
    """

    type_name = "Command"

    def configure(self, element) -> None:
        self.executable = self.require("Executable")
        self.args: List[str] = [(arg.text or "") for arg in element.findall("Arg")]
        self.working_directory: Optional[str] = element.get("WorkingDirectory")
        timeout = element.get("Timeout")
        try:
            self.timeout = float(timeout) if timeout else None
        except ValueError:
            raise DescriptorInvalidError(f"Task '{self.name}' has invalid Timeout {timeout!r}")

    def _environment(self, context: TaskContext) -> dict:
        env = os.environ.copy()
        for key, value in context.variables().items():
            env[f"{ENV_TASK_PREFIX}{key.upper()}"] = value
        return env

    async def run(self, context: TaskContext) -> None:
        cmd = [render(self.executable, context)] + [render(a, context) for a in self.args]
        cwd = _resolve(render(self.working_directory, context), context) if self.working_directory \
            else context.root_folder

        logger.info("Running: %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd),
                env=self._environment(context),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT
            )
        except OSError as e:
            raise TaskProcessError(f"Cannot start {cmd[0]}: {e}", self.name)

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise TaskProcessError(f"Timed out after {self.timeout:g}s", self.name)

        for line in (stdout or b"").decode(errors="replace").splitlines():
            logger.info("  %s", line)

        if process.returncode != 0:
            raise TaskProcessError(f"{cmd[0]} exited with status {process.returncode}", self.name)


class CopyTask(Task):
    """Copy a file or folder.

    <Task Type="Copy" Source="bin" Destination="${zip}/bin"/>
    """

    type_name = "Copy"

    def configure(self, element) -> None:
        self.source = self.require("Source")
        self.destination = self.require("Destination")

    async def run(self, context: TaskContext) -> None:
        source = _resolve(render(self.source, context), context)
        destination = _resolve(render(self.destination, context), context)

        if not source.exists():
            raise TaskProcessError(f"Source not found: {source}", self.name)

        logger.info("Copying %s to %s", source, destination)
        loop = asyncio.get_running_loop()
        if source.is_dir():
            await loop.run_in_executor(
                None, lambda: shutil.copytree(source, destination, dirs_exist_ok=True)
            )
        else:
            destination.parent.mkdir(parents=True, exist_ok=True)
            await loop.run_in_executor(None, shutil.copy2, source, destination)


class ExportTask(Task):
    """Export a repository path at the context version.

    <Task Type="Export" RepositoryPath="trunk/Widgets/Web" Destination="${zip}/Web"/>
    """

    type_name = "Export"

    def configure(self, element) -> None:
        self.repository_path = self.require("RepositoryPath")
        self.destination = self.require("Destination")

    async def run(self, context: TaskContext) -> None:
        source_control = self.resources.get("source_control")
        if source_control is None:
            raise TaskProcessError("No source control client available", self.name)

        repository_path = render(self.repository_path, context)
        destination = _resolve(render(self.destination, context), context)
        destination.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Exporting %s@%d to %s", repository_path, context.version, destination)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, source_control.export, repository_path, destination, context.version
            )
        except SourceControlError as e:
            raise TaskProcessError(str(e), self.name)
