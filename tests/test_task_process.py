"""Tests for the task process and built-in tasks."""

import sys
import xml.etree.ElementTree as ET

import pytest

from release_engine.core.task_process import Task, TaskProcess, TaskRegistry
from release_engine.exceptions import DescriptorInvalidError, TaskProcessError
from release_engine.models.context import BuildContext

from .conftest import FakeSourceControl


def _process(xml, **resources):
    process = TaskProcess(**resources)
    process.initialize(ET.fromstring(f"<TaskProcess>{xml}</TaskProcess>"))
    return process


@pytest.fixture
def context(tmp_path):
    zip_folder = tmp_path / "zip"
    zip_folder.mkdir()
    return BuildContext(
        application="WIDGETS",
        version=500,
        root_folder=tmp_path,
        log_dir=tmp_path / "_Logs",
        log_prefix="attempt",
        launch_user="alice",
        zip_folder=zip_folder,
    )


class TestInitialize:
    """Test building the task list."""

    def test_missing_node_is_empty_process(self):
        process = TaskProcess()
        process.initialize(None)
        assert process.tasks == []

    def test_unknown_task_type(self):
        with pytest.raises(DescriptorInvalidError, match="Unknown task type"):
            _process('<Task Type="Teleport"/>')

    def test_missing_required_attribute(self):
        with pytest.raises(DescriptorInvalidError, match="Source"):
            _process('<Task Type="Copy" Destination="out"/>')

    def test_unexpected_element(self):
        with pytest.raises(DescriptorInvalidError):
            _process("<Step/>")

    @pytest.mark.asyncio
    async def test_invoke_before_initialize(self, context):
        with pytest.raises(TaskProcessError):
            await TaskProcess().invoke(context)

    @pytest.mark.asyncio
    async def test_empty_process(self, context):
        assert await _process("").invoke(context) == []


class TestBuiltinTasks:
    """Test the Copy, Command and Export tasks."""

    @pytest.mark.asyncio
    async def test_copy_with_placeholders(self, tmp_path, context):
        (tmp_path / "bin").mkdir()
        (tmp_path / "bin" / "app.dll").write_text("binary")

        outcomes = await _process(
            '<Task Type="Copy" Name="Binaries" Source="bin" Destination="${zip}/${app}"/>'
        ).invoke(context)

        assert (tmp_path / "zip" / "WIDGETS" / "app.dll").read_text() == "binary"
        assert outcomes[0].name == "Binaries"

    @pytest.mark.asyncio
    async def test_copy_missing_source(self, context):
        with pytest.raises(TaskProcessError, match="Source not found"):
            await _process('<Task Type="Copy" Source="nothing" Destination="out"/>').invoke(context)

    @pytest.mark.asyncio
    async def test_command_success(self, tmp_path, context):
        xml = (
            f'<Task Type="Command" Executable="{sys.executable}">'
            "<Arg>-c</Arg><Arg>open('marker.txt', 'w').write('${version}')</Arg>"
            "</Task>"
        )
        await _process(xml).invoke(context)

        assert (tmp_path / "marker.txt").read_text() == "500"

    @pytest.mark.asyncio
    async def test_command_failure_aborts_process(self, tmp_path, context):
        xml = (
            f'<Task Type="Command" Name="Fail" Executable="{sys.executable}">'
            "<Arg>-c</Arg><Arg>import sys; sys.exit(3)</Arg></Task>"
            '<Task Type="Copy" Source="." Destination="never"/>'
        )
        with pytest.raises(TaskProcessError) as exc_info:
            await _process(xml).invoke(context)

        assert exc_info.value.task_name == "Fail"
        assert not (tmp_path / "never").exists()

    @pytest.mark.asyncio
    async def test_command_not_found(self, context):
        with pytest.raises(TaskProcessError, match="Cannot start"):
            await _process('<Task Type="Command" Executable="no-such-program-xyz"/>').invoke(context)

    @pytest.mark.asyncio
    async def test_export(self, tmp_path, context):
        source_control = FakeSourceControl()

        await _process(
            '<Task Type="Export" RepositoryPath="trunk/${app}" Destination="${zip}/src"/>',
            source_control=source_control,
        ).invoke(context)

        assert source_control.exports == [("trunk/WIDGETS", tmp_path / "zip" / "src", 500)]


class TestTaskRegistry:
    """Test registering custom task types."""

    @pytest.mark.asyncio
    async def test_custom_task(self, context):
        seen = []

        class RecordTask(Task):
            type_name = "Record"

            async def run(self, ctx):
                seen.append(ctx.version)

        registry = TaskRegistry.default().copy()
        registry.register(RecordTask)
        process = TaskProcess(registry)
        process.initialize(ET.fromstring('<TaskProcess><Task Type="Record"/></TaskProcess>'))
        await process.invoke(context)

        assert seen == [500]
        assert "Record" not in TaskRegistry.default().type_names

    @pytest.mark.asyncio
    async def test_unexpected_task_exception_becomes_task_error(self, context):
        """Any exception a task raises aborts the process as a TaskProcessError."""
        class BrokenTask(Task):
            type_name = "Broken"

            async def run(self, ctx):
                raise ValueError("bad input")

        registry = TaskRegistry.default().copy()
        registry.register(BrokenTask)
        process = TaskProcess(registry)
        process.initialize(ET.fromstring('<TaskProcess><Task Type="Broken" Name="Explode"/></TaskProcess>'))

        with pytest.raises(TaskProcessError, match="ValueError: bad input") as exc_info:
            await process.invoke(context)

        assert exc_info.value.task_name == "Explode"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_register_without_type_name(self):
        class Nameless(Task):
            async def run(self, ctx):
                pass

        with pytest.raises(ValueError):
            TaskRegistry().register(Nameless)
