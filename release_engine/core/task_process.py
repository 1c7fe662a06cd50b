"""Task process: an XML-declared, ordered list of build or deploy tasks"""

import logging
import string
import time
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Type

from ..exceptions import DescriptorInvalidError, ReleaseEngineError, TaskProcessError
from ..models.context import TaskContext

logger = logging.getLogger(__name__)


def render(value: Optional[str], context: TaskContext) -> Optional[str]:
    """Substitute ``${name}`` placeholders from the context variables"""
    if value is None:
        return None
    return string.Template(value).safe_substitute(context.variables())


class Task(ABC):
    """Base class for all task types"""

    type_name: ClassVar[str] = ""

    def __init__(self, element: ET.Element, resources: Dict[str, Any]):
        """
        Args:
            element: The <Task> element declaring this task
            resources: Shared collaborators (source control, database gateway, ...)
        """
        self.element = element
        self.resources = resources
        self.name = element.get("Name") or self.type_name
        self.configure(element)

    def configure(self, element: ET.Element) -> None:
        """Read task attributes; raise DescriptorInvalidError on bad input"""
        pass

    def require(self, attribute: str) -> str:
        value = self.element.get(attribute)
        if not value:
            raise DescriptorInvalidError(
                f"Task '{self.name}' ({self.type_name}) requires attribute {attribute}"
            )
        return value

    @abstractmethod
    async def run(self, context: TaskContext) -> None:
        """Execute the task; raise TaskProcessError on failure"""
        pass


class TaskRegistry:
    """Maps the Type attribute of a <Task> to its implementation"""

    def __init__(self):
        self._tasks: Dict[str, Type[Task]] = {}

    def register(self, task_class: Type[Task]) -> Type[Task]:
        if not task_class.type_name:
            raise ValueError(f"{task_class.__name__} has no type_name")
        if task_class.type_name in self._tasks:
            logger.debug("Task type %s already registered, replacing", task_class.type_name)
        self._tasks[task_class.type_name] = task_class
        return task_class

    def get(self, type_name: str) -> Optional[Type[Task]]:
        return self._tasks.get(type_name)

    @property
    def type_names(self) -> List[str]:
        return sorted(self._tasks)

    def copy(self) -> 'TaskRegistry':
        registry = TaskRegistry()
        registry._tasks = dict(self._tasks)
        return registry

    @classmethod
    def default(cls) -> 'TaskRegistry':
        """Registry with the built-in task types"""
        from .tasks import CommandTask, CopyTask, ExportTask

        registry = cls()
        for task_class in (CommandTask, CopyTask, ExportTask):
            registry.register(task_class)
        return registry


@dataclass
class TaskOutcome:
    """Outcome of a single task"""
    name: str
    type_name: str
    duration: float


class TaskProcess:
    """Ordered task list built from a <TaskProcess> element.

    Usage: ``initialize(node)`` then ``await invoke(context)``.
    """

    def __init__(self, registry: Optional[TaskRegistry] = None, **resources):
        self.registry = registry or TaskRegistry.default()
        self.resources = resources
        self.tasks: List[Task] = []
        self._initialized = False

    def initialize(self, node: Optional[ET.Element]) -> None:
        """Build the task list from a <TaskProcess> element

        A missing node yields an empty process.

        Raises:
            DescriptorInvalidError: Unknown task type or bad attributes
        """
        self.tasks = []
        if node is not None:
            for element in node:
                if element.tag != "Task":
                    raise DescriptorInvalidError(f"Unexpected element <{element.tag}> in TaskProcess")
                type_name = element.get("Type")
                task_class = self.registry.get(type_name or "")
                if task_class is None:
                    raise DescriptorInvalidError(
                        f"Unknown task type {type_name!r} "
                        f"(known: {', '.join(self.registry.type_names)})"
                    )
                self.tasks.append(task_class(element, self.resources))
        self._initialized = True

    async def invoke(self, context: TaskContext) -> List[TaskOutcome]:
        """Run all tasks in order; the first failure aborts the process

        Raises:
            TaskProcessError: If a task fails
        """
        if not self._initialized:
            raise TaskProcessError("Task process invoked before initialize()")

        if not self.tasks:
            logger.info("Task process has no tasks")
            return []

        outcomes = []
        for index, task in enumerate(self.tasks, 1):
            logger.info("[%d/%d] %s (%s)", index, len(self.tasks), task.name, task.type_name)
            started = time.monotonic()
            try:
                await task.run(context)
            except TaskProcessError:
                raise
            except ReleaseEngineError as e:
                raise TaskProcessError(str(e), task.name) from e
            except OSError as e:
                raise TaskProcessError(str(e), task.name) from e
            except Exception as e:
                raise TaskProcessError(f"{type(e).__name__}: {e}", task.name) from e
            outcomes.append(TaskOutcome(task.name, task.type_name, time.monotonic() - started))

        logger.info("Task process completed (%d tasks)", len(outcomes))
        return outcomes
