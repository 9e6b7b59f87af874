"""Background tasks that plugins start by name and poll for results."""

from __future__ import annotations

import itertools
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass


@dataclass(frozen=True)
class HostResponse:
    """Base class of the answers the host gives to a plugin."""


@dataclass(frozen=True)
class Success(HostResponse):
    """Completed with nothing to return."""


@dataclass(frozen=True)
class Data(HostResponse):
    """Completed with binary data."""

    data: bytes


@dataclass(frozen=True)
class Text(HostResponse):
    """Completed with text."""

    text: str


@dataclass(frozen=True)
class HostError(HostResponse):
    """Failed with a message."""

    message: str


@dataclass(frozen=True)
class TaskPending(HostResponse):
    """The task is still running."""


class Task(ABC):
    """A unit of work that produces bytes."""

    @abstractmethod
    def run(self) -> bytes:
        """Do the work and return its result."""


TaskFactory = Callable[[str], Task]


class TaskError(RuntimeError):
    """A task could not be created."""


_task_ids = itertools.count(1)
_task_ids_lock = threading.Lock()


def _next_task_id() -> int:
    with _task_ids_lock:
        return next(_task_ids)


class TaskManager:
    """Creates tasks from registered factories and runs them in the background."""

    def __init__(self) -> None:
        self._registry: dict[str, TaskFactory] = {}
        self._statuses: dict[int, HostResponse] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(thread_name_prefix="kargo-task")

    def register_task(self, name: str, factory: TaskFactory) -> None:
        """Make ``factory`` the way to build tasks called ``name``."""
        self._registry[name] = factory

    def spawn_task(self, task_name: str, params: str) -> int:
        """Build the named task from ``params``, start it, and return its id."""
        factory = self._registry.get(task_name)
        if factory is None:
            raise TaskError(f"Task type not registered: {task_name}")
        try:
            task = factory(params)
        except Exception as exc:
            raise TaskError(f"Failed to create task: {task_name}") from exc

        task_id = _next_task_id()
        with self._lock:
            self._statuses[task_id] = TaskPending()
        self._executor.submit(self._execute, task_id, task)
        return task_id

    def _execute(self, task_id: int, task: Task) -> None:
        try:
            outcome: HostResponse = Data(bytes(task.run()))
        except Exception as exc:
            outcome = HostError(str(exc))
        with self._lock:
            self._statuses[task_id] = outcome

    def poll_task(self, task_id: int) -> HostResponse:
        """Pending, the task's data, or an error message."""
        with self._lock:
            status = self._statuses.get(task_id)
        if status is None:
            return HostError(f"Task not found: {task_id}")
        return status

    def close(self) -> None:
        """Wait for running tasks and stop accepting new ones."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> TaskManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()