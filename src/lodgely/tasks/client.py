"""Tasks client: hands tasks to the worker, at most once per task_id.

TASKS_BACKEND selects the transport:
- inline (default): the task is only recorded in memory (dev/tests)
- http: the task is POSTed to the worker service (see http_backend)
"""

import os
from dataclasses import dataclass, field
from typing import Any

BACKENDS: tuple[str, ...] = ("inline", "http")


@dataclass(frozen=True)
class QueuedTask:
    task_id: str
    url_path: str
    payload: dict[str, Any] = field(default_factory=dict)
    correlation_id: str | None = None


class TasksClient:
    """Idempotent by task_id: a task_id that was handed over is never sent again.

    A task the http backend failed to deliver is not remembered, so the
    same task_id may be retried.
    """

    def __init__(self, backend: str | None = None) -> None:
        self.backend = backend or os.environ.get("TASKS_BACKEND", "inline")
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown TASKS_BACKEND: {self.backend}")
        self._handed_over: set[str] = set()
        self._queued: list[QueuedTask] = []

    def enqueue_http(
        self,
        task_id: str,
        url_path: str,
        payload: dict[str, Any],
        correlation_id: str | None = None,
    ) -> bool:
        """Hand a task to the worker endpoint ``url_path``.

        Returns:
            True if the task was handed over now, False if the task_id was
            already handed over or the backend refused it.
        """
        if task_id in self._handed_over:
            return False

        task = QueuedTask(task_id, url_path, payload, correlation_id)
        if self.backend == "http":
            from lodgely.tasks.http_backend import post_task

            sent = post_task(task)
        else:
            self._queued.append(task)
            sent = True

        if sent:
            self._handed_over.add(task_id)
        return sent

    def was_enqueued(self, task_id: str) -> bool:
        return task_id in self._handed_over

    def queued_tasks(self) -> list[QueuedTask]:
        """Tasks recorded by the inline backend."""
        return list(self._queued)

    def clear(self) -> None:
        self._handed_over.clear()
        self._queued.clear()
