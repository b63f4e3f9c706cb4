"""Priority queue of pending tasks."""

from __future__ import annotations

import heapq
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .keys import Key
from .messages import ExternalMsg, InternalMsg

KEY_PRIORITY = 0
LISTING_PRIORITY = 1
PIPE_PRIORITY = 2


@dataclass(frozen=True, slots=True)
class Task:
    """A message scheduled for processing.

    Tasks with a smaller ``priority`` are processed first. Tasks sharing a
    priority are processed in the order they were enqueued.
    """

    priority: int
    msg: InternalMsg | ExternalMsg
    key: Key | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class TaskQueue:
    """Thread-safe min-heap ordered by ``(priority, enqueue order)``.

    Any number of producer threads may call :meth:`push`; a single consumer
    drains it with :meth:`pop`.
    """

    def __init__(self) -> None:
        self._heap: list[tuple[int, int, Task]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def push(self, task: Task) -> None:
        with self._lock:
            heapq.heappush(self._heap, (task.priority, next(self._counter), task))

    def pop(self) -> Task | None:
        with self._lock:
            if not self._heap:
                return None
            return heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        with self._lock:
            return len(self._heap)

    def __bool__(self) -> bool:
        return len(self) > 0

    def pending(self) -> list[Task]:
        """Return a snapshot of queued tasks in processing order."""

        with self._lock:
            return [item[2] for item in sorted(self._heap)]
