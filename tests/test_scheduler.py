from __future__ import annotations

import threading

from dirpilot.messages import FocusByIndex, FocusNext, LogInfo
from dirpilot.scheduler import Task, TaskQueue


def _drain(queue: TaskQueue) -> list[Task]:
    drained = []
    while (task := queue.pop()) is not None:
        drained.append(task)
    return drained


def test_lower_priority_value_first_and_fifo_within_priority() -> None:
    queue = TaskQueue()
    tasks = [
        Task(2, LogInfo("first-2")),
        Task(1, LogInfo("first-1")),
        Task(1, LogInfo("second-1")),
        Task(3, LogInfo("first-3")),
    ]
    for task in tasks:
        queue.push(task)

    order = [task.msg.message for task in _drain(queue)]

    assert order == ["first-1", "second-1", "first-2", "first-3"]


def test_fifo_does_not_depend_on_timestamps() -> None:
    queue = TaskQueue()
    later = Task(0, FocusByIndex(1))
    earlier = Task(0, FocusByIndex(2), created_at=later.created_at.replace(year=2000))
    queue.push(later)
    queue.push(earlier)

    assert [task.msg.index for task in _drain(queue)] == [1, 2]


def test_pop_on_empty_queue_returns_none() -> None:
    queue = TaskQueue()
    assert queue.pop() is None
    assert not queue
    assert len(queue) == 0


def test_pending_is_a_snapshot_in_processing_order() -> None:
    queue = TaskQueue()
    queue.push(Task(5, FocusNext()))
    queue.push(Task(0, LogInfo("urgent")))

    pending = queue.pending()

    assert [task.priority for task in pending] == [0, 5]
    assert len(queue) == 2


def test_concurrent_producers_lose_nothing() -> None:
    queue = TaskQueue()

    def produce(offset: int) -> None:
        for index in range(200):
            queue.push(Task(index % 3, FocusByIndex(offset + index)))

    threads = [threading.Thread(target=produce, args=(offset * 1000,)) for offset in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    drained = _drain(queue)

    assert len(drained) == 800
    priorities = [task.priority for task in drained]
    assert priorities == sorted(priorities)
    for producer in range(4):
        own = [
            task.msg.index
            for task in drained
            if producer * 1000 <= task.msg.index < (producer + 1) * 1000 and task.priority == 0
        ]
        assert own == sorted(own)
