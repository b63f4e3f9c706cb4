"""Directory listing producer."""

from __future__ import annotations

import logging
import os
import threading

from .filters import FilterSet
from .messages import AddDirectory
from .models import Entry, Listing
from .scheduler import LISTING_PRIORITY, Task, TaskQueue

logger = logging.getLogger(__name__)


def explore(parent: str, filters: FilterSet, *, focus_name: str | None = None) -> Listing:
    """Return the visible entries of ``parent`` sorted by relative path.

    The listing focuses ``focus_name`` when it is still present, otherwise the
    first entry. An unreadable directory yields an empty listing.
    """

    try:
        names = os.listdir(parent)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", parent, exc)
        names = []

    entries = filters.visible(Entry.from_path(parent, name) for name in names)
    entries.sort(key=lambda entry: entry.relative_path)
    listing = Listing(parent, tuple(entries))
    if focus_name is not None:
        listing.focus = listing.index_of(focus_name) or 0
    return listing


def explore_task(parent: str, filters: FilterSet, *, focus_name: str | None = None) -> Task:
    listing = explore(parent, filters, focus_name=focus_name)
    return Task(LISTING_PRIORITY, AddDirectory(parent, listing))


def explore_async(
    parent: str,
    filters: FilterSet,
    queue: TaskQueue,
    *,
    focus_name: str | None = None,
) -> threading.Thread:
    """Explore ``parent`` on a worker thread and enqueue the listing."""

    snapshot = filters.copy()

    def worker() -> None:
        queue.push(explore_task(parent, snapshot, focus_name=focus_name))

    thread = threading.Thread(target=worker, name=f"dirpilot-explore:{parent}", daemon=True)
    thread.start()
    return thread
