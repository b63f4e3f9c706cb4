"""Shared models and enums for dirpilot."""

from __future__ import annotations

import mimetypes
import os
import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


@dataclass(frozen=True, slots=True)
class Entry:
    """One filesystem path resolved relative to its parent directory.

    Equality is structural over every field. Ordering compares relative paths
    in reverse lexicographic order.
    """

    parent: str
    relative_path: str
    absolute_path: str
    extension: str = ""
    is_symlink: bool = False
    is_dir: bool = False
    is_file: bool = False
    is_readonly: bool = False
    mime_essence: str = ""

    @classmethod
    def from_path(cls, parent: str, relative_path: str) -> "Entry":
        """Build an entry by inspecting ``parent/relative_path`` on disk."""

        joined = os.path.join(parent, relative_path)
        absolute_path = os.path.realpath(joined)
        extension = os.path.splitext(absolute_path)[1].lstrip(".")

        try:
            is_symlink = stat.S_ISLNK(os.lstat(joined).st_mode)
        except OSError:
            is_symlink = False

        try:
            stat_result = os.stat(absolute_path)
        except OSError:
            is_dir = is_file = is_readonly = False
        else:
            is_dir = stat.S_ISDIR(stat_result.st_mode)
            is_file = stat.S_ISREG(stat_result.st_mode)
            is_readonly = stat_result.st_mode & 0o222 == 0

        mime, _ = mimetypes.guess_type(absolute_path, strict=False)

        return cls(
            parent=parent,
            relative_path=relative_path,
            absolute_path=absolute_path,
            extension=extension,
            is_symlink=is_symlink,
            is_dir=is_dir,
            is_file=is_file,
            is_readonly=is_readonly,
            mime_essence=mime or "",
        )

    def __lt__(self, other: "Entry") -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return other.relative_path < self.relative_path


@dataclass(slots=True)
class Listing:
    """Cached entries of one directory plus a focus cursor."""

    parent: str
    entries: tuple[Entry, ...] = ()
    focus: int = 0
    total: int = field(init=False)

    def __post_init__(self) -> None:
        self.entries = tuple(self.entries)
        self.total = len(self.entries)

    @property
    def last_index(self) -> int:
        return max(self.total, 1) - 1

    def focused_entry(self) -> Entry | None:
        if 0 <= self.focus < self.total:
            return self.entries[self.focus]
        return None

    def index_of(self, relative_path: str) -> int | None:
        for index, entry in enumerate(self.entries):
            if entry.relative_path == relative_path:
                return index
        return None


class LogLevel(str, Enum):
    """Severity of an application log entry."""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class Log:
    """Timestamped notification kept in the application state."""

    level: LogLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"[{self.created_at.isoformat()}] {self.level.value:<7} {self.message}"
