"""File-backed channels shared with external processes."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .messages import ExternalMsg, MessageError, parse_line

if TYPE_CHECKING:
    from .app import App

logger = logging.getLogger(__name__)

_READ_LOCK = threading.Lock()


def default_runtime_dir() -> Path:
    """Return the base directory for per-process session files."""

    return Path(os.environ.get("XDG_RUNTIME_DIR") or "/tmp")


@dataclass(frozen=True, slots=True)
class Pipe:
    """Paths of the inbound message file and the outbound snapshot files."""

    msg_in: Path
    focus_out: Path
    selection_out: Path
    mode_out: Path

    @classmethod
    def from_session_path(cls, session_path: Path) -> "Pipe":
        """Create (or truncate) the pipe files under ``session_path``."""

        pipes_dir = Path(session_path) / "pipe"
        pipes_dir.mkdir(parents=True, exist_ok=True)
        pipe = cls(
            msg_in=pipes_dir / "msg_in",
            focus_out=pipes_dir / "focus_out",
            selection_out=pipes_dir / "selection_out",
            mode_out=pipes_dir / "mode_out",
        )
        for path in pipe.paths():
            path.write_text("")
        return pipe

    def paths(self) -> tuple[Path, ...]:
        return (self.msg_in, self.focus_out, self.selection_out, self.mode_out)

    def read_messages(self) -> list[ExternalMsg]:
        """Consume ``msg_in`` and return the messages it held.

        Blank lines and lines starting with ``#`` are ignored. Lines that do
        not parse are logged and skipped.
        """

        try:
            with _READ_LOCK, self.msg_in.open("r+", encoding="utf-8") as handle:
                content = handle.read()
                if not content:
                    return []
                handle.seek(0)
                handle.truncate()
        except FileNotFoundError:
            return []

        messages: list[ExternalMsg] = []
        for line in content.splitlines():
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            try:
                messages.append(parse_line(text))
            except MessageError as exc:
                logger.warning("Ignoring message %r from %s: %s", text, self.msg_in, exc)
        return messages

    def write_snapshot(self, app: "App") -> None:
        """Overwrite the outbound files with the focus, selection and mode."""

        focused = app.focused_node()
        self.focus_out.write_text(focused.absolute_path if focused is not None else "", encoding="utf-8")
        self.selection_out.write_text(
            "\n".join(entry.absolute_path for entry in app.selection),
            encoding="utf-8",
        )
        self.mode_out.write_text(app.mode.name, encoding="utf-8")


@dataclass(frozen=True, slots=True)
class Session:
    """Identity and IPC files of one running instance."""

    pid: int
    path: Path
    pipe: Pipe

    @classmethod
    def create(cls, *, runtime_dir: Path | None = None, pid: int | None = None) -> "Session":
        pid = os.getpid() if pid is None else pid
        base = runtime_dir if runtime_dir is not None else default_runtime_dir()
        path = Path(base) / "dirpilot" / "session" / str(pid)
        return cls(pid=pid, path=path, pipe=Pipe.from_session_path(path))


class PipeWatcher(threading.Thread):
    """Background producer feeding ``msg_in`` lines to a callback."""

    def __init__(
        self,
        pipe: Pipe,
        deliver: Callable[[ExternalMsg], None],
        *,
        interval: float = 0.1,
    ) -> None:
        super().__init__(name="dirpilot-pipe-watcher", daemon=True)
        self.pipe = pipe
        self.deliver = deliver
        self.interval = interval
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.is_set():
            self.poll()
            self._stopped.wait(self.interval)

    def poll(self) -> int:
        messages = self.pipe.read_messages()
        for message in messages:
            self.deliver(message)
        return len(messages)

    def stop(self) -> None:
        self._stopped.set()
