"""The application state and the handlers that evolve it."""

from __future__ import annotations

import logging
import os
from collections import deque
from pathlib import Path
from typing import Callable

from . import effects
from . import messages as msgs
from .config import Config, Mode
from .filters import FilterSet, NodeFilterFromInput, NodeFilterRule
from .keys import Key
from .messages import Command, ExternalMsg, InternalMsg
from .models import Entry, Listing, Log, LogLevel
from .pipe import Session
from .scheduler import KEY_PRIORITY, Task, TaskQueue

logger = logging.getLogger(__name__)


class DirpilotError(RuntimeError):
    """Raised when dirpilot encounters an unrecoverable state."""


class Terminated(DirpilotError):
    """Raised by the ``Terminate`` command to stop the session."""

    def __init__(self) -> None:
        super().__init__("terminated")


def _parse_index(text: str | None) -> int | None:
    if text is None:
        return None
    digits = text[1:] if text.startswith("+") else text
    if not digits or not digits.isascii() or not digits.isdigit():
        return None
    return int(digits)


class App:
    """Owns the session state and applies queued messages to it.

    Exactly one task is applied per :meth:`step`. Producers running on other
    threads may only :meth:`enqueue`; every other method belongs to the thread
    driving the loop.
    """

    def __init__(self, config: Config, pwd: str | os.PathLike[str], session: Session) -> None:
        self.config = config
        self.pwd = os.path.abspath(pwd)
        self.session = session
        self.directory_buffers: dict[str, Listing] = {}
        self.tasks = TaskQueue()
        self.selection: list[Entry] = []
        self.msg_out: deque[effects.Effect] = deque()
        self.mode: Mode = config.mode("default") or Mode(name="default")
        self.input_buffer: str | None = None
        self.filters = FilterSet.default(config.general.show_hidden)
        self.logs: list[Log] = []

    @classmethod
    def create(
        cls,
        config: Config,
        path: str | os.PathLike[str] = ".",
        *,
        runtime_dir: Path | None = None,
    ) -> "App":
        """Start a session rooted at ``path`` (or its parent, for a file)."""

        pwd = Path(path).expanduser().resolve(strict=False)
        if pwd.is_file():
            pwd = pwd.parent
        session = Session.create(runtime_dir=runtime_dir)
        return cls(config, pwd, session)

    # ------------------------------------------------------------------
    # Scheduling

    def enqueue(self, task: Task) -> "App":
        self.tasks.push(task)
        return self

    def step(self) -> "App":
        """Apply the next queued task, if any.

        Raises:
            Terminated: the task was a ``Terminate`` command.
        """

        task = self.tasks.pop()
        if task is None:
            return self
        logger.debug("Applying %r (priority %d)", task.msg, task.priority)
        if isinstance(task.msg, InternalMsg):
            self.handle_internal(task.msg)
        else:
            self.handle_external(task.msg, task.key)
        return self

    def settle(self) -> "App":
        """Apply queued tasks until none remain."""

        while self.tasks:
            self.step()
        return self

    def handle_internal(self, msg: InternalMsg) -> None:
        if isinstance(msg, msgs.AddDirectory):
            self.add_directory(msg.parent, msg.listing)
        elif isinstance(msg, msgs.HandleKey):
            self.handle_key(msg.key)
        else:
            raise TypeError(f"Unhandled internal message {msg!r}")

    def handle_external(self, msg: ExternalMsg, key: Key | None = None) -> None:
        handler = _EXTERNAL_HANDLERS.get(type(msg))
        if handler is None:
            raise TypeError(f"Unhandled external message {msg!r}")
        handler(self, msg, key)

    def handle_key(self, key: Key) -> None:
        for msg in self.mode.key_bindings.resolve(key):
            self.enqueue(Task(KEY_PRIORITY, msg, key))

    # ------------------------------------------------------------------
    # Queries

    def directory_buffer(self) -> Listing | None:
        return self.directory_buffers.get(self.pwd)

    def focused_node(self) -> Entry | None:
        listing = self.directory_buffer()
        return listing.focused_entry() if listing is not None else None

    def pop_msg_out(self) -> effects.Effect | None:
        return self.msg_out.popleft() if self.msg_out else None

    def result(self) -> list[Entry]:
        """Return the selection, else the focused entry, else nothing."""

        if self.selection:
            return list(self.selection)
        focused = self.focused_node()
        return [focused] if focused is not None else []

    def result_str(self) -> str:
        return "\n".join(entry.absolute_path for entry in self.result())

    def refresh_selection(self) -> "App":
        """Drop selected entries whose paths no longer exist."""

        self.selection = [entry for entry in self.selection if os.path.lexists(entry.absolute_path)]
        return self

    # ------------------------------------------------------------------
    # Handlers

    def _redraw(self) -> None:
        self.msg_out.append(effects.Refresh())

    def add_directory(self, parent: str, listing: Listing) -> None:
        self.directory_buffers[parent] = listing
        self._redraw()

    def explore(self) -> None:
        self.msg_out.append(effects.Explore())

    def refresh(self) -> None:
        self._redraw()

    def clear_screen(self) -> None:
        self.msg_out.append(effects.ClearScreen())

    def _move_focus(self, target: Callable[[Listing], int]) -> None:
        listing = self.directory_buffer()
        if listing is None:
            return
        listing.focus = max(0, min(target(listing), listing.last_index))
        self._redraw()

    def focus_first(self) -> None:
        self._move_focus(lambda listing: 0)

    def focus_last(self) -> None:
        self._move_focus(lambda listing: listing.last_index)

    def focus_next(self) -> None:
        self.focus_next_by_relative_index(1)

    def focus_previous(self) -> None:
        self.focus_previous_by_relative_index(1)

    def focus_next_by_relative_index(self, index: int) -> None:
        self._move_focus(lambda listing: listing.focus + index)

    def focus_previous_by_relative_index(self, index: int) -> None:
        self._move_focus(lambda listing: listing.focus - index)

    def focus_next_by_relative_index_from_input(self) -> None:
        index = _parse_index(self.input_buffer)
        if index is not None:
            self.focus_next_by_relative_index(index)

    def focus_previous_by_relative_index_from_input(self) -> None:
        index = _parse_index(self.input_buffer)
        if index is not None:
            self.focus_previous_by_relative_index(index)

    def focus_by_index(self, index: int) -> None:
        self._move_focus(lambda listing: index)

    def focus_by_index_from_input(self) -> None:
        index = _parse_index(self.input_buffer)
        if index is not None:
            self.focus_by_index(index)

    def focus_by_file_name(self, name: str) -> None:
        listing = self.directory_buffer()
        if listing is None:
            return
        index = listing.index_of(name)
        if index is not None:
            listing.focus = index
            self._redraw()

    def focus_path(self, path: str) -> None:
        parent, name = os.path.split(path.rstrip(os.sep) or path)
        if not name:
            return
        if parent:
            self.change_directory(parent)
        self.focus_by_file_name(name)

    def focus_path_from_input(self) -> None:
        if self.input_buffer is not None:
            self.focus_path(self.input_buffer)

    def change_directory(self, path: str) -> None:
        target = os.path.normpath(os.path.join(self.pwd, os.path.expanduser(path)))
        if os.path.isdir(target):
            self.pwd = target
            self._redraw()

    def enter(self) -> None:
        focused = self.focused_node()
        if focused is not None:
            self.change_directory(focused.absolute_path)

    def back(self) -> None:
        parent = os.path.dirname(self.pwd)
        if parent and parent != self.pwd:
            self.change_directory(parent)

    def buffer_input(self, text: str) -> None:
        self.input_buffer = (self.input_buffer or "") + text
        self._redraw()

    def buffer_input_from_key(self, key: Key | None) -> None:
        char = key.to_char() if key is not None else None
        if char is not None:
            self.buffer_input(char)

    def set_input_buffer(self, text: str) -> None:
        self.input_buffer = text
        self._redraw()

    def reset_input_buffer(self) -> None:
        self.input_buffer = None
        self._redraw()

    def switch_mode(self, name: str) -> None:
        mode = self.config.mode(name)
        if mode is None:
            return
        self.input_buffer = None
        self.mode = mode
        self._redraw()

    def call(self, command: Command) -> None:
        self.msg_out.append(effects.Call(command))

    def select(self) -> None:
        focused = self.focused_node()
        if focused is not None:
            self.selection.append(focused)
            self._redraw()

    def un_select(self) -> None:
        focused = self.focused_node()
        if focused is not None:
            self.selection = [entry for entry in self.selection if entry != focused]
            self._redraw()

    def toggle_selection(self) -> None:
        focused = self.focused_node()
        if focused is None:
            return
        if focused in self.selection:
            self.un_select()
        else:
            self.select()

    def clear_selection(self) -> None:
        self.selection.clear()
        self._redraw()

    def add_node_filter(self, rule: NodeFilterRule) -> None:
        self.filters.add(rule)
        self._redraw()

    def add_node_filter_from_input(self, rule: NodeFilterFromInput) -> None:
        if self.input_buffer is not None:
            self.add_node_filter(rule.with_input(self.input_buffer))

    def remove_node_filter(self, rule: NodeFilterRule) -> None:
        self.filters.remove(rule)
        self._redraw()

    def toggle_node_filter(self, rule: NodeFilterRule) -> None:
        self.filters.toggle(rule)
        self._redraw()

    def reset_node_filters(self) -> None:
        self.filters.reset(self.config.general.show_hidden)
        self._redraw()

    def log(self, level: LogLevel, message: str) -> None:
        self.logs.append(Log(level, message))

    def print_result_and_quit(self) -> None:
        self.msg_out.append(effects.PrintResultAndQuit())

    def print_app_state_and_quit(self) -> None:
        self.msg_out.append(effects.PrintAppStateAndQuit())

    def debug(self, path: str) -> None:
        self.msg_out.append(effects.Debug(path))

    def terminate(self) -> None:
        raise Terminated()


_Handler = Callable[[App, ExternalMsg, Key | None], None]

_EXTERNAL_HANDLERS: dict[type[ExternalMsg], _Handler] = {
    msgs.Explore: lambda app, msg, key: app.explore(),
    msgs.Refresh: lambda app, msg, key: app.refresh(),
    msgs.ClearScreen: lambda app, msg, key: app.clear_screen(),
    msgs.FocusFirst: lambda app, msg, key: app.focus_first(),
    msgs.FocusLast: lambda app, msg, key: app.focus_last(),
    msgs.FocusNext: lambda app, msg, key: app.focus_next(),
    msgs.FocusNextByRelativeIndex: lambda app, msg, key: app.focus_next_by_relative_index(msg.index),
    msgs.FocusNextByRelativeIndexFromInput: lambda app, msg, key: app.focus_next_by_relative_index_from_input(),
    msgs.FocusPrevious: lambda app, msg, key: app.focus_previous(),
    msgs.FocusPreviousByRelativeIndex: lambda app, msg, key: app.focus_previous_by_relative_index(msg.index),
    msgs.FocusPreviousByRelativeIndexFromInput: (
        lambda app, msg, key: app.focus_previous_by_relative_index_from_input()
    ),
    msgs.FocusPath: lambda app, msg, key: app.focus_path(msg.path),
    msgs.FocusPathFromInput: lambda app, msg, key: app.focus_path_from_input(),
    msgs.FocusByIndex: lambda app, msg, key: app.focus_by_index(msg.index),
    msgs.FocusByIndexFromInput: lambda app, msg, key: app.focus_by_index_from_input(),
    msgs.FocusByFileName: lambda app, msg, key: app.focus_by_file_name(msg.name),
    msgs.ChangeDirectory: lambda app, msg, key: app.change_directory(msg.path),
    msgs.Enter: lambda app, msg, key: app.enter(),
    msgs.Back: lambda app, msg, key: app.back(),
    msgs.BufferInput: lambda app, msg, key: app.buffer_input(msg.text),
    msgs.BufferInputFromKey: lambda app, msg, key: app.buffer_input_from_key(key),
    msgs.SetInputBuffer: lambda app, msg, key: app.set_input_buffer(msg.text),
    msgs.ResetInputBuffer: lambda app, msg, key: app.reset_input_buffer(),
    msgs.SwitchMode: lambda app, msg, key: app.switch_mode(msg.mode),
    msgs.Call: lambda app, msg, key: app.call(msg.command),
    msgs.Select: lambda app, msg, key: app.select(),
    msgs.UnSelect: lambda app, msg, key: app.un_select(),
    msgs.ToggleSelection: lambda app, msg, key: app.toggle_selection(),
    msgs.ClearSelection: lambda app, msg, key: app.clear_selection(),
    msgs.AddNodeFilter: lambda app, msg, key: app.add_node_filter(msg.filter),
    msgs.RemoveNodeFilter: lambda app, msg, key: app.remove_node_filter(msg.filter),
    msgs.ToggleNodeFilter: lambda app, msg, key: app.toggle_node_filter(msg.filter),
    msgs.AddNodeFilterFromInput: lambda app, msg, key: app.add_node_filter_from_input(msg.filter),
    msgs.ResetNodeFilters: lambda app, msg, key: app.reset_node_filters(),
    msgs.LogInfo: lambda app, msg, key: app.log(LogLevel.INFO, msg.message),
    msgs.LogSuccess: lambda app, msg, key: app.log(LogLevel.SUCCESS, msg.message),
    msgs.LogError: lambda app, msg, key: app.log(LogLevel.ERROR, msg.message),
    msgs.PrintResultAndQuit: lambda app, msg, key: app.print_result_and_quit(),
    msgs.PrintAppStateAndQuit: lambda app, msg, key: app.print_app_state_and_quit(),
    msgs.Debug: lambda app, msg, key: app.debug(msg.path),
    msgs.Terminate: lambda app, msg, key: app.terminate(),
}
