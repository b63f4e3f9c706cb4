"""Executor loop: drains the engine and carries out its effects."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from rich.console import Console

from . import effects
from .app import App, Terminated
from .dump import dump_state, write_state
from .explorer import explore_async, explore_task
from .keys import Key
from .messages import ExternalMsg, HandleKey
from .models import LogLevel
from .pipe import PipeWatcher
from .scheduler import KEY_PRIORITY, PIPE_PRIORITY, Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """How a session ended: text to print and the process exit code."""

    exit_code: int
    output: str | None = None


def call_environment(app: App) -> dict[str, str]:
    """Return the environment exported to commands started by ``Call``."""

    focused = app.focused_node()
    listing = app.directory_buffer()
    pipe = app.session.pipe
    env = dict(os.environ)
    env.update(
        {
            "DIRPILOT_PID": str(app.session.pid),
            "DIRPILOT_SESSION_PATH": str(app.session.path),
            "DIRPILOT_PWD": app.pwd,
            "DIRPILOT_MODE": app.mode.name,
            "DIRPILOT_FOCUS_PATH": focused.absolute_path if focused is not None else "",
            "DIRPILOT_FOCUS_INDEX": str(listing.focus) if listing is not None else "",
            "DIRPILOT_INPUT_BUFFER": app.input_buffer or "",
            "DIRPILOT_SELECTION": "\n".join(entry.absolute_path for entry in app.selection),
            "DIRPILOT_RESULT": app.result_str(),
            "DIRPILOT_PIPE_MSG_IN": str(pipe.msg_in),
            "DIRPILOT_PIPE_FOCUS_OUT": str(pipe.focus_out),
            "DIRPILOT_PIPE_SELECTION_OUT": str(pipe.selection_out),
            "DIRPILOT_PIPE_MODE_OUT": str(pipe.mode_out),
        }
    )
    return env


class Runner:
    """Drive an :class:`App` until it asks to quit.

    Effects are carried out after every applied task, in the order the engine
    produced them. Exploration happens on a worker thread unless
    ``inline_explore`` is set, in which case the listing is built immediately.
    """

    def __init__(
        self,
        app: App,
        *,
        console: Console | None = None,
        render: Callable[[App], None] | None = None,
        inline_explore: bool = False,
        poll_interval: float = 0.05,
    ) -> None:
        self.app = app
        self.console = console or Console()
        self.render = render
        self.inline_explore = inline_explore
        self.poll_interval = poll_interval
        self._explorers: list[threading.Thread] = []

    def send(self, messages: Iterable[ExternalMsg], *, priority: int = PIPE_PRIORITY) -> None:
        for message in messages:
            self.app.enqueue(Task(priority, message))

    def press(self, keys: Iterable[Key]) -> None:
        for key in keys:
            self.app.enqueue(Task(KEY_PRIORITY, HandleKey(key), key))

    def settle(self) -> RunOutcome | None:
        """Apply every queued task and its effects.

        Returns the outcome once a quit effect or ``Terminate`` is reached,
        otherwise ``None`` when the queue is empty.
        """

        while True:
            self._join_explorers()
            if not self.app.tasks:
                return None
            try:
                self.app.step()
            except Terminated:
                return RunOutcome(exit_code=1)
            outcome = self._handle_effects()
            if outcome is not None:
                return outcome

    def run(self, *, watch_pipe: bool = True, until_idle: bool = False) -> RunOutcome:
        """Loop until the session quits.

        With ``until_idle`` the loop returns as soon as nothing is left to do,
        which is how scripted (non-interactive) sessions end.
        """

        watcher: PipeWatcher | None = None
        if watch_pipe:
            watcher = PipeWatcher(self.app.session.pipe, self._deliver, interval=self.poll_interval)
            # Idle runs poll on this thread so nothing is read after the last check.
            if not until_idle:
                watcher.start()
        try:
            while True:
                outcome = self.settle()
                if outcome is not None:
                    return outcome
                if until_idle and not self._explorers:
                    if watcher is None or watcher.poll() == 0:
                        return RunOutcome(exit_code=0)
                    continue
                time.sleep(self.poll_interval)
        finally:
            if watcher is not None:
                watcher.stop()

    def _deliver(self, message: ExternalMsg) -> None:
        self.app.enqueue(Task(PIPE_PRIORITY, message))

    def _join_explorers(self) -> None:
        if self.inline_explore:
            return
        alive = []
        for thread in self._explorers:
            if thread.is_alive():
                alive.append(thread)
        self._explorers = alive
        if alive and not self.app.tasks:
            alive[0].join(self.poll_interval)

    def _handle_effects(self) -> RunOutcome | None:
        while True:
            effect = self.app.pop_msg_out()
            if effect is None:
                return None
            outcome = self.handle_effect(effect)
            if outcome is not None:
                return outcome

    def handle_effect(self, effect: effects.Effect) -> RunOutcome | None:
        app = self.app
        if isinstance(effect, effects.Explore):
            self._explore()
        elif isinstance(effect, effects.Refresh):
            if self.render is not None:
                self.render(app)
            app.session.pipe.write_snapshot(app)
        elif isinstance(effect, effects.ClearScreen):
            self.console.clear()
        elif isinstance(effect, effects.Call):
            self._call(effect)
        elif isinstance(effect, effects.Debug):
            self._debug(effect)
        elif isinstance(effect, effects.PrintResultAndQuit):
            return RunOutcome(exit_code=0, output=app.result_str())
        elif isinstance(effect, effects.PrintAppStateAndQuit):
            return RunOutcome(exit_code=0, output=dump_state(app))
        else:
            raise TypeError(f"Unhandled effect {effect!r}")
        return None

    def _explore(self) -> None:
        app = self.app
        focused = app.focused_node()
        focus_name = focused.relative_path if focused is not None else None
        if self.inline_explore:
            app.enqueue(explore_task(app.pwd, app.filters, focus_name=focus_name))
        else:
            self._explorers.append(explore_async(app.pwd, app.filters, app.tasks, focus_name=focus_name))
        app.refresh_selection()

    def _debug(self, effect: effects.Debug) -> None:
        app = self.app
        target = Path(app.pwd, os.path.expanduser(effect.path))
        try:
            write_state(app, target)
        except (OSError, ValueError) as exc:
            app.log(LogLevel.ERROR, f"Failed to write state to {target}: {exc}")

    def _call(self, effect: effects.Call) -> None:
        app = self.app
        argv = [effect.command.command, *effect.command.args]
        logger.debug("Calling %s", argv)
        try:
            completed = subprocess.run(argv, cwd=app.pwd, env=call_environment(app), check=False)
        except (OSError, ValueError) as exc:
            app.log(LogLevel.ERROR, f"Failed to call {effect.command.command}: {exc}")
        else:
            if completed.returncode != 0:
                app.log(
                    LogLevel.ERROR,
                    f"{effect.command.command} exited with status {completed.returncode}",
                )
        self.send(app.session.pipe.read_messages())
