from __future__ import annotations

import io
import tomllib
from pathlib import Path
from typing import Callable

import pytest
from rich.console import Console

from dirpilot import messages as msgs
from dirpilot.app import App
from dirpilot.keys import Key
from dirpilot.messages import Command, parse_line
from dirpilot.models import LogLevel
from dirpilot.runner import Runner, call_environment
from dirpilot.scheduler import KEY_PRIORITY


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "tree"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("a")
    (root / "b.txt").write_text("b")
    return root


@pytest.fixture
def make_runner(make_app: Callable[..., App], tree: Path) -> Callable[..., Runner]:
    def factory(**kwargs: object) -> Runner:
        app = make_app(tree)
        kwargs.setdefault("console", Console(file=io.StringIO()))
        kwargs.setdefault("inline_explore", True)
        runner = Runner(app, **kwargs)  # type: ignore[arg-type]
        runner.send([msgs.Explore()], priority=KEY_PRIORITY)
        assert runner.settle() is None
        return runner

    return factory


def test_explore_builds_listing_and_snapshot(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    app = runner.app

    listing = app.directory_buffer()
    assert listing is not None
    assert [entry.relative_path for entry in listing.entries] == ["a.txt", "b.txt", "sub"]
    assert app.session.pipe.focus_out.read_text() == str(tree / "a.txt")
    assert app.session.pipe.mode_out.read_text() == "default"


def test_keys_then_print_result(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()

    runner.press([Key("j")])
    assert runner.settle() is None
    runner.press([Key("q")])
    outcome = runner.settle()

    assert outcome is not None
    assert outcome.exit_code == 0
    assert outcome.output == str(tree / "b.txt")


def test_selection_is_printed_in_selection_order(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    for name in ("G", "v", "g", "g", "v", "enter"):
        runner.press([Key(name)])
        outcome = runner.settle()

    assert outcome is not None
    assert outcome.output == f"{tree / 'sub'}\n{tree / 'a.txt'}"


def test_enter_directory_explores_it(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.send([msgs.FocusByFileName("sub"), msgs.Enter(), msgs.Explore()])
    runner.settle()

    assert runner.app.pwd == str(tree / "sub")
    assert runner.app.directory_buffer() is not None
    assert runner.app.directory_buffer().total == 0


def test_back_refocuses_previous_directory(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.send([msgs.FocusByFileName("sub"), msgs.Enter(), msgs.Explore(), msgs.Back(), msgs.Explore()])
    runner.settle()

    assert runner.app.focused_node() is not None
    assert runner.app.focused_node().relative_path == "sub"


def test_terminate_exits_non_zero(make_runner: Callable[..., Runner]) -> None:
    runner = make_runner()
    runner.press([Key("ctrl-c")])

    outcome = runner.settle()

    assert outcome is not None
    assert outcome.exit_code == 1
    assert outcome.output is None


def test_print_app_state(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.send([msgs.PrintAppStateAndQuit()])

    outcome = runner.settle()

    assert outcome is not None
    state = tomllib.loads(outcome.output or "")
    assert state["pwd"] == str(tree)
    assert state["mode"] == "default"
    assert state["directory_buffers"][str(tree)]["total"] == 3
    assert state["focused_node"]["relative_path"] == "a.txt"


def test_debug_writes_state_and_continues(make_runner: Callable[..., Runner], tmp_path: Path) -> None:
    runner = make_runner()
    target = tmp_path / "dump" / "state.toml"
    runner.send([msgs.Debug(str(target))])

    assert runner.settle() is None
    assert tomllib.loads(target.read_text())["pid"] == runner.app.session.pid


def test_debug_to_unwritable_path_is_logged(make_runner: Callable[..., Runner], tmp_path: Path) -> None:
    runner = make_runner()
    runner.send([parse_line(f'Debug = "{tmp_path}"')])

    assert runner.settle() is None

    assert [log.level for log in runner.app.logs] == [LogLevel.ERROR]
    assert str(tmp_path) in runner.app.logs[0].message


def test_debug_relative_path_is_under_pwd(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.send([msgs.Debug("dumps/state.toml")])

    runner.settle()

    assert tomllib.loads((tree / "dumps" / "state.toml").read_text())["pwd"] == str(tree)


def test_refresh_calls_render_hook(make_runner: Callable[..., Runner]) -> None:
    seen: list[int] = []
    runner = make_runner(render=lambda app: seen.append(app.directory_buffer().focus))

    runner.send([msgs.FocusLast()])
    runner.settle()

    assert seen[-1] == 2


def test_call_feeds_pipe_messages_back(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    script = 'echo "LogSuccess = \\"$DIRPILOT_FOCUS_PATH in $PWD\\"" >> "$DIRPILOT_PIPE_MSG_IN"'
    runner.send([msgs.Call(Command(command="sh", args=("-c", script)))])

    runner.settle()

    assert [(log.level, log.message) for log in runner.app.logs] == [
        (LogLevel.SUCCESS, f"{tree / 'a.txt'} in {tree}")
    ]


def test_call_sees_input_buffer_before_mode_switch(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.send([msgs.SwitchMode("create file")])
    runner.settle()
    for char in "new.txt":
        runner.press([Key(char)])
        runner.settle()

    runner.press([Key("enter")])
    runner.settle()

    assert (tree / "new.txt").is_file()
    assert runner.app.mode.name == "default"
    assert runner.app.logs[-1].level is LogLevel.SUCCESS
    assert runner.app.directory_buffer().index_of("new.txt") is not None


def test_failed_call_is_logged(make_runner: Callable[..., Runner]) -> None:
    runner = make_runner()
    runner.send(
        [
            msgs.Call(Command(command="sh", args=("-c", "exit 3"))),
            msgs.Call(Command(command="definitely-not-a-dirpilot-command")),
        ]
    )

    runner.settle()

    assert [log.level for log in runner.app.logs] == [LogLevel.ERROR, LogLevel.ERROR]
    assert "status 3" in runner.app.logs[0].message


def test_call_with_null_byte_is_logged(make_runner: Callable[..., Runner]) -> None:
    runner = make_runner()
    runner.send([parse_line('Call = { command = "ls\\u0000x" }')])

    assert runner.settle() is None

    assert [log.level for log in runner.app.logs] == [LogLevel.ERROR]
    assert "null byte" in runner.app.logs[0].message


def test_bad_call_from_pipe_does_not_stop_the_session(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.app.session.pipe.msg_in.write_text('Call = { command = "ls\\u0000x" }\nPrintResultAndQuit\n')

    outcome = runner.run(watch_pipe=True, until_idle=True)

    assert outcome.exit_code == 0
    assert outcome.output == str(tree / "a.txt")
    assert runner.app.logs[0].level is LogLevel.ERROR


def test_call_environment(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    app = runner.app
    app.input_buffer = "typed"

    env = call_environment(app)

    assert env["DIRPILOT_PWD"] == str(tree)
    assert env["DIRPILOT_FOCUS_PATH"] == str(tree / "a.txt")
    assert env["DIRPILOT_FOCUS_INDEX"] == "0"
    assert env["DIRPILOT_INPUT_BUFFER"] == "typed"
    assert env["DIRPILOT_MODE"] == "default"
    assert env["DIRPILOT_RESULT"] == str(tree / "a.txt")
    assert env["DIRPILOT_PIPE_MSG_IN"] == str(app.session.pipe.msg_in)


def test_run_until_idle_reads_pipe(make_runner: Callable[..., Runner], tree: Path) -> None:
    runner = make_runner()
    runner.app.session.pipe.msg_in.write_text("FocusNext\nPrintResultAndQuit\n")

    outcome = runner.run(watch_pipe=True, until_idle=True)

    assert outcome.exit_code == 0
    assert outcome.output == str(tree / "b.txt")


def test_run_until_idle_without_quit(make_runner: Callable[..., Runner]) -> None:
    outcome = make_runner().run(watch_pipe=False, until_idle=True)
    assert outcome.exit_code == 0
    assert outcome.output is None


def test_background_exploration(make_app: Callable[..., App], tree: Path) -> None:
    runner = Runner(make_app(tree), console=Console(file=io.StringIO()), poll_interval=0.01)
    runner.send([msgs.Explore()], priority=KEY_PRIORITY)

    outcome = runner.run(watch_pipe=False, until_idle=True)

    assert outcome.exit_code == 0
    assert runner.app.directory_buffer() is not None
    assert runner.app.directory_buffer().total == 3
