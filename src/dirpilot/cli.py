"""Command-line interface for dirpilot."""

from __future__ import annotations

import io
from pathlib import Path

import tomli_w
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import logging_setup
from .app import App
from .config import DEFAULT_CONFIG_FILENAME, VERSION, Config, ConfigError, config_dir, default_config, load_config
from .keys import Key
from .messages import Explore, FocusPath, MessageError, parse_line
from .runner import Runner
from .scheduler import KEY_PRIORITY

app = typer.Typer(help="Keyboard and pipe driven file explorer core")
console = Console()


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, ConfigError):
        message = str(exc)
        console.print(f"[red]{escape(message)}[/red]")
        if "does not exist" in message:
            console.print("[yellow]Use 'dirpilot init --config <path>' to create a configuration file.[/yellow]")
        elif "Incompatible configuration version" in message:
            console.print(
                "[yellow]Regenerate it with 'dirpilot init --force' and port your key bindings over.[/yellow]"
            )
        raise typer.Exit(code=1)
    if isinstance(exc, MessageError):
        console.print(f"[red]Invalid message: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    if isinstance(exc, ValueError):
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    raise exc


def _render_config(config: Config) -> str:
    buffer = io.StringIO()
    buffer.write("# dirpilot configuration\n\n")
    buffer.write(tomli_w.dumps(config.to_raw()))
    return buffer.getvalue()


@app.command()
def init(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Write the built-in configuration to a file for editing."""

    config_path = config or config_dir() / DEFAULT_CONFIG_FILENAME
    if config_path.exists() and not force:
        console.print(f"[red]Configuration '{config_path}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_render_config(default_config()))
    console.print(f"[green]Created '{config_path}'.[/green]")


@app.command("run")
def run_session(
    path: Path = typer.Argument(Path("."), help="Directory (or file) to start in"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.toml"),
    key: list[str] = typer.Option(None, "--key", "-k", help="Key to press, in order (e.g. j, enter, ctrl-c)"),
    msg: list[str] = typer.Option(
        None,
        "--msg",
        "-m",
        help="Message to send after the keys (e.g. FocusNext or 'FocusByIndex = 2')",
    ),
    watch: bool = typer.Option(
        False,
        "--watch/--no-watch",
        help="Keep reading the msg_in pipe until a quit message arrives",
    ),
) -> None:
    """Start a session, feed it keys and messages, and print the result."""

    logging_setup.configure()
    try:
        config_obj = load_config(config)
        keys = [Key.parse(raw) for raw in key or []]
        messages = [parse_line(raw) for raw in msg or []]
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)
        return

    target = path.expanduser().resolve(strict=False)
    state = App.create(config_obj, target)
    runner = Runner(state, console=console, inline_explore=True)
    runner.send([Explore()], priority=KEY_PRIORITY)
    outcome = runner.settle()
    if outcome is None and target.is_file():
        runner.send([FocusPath(str(target))], priority=KEY_PRIORITY)
        outcome = runner.settle()
    for item in [*keys, *messages]:
        if outcome is not None:
            break
        if isinstance(item, Key):
            runner.press([item])
        else:
            runner.send([item])
        outcome = runner.settle()
    if outcome is None:
        outcome = runner.run(watch_pipe=True, until_idle=not watch)

    if outcome.output:
        typer.echo(outcome.output)
    if outcome.exit_code != 0:
        raise typer.Exit(code=outcome.exit_code)


@app.command()
def keys(
    mode: str = typer.Option("default", "--mode", help="Mode to describe"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.toml"),
) -> None:
    """Show the key bindings of a mode."""

    try:
        config_obj = load_config(config)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)
        return

    mode_obj = config_obj.mode(mode)
    if mode_obj is None:
        console.print(f"[red]Unknown mode '{mode}'.[/red] Available: {', '.join(sorted(config_obj.modes))}")
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold magenta", title=mode_obj.help or mode_obj.name)
    table.add_column("Key")
    table.add_column("Action", overflow="fold")
    for names, help_text in mode_obj.help_menu():
        table.add_row(escape(names), escape(help_text))
    console.print(table)
    if mode_obj.extra_help:
        console.print(escape(mode_obj.extra_help))


@app.command()
def version() -> None:
    """Print the dirpilot version."""

    typer.echo(VERSION)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
