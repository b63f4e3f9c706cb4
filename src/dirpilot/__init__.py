"""Core package for the dirpilot project."""

from .app import App, DirpilotError, Terminated
from .cli import run
from .config import VERSION, Config, ConfigError, KeyBindings, Mode, load_config
from .filters import FilterSet, NodeFilter, NodeFilterFromInput, NodeFilterRule
from .keys import Key
from .messages import Command, ExternalMsg, InternalMsg, MessageError, parse_external, parse_line
from .models import Entry, Listing, Log, LogLevel
from .pipe import Pipe, Session
from .runner import Runner, RunOutcome
from .scheduler import Task, TaskQueue

__version__ = VERSION

__all__ = [
    "App",
    "DirpilotError",
    "Terminated",
    "Config",
    "ConfigError",
    "KeyBindings",
    "Mode",
    "load_config",
    "FilterSet",
    "NodeFilter",
    "NodeFilterFromInput",
    "NodeFilterRule",
    "Key",
    "Command",
    "ExternalMsg",
    "InternalMsg",
    "MessageError",
    "parse_external",
    "parse_line",
    "Entry",
    "Listing",
    "Log",
    "LogLevel",
    "Pipe",
    "Session",
    "Runner",
    "RunOutcome",
    "Task",
    "TaskQueue",
    "run",
]
