"""Messages accepted by the state engine.

Messages come in two families. Internal messages are produced by the
application itself (a finished directory listing, a key press waiting to be
resolved). External messages are the commands users bind to keys, write into
the ``msg_in`` pipe or pass on the command line.

External messages have a textual form shared by the configuration file, the
pipe and the CLI: a bare command name for commands without a payload
(``"FocusNext"``) or a single-key table mapping the name to its payload
(``{"FocusByIndex": 2}``). On a single line the table form is written as a
TOML key/value pair (``FocusByIndex = 2``).
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .filters import NodeFilterFromInput, NodeFilterRule
from .keys import Key
from .models import Listing


class MessageError(ValueError):
    """Raised when the textual form of a message cannot be understood."""


class Command(BaseModel):
    """An external program and its arguments."""

    model_config = ConfigDict(frozen=True)

    command: str
    args: tuple[str, ...] = Field(default_factory=tuple)


class InternalMsg:
    """Base class for messages generated by the application itself."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class AddDirectory(InternalMsg):
    parent: str
    listing: Listing


@dataclass(frozen=True, slots=True)
class HandleKey(InternalMsg):
    key: Key


class ExternalMsg:
    """Base class for user and script issued commands."""

    __slots__ = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_raw(self) -> Any:
        """Return the configuration/pipe representation of this message."""

        payload_fields = fields(self)  # type: ignore[arg-type]
        if not payload_fields:
            return self.name
        value = getattr(self, payload_fields[0].name)
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        return {self.name: value}


@dataclass(frozen=True, slots=True)
class Explore(ExternalMsg):
    """Explore the working directory and register the filtered entries."""


@dataclass(frozen=True, slots=True)
class Refresh(ExternalMsg):
    """Redraw without exploring again."""


@dataclass(frozen=True, slots=True)
class ClearScreen(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusNext(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusNextByRelativeIndex(ExternalMsg):
    index: int


@dataclass(frozen=True, slots=True)
class FocusNextByRelativeIndexFromInput(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusPrevious(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusPreviousByRelativeIndex(ExternalMsg):
    index: int


@dataclass(frozen=True, slots=True)
class FocusPreviousByRelativeIndexFromInput(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusFirst(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusLast(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusPath(ExternalMsg):
    """Change to the parent of ``path`` and focus its file name."""

    path: str


@dataclass(frozen=True, slots=True)
class FocusPathFromInput(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusByIndex(ExternalMsg):
    index: int


@dataclass(frozen=True, slots=True)
class FocusByIndexFromInput(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class FocusByFileName(ExternalMsg):
    name: str


@dataclass(frozen=True, slots=True)
class ChangeDirectory(ExternalMsg):
    path: str


@dataclass(frozen=True, slots=True)
class Enter(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class Back(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class BufferInput(ExternalMsg):
    text: str


@dataclass(frozen=True, slots=True)
class BufferInputFromKey(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class SetInputBuffer(ExternalMsg):
    """Replace the input buffer. An empty buffer is still displayed."""

    text: str


@dataclass(frozen=True, slots=True)
class ResetInputBuffer(ExternalMsg):
    """Unset the input buffer so it is no longer displayed."""


@dataclass(frozen=True, slots=True)
class SwitchMode(ExternalMsg):
    mode: str


@dataclass(frozen=True, slots=True)
class Call(ExternalMsg):
    """Ask the executor to run a command; arguments are passed as-is."""

    command: Command


@dataclass(frozen=True, slots=True)
class Select(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class UnSelect(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class ToggleSelection(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class ClearSelection(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class AddNodeFilter(ExternalMsg):
    filter: NodeFilterRule


@dataclass(frozen=True, slots=True)
class RemoveNodeFilter(ExternalMsg):
    filter: NodeFilterRule


@dataclass(frozen=True, slots=True)
class ToggleNodeFilter(ExternalMsg):
    filter: NodeFilterRule


@dataclass(frozen=True, slots=True)
class AddNodeFilterFromInput(ExternalMsg):
    filter: NodeFilterFromInput


@dataclass(frozen=True, slots=True)
class ResetNodeFilters(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class LogInfo(ExternalMsg):
    message: str


@dataclass(frozen=True, slots=True)
class LogSuccess(ExternalMsg):
    message: str


@dataclass(frozen=True, slots=True)
class LogError(ExternalMsg):
    message: str


@dataclass(frozen=True, slots=True)
class PrintResultAndQuit(ExternalMsg):
    """Print the selection, or the focused path, then quit."""


@dataclass(frozen=True, slots=True)
class PrintAppStateAndQuit(ExternalMsg):
    pass


@dataclass(frozen=True, slots=True)
class Debug(ExternalMsg):
    """Write the application state to ``path`` without quitting."""

    path: str


@dataclass(frozen=True, slots=True)
class Terminate(ExternalMsg):
    """Quit with a non-zero exit code."""


def _index(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MessageError(f"Expected a non-negative integer, got {value!r}")
    return value


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise MessageError(f"Expected a string, got {value!r}")
    return value


def _model(model: type[BaseModel]) -> Callable[[Any], BaseModel]:
    def parse(value: Any) -> BaseModel:
        if isinstance(value, model):
            return value
        if not isinstance(value, Mapping):
            raise MessageError(f"Expected a table for {model.__name__}, got {value!r}")
        try:
            return model.model_validate(dict(value))
        except ValidationError as exc:
            raise MessageError(str(exc)) from exc

    return parse


EXTERNAL_MESSAGES: dict[str, type[ExternalMsg]] = {
    name: value
    for name, value in list(globals().items())
    if isinstance(value, type) and issubclass(value, ExternalMsg) and value is not ExternalMsg
}

_PAYLOAD_PARSERS: dict[type[ExternalMsg], Callable[[Any], Any]] = {
    FocusNextByRelativeIndex: _index,
    FocusPreviousByRelativeIndex: _index,
    FocusByIndex: _index,
    FocusPath: _text,
    FocusByFileName: _text,
    ChangeDirectory: _text,
    BufferInput: _text,
    SetInputBuffer: _text,
    SwitchMode: _text,
    Call: _model(Command),
    AddNodeFilter: _model(NodeFilterRule),
    RemoveNodeFilter: _model(NodeFilterRule),
    ToggleNodeFilter: _model(NodeFilterRule),
    AddNodeFilterFromInput: _model(NodeFilterFromInput),
    LogInfo: _text,
    LogSuccess: _text,
    LogError: _text,
    Debug: _text,
}


def parse_external(raw: Any) -> ExternalMsg:
    """Build an external message from its configuration representation."""

    if isinstance(raw, ExternalMsg):
        return raw

    if isinstance(raw, str):
        name, payload, has_payload = raw, None, False
    elif isinstance(raw, Mapping) and len(raw) == 1:
        ((name, payload),) = raw.items()
        has_payload = True
    else:
        raise MessageError(f"Cannot interpret {raw!r} as a message")

    cls = EXTERNAL_MESSAGES.get(name)
    if cls is None:
        raise MessageError(f"Unknown message '{name}'")

    parser = _PAYLOAD_PARSERS.get(cls)
    if parser is None:
        if has_payload and payload not in (None, {}):
            raise MessageError(f"Message '{name}' does not take a value")
        return cls()
    if not has_payload:
        raise MessageError(f"Message '{name}' requires a value")
    return cls(parser(payload))


def parse_line(line: str) -> ExternalMsg:
    """Parse one line of pipe or command-line input."""

    text = line.strip()
    if not text:
        raise MessageError("Empty message")
    if text in EXTERNAL_MESSAGES:
        return parse_external(text)
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise MessageError(f"Cannot parse message line {text!r}: {exc}") from exc
    return parse_external(data)
