"""Outward instructions produced by the engine for the executor."""

from __future__ import annotations

from dataclasses import dataclass

from .messages import Command


class Effect:
    """Base class for everything the executor is asked to do."""

    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Explore(Effect):
    pass


@dataclass(frozen=True, slots=True)
class Refresh(Effect):
    """Redraw the interface from the current state."""


@dataclass(frozen=True, slots=True)
class ClearScreen(Effect):
    pass


@dataclass(frozen=True, slots=True)
class PrintResultAndQuit(Effect):
    pass


@dataclass(frozen=True, slots=True)
class PrintAppStateAndQuit(Effect):
    pass


@dataclass(frozen=True, slots=True)
class Debug(Effect):
    path: str


@dataclass(frozen=True, slots=True)
class Call(Effect):
    command: Command
