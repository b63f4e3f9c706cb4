"""TOML configuration loading for dirpilot."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .keys import Key
from .messages import ExternalMsg, MessageError, parse_external

VERSION = "0.1.0"
DEFAULT_CONFIG_FILENAME = "config.toml"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed or validated."""


def _expand_path(raw: str | os.PathLike[str] | Path, *, base_dir: Path) -> Path:
    """Return an absolute ``Path`` by expanding env vars and user segments."""

    text = str(raw)
    expanded = Path(os.path.expandvars(text)).expanduser()
    if expanded.is_absolute():
        return expanded.resolve(strict=False)
    return (base_dir / expanded).resolve(strict=False)


def config_dir() -> Path:
    """Return the directory holding the user's configuration file."""

    base = os.environ.get("XDG_CONFIG_HOME") or "~/.config"
    return _expand_path(base, base_dir=Path.home()) / "dirpilot"


class GeneralConfig(BaseModel):
    """Global configuration options."""

    model_config = ConfigDict(frozen=True)

    show_hidden: bool = False


class Action(BaseModel):
    """Messages bound to a key, with optional help text."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    help: str | None = None
    messages: tuple[ExternalMsg, ...] = ()

    @field_validator("messages", mode="before")
    @classmethod
    def _parse_messages(cls, value: Any) -> tuple[ExternalMsg, ...]:
        if isinstance(value, (str, Mapping)):
            value = [value]
        try:
            return tuple(parse_external(item) for item in value)
        except MessageError as exc:
            raise ValueError(str(exc)) from exc

    def to_raw(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"messages": [message.to_raw() for message in self.messages]}
        if self.help is not None:
            payload["help"] = self.help
        return payload


class KeyBindings(BaseModel):
    """Key resolution tiers of a mode."""

    model_config = ConfigDict(frozen=True)

    on_key: Dict[str, Action] = Field(default_factory=dict)
    on_alphabet: Action | None = None
    on_number: Action | None = None
    on_special_character: Action | None = None
    default: Action | None = None

    def resolve(self, key: Key) -> tuple[ExternalMsg, ...]:
        """Return the messages bound to ``key``.

        An exact binding wins. Otherwise the alphabet, number or special
        character fallback applies according to the key's class, then the
        mode-wide default.
        """

        action = self.on_key.get(str(key))
        if action is None:
            if key.is_alphabet():
                action = self.on_alphabet
            elif key.is_number():
                action = self.on_number
            elif key.is_special_character():
                action = self.on_special_character
        if action is None:
            action = self.default
        return action.messages if action is not None else ()

    def to_raw(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"on_key": {name: action.to_raw() for name, action in self.on_key.items()}}
        for tier in ("on_alphabet", "on_number", "on_special_character", "default"):
            action = getattr(self, tier)
            if action is not None:
                payload[tier] = action.to_raw()
        return payload


class Mode(BaseModel):
    """A named key-binding table."""

    model_config = ConfigDict(frozen=True)

    name: str
    help: str | None = None
    extra_help: str | None = None
    key_bindings: KeyBindings = Field(default_factory=KeyBindings)

    def help_menu(self) -> Iterator[tuple[str, str]]:
        """Yield ``(keys, help)`` rows describing the mode.

        Keys sharing the same help text are merged into one row; fallback tiers
        are listed under a bracketed label.
        """

        grouped: dict[str, list[str]] = {}
        for name, action in self.key_bindings.on_key.items():
            if action.help:
                grouped.setdefault(action.help, []).append(name)
        for help_text, names in grouped.items():
            yield " ".join(names), help_text

        fallbacks = (
            ("[a-Z]", self.key_bindings.on_alphabet),
            ("[0-9]", self.key_bindings.on_number),
            ("[spcl chars]", self.key_bindings.on_special_character),
            ("[default]", self.key_bindings.default),
        )
        for label, action in fallbacks:
            if action is not None and action.help:
                yield label, action.help

    def to_raw(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "key_bindings": self.key_bindings.to_raw()}
        if self.help is not None:
            payload["help"] = self.help
        if self.extra_help is not None:
            payload["extra_help"] = self.extra_help
        return payload


class Config(BaseModel):
    """Fully parsed configuration."""

    model_config = ConfigDict(frozen=True)

    version: str = VERSION
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    modes: Dict[str, Mode] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _name_modes(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and isinstance(data.get("modes"), Mapping):
            modes = {}
            for name, body in data["modes"].items():
                if isinstance(body, Mapping):
                    body = {"name": name, **body}
                modes[name] = body
            data = {**data, "modes": modes}
        return data

    def mode(self, name: str) -> Mode | None:
        return self.modes.get(name)

    def to_raw(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "general": self.general.model_dump(),
            "modes": {name: mode.to_raw() for name, mode in self.modes.items()},
        }


def default_config() -> Config:
    """Return the built-in configuration."""

    from .defaults import DEFAULT_CONFIG

    return Config.model_validate(DEFAULT_CONFIG)


def load_config(path: Path | None = None) -> Config:
    """Load and validate a configuration file.

    Args:
        path: Optional path to the TOML file (or its directory). Defaults to
            ``config.toml`` inside :func:`config_dir`. When the default file
            does not exist the built-in configuration is returned.

    Raises:
        ConfigError: the file is malformed or written for another version.
    """

    config_path = _resolve_config_path(path)
    if config_path is None:
        return default_config()

    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Configuration file '{config_path}' is not valid TOML: {exc}") from exc

    version = data.get("version")
    if version != VERSION:
        raise ConfigError(
            f"Incompatible configuration version in '{config_path}'\n"
            f"  Your config version is : {version}\n"
            f"  Required version is    : {VERSION}"
        )

    defaults = default_config()
    modes_section = data.get("modes") or {}
    merged_modes: dict[str, Any] = {name: mode for name, mode in defaults.modes.items()}
    merged_modes.update(modes_section)

    try:
        return Config.model_validate({**data, "modes": merged_modes})
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in '{config_path}':\n{exc}") from exc


def _resolve_config_path(path: Path | None) -> Path | None:
    if path is None:
        candidate = config_dir() / DEFAULT_CONFIG_FILENAME
        return candidate if candidate.exists() else None

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
