"""TOML snapshots of the application state."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w

from .models import Entry, Listing

if TYPE_CHECKING:
    from .app import App


def _entry_to_dict(entry: Entry) -> dict[str, Any]:
    return dataclasses.asdict(entry)


def _listing_to_dict(listing: Listing) -> dict[str, Any]:
    return {
        "parent": listing.parent,
        "total": listing.total,
        "focus": listing.focus,
        "nodes": [_entry_to_dict(entry) for entry in listing.entries],
    }


def state_to_dict(app: "App") -> dict[str, Any]:
    """Return a TOML-compatible mapping describing ``app``."""

    payload: dict[str, Any] = {
        "version": app.config.version,
        "pwd": app.pwd,
        "pid": app.session.pid,
        "session_path": str(app.session.path),
        "mode": app.mode.name,
        "pipe": {
            "msg_in": str(app.session.pipe.msg_in),
            "focus_out": str(app.session.pipe.focus_out),
            "selection_out": str(app.session.pipe.selection_out),
            "mode_out": str(app.session.pipe.mode_out),
        },
        "selection": [_entry_to_dict(entry) for entry in app.selection],
        "filters": [rule.model_dump(mode="json") for rule in app.filters],
        "logs": [
            {"level": log.level.value, "message": log.message, "created_at": log.created_at} for log in app.logs
        ],
        "directory_buffers": {
            parent: _listing_to_dict(listing) for parent, listing in sorted(app.directory_buffers.items())
        },
        "config": app.config.to_raw(),
    }
    if app.input_buffer is not None:
        payload["input_buffer"] = app.input_buffer
    focused = app.focused_node()
    if focused is not None:
        payload["focused_node"] = _entry_to_dict(focused)
    return payload


def dump_state(app: "App") -> str:
    return tomli_w.dumps(state_to_dict(app))


def write_state(app: "App", path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        tomli_w.dump(state_to_dict(app), handle)
