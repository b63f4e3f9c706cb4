"""Built-in configuration, in the same shape as ``config.toml``."""

from __future__ import annotations

from typing import Any

from .config import VERSION


def _bash(script: str) -> dict[str, Any]:
    return {"Call": {"command": "bash", "args": ["-c", script]}}


def _action(help: str | None, *messages: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"messages": list(messages)}
    if help is not None:
        payload["help"] = help
    return payload


_SEND = '>> "${DIRPILOT_PIPE_MSG_IN:?}"'

_QUIT_KEYS = {
    "ctrl-c": _action("terminate", "Terminate"),
}

_BACK_TO_DEFAULT = {
    "esc": _action("cancel", {"SwitchMode": "default"}),
    **_QUIT_KEYS,
}

_TYPING = _action(None, "BufferInputFromKey")


DEFAULT_MODE = {
    "help": "explore",
    "key_bindings": {
        "on_key": {
            "down": _action("down", "FocusNext"),
            "j": _action("down", "FocusNext"),
            "up": _action("up", "FocusPrevious"),
            "k": _action("up", "FocusPrevious"),
            "right": _action("enter", "Enter", "Explore"),
            "l": _action("enter", "Enter", "Explore"),
            "left": _action("back", "Back", "Explore"),
            "h": _action("back", "Back", "Explore"),
            "G": _action("go to bottom", "FocusLast"),
            "g": _action("go to", {"SwitchMode": "goto"}),
            "space": _action("toggle selection", "ToggleSelection", "FocusNext"),
            "v": _action("toggle selection", "ToggleSelection", "FocusNext"),
            "ctrl-a": _action("clear selection", "ClearSelection"),
            ".": _action(
                "show hidden",
                {"ToggleNodeFilter": {"filter": "RelativePathDoesNotStartWith", "input": "."}},
                "Explore",
            ),
            "~": _action(
                "go home",
                _bash(f'echo "ChangeDirectory = \\"${{HOME:?}}\\"" {_SEND}'),
                "Explore",
            ),
            "/": _action("search", {"SwitchMode": "search"}, {"SetInputBuffer": ""}, "Explore"),
            "ctrl-f": _action("search", {"SwitchMode": "search"}, {"SetInputBuffer": ""}, "Explore"),
            ":": _action("action", {"SwitchMode": "action"}),
            "c": _action("create", {"SwitchMode": "create"}),
            "r": _action(
                "rename",
                {"SwitchMode": "rename"},
                _bash(f'echo "SetInputBuffer = \\"$(basename "${{DIRPILOT_FOCUS_PATH:?}}")\\"" {_SEND}'),
            ),
            "d": _action("delete", {"SwitchMode": "delete"}),
            "ctrl-l": _action("clear screen", "ClearScreen", "Refresh"),
            "ctrl-r": _action("refresh", "Explore"),
            "enter": _action("quit with result", "PrintResultAndQuit"),
            "q": _action("quit with result", "PrintResultAndQuit"),
            "#": _action("print state and quit", "PrintAppStateAndQuit"),
            **_QUIT_KEYS,
        },
        "on_number": _action("input", {"SwitchMode": "number"}, "BufferInputFromKey"),
    },
}

NUMBER_MODE = {
    "help": "number",
    "key_bindings": {
        "on_key": {
            "up": _action("to up", "FocusPreviousByRelativeIndexFromInput", {"SwitchMode": "default"}),
            "k": _action("to up", "FocusPreviousByRelativeIndexFromInput", {"SwitchMode": "default"}),
            "down": _action("to down", "FocusNextByRelativeIndexFromInput", {"SwitchMode": "default"}),
            "j": _action("to down", "FocusNextByRelativeIndexFromInput", {"SwitchMode": "default"}),
            "enter": _action("to index", "FocusByIndexFromInput", {"SwitchMode": "default"}),
            **_BACK_TO_DEFAULT,
        },
        "on_number": _action("input", "BufferInputFromKey"),
        "default": _action(None, {"SwitchMode": "default"}),
    },
}

GOTO_MODE = {
    "help": "go to",
    "key_bindings": {
        "on_key": {
            "g": _action("top", "FocusFirst", {"SwitchMode": "default"}),
            **_BACK_TO_DEFAULT,
        },
        "default": _action(None, {"SwitchMode": "default"}),
    },
}

_SEARCH_TYPING = _action(
    None,
    "ResetNodeFilters",
    "BufferInputFromKey",
    {"AddNodeFilterFromInput": {"filter": "RelativePathDoesContain"}},
    "Explore",
)

SEARCH_MODE = {
    "help": "search",
    "key_bindings": {
        "on_key": {
            "up": _action("up", "FocusPrevious"),
            "down": _action("down", "FocusNext"),
            "enter": _action("focus", {"SwitchMode": "default"}),
            "esc": _action("cancel", "ResetNodeFilters", {"SwitchMode": "default"}, "Explore"),
            "space": _SEARCH_TYPING,
            **_QUIT_KEYS,
        },
        "on_alphabet": _SEARCH_TYPING,
        "on_number": _SEARCH_TYPING,
        "on_special_character": _SEARCH_TYPING,
    },
}

ACTION_MODE = {
    "help": "action to",
    "key_bindings": {
        "on_key": {
            "c": _action("create", {"SwitchMode": "create"}),
            "e": _action(
                "open in editor",
                _bash('${EDITOR:-vi} "${DIRPILOT_FOCUS_PATH:?}"'),
                {"SwitchMode": "default"},
                "Refresh",
            ),
            "!": _action("shell", {"Call": {"command": "bash"}}, {"SwitchMode": "default"}, "Explore"),
            "s": _action(
                "selection to pwd",
                _bash(
                    'printf "%s\\n" "${DIRPILOT_SELECTION:?}" | while IFS= read -r path; do '
                    'cp -r -- "$path" "${DIRPILOT_PWD:?}/"; done'
                ),
                "ClearSelection",
                {"SwitchMode": "default"},
                "Explore",
            ),
            "#": _action("print state and quit", "PrintAppStateAndQuit"),
            "q": _action("quit with result", "PrintResultAndQuit"),
            **_BACK_TO_DEFAULT,
        },
        "on_number": _action("go to index", {"SwitchMode": "number"}, "BufferInputFromKey"),
    },
}

CREATE_MODE = {
    "help": "create",
    "key_bindings": {
        "on_key": {
            "f": _action("file", {"SwitchMode": "create file"}, {"SetInputBuffer": ""}),
            "d": _action("directory", {"SwitchMode": "create directory"}, {"SetInputBuffer": ""}),
            **_BACK_TO_DEFAULT,
        },
    },
}

CREATE_FILE_MODE = {
    "help": "create file",
    "key_bindings": {
        "on_key": {
            "enter": _action(
                "create file",
                _bash(
                    'touch -- "${DIRPILOT_INPUT_BUFFER:?}" && '
                    f'echo "LogSuccess = \\"${{DIRPILOT_INPUT_BUFFER}} created\\"" {_SEND}'
                ),
                {"SwitchMode": "default"},
                "Explore",
            ),
            "space": _TYPING,
            **_BACK_TO_DEFAULT,
        },
        "on_alphabet": _TYPING,
        "on_number": _TYPING,
        "on_special_character": _TYPING,
    },
}

CREATE_DIRECTORY_MODE = {
    "help": "create directory",
    "key_bindings": {
        "on_key": {
            "enter": _action(
                "create directory",
                _bash(
                    'mkdir -p -- "${DIRPILOT_INPUT_BUFFER:?}" && '
                    f'echo "LogSuccess = \\"${{DIRPILOT_INPUT_BUFFER}} created\\"" {_SEND}'
                ),
                {"SwitchMode": "default"},
                "Explore",
            ),
            "space": _TYPING,
            **_BACK_TO_DEFAULT,
        },
        "on_alphabet": _TYPING,
        "on_number": _TYPING,
        "on_special_character": _TYPING,
    },
}

RENAME_MODE = {
    "help": "rename",
    "key_bindings": {
        "on_key": {
            "enter": _action(
                "rename",
                _bash('mv -- "${DIRPILOT_FOCUS_PATH:?}" "${DIRPILOT_INPUT_BUFFER:?}"'),
                {"SwitchMode": "default"},
                "Explore",
            ),
            "space": _TYPING,
            **_BACK_TO_DEFAULT,
        },
        "on_alphabet": _TYPING,
        "on_number": _TYPING,
        "on_special_character": _TYPING,
    },
}

DELETE_MODE = {
    "help": "delete",
    "key_bindings": {
        "on_key": {
            "d": _action(
                "delete",
                _bash(
                    'printf "%s\\n" "${DIRPILOT_RESULT:?}" | while IFS= read -r path; do '
                    'rm -r -- "$path" && '
                    f'echo "LogSuccess = \\"$path deleted\\"" {_SEND}; done'
                ),
                "ClearSelection",
                {"SwitchMode": "default"},
                "Explore",
            ),
            **_BACK_TO_DEFAULT,
        },
        "default": _action(None, {"SwitchMode": "default"}),
    },
}


DEFAULT_CONFIG: dict[str, Any] = {
    "version": VERSION,
    "general": {"show_hidden": False},
    "modes": {
        "default": DEFAULT_MODE,
        "number": NUMBER_MODE,
        "goto": GOTO_MODE,
        "search": SEARCH_MODE,
        "action": ACTION_MODE,
        "create": CREATE_MODE,
        "create file": CREATE_FILE_MODE,
        "create directory": CREATE_DIRECTORY_MODE,
        "rename": RENAME_MODE,
        "delete": DELETE_MODE,
    },
}
