"""Key events as seen by the key-binding resolver."""

from __future__ import annotations

import string
from dataclasses import dataclass

SPECIAL_CHARACTERS = frozenset(string.punctuation)

NAMED_KEYS = frozenset(
    {
        "enter",
        "esc",
        "backspace",
        "tab",
        "back-tab",
        "space",
        "up",
        "down",
        "left",
        "right",
        "home",
        "end",
        "page-up",
        "page-down",
        "insert",
        "delete",
        *(f"f{number}" for number in range(1, 13)),
    }
)

_MODIFIERS = ("ctrl-", "alt-", "shift-")


@dataclass(frozen=True, slots=True)
class Key:
    """A key identified by its canonical name.

    Printable characters are named by the character itself (``a``, ``A``,
    ``7``, ``~``), except the space bar which is ``space``. Other keys use
    lower-case names such as ``enter`` or ``ctrl-c``.
    """

    name: str

    @classmethod
    def parse(cls, raw: str) -> "Key":
        """Validate a key name such as ``j``, ``enter`` or ``ctrl-d``."""

        if raw == " ":
            return cls("space")
        base = raw
        for modifier in _MODIFIERS:
            if len(base) > len(modifier) and base.startswith(modifier):
                base = base[len(modifier) :]
                break
        if (len(base) == 1 and base.isprintable()) or base in NAMED_KEYS:
            return cls(raw)
        raise ValueError(f"Unknown key '{raw}'")

    def __str__(self) -> str:
        return self.name

    def is_alphabet(self) -> bool:
        return len(self.name) == 1 and self.name in string.ascii_letters

    def is_number(self) -> bool:
        return len(self.name) == 1 and self.name in string.digits

    def is_special_character(self) -> bool:
        return len(self.name) == 1 and self.name in SPECIAL_CHARACTERS

    def to_char(self) -> str | None:
        """Return the character this key types, if any."""

        if self.name == "space":
            return " "
        if len(self.name) == 1 and self.name.isprintable():
            return self.name
        return None
