"""Node filter predicates applied while building directory listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator

from pydantic import BaseModel, ConfigDict

from .models import Entry


class NodeFilter(str, Enum):
    """Kinds of path comparisons a filter rule can perform."""

    RELATIVE_PATH_IS = "RelativePathIs"
    RELATIVE_PATH_IS_NOT = "RelativePathIsNot"
    RELATIVE_PATH_DOES_START_WITH = "RelativePathDoesStartWith"
    RELATIVE_PATH_DOES_NOT_START_WITH = "RelativePathDoesNotStartWith"
    RELATIVE_PATH_DOES_CONTAIN = "RelativePathDoesContain"
    RELATIVE_PATH_DOES_NOT_CONTAIN = "RelativePathDoesNotContain"
    RELATIVE_PATH_DOES_END_WITH = "RelativePathDoesEndWith"
    RELATIVE_PATH_DOES_NOT_END_WITH = "RelativePathDoesNotEndWith"

    ABSOLUTE_PATH_IS = "AbsolutePathIs"
    ABSOLUTE_PATH_IS_NOT = "AbsolutePathIsNot"
    ABSOLUTE_PATH_DOES_START_WITH = "AbsolutePathDoesStartWith"
    ABSOLUTE_PATH_DOES_NOT_START_WITH = "AbsolutePathDoesNotStartWith"
    ABSOLUTE_PATH_DOES_CONTAIN = "AbsolutePathDoesContain"
    ABSOLUTE_PATH_DOES_NOT_CONTAIN = "AbsolutePathDoesNotContain"
    ABSOLUTE_PATH_DOES_END_WITH = "AbsolutePathDoesEndWith"
    ABSOLUTE_PATH_DOES_NOT_END_WITH = "AbsolutePathDoesNotEndWith"

    def apply(self, entry: Entry, text: str, case_sensitive: bool = False) -> bool:
        """Return ``True`` if ``entry`` passes this filter for ``text``."""

        subject = entry.relative_path if self.value.startswith("Relative") else entry.absolute_path
        if not case_sensitive:
            subject = subject.lower()
            text = text.lower()
        return _COMPARISONS[self.value.removeprefix("Relative").removeprefix("Absolute")](subject, text)


_COMPARISONS: dict[str, Callable[[str, str], bool]] = {
    "PathIs": lambda subject, text: subject == text,
    "PathIsNot": lambda subject, text: subject != text,
    "PathDoesStartWith": lambda subject, text: subject.startswith(text),
    "PathDoesNotStartWith": lambda subject, text: not subject.startswith(text),
    "PathDoesContain": lambda subject, text: text in subject,
    "PathDoesNotContain": lambda subject, text: text not in subject,
    "PathDoesEndWith": lambda subject, text: subject.endswith(text),
    "PathDoesNotEndWith": lambda subject, text: not subject.endswith(text),
}


class NodeFilterRule(BaseModel):
    """A filter kind bound to its input text."""

    model_config = ConfigDict(frozen=True)

    filter: NodeFilter
    input: str
    case_sensitive: bool = False

    def matches(self, entry: Entry) -> bool:
        return self.filter.apply(entry, self.input, self.case_sensitive)


class NodeFilterFromInput(BaseModel):
    """A filter kind whose input text is read from the input buffer."""

    model_config = ConfigDict(frozen=True)

    filter: NodeFilter
    case_sensitive: bool = False

    def with_input(self, text: str) -> NodeFilterRule:
        return NodeFilterRule(filter=self.filter, input=text, case_sensitive=self.case_sensitive)


HIDDEN_FILES_RULE = NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_NOT_START_WITH, input=".")


@dataclass(slots=True)
class FilterSet:
    """Ordered conjunction of filter rules.

    An entry is visible only when every rule matches, so adding a rule can
    only shrink the visible set.
    """

    rules: list[NodeFilterRule] = field(default_factory=list)

    @classmethod
    def default(cls, show_hidden: bool = False) -> "FilterSet":
        return cls([] if show_hidden else [HIDDEN_FILES_RULE])

    def __iter__(self) -> Iterator[NodeFilterRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __contains__(self, rule: object) -> bool:
        return rule in self.rules

    def is_visible(self, entry: Entry) -> bool:
        return all(rule.matches(entry) for rule in self.rules)

    def visible(self, entries: Iterable[Entry]) -> list[Entry]:
        return [entry for entry in entries if self.is_visible(entry)]

    def add(self, rule: NodeFilterRule) -> None:
        self.rules.append(rule)

    def remove(self, rule: NodeFilterRule) -> None:
        """Drop every rule equal to ``rule``."""

        self.rules = [existing for existing in self.rules if existing != rule]

    def toggle(self, rule: NodeFilterRule) -> None:
        if rule in self.rules:
            self.remove(rule)
        else:
            self.add(rule)

    def reset(self, show_hidden: bool = False) -> None:
        self.rules = FilterSet.default(show_hidden).rules

    def copy(self) -> "FilterSet":
        return FilterSet(list(self.rules))
