from __future__ import annotations

import pytest

from conftest import make_entry
from dirpilot.filters import HIDDEN_FILES_RULE, FilterSet, NodeFilter, NodeFilterFromInput, NodeFilterRule

ENTRY = make_entry("/Home/User", "Notes.TXT")


@pytest.mark.parametrize(
    ("kind", "text", "expected"),
    [
        (NodeFilter.RELATIVE_PATH_IS, "notes.txt", True),
        (NodeFilter.RELATIVE_PATH_IS_NOT, "notes.txt", False),
        (NodeFilter.RELATIVE_PATH_DOES_START_WITH, "note", True),
        (NodeFilter.RELATIVE_PATH_DOES_NOT_START_WITH, "note", False),
        (NodeFilter.RELATIVE_PATH_DOES_CONTAIN, "es.t", True),
        (NodeFilter.RELATIVE_PATH_DOES_NOT_CONTAIN, "es.t", False),
        (NodeFilter.RELATIVE_PATH_DOES_END_WITH, ".txt", True),
        (NodeFilter.RELATIVE_PATH_DOES_NOT_END_WITH, ".txt", False),
        (NodeFilter.ABSOLUTE_PATH_IS, "/home/user/notes.txt", True),
        (NodeFilter.ABSOLUTE_PATH_IS_NOT, "/home/user/notes.txt", False),
        (NodeFilter.ABSOLUTE_PATH_DOES_START_WITH, "/home", True),
        (NodeFilter.ABSOLUTE_PATH_DOES_NOT_START_WITH, "/home", False),
        (NodeFilter.ABSOLUTE_PATH_DOES_CONTAIN, "user/", True),
        (NodeFilter.ABSOLUTE_PATH_DOES_NOT_CONTAIN, "user/", False),
        (NodeFilter.ABSOLUTE_PATH_DOES_END_WITH, "/notes.txt", True),
        (NodeFilter.ABSOLUTE_PATH_DOES_NOT_END_WITH, "/notes.txt", False),
    ],
)
def test_every_filter_kind_case_insensitive(kind: NodeFilter, text: str, expected: bool) -> None:
    assert kind.apply(ENTRY, text) is expected


def test_case_sensitive_comparison_respects_case() -> None:
    rule = NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_START_WITH, input="notes", case_sensitive=True)
    assert not rule.matches(ENTRY)

    rule = NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_START_WITH, input="Notes", case_sensitive=True)
    assert rule.matches(ENTRY)


def test_absolute_filter_ignores_relative_path() -> None:
    rule = NodeFilterRule(filter=NodeFilter.ABSOLUTE_PATH_DOES_START_WITH, input="notes")
    assert not rule.matches(ENTRY)


def test_rule_defaults_to_case_insensitive() -> None:
    rule = NodeFilterRule.model_validate({"filter": "RelativePathIs", "input": "x"})
    assert rule.case_sensitive is False
    assert rule.filter is NodeFilter.RELATIVE_PATH_IS


def test_default_filter_set_hides_dotfiles() -> None:
    filters = FilterSet.default()
    entries = [make_entry("/repo", ".git"), make_entry("/repo", "README.md")]

    visible = filters.visible(entries)

    assert [entry.relative_path for entry in visible] == ["README.md"]


def test_show_hidden_default_has_no_rules() -> None:
    filters = FilterSet.default(show_hidden=True)
    assert len(filters) == 0
    assert filters.is_visible(make_entry("/repo", ".git"))


def test_adding_filters_only_shrinks_visible_set() -> None:
    entries = [make_entry("/src", name) for name in ("app.py", "app_test.py", ".env", "lib.rs", "README")]
    filters = FilterSet(rules=[NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_NOT_END_WITH, input=".rs")])
    extra_rules = [
        NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_CONTAIN, input="app"),
        NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_IS_NOT, input="readme"),
        HIDDEN_FILES_RULE,
    ]

    for rule in extra_rules:
        before = set(entry.relative_path for entry in filters.visible(entries))
        filters.add(rule)
        after = set(entry.relative_path for entry in filters.visible(entries))
        assert after <= before


def test_remove_drops_every_equal_rule() -> None:
    rule = NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_CONTAIN, input="x")
    filters = FilterSet(rules=[rule, HIDDEN_FILES_RULE, rule])

    filters.remove(rule)

    assert filters.rules == [HIDDEN_FILES_RULE]


def test_toggle_adds_then_removes() -> None:
    rule = NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_DOES_CONTAIN, input="x")
    filters = FilterSet()

    filters.toggle(rule)
    assert rule in filters
    filters.toggle(rule)
    assert rule not in filters


def test_reset_restores_default_rules() -> None:
    filters = FilterSet(rules=[NodeFilterRule(filter=NodeFilter.RELATIVE_PATH_IS, input="x")])

    filters.reset(show_hidden=False)
    assert filters.rules == [HIDDEN_FILES_RULE]

    filters.reset(show_hidden=True)
    assert filters.rules == []


def test_filter_from_input_builds_rule() -> None:
    template = NodeFilterFromInput(filter=NodeFilter.ABSOLUTE_PATH_DOES_CONTAIN, case_sensitive=True)

    rule = template.with_input("tmp")

    assert rule == NodeFilterRule(filter=NodeFilter.ABSOLUTE_PATH_DOES_CONTAIN, input="tmp", case_sensitive=True)
