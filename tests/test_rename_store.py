"""Tests for the SQLite-backed cleanup rule store."""

import pytest

from reelkit.rename import DEFAULT_RULES, RuleStore


@pytest.fixture
def store(tmp_path):
    return RuleStore(tmp_path / "nested" / "rules.db")


def searches(store):
    return [r.search_text for r in store.list_rules()]


def test_new_store_is_empty_and_creates_parent(tmp_path, store):
    assert store.list_rules() == []
    assert (tmp_path / "nested" / "rules.db").exists()


def test_add_appends_in_order(store):
    first = store.add_rule("www.site.com - ")
    second = store.add_rule("(*)", "")
    third = store.add_rule(r"\s+\d+$", "", is_regex=True)

    assert first.rule_id is not None
    assert len({first.rule_id, second.rule_id, third.rule_id}) == 3
    assert searches(store) == ["www.site.com - ", "(*)", r"\s+\d+$"]

    rules = store.list_rules()
    assert rules[1].is_wildcard
    assert rules[2].is_regex
    assert all(r.is_enabled for r in rules)


def test_rules_persist_across_instances(tmp_path, store):
    store.add_rule("junk", "")
    assert [r.search_text for r in RuleStore(tmp_path / "nested" / "rules.db").list_rules()] == ["junk"]


def test_add_rejects_empty_search(store):
    with pytest.raises(ValueError):
        store.add_rule("")
    assert store.list_rules() == []


def test_update_rule(store):
    rule = store.add_rule("old", "x")
    assert store.update_rule(rule.rule_id, "new", "y")
    updated = store.list_rules()[0]
    assert (updated.search_text, updated.replace_text) == ("new", "y")
    assert not store.update_rule(9999, "a", "b")
    with pytest.raises(ValueError):
        store.update_rule(rule.rule_id, "", "b")


def test_toggle_rule(store):
    rule = store.add_rule("junk")
    assert store.toggle_rule(rule.rule_id, False)
    assert store.list_rules()[0].is_enabled is False
    assert store.toggle_rule(rule.rule_id, True)
    assert store.list_rules()[0].is_enabled is True
    assert not store.toggle_rule(9999, True)


def test_delete_rule(store):
    keep = store.add_rule("keep")
    drop = store.add_rule("drop")
    assert store.delete_rule(drop.rule_id)
    assert not store.delete_rule(drop.rule_id)
    assert [r.rule_id for r in store.list_rules()] == [keep.rule_id]


def test_move_rule(store):
    for text in ("a", "b", "c", "d"):
        store.add_rule(text)

    assert store.move_rule(3, 0)
    assert searches(store) == ["d", "a", "b", "c"]
    assert store.move_rule(0, 2)
    assert searches(store) == ["a", "b", "d", "c"]


@pytest.mark.parametrize("src,dst", [(1, 1), (-1, 0), (0, 4), (7, 0)])
def test_invalid_moves_are_rejected(store, src, dst):
    for text in ("a", "b", "c", "d"):
        store.add_rule(text)
    assert not store.move_rule(src, dst)
    assert searches(store) == ["a", "b", "c", "d"]


def test_load_cleaner_falls_back_to_defaults(store):
    cleaner = store.load_cleaner()
    assert cleaner.rules == list(DEFAULT_RULES)
    assert cleaner.clean_filename("A.2020.1080p.mkv") == "A.mkv"


def test_load_cleaner_uses_stored_rules_in_order(store):
    store.add_rule("foo", "bar")
    store.add_rule("bar", "baz")
    disabled = store.add_rule("baz", "qux")
    store.toggle_rule(disabled.rule_id, False)

    cleaner = store.load_cleaner()

    assert cleaner.clean_filename("foo.mkv") == "baz.mkv"
    assert cleaner.clean_filename("A.2020.1080p.mkv") == "A.2020.1080p.mkv"
