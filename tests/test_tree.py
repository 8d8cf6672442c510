"""
tests/test_tree.py
──────────────────
Tests for the translation tree helpers.
"""

from i18n_translate.tree import (
    clear_nulls,
    count_translated_keys,
    deep_merge,
    flatten_tree,
    prune_tree,
    unflatten_tree,
)


class TestFlattenTree:
    def test_nested_keys_are_dot_joined(self, base_tree):
        assert flatten_tree(base_tree) == {
            "greeting": "Hello",
            "menu.open": "Open",
            "menu.close": "Close",
        }

    def test_preserves_depth_first_order(self):
        tree = {"b": {"y": "1", "x": "2"}, "a": "3"}
        assert list(flatten_tree(tree)) == ["b.y", "b.x", "a"]

    def test_empty_tree(self):
        assert flatten_tree({}) == {}

    def test_round_trip(self, base_tree):
        assert unflatten_tree(flatten_tree(base_tree)) == base_tree


class TestUnflattenTree:
    def test_shared_prefixes_merge(self):
        assert unflatten_tree({"a.b": "1", "a.c": "2", "d": "3"}) == {
            "a": {"b": "1", "c": "2"},
            "d": "3",
        }

    def test_deeper_structure_wins_when_it_comes_last(self):
        assert unflatten_tree({"a": "x", "a.b": "y"}) == {"a": {"b": "y"}}

    def test_deeper_structure_wins_when_it_comes_first(self):
        assert unflatten_tree({"a.b": "y", "a": "x"}) == {"a": {"b": "y"}}


class TestDeepMerge:
    def test_merges_in_place(self):
        target = {"menu": {"open": "Otwórz"}, "greeting": "Cześć"}
        result = deep_merge(target, {"menu": {"close": "Zamknij"}})
        assert result is target
        assert target == {"menu": {"open": "Otwórz", "close": "Zamknij"}, "greeting": "Cześć"}

    def test_source_scalar_replaces_target(self):
        target = {"greeting": "Cześć"}
        deep_merge(target, {"greeting": "Witaj"})
        assert target == {"greeting": "Witaj"}

    def test_shared_source_subtree_is_copied(self):
        shared = {"open": "Open"}
        polish, japanese = {}, {}
        deep_merge(polish, {"menu": shared})
        deep_merge(japanese, {"menu": shared})

        polish["menu"]["open"] = "Otwórz"

        assert japanese["menu"] == {"open": "Open"}
        assert shared == {"open": "Open"}


class TestPruneTree:
    def test_drops_paths_missing_from_base(self, base_tree):
        candidate = {"greeting": "Cześć", "old": "Stary", "menu": {"open": "Otwórz", "gone": "x"}}
        assert prune_tree(base_tree, candidate) == {"greeting": "Cześć", "menu": {"open": "Otwórz"}}

    def test_does_not_modify_candidate(self, base_tree):
        candidate = {"old": "Stary"}
        prune_tree(base_tree, candidate)
        assert candidate == {"old": "Stary"}


class TestResultHelpers:
    def test_clear_nulls_drops_empty_subtrees(self):
        result = {"pl": {"a": None, "b": "B", "c": {"d": None}}, "ja": None}
        assert clear_nulls(result) == {"pl": {"b": "B"}}

    def test_clear_nulls_all_missing(self):
        assert clear_nulls({"pl": {"a": None}}) == {}

    def test_count_translated_keys(self):
        assert count_translated_keys({"pl": {"a": "A", "n": {"b": "B"}}, "ja": {"a": "A"}}) == 3
