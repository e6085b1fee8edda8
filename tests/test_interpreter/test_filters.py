"""Tests for value filters."""

import pytest

from pjsh.interpreter import ExpansionError
from pjsh.interpreter.filters import FILTERS, apply_filter


class TestListFilters:
    """Test filters that take a list."""

    def test_sort_is_code_point_order(self):
        assert apply_filter("sort", ["b", "A", "a"], []) == ["A", "a", "b"]

    def test_join(self):
        assert apply_filter("join", ["1", "2", "3"], [","]) == "1,2,3"

    def test_len(self):
        assert apply_filter("len", ["a", "b", "c"], []) == "3"
        assert apply_filter("len", [], []) == "0"

    def test_first_last_nth(self):
        items = ["a", "b", "c"]
        assert apply_filter("first", items, []) == "a"
        assert apply_filter("last", items, []) == "c"
        assert apply_filter("nth", items, ["1"]) == "b"

    def test_missing_items(self):
        with pytest.raises(ExpansionError):
            apply_filter("first", [], [])
        with pytest.raises(ExpansionError):
            apply_filter("nth", ["a"], ["3"])
        with pytest.raises(ExpansionError):
            apply_filter("nth", ["a"], ["x"])

    def test_reverse(self):
        assert apply_filter("reverse", ["a", "b", "c"], []) == ["c", "b", "a"]

    def test_unique_keeps_first_occurrence(self):
        assert apply_filter("unique", ["b", "a", "b", "c", "a"], []) == ["b", "a", "c"]

    def test_replace_items(self):
        assert apply_filter("replace", ["a", "b", "a"], ["a", "z"]) == ["z", "b", "z"]

    def test_input_is_not_mutated(self):
        items = ["b", "a"]
        apply_filter("sort", items, [])
        apply_filter("reverse", items, [])
        assert items == ["b", "a"]


class TestWordFilters:
    """Test filters that take a word."""

    def test_split(self):
        assert apply_filter("split", "a,b,,c", [","]) == ["a", "b", "", "c"]

    def test_split_empty_separator(self):
        with pytest.raises(ExpansionError):
            apply_filter("split", "abc", [""])

    def test_lines(self):
        assert apply_filter("lines", "a\nb\n", []) == ["a", "b"]

    def test_words(self):
        assert apply_filter("words", "  a \t b\n", []) == ["a", "b"]

    def test_case(self):
        assert apply_filter("lowercase", "HeLLo", []) == "hello"
        assert apply_filter("uppercase", "HeLLo", []) == "HELLO"
        assert apply_filter("ucfirst", "hello world", []) == "Hello world"
        assert apply_filter("ucfirst", "", []) == ""

    def test_replace_substrings(self):
        assert apply_filter("replace", "a-b-c", ["-", "+"]) == "a+b+c"


class TestFilterErrors:
    """Test kind and arity checking."""

    def test_list_filter_on_word(self):
        with pytest.raises(ExpansionError, match="cannot be applied to a word"):
            apply_filter("sort", "abc", [])

    def test_word_filter_on_list(self):
        with pytest.raises(ExpansionError, match="cannot be applied to a list"):
            apply_filter("split", ["a"], [","])

    def test_missing_argument(self):
        with pytest.raises(ExpansionError, match="missing argument 'separator'"):
            apply_filter("join", ["a"], [])

    def test_unexpected_argument(self):
        with pytest.raises(ExpansionError, match="takes no arguments"):
            apply_filter("len", ["a"], ["x"])

    def test_too_many_arguments(self):
        with pytest.raises(ExpansionError, match="too many arguments"):
            apply_filter("join", ["a"], [",", ";"])

    def test_unknown_filter(self):
        with pytest.raises(ExpansionError, match="unknown filter: nope"):
            apply_filter("nope", "a", [])

    def test_registry(self):
        assert set(FILTERS) >= {"join", "sort", "split", "lines", "words", "len"}
