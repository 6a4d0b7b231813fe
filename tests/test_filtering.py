#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Tests for substring filtering, plain and incremental."""

import pytest

import finder.filtering as filtering
from finder.filtering import AppendOnlyFilter, filter_lines, filtered_node, split_matches
from finder.incremental import Incremental
from finder.line_store import LineStore
from finder.models import Line


def make_lines(*texts):
    return [Line(i + 1, text) for i, text in enumerate(texts)]


@pytest.fixture
def match_calls(monkeypatch):
    """Count calls to the per-line match test."""
    calls = []
    original = filtering.matches

    def counting(text, needle):
        calls.append(text)
        return original(text, needle)

    monkeypatch.setattr(filtering, "matches", counting)
    return calls


# --- Tests for filter_lines ---


class TestFilterLines:
    """Tests for the full-scan filter."""

    def test_substring_match(self):
        lines = make_lines("apple", "banana", "grape")
        assert [l.text for l in filter_lines(lines, "an")] == ["banana"]

    def test_empty_needle_keeps_everything(self):
        lines = make_lines("apple", "banana", "grape")
        assert list(filter_lines(lines, "")) == lines

    def test_order_preserved(self):
        lines = make_lines("xa", "b", "ax", "a")
        assert [l.seq for l in filter_lines(lines, "a")] == [1, 3, 4]

    def test_case_sensitive(self):
        lines = make_lines("Apple", "apple")
        assert [l.text for l in filter_lines(lines, "A")] == ["Apple"]

    @pytest.mark.parametrize("needle", [".", "a*", "[x]", "(", "\\d", "^a", "$"])
    def test_needle_is_literal(self, needle):
        lines = make_lines("abc", f"has {needle} inside", "123")
        result = filter_lines(lines, needle)
        assert [l.text for l in result] == [f"has {needle} inside"]

    def test_matches_subsequence_definition(self):
        texts = ["", "a", "ab", "ba", "bab", "b", "aab"]
        lines = make_lines(*texts)
        for needle in ["", "a", "ab", "b", "ba", "zz"]:
            expected = [line for line in lines if needle in line.text]
            assert list(filter_lines(lines, needle)) == expected


# --- Tests for split_matches ---


class TestSplitMatches:
    """Tests for highlight segmentation."""

    def test_split_around_every_occurrence(self):
        assert split_matches("banana", "an") == [
            ("b", False),
            ("an", True),
            ("an", True),
            ("a", False),
        ]

    def test_empty_needle(self):
        assert split_matches("text", "") == [("text", False)]
        assert split_matches("", "") == []

    def test_no_match(self):
        assert split_matches("grape", "an") == [("grape", False)]

    def test_segments_rebuild_text(self):
        segments = split_matches("a-b-a-b", "-")
        assert "".join(s for s, _ in segments) == "a-b-a-b"


# --- Tests for AppendOnlyFilter ---


class TestAppendOnlyFilter:
    """Tests for the incremental folder."""

    def test_only_new_lines_scanned(self, match_calls):
        store = LineStore(Incremental())
        for text in ["apple", "banana", "grape"]:
            store.append(text)
        folder = AppendOnlyFilter("an")
        assert folder(store.snapshot()).texts == ["banana"]
        assert len(match_calls) == 3

        store.append("mango")
        assert folder(store.snapshot()).texts == ["banana", "mango"]
        assert len(match_calls) == 4
        assert match_calls[-1] == "mango"
        assert folder.lines_scanned == 4

    def test_previous_results_stay_valid(self):
        store = LineStore(Incremental())
        store.append("an1")
        folder = AppendOnlyFilter("an")
        first = folder(store.snapshot())
        store.append("an2")
        second = folder(store.snapshot())
        assert first.texts == ["an1"]
        assert second.texts == ["an1", "an2"]

    def test_unrelated_snapshot_rescans(self):
        one = LineStore(Incremental())
        two = LineStore(Incremental())
        one.append("x1")
        two.append("x2")
        two.append("y")
        folder = AppendOnlyFilter("x")
        assert folder(one.snapshot()).texts == ["x1"]
        assert folder(two.snapshot()).texts == ["x2"]


# --- Tests for filtered_node ---


class TestFilteredNode:
    """Filtering wired into the engine."""

    def setup_method(self):
        self.engine = Incremental()
        self.store = LineStore(self.engine)
        self.needle = self.engine.var("")
        self.node = filtered_node(self.engine, self.store.node, self.needle)
        self.observer = self.engine.observe(self.node)

    def texts(self):
        return self.observer.value.texts

    def test_end_to_end_filter(self):
        for text in ["apple", "banana", "grape"]:
            self.store.append(text)
        self.needle.set("an")
        self.engine.stabilize()
        assert self.texts() == ["banana"]

    def test_empty_filter_keeps_all(self):
        for text in ["apple", "banana", "grape"]:
            self.store.append(text)
        self.engine.stabilize()
        assert self.texts() == ["apple", "banana", "grape"]

    def test_append_is_incremental(self, match_calls):
        for text in ["apple", "banana", "grape"]:
            self.store.append(text)
        self.needle.set("a")
        self.engine.stabilize()
        scanned = len(match_calls)

        self.store.append("papaya")
        self.engine.stabilize()

        assert self.texts() == ["apple", "banana", "grape", "papaya"]
        assert len(match_calls) == scanned + 1
        assert self.node.rebuild_count == 1

    def test_needle_change_rescans(self, match_calls):
        for text in ["apple", "banana", "grape"]:
            self.store.append(text)
        self.engine.stabilize()
        before = len(match_calls)

        self.needle.set("ap")
        self.engine.stabilize()

        assert self.texts() == ["apple", "grape"]
        assert len(match_calls) == before + 3
        assert self.node.rebuild_count == 2

    def test_non_matching_append_does_not_change_result(self):
        self.store.append("banana")
        self.needle.set("an")
        self.engine.stabilize()
        changed_at = self.node.changed_at

        self.store.append("kiwi")
        self.engine.stabilize()

        assert self.texts() == ["banana"]
        assert self.node.changed_at == changed_at
