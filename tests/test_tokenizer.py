"""Tests for core/tokenizer.py: hashtag extraction boundaries."""

from __future__ import annotations

import pytest

from core.tokenizer import compile_hashtag_pattern, contains_tag, extract_hashtags


class TestExtractHashtags:
    def test_hash_glued_to_previous_tag_is_ignored(self):
        assert extract_hashtags("hello #foo-bar#baz #foo") == ["foo-bar", "foo"]

    def test_tag_at_start_of_text(self):
        assert extract_hashtags("#release notes") == ["release"]

    @pytest.mark.parametrize("sep", [" ", "\t", "\n", "\r\n"])
    def test_any_whitespace_before_hash(self, sep):
        assert extract_hashtags(f"first{sep}#second") == ["second"]

    def test_hash_inside_word_is_ignored(self):
        assert extract_hashtags("issue#42 and a#b") == []

    def test_case_preserved(self):
        assert extract_hashtags("#Foo #foo #FOO") == ["Foo", "foo", "FOO"]

    def test_duplicates_retained_in_order(self):
        assert extract_hashtags("#a #b #a") == ["a", "b", "a"]

    def test_allowed_punctuation(self):
        assert extract_hashtags("#v1.2.3 #snake_case #kebab-case") == ["v1.2.3", "snake_case", "kebab-case"]

    def test_tag_stops_at_disallowed_character(self):
        assert extract_hashtags("#done! #wip, #todo?") == ["done", "wip", "todo"]

    def test_bare_hash_and_heading_not_tags(self):
        assert extract_hashtags("# Heading and # alone #") == []

    def test_empty_text(self):
        assert extract_hashtags("") == []

    def test_non_ascii_letters_end_tag(self):
        assert extract_hashtags("#café") == ["caf"]

    def test_precompiled_pattern_gives_same_result(self):
        pattern = compile_hashtag_pattern()
        text = "x #one #two-2"
        assert extract_hashtags(text, pattern) == extract_hashtags(text)


class TestContainsTag:
    def test_exact_match(self):
        assert contains_tag("shipping #Foo today", "Foo")

    def test_case_sensitive(self):
        assert not contains_tag("shipping #Foo today", "foo")

    def test_prefix_is_not_a_match(self):
        assert not contains_tag("#db-read", "db")

    def test_unanchored_hash_is_not_a_match(self):
        assert not contains_tag("x#foo", "foo")
