"""
Unit tests for locating JSON inside model completions.
"""

import pytest

from src.core.exceptions import GenerationError, MalformedJsonError, NoJsonFoundError
from src.infra.llm.extraction import (
    FRAGMENT_LIMIT,
    extract_json_object,
    find_balanced_spans,
    locate_json,
    parse_json_object,
)


class TestBalancedSpans:
    """Test suite for find_balanced_spans()."""

    def test_finds_each_top_level_object(self):
        spans = find_balanced_spans('a {"x": {"y": 1}} b {"z": 2}')

        assert spans == ['{"x": {"y": 1}}', '{"z": 2}']

    def test_braces_inside_strings_do_not_count(self):
        text = '{"code": "function f() { return \\"}\\"; }"}'

        assert find_balanced_spans(text) == [text]

    def test_unterminated_span_is_ignored(self):
        assert find_balanced_spans('{"a": {"b": 1}') == []


class TestLocateJson:
    """Test suite for the location strategy chain."""

    def test_fenced_block_with_prose(self):
        text = 'Here is your problem:\n```json\n{"title": "Two Sum"}\n```\nGood luck!'

        assert extract_json_object(text) == {"title": "Two Sum"}

    def test_untagged_fence(self):
        text = '```\n{"title": "Two Sum"}\n```'

        assert extract_json_object(text) == {"title": "Two Sum"}

    def test_bare_object_inside_prose(self):
        text = 'Sure! {"title": "Two Sum", "difficulty": "easy"} Hope that helps.'

        assert extract_json_object(text) == {"title": "Two Sum", "difficulty": "easy"}

    def test_longest_span_wins_when_several(self):
        text = 'Format: {"a": 1}. Answer: {"title": "Two Sum", "difficulty": "easy"}'

        assert locate_json(text) == '{"title": "Two Sum", "difficulty": "easy"}'

    def test_fence_preferred_over_other_spans(self):
        text = 'Schema {"title": string, "long": "xxxxxxxxxxxxxxxx"}\n```json\n{"title": "Real"}\n```'

        assert extract_json_object(text) == {"title": "Real"}

    @pytest.mark.parametrize("text", ["", "No JSON here.", 'text {"a": 1'])
    def test_nothing_found(self, text):
        with pytest.raises(NoJsonFoundError):
            locate_json(text)


class TestParseJsonObject:
    """Test suite for decoding located candidates."""

    def test_malformed_carries_fragment(self):
        with pytest.raises(MalformedJsonError) as exc_info:
            parse_json_object('{"a": 1,}')

        assert exc_info.value.fragment == '{"a": 1,}'

    def test_fragment_is_truncated(self):
        candidate = '{"a": "' + "x" * 500 + '",}'

        with pytest.raises(MalformedJsonError) as exc_info:
            parse_json_object(candidate)

        assert len(exc_info.value.fragment) == FRAGMENT_LIMIT

    def test_non_object_is_malformed(self):
        with pytest.raises(MalformedJsonError):
            parse_json_object("[1, 2, 3]")

    def test_deep_nesting_is_malformed(self):
        depth = 100_000
        completion = '{"title": "x", "a": ' + "[" * depth + "]" * depth + "}"

        with pytest.raises(MalformedJsonError) as exc_info:
            extract_json_object(completion)

        assert len(exc_info.value.fragment) == FRAGMENT_LIMIT

    def test_extraction_errors_are_generation_errors(self):
        assert issubclass(NoJsonFoundError, GenerationError)
        assert issubclass(MalformedJsonError, GenerationError)
