"""Tests for array-aware text surgery."""

import logging

import pytest

from jsonctc.tools.edits import apply_edits
from jsonctc.tools.jsonpos import parse
from jsonctc.tools.surgery import DELETE, modify


def run(text, path, value=DELETE):
    return apply_edits(text, modify(text, path, value))


class TestReplaceElement:
    """In-range replacement touches the element span only."""

    def test_neighbouring_comment_kept(self) -> None:
        text = '["a", /* keep */ "b", "c"]'
        assert run(text, [0], "z") == '["z", /* keep */ "b", "c"]'

    def test_trailing_comma_state_kept(self) -> None:
        assert run("[\n  1,\n  2,\n]", [1], 5) == "[\n  1,\n  5,\n]"
        assert run("[\n  1,\n  2\n]", [1], 5) == "[\n  1,\n  5\n]"

    def test_numeral_string_index(self) -> None:
        assert run('{"xs": [1, 2]}', ["xs", "1"], 7) == '{"xs": [1, 7]}'

    def test_container_value_is_indented_at_the_element(self) -> None:
        text = '{\n  "xs": [\n    1\n  ]\n}'
        assert run(text, ["xs", 0], {"a": 1}) == '{\n  "xs": [\n    {\n      "a": 1\n    }\n  ]\n}'


class TestDeleteElement:
    """In-range deletion takes one separator and at most one line break."""

    def test_middle_of_multiline_array(self) -> None:
        text = '[\n  "a",\n  "b",\n  "c"\n]'
        assert run(text, [1]) == '[\n  "a",\n  "c"\n]'

    def test_last_of_multiline_array(self) -> None:
        text = '[\n  "a",\n  "b",\n  "c"\n]'
        assert run(text, [2]) == '[\n  "a",\n  "b"\n]'

    def test_single_line(self) -> None:
        assert run("[1, 2, 3]", [0]) == "[2, 3]"
        assert run("[1, 2, 3]", [1]) == "[1, 3]"
        assert run("[1, 2, 3]", [2]) == "[1, 2]"

    def test_with_trailing_comma(self) -> None:
        out = run("[1, 2, 3,]", [2])
        assert parse(out) == [1, 2]
        assert out.rstrip("]").rstrip().endswith(",")

    def test_only_element(self) -> None:
        assert run("[1]", [0]) == "[]"
        assert run('[\n  "a"\n]', [0]) == "[\n]"

    def test_comment_on_other_element_kept(self) -> None:
        text = '[\n  // first\n  "a",\n  "b"\n]'
        out = run(text, [1])
        assert "// first" in out
        assert parse(out) == ["a"]

    def test_out_of_range_delete_is_a_no_op(self) -> None:
        assert modify("[1]", [5]) == []

    @pytest.mark.parametrize(
        "text, index, expected",
        [
            ("[1 /* one */, 2, 3]", 0, "[2, 3]"),
            ("[\n  1\n  , 2\n]", 0, "[\n  2\n]"),
            ("[\n  1 // one\n  , 2\n]", 0, "[\n  2\n]"),
            ("[1, 2 /* two */]", 1, "[1 /* two */]"),
            ("[\n  1,\n  2 // two\n  ,\n]", 1, "[\n  1,\n]"),
            ("[\n  1,\n]", 0, "[\n]"),
        ],
    )
    def test_separator_past_comments_and_breaks(self, text, index, expected) -> None:
        out = run(text, [index])
        assert out == expected
        assert parse(out) == [v for i, v in enumerate(parse(text)) if i != index]


class TestOutOfRangeSet:
    def test_pads_with_null(self) -> None:
        out = run('{"xs": [1]}', ["xs", 3], "x")
        assert parse(out) == {"xs": [1, None, None, "x"]}

    def test_append(self) -> None:
        out = run("[1, 2]", [2], 3)
        assert parse(out) == [1, 2, 3]


class TestNestedPaths:
    def test_edit_inside_array_element(self) -> None:
        text = '{\n  // servers\n  "servers": [{"host": "a", "port": 1}]\n}'
        out = run(text, ["servers", 0, "port"], 2)
        assert parse(out) == {"servers": [{"host": "a", "port": 2}]}
        assert "// servers" in out

    def test_delete_inside_array_element(self) -> None:
        out = run('{"servers": [{"host": "a", "port": 1}]}', ["servers", 0, "port"])
        assert parse(out) == {"servers": [{"host": "a"}]}

    def test_create_object_inside_array_element(self) -> None:
        out = run('[{"a": 1}]', [0, "b", "c"], True)
        assert parse(out) == [{"a": 1, "b": {"c": True}}]


class TestDelegation:
    """Paths without array elements go to the general editor."""

    def test_object_path(self) -> None:
        assert run('{"a": {"b": 1}}', ["a", "b"], 2) == '{"a": {"b": 2}}'

    def test_numeral_key_on_object(self) -> None:
        assert run('{"a": {"0": 1}}', ["a", "0"], 2) == '{"a": {"0": 2}}'

    def test_missing_parents(self) -> None:
        out = run("{}", ["a", "b"], 1)
        assert parse(out) == {"a": {"b": 1}}

    def test_object_delete(self) -> None:
        assert run('{"a": 1, "b": 2}', ["b"]) == '{"a": 1}'

    def test_int_segment_without_array_is_skipped(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="jsonctc.tools.surgery"):
            assert modify('{"a": {}}', ["a", 0], 1) == []
            assert modify('{"a": {}}', ["missing", 0], 1) == []
        assert "array not found" in caplog.text
