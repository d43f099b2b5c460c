"""Tests for text splices and the general (object member) editor.

Verifies:
- splices apply from the highest offset down and reject overlaps
- set replaces only the value span, leaving comments and commas alone
- new properties follow the indentation of their siblings
- missing parents are created as one nested value
- delete removes the property with its separator
"""

import pytest

from jsonctc.tools.edits import (
    EditError,
    TextSplice,
    apply_edits,
    detect_eol,
    dumps_value,
    edit_for_delete,
    edit_for_set,
)
from jsonctc.tools.jsonpos import parse


def set_(text, path, value):
    return apply_edits(text, edit_for_set(text, path, value))


def delete(text, path):
    return apply_edits(text, edit_for_delete(text, path))


class TestApplyEdits:
    def test_applies_in_descending_order(self) -> None:
        edits = [TextSplice(0, 1, "X"), TextSplice(4, 2, "YZ")]
        assert apply_edits("abcdef", edits) == "XbcdYZ"

    def test_insertion(self) -> None:
        assert apply_edits("ac", [TextSplice(1, 0, "b")]) == "abc"

    def test_overlap_rejected(self) -> None:
        with pytest.raises(EditError):
            apply_edits("abcdef", [TextSplice(0, 3, ""), TextSplice(2, 2, "")])

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(EditError):
            apply_edits("abc", [TextSplice(2, 5, "")])

    def test_no_edits(self) -> None:
        assert apply_edits("abc", []) == "abc"


class TestFormattingHelpers:
    def test_detect_eol(self) -> None:
        assert detect_eol("{\r\n}") == "\r\n"
        assert detect_eol("{\n}") == "\n"
        assert detect_eol("{}") == "\n"

    def test_dumps_scalar(self) -> None:
        assert dumps_value("héllo") == '"héllo"'

    def test_dumps_container_indents_continuation_lines(self) -> None:
        assert dumps_value({"a": [1]}, "    ") == '{\n      "a": [\n        1\n      ]\n    }'


class TestSet:
    def test_replace_existing_value_keeps_comments(self) -> None:
        text = '{\n  // c\n  "a": 1,\n  "b": 2\n}\n'
        assert set_(text, ["a"], 5) == '{\n  // c\n  "a": 5,\n  "b": 2\n}\n'

    def test_replace_keeps_trailing_comma(self) -> None:
        text = '{\n  "a": 1,\n}'
        assert set_(text, ["a"], "x") == '{\n  "a": "x",\n}'

    def test_insert_into_multiline_object(self) -> None:
        text = '{\n  "a": 1\n}'
        assert set_(text, ["b"], True) == '{\n  "a": 1,\n  "b": true\n}'

    def test_insert_into_single_line_object(self) -> None:
        assert set_('{"a": 1}', ["b"], 2) == '{"a": 1, "b": 2}'

    def test_insert_into_empty_object(self) -> None:
        assert set_("{}", ["a"], 1) == '{\n  "a": 1\n}'

    def test_insert_nested_uses_nested_indentation(self) -> None:
        text = '{\n  "outer": {\n    "a": 1\n  }\n}'
        assert set_(text, ["outer", "b"], 2) == '{\n  "outer": {\n    "a": 1,\n    "b": 2\n  }\n}'

    def test_missing_parents_created(self) -> None:
        text = '{\n  "a": 1\n}'
        expected = '{\n  "a": 1,\n  "x": {\n    "y": 2\n  }\n}'
        assert set_(text, ["x", "y"], 2) == expected

    def test_set_root(self) -> None:
        assert set_('// keep\n"old"', [], "new") == '// keep\n"new"'

    def test_set_in_range_array_element(self) -> None:
        assert set_("[1, 2]", [1], 3) == "[1, 3]"

    def test_scalar_parent_is_an_error(self) -> None:
        with pytest.raises(EditError, match="parent is not an object \\(found number\\)"):
            edit_for_set('{"a": 1}', ["a", "b"], 2)

    def test_crlf_documents_stay_crlf(self) -> None:
        text = '{\r\n  "a": 1\r\n}'
        assert set_(text, ["b"], 2) == '{\r\n  "a": 1,\r\n  "b": 2\r\n}'


class TestDelete:
    def test_delete_middle_property(self) -> None:
        text = '{\n  "a": 1,\n  "b": 2,\n  "c": 3\n}'
        assert delete(text, ["b"]) == '{\n  "a": 1,\n  "c": 3\n}'

    def test_delete_last_property(self) -> None:
        text = '{\n  "a": 1,\n  "b": 2\n}'
        assert delete(text, ["b"]) == '{\n  "a": 1\n}'

    def test_delete_first_property_multiline(self) -> None:
        text = '{\n  "a": 1,\n  "b": 2,\n  "c": 3\n}'
        assert delete(text, ["a"]) == '{\n  "b": 2,\n  "c": 3\n}'

    def test_delete_first_property_single_line(self) -> None:
        assert delete('{"a": 1, "b": 2}', ["a"]) == '{"b": 2}'

    def test_delete_only_property(self) -> None:
        assert delete('{"a": 1}', ["a"]) == "{}"

    def test_delete_keeps_other_comments(self) -> None:
        text = '{\n  // name\n  "name": "A",\n  // age\n  "age": 3,\n  // city\n  "city": "X"\n}'
        out = delete(text, ["city"])
        assert "// name" in out and "// age" in out
        assert '"city"' not in out
        assert parse(out) == {"name": "A", "age": 3}

    def test_missing_property_is_a_no_op(self) -> None:
        assert edit_for_delete('{"a": 1}', ["b"]) == []
        assert edit_for_delete('{"a": 1}', ["x", "y"]) == []

    def test_delete_root_is_an_error(self) -> None:
        with pytest.raises(EditError):
            edit_for_delete("{}", [])

    def test_delete_from_array_parent_is_an_error(self) -> None:
        with pytest.raises(EditError, match="parent is not an object"):
            edit_for_delete("[1]", [0])

    @pytest.mark.parametrize(
        "text, path, expected",
        [
            ('{ "a": 1, }', ["a"], "{ }"),
            ('{\n  // settings\n  "a": 1,\n}\n', ["a"], '{\n  // settings\n}\n'),
            (
                '{\n  "ui": {\n    "theme": "dark",\n  },\n  "b": 1\n}',
                ["ui", "theme"],
                '{\n  "ui": {\n  },\n  "b": 1\n}',
            ),
            ('{"a": 1 /* c */, "b": 2 // keep\n}', ["a"], '{"b": 2 // keep\n}'),
            ('{\n  "a": 1\n  , "b": 2\n}', ["a"], '{\n  "b": 2\n}'),
            ('{"a": 1 /* c */, "b": 2}', ["b"], '{"a": 1}'),
        ],
    )
    def test_delete_finds_separator_past_comments_and_breaks(self, text, path, expected) -> None:
        out = delete(text, path)
        assert out == expected
        parse(out)
