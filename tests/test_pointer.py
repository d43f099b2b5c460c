"""Tests for document paths and JSON Pointer helpers."""

import pytest

from jsonctc.tools.pointer import (
    as_index,
    format_path,
    is_index,
    is_prefix,
    join_pointer,
    parse_path_arg,
    split_path,
    split_pointer,
)


class TestIndexes:
    @pytest.mark.parametrize("seg", [0, 3, "0", "12"])
    def test_indexes(self, seg) -> None:
        assert is_index(seg)

    @pytest.mark.parametrize("seg", [-1, "-1", "1.5", "x", "", True, False, None, 1.0])
    def test_not_indexes(self, seg) -> None:
        assert not is_index(seg)
        assert as_index(seg) is None

    def test_as_index_converts_numerals(self) -> None:
        assert as_index("7") == 7
        assert as_index(7) == 7


class TestPaths:
    def test_dotted_string(self) -> None:
        assert split_path("servers.0.host") == ("servers", "0", "host")

    def test_empty_segments_dropped(self) -> None:
        assert split_path("a..b.") == ("a", "b")
        assert split_path("") == ()

    def test_sequences_pass_through(self) -> None:
        assert split_path(["a", 0]) == ("a", 0)

    def test_is_prefix_treats_numerals_as_indexes(self) -> None:
        assert is_prefix(("xs",), ("xs", 0))
        assert is_prefix(("xs", "0"), ("xs", 0, "name"))
        assert not is_prefix(("xs", 1), ("xs", 0))
        assert not is_prefix(("xs", 0, "a"), ("xs", 0))

    def test_format_path(self) -> None:
        assert format_path(("servers", 0, "host")) == "servers[0].host"
        assert format_path((0,)) == "[0]"
        assert format_path(()) == "<root>"


class TestPointers:
    def test_split_pointer_unescapes(self) -> None:
        assert split_pointer("/a~1b/m~0n/0") == ("a/b", "m~n", "0")

    def test_root_pointer(self) -> None:
        assert split_pointer("") == ()
        assert split_pointer("/") == ()

    def test_join_pointer_escapes(self) -> None:
        assert join_pointer(["a/b", "m~n", 0]) == "/a~1b/m~0n/0"
        assert join_pointer([]) == ""

    def test_invalid_pointer(self) -> None:
        with pytest.raises(ValueError):
            split_pointer("a/b")

    def test_cli_path_syntax(self) -> None:
        assert parse_path_arg("/servers/0/host") == ("servers", "0", "host")
        assert parse_path_arg("servers.0.host") == ("servers", "0", "host")
