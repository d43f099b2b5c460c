"""Tests for reading documents and atomic text writes."""

import pytest

from jsonctc import JSONCTCDocument
from jsonctc.tools.fileio import DocumentReadError, DocumentWriteError, read_document, write_text


class TestReadDocument:
    def test_reads_jsonctc(self, tmp_path) -> None:
        path = tmp_path / "config.jsonctc"
        path.write_text('{\n  // comment\n  "a": 1,\n}\n', encoding="utf-8")
        doc = read_document(path)
        assert doc["a"] == 1
        assert doc.to_string() == '{\n  // comment\n  "a": 1,\n}\n'

    def test_file_not_found(self, tmp_path) -> None:
        with pytest.raises(DocumentReadError) as exc:
            read_document(tmp_path / "missing.jsonctc")
        assert exc.value.kind == "fileNotFound"
        assert "missing.jsonctc" in str(exc.value)

    def test_parse_error(self, tmp_path) -> None:
        path = tmp_path / "bad.jsonctc"
        path.write_text("{ nope", encoding="utf-8")
        with pytest.raises(DocumentReadError) as exc:
            read_document(path)
        assert exc.value.kind == "parseError"

    def test_directory_is_a_read_error(self, tmp_path) -> None:
        with pytest.raises(DocumentReadError) as exc:
            read_document(tmp_path)
        assert exc.value.kind in {"readError", "accessDenied"}


class TestWriteText:
    def test_creates_parent_directories(self, tmp_path) -> None:
        target = tmp_path / "a" / "b" / "out.jsonctc"
        written = write_text(target, "{}\n")
        assert written == target
        assert target.read_text(encoding="utf-8") == "{}\n"

    def test_accepts_documents(self, tmp_path) -> None:
        doc = JSONCTCDocument('{\n  // keep\n  "a": 1\n}')
        doc["a"] = 2
        target = tmp_path / "doc.jsonctc"
        write_text(target, doc)
        assert target.read_text(encoding="utf-8") == '{\n  // keep\n  "a": 2\n}\n'

    def test_replaces_existing_file_without_leftovers(self, tmp_path) -> None:
        target = tmp_path / "x.jsonctc"
        target.write_text("old", encoding="utf-8")
        write_text(target, "new")
        assert target.read_text(encoding="utf-8") == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["x.jsonctc"]

    def test_keeps_line_endings(self, tmp_path) -> None:
        target = tmp_path / "crlf.jsonctc"
        write_text(target, "{\r\n}\r\n")
        assert target.read_bytes() == b"{\r\n}\r\n"

    def test_failure_removes_temp_file(self, tmp_path) -> None:
        target = tmp_path / "taken"
        target.mkdir()
        with pytest.raises(DocumentWriteError) as exc:
            write_text(target, "data")
        assert exc.value.kind in {"writeError", "accessDenied"}
        assert [p.name for p in tmp_path.iterdir()] == ["taken"]
