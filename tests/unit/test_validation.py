"""
Tests for identifier shape checks and input parsing.
"""

import pytest

from models import ErrorKind, FileSearchError, OperationType
from validation import (
    is_document_name,
    is_file_name,
    is_store_name,
    parse_metadata_json,
    parse_metadata_pairs,
    parse_operation_type,
    validate_operation_name,
)


class TestShapes:

    def test_store_name(self) -> None:
        assert is_store_name("fileSearchStores/abc")
        assert not is_store_name("Research")
        assert not is_store_name("files/abc")

    def test_file_name(self) -> None:
        assert is_file_name("files/abc")
        assert not is_file_name("paper.pdf")
        assert not is_file_name("fileSearchStores/abc")

    def test_document_name(self) -> None:
        assert is_document_name("fileSearchStores/abc/documents/d1")
        assert not is_document_name("fileSearchStores/abc")
        assert not is_document_name("paper.pdf")


class TestValidateOperationName:

    @pytest.mark.parametrize("name", [
        "fileSearchStores/abc/operations/op1",
        "fileSearchStores/abc/upload/operations/op1",
    ])
    def test_valid(self, name: str) -> None:
        assert validate_operation_name(name) == name

    def test_wrong_prefix(self) -> None:
        with pytest.raises(FileSearchError) as exc_info:
            validate_operation_name("operations/op1")
        assert exc_info.value.kind == ErrorKind.MALFORMED_IDENTIFIER
        assert "fileSearchStores/" in exc_info.value.message

    def test_missing_operations_segment(self) -> None:
        with pytest.raises(FileSearchError) as exc_info:
            validate_operation_name("fileSearchStores/abc")
        assert exc_info.value.kind == ErrorKind.MALFORMED_IDENTIFIER
        assert "/operations/" in exc_info.value.message


class TestParseOperationType:

    def test_empty_means_auto_detect(self) -> None:
        assert parse_operation_type(None) is None
        assert parse_operation_type("") is None

    def test_known_types(self) -> None:
        assert parse_operation_type("import") is OperationType.IMPORT
        assert parse_operation_type("upload") is OperationType.UPLOAD

    def test_unknown_type(self) -> None:
        with pytest.raises(FileSearchError) as exc_info:
            parse_operation_type("export")
        assert exc_info.value.kind == ErrorKind.INVALID_INPUT
        assert exc_info.value.message == "invalid operation type: export (must be 'import' or 'upload')"


class TestMetadataPairs:

    def test_pairs(self) -> None:
        assert parse_metadata_pairs(["author=Smith", "year=2024"]) == {
            "author": "Smith",
            "year": "2024",
        }

    def test_value_may_contain_equals(self) -> None:
        assert parse_metadata_pairs(["query=a=b"]) == {"query": "a=b"}

    def test_entries_without_equals_ignored(self) -> None:
        assert parse_metadata_pairs(["orphan", "k=v"]) == {"k": "v"}

    def test_none(self) -> None:
        assert parse_metadata_pairs(None) == {}


class TestMetadataJson:

    def test_object_of_strings(self) -> None:
        assert parse_metadata_json('{"author": "Smith"}') == {"author": "Smith"}

    def test_empty(self) -> None:
        assert parse_metadata_json(None) == {}
        assert parse_metadata_json("") == {}

    @pytest.mark.parametrize("value", [
        "{not json",
        '["a", "b"]',
        '{"year": 2024}',
    ])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(FileSearchError) as exc_info:
            parse_metadata_json(value)
        assert exc_info.value.kind == ErrorKind.INVALID_INPUT
        assert exc_info.value.message.startswith("Failed to parse metadata JSON")
