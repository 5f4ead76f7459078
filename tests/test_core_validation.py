"""Tests for chronyx.core.validation — queue input checks."""

import pytest

from chronyx.core.validation import (
    validate_backend_url,
    validate_operation,
    validate_payload,
    validate_table_name,
)


class TestValidateOperation:
    @pytest.mark.parametrize("operation", ["insert", "update", "delete", "upsert"])
    def test_known_operations(self, operation):
        assert validate_operation(operation) == operation

    def test_normalizes_case_and_whitespace(self):
        assert validate_operation("  UPSERT ") == "upsert"

    def test_rejects_unknown(self):
        with pytest.raises(ValueError, match="Invalid operation 'merge'"):
            validate_operation("merge")

    def test_rejects_non_string(self):
        with pytest.raises(ValueError, match="must be a string"):
            validate_operation(None)


class TestValidateTableName:
    @pytest.mark.parametrize("table", ["todos", "study_logs", "Expenses2024"])
    def test_plain_identifiers(self, table):
        assert validate_table_name(table) == table

    @pytest.mark.parametrize("table", ["", "todos?select=*", "../users", "a b", "rpc/fn"])
    def test_rejects_unsafe(self, table):
        with pytest.raises(ValueError):
            validate_table_name(table)

    def test_length_limit(self):
        validate_table_name("t" * 63)
        with pytest.raises(ValueError, match="too long"):
            validate_table_name("t" * 64)


class TestValidatePayload:
    def test_none_is_empty(self):
        assert validate_payload(None) == {}

    def test_mapping_passes_through(self):
        data = {"amount": 12.5, "tags": ["food"]}
        assert validate_payload(data) is data

    @pytest.mark.parametrize("data", [[1, 2], "text", 42])
    def test_rejects_non_mapping(self, data):
        with pytest.raises(ValueError, match="mapping"):
            validate_payload(data)


class TestValidateBackendUrl:
    def test_https(self):
        assert validate_backend_url("https://project.supabase.co") == "https://project.supabase.co"

    def test_localhost_http(self):
        assert validate_backend_url("http://127.0.0.1:54321") == "http://127.0.0.1:54321"

    @pytest.mark.parametrize(
        "url", ["", "http://remote.example.com", "ftp://project.supabase.co", "https://"]
    )
    def test_rejected(self, url):
        assert validate_backend_url(url) is None
