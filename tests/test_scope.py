"""Tests for scope validation and form parameter access."""

import pytest

from tokenforge.auth.params import from_multi_items, optional_param, require_param
from tokenforge.auth.scope import format_scope, parse_scope, validate_scope
from tokenforge.core.exceptions import InvalidRequest, InvalidScope


class TestValidateScope:
    def test_no_request_returns_allowed(self):
        assert validate_scope(None, ["read", "write"]) == ["read", "write"]

    def test_subset_keeps_requested_order(self):
        assert validate_scope(["write", "read"], ["read", "write", "admin"]) == [
            "write",
            "read",
        ]

    def test_empty_request_is_empty_scope(self):
        assert validate_scope([], ["read"]) == []

    def test_exceeding_request(self):
        with pytest.raises(InvalidScope) as exc_info:
            validate_scope(["read", "delete"], ["read", "write"])

        assert exc_info.value == InvalidScope(
            "Requested scope (read delete) exceeds allowed scope (read write)"
        )

    def test_nothing_allowed(self):
        with pytest.raises(InvalidScope):
            validate_scope(["read"], [])

    def test_parse_and_format(self):
        assert parse_scope(None) is None
        assert parse_scope("  read   write ") == ["read", "write"]
        assert format_scope(["read", "write"]) == "read write"


class TestFormParams:
    def test_require_single_value(self):
        assert require_param({"code": ["abc"]}, "code") == "abc"

    @pytest.mark.parametrize(
        "params,message",
        [
            ({}, "Missing code"),
            ({"code": []}, "Missing code"),
            ({"code": [""]}, "Empty code"),
            ({"code": ["a", ""]}, "Empty code"),
            ({"code": ["a", "b"]}, "Duplicate code"),
        ],
    )
    def test_require_errors(self, params, message):
        with pytest.raises(InvalidRequest) as exc_info:
            require_param(params, "code")
        assert exc_info.value == InvalidRequest(message)

    def test_optional_absent_or_empty(self):
        assert optional_param({}, "scope") is None
        assert optional_param({"scope": [""]}, "scope") is None
        assert optional_param({"scope": ["read"]}, "scope") == "read"

    def test_optional_duplicate(self):
        with pytest.raises(InvalidRequest) as exc_info:
            optional_param({"scope": ["read", "read"]}, "scope")
        assert exc_info.value == InvalidRequest("Duplicate scope")

    def test_from_multi_items_keeps_duplicates(self):
        items = [("grant_type", "password"), ("scope", "a"), ("scope", "b")]
        assert from_multi_items(items) == {
            "grant_type": ["password"],
            "scope": ["a", "b"],
        }
