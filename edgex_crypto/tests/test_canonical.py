"""Tests for canonical request encoding."""

from decimal import Decimal

import pytest

from edgex_crypto.auth.canonical import encode, convert_request_body_to_string
from edgex_crypto.utils.numeric import js_number_to_string


class TestEncode:
    """Test the canonical key=value encoder."""

    def test_key_order_does_not_matter(self):
        assert encode({"b": 1, "a": 2}) == "a=2&b=1"
        assert encode({"a": 2, "b": 1}) == "a=2&b=1"

    def test_nested_mapping(self):
        assert encode({"a": {"c": 1, "b": 2}}) == "a=b=2&c=1"

    def test_sequence_of_mappings_keeps_pairs(self):
        """Objects inside arrays emit key=value pairs, not indices."""
        assert encode({"list": [{"b": 2, "a": 1}, "x"]}) == "list=a=1&b=2&x"
        assert encode([{"y": True}, 3]) == "y=true&3"

    def test_scalars(self):
        assert encode("abc") == "abc"
        assert encode(42) == "42"
        assert encode(True) == "true"
        assert encode(False) == "false"
        assert encode(Decimal("1.50")) == "1.50"

    def test_none_and_callables_are_empty(self):
        assert encode(None) == ""
        assert encode({"a": None, "f": len}) == "a=&f="

    def test_no_url_escaping(self):
        assert encode({"q": "a b&c=d/é"}) == "q=a b&c=d/é"

    def test_unsorted_keeps_insertion_order(self):
        assert encode({"b": 1, "a": 2}, sort_keys=False) == "b=1&a=2"

    def test_sort_uses_utf16_code_units(self):
        """Astral characters sort before U+FF21 in UTF-16 order."""
        value = {"Ａ": 1, "\U0001f600": 2}
        assert encode(value) == "\U0001f600=2&Ａ=1"

    def test_stable_across_calls(self):
        value = {"size": "0.1", "price": "30000", "nested": {"z": [1, 2], "a": "x"}}
        assert encode(value) == encode(dict(reversed(list(value.items()))))
        assert encode(value) == "nested=a=x&z=1&2&price=30000&size=0.1"


class TestConvertRequestBody:
    """Test POST/PUT body conversion."""

    @pytest.mark.parametrize("body", [None, {}, []])
    def test_empty_body_is_empty_string(self, body):
        assert convert_request_body_to_string(body) == ""

    def test_order_body(self):
        body = {"size": 2, "price": "1.5", "reduceOnly": False}
        assert convert_request_body_to_string(body) == "price=1.5&reduceOnly=false&size=2"


class TestJsNumberToString:
    """Float rendering must match JavaScript String(number)."""

    @pytest.mark.parametrize("value,expected", [
        (1.0, "1"),
        (100.0, "100"),
        (0.5, "0.5"),
        (1.5, "1.5"),
        (-1.5, "-1.5"),
        (123.456, "123.456"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (1e21, "1e+21"),
        (1.5e22, "1.5e+22"),
        (0.0, "0"),
        (-0.0, "0"),
    ])
    def test_rendering(self, value, expected):
        assert js_number_to_string(value) == expected

    def test_special_values(self):
        assert js_number_to_string(float("nan")) == "NaN"
        assert js_number_to_string(float("inf")) == "Infinity"
        assert js_number_to_string(float("-inf")) == "-Infinity"

    def test_float_inside_encoded_mapping(self):
        assert encode({"price": 30000.0, "size": 0.25}) == "price=30000&size=0.25"
