"""Tests for the value kind registry."""

from datetime import datetime, timezone

import pytest

from crudforge.core.types import (
    VALUE_KINDS,
    get_value_kind,
    list_value_kinds,
    parse_bool,
    parse_time,
)
from crudforge.validation import is_set


class TestRegistry:
    def test_lists_primitive_and_nullable_kinds(self):
        names = list_value_kinds()
        for base in ("int", "string", "bool", "float", "time"):
            assert base in names
            assert f"null_{base}" in names

    def test_nullable_flag_selects_null_variant(self):
        assert get_value_kind("int", nullable=True).name == "null_int"
        assert get_value_kind("null_int").nullable is True

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unknown value type 'decimal'"):
            get_value_kind("decimal")

    def test_every_kind_has_storage_type(self):
        for kind in VALUE_KINDS.values():
            assert kind.storage_type


class TestParse:
    def test_int(self):
        assert get_value_kind("int").parse("42") == 42

    def test_int_invalid(self):
        with pytest.raises(ValueError):
            get_value_kind("int").parse("forty-two")

    def test_empty_required_is_zero(self):
        assert get_value_kind("int").parse("") == 0
        assert get_value_kind("string").parse("") == ""

    def test_empty_nullable_is_none(self):
        for name in ("null_int", "null_string", "null_bool", "null_time", "null_float"):
            assert VALUE_KINDS[name].parse("") is None

    def test_bool_spellings(self):
        for raw in ("1", "t", "T", "TRUE", "true", "True"):
            assert parse_bool(raw) is True
        for raw in ("0", "f", "F", "FALSE", "false", "False"):
            assert parse_bool(raw) is False
        with pytest.raises(ValueError):
            parse_bool("yes")

    def test_naive_time_is_utc(self):
        assert parse_time("2024-03-01T10:00:00") == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_float(self):
        assert get_value_kind("float").parse("2.5") == 2.5

    def test_int_limited_to_64_bits(self):
        assert get_value_kind("int").parse(str(2**63 - 1)) == 2**63 - 1
        assert get_value_kind("null_int").parse(str(-(2**63))) == -(2**63)
        for raw in (str(2**63), str(-(2**63) - 1), "99999999999999999999"):
            with pytest.raises(ValueError):
                get_value_kind("int").parse(raw)
            with pytest.raises(ValueError):
                get_value_kind("null_int").parse(raw)

    @pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "Infinity", "1e400"])
    def test_float_must_be_finite(self, raw):
        with pytest.raises(ValueError):
            get_value_kind("float").parse(raw)
        with pytest.raises(ValueError):
            get_value_kind("null_float").parse(raw)


class TestLoad:
    def test_nullable_keeps_none(self):
        assert get_value_kind("int", nullable=True).load(None) is None

    def test_required_falls_back_to_zero(self):
        assert get_value_kind("int").load(None) == 0

    def test_bool_from_integer_storage(self):
        assert get_value_kind("bool").load(1) is True

    def test_time_from_iso_text(self):
        value = get_value_kind("time").load("2024-03-01T10:00:00.123456+00:00")
        assert value == datetime(2024, 3, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)


class TestDefaultRules:
    def test_nullable_kinds_have_no_rules(self):
        assert get_value_kind("string", nullable=True).default_rules() == []

    def test_plain_string_requires_one_character(self):
        rules = get_value_kind("string").default_rules()
        assert len(rules) == 1
        assert rules[0]("name", "", "") is not None
        assert rules[0]("name", "x", "x") is None

    def test_other_primitives_must_be_set(self):
        for name in ("int", "bool", "float", "time"):
            assert get_value_kind(name).default_rules() == [is_set]
