"""Tests for base and instance identity."""

from datetime import date

import pytest

from agenda.core.identity import (
    BaseRef,
    InstanceRef,
    base_id_of,
    date_of,
    is_instance_id,
    parse_ref,
)


class TestRefs:
    def test_base_ref_id_is_unchanged(self):
        assert BaseRef("abc123").to_id() == "abc123"

    def test_instance_ref_id(self):
        assert InstanceRef("abc123", date(2026, 1, 5)).to_id() == "abc123@2026-01-05"

    def test_instance_ref_reversible(self):
        ref = InstanceRef("3f2a9c", date(2026, 12, 31))
        instance_id = ref.to_id()
        assert base_id_of(instance_id) == "3f2a9c"
        assert date_of(instance_id) == date(2026, 12, 31)
        assert parse_ref(instance_id) == ref

    def test_base_id_with_dashes_is_not_an_instance(self):
        # uuid-style ids must not be mistaken for instances
        item_id = "0b8e2d3a-1c4f-4b9e-9d2a-5e6f7a8b9c0d"
        assert is_instance_id(item_id) is False
        assert parse_ref(item_id) == BaseRef(item_id)

    def test_dashed_base_id_round_trips_through_instance(self):
        ref = InstanceRef("0b8e2d3a-1c4f", date(2026, 2, 1))
        assert parse_ref(ref.to_id()) == ref


class TestHelpers:
    def test_is_instance_id(self):
        assert is_instance_id("abc@2026-01-05") is True
        assert is_instance_id("abc") is False

    def test_base_id_of_plain_id(self):
        assert base_id_of("abc") == "abc"

    def test_date_of_plain_id_is_none(self):
        assert date_of("abc") is None

    def test_date_of_malformed_suffix(self):
        with pytest.raises(ValueError):
            date_of("abc@tomorrow")
