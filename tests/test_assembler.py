"""Tests for output assembly."""

from datetime import datetime, timezone

import pytest

from xpath_to_json.assembler import OutputAssembler, conform


@pytest.fixture
def assembler():
    return OutputAssembler(clock=lambda: datetime(2025, 10, 5, tzinfo=timezone.utc))


class TestAssemble:
    """Test shaping of raw values after the output sample."""

    def test_no_sample(self, assembler):
        """Test raw values pass through in rule order."""
        raw = {"b": 1, "a": [1, 2]}

        data = assembler.assemble(raw)

        assert data == raw
        assert list(data) == ["b", "a"]

    def test_sample_orders_keys(self, assembler):
        """Test sample keys lead and unmentioned rules follow."""
        data = assembler.assemble({"a": 1, "b": 2, "c": 3}, {"b": 0, "a": 0})

        assert list(data) == ["b", "a", "c"]
        assert data == {"a": 1, "b": 2, "c": 3}

    def test_list_sample(self, assembler):
        """Test a list sample uses its first object as template."""
        data = assembler.assemble({"a": 1, "b": 2}, [{"b": "", "a": ""}])

        assert list(data) == ["b", "a"]

    def test_placeholders(self, assembler):
        """Test rule and built-in placeholders are substituted."""
        sample = {
            "title": "{heading}",
            "meta": {"year": "{currentYear}", "date": "{currentDate}", "source": "shop"},
        }

        data = assembler.assemble({"heading": "Weekly Deals"}, sample)

        assert data == {
            "title": "Weekly Deals",
            "meta": {"year": "2025", "date": "2025-10-05", "source": "shop"},
        }

    def test_placeholder_key(self, assembler):
        """Test a "{rule}" key takes the rule's first value."""
        raw = {"month": [" October 2025 ", "November 2025"], "days": ["15", "16"]}

        data = assembler.assemble(raw, {"{month}": "{days}"})

        assert data == {"October 2025": ["15", "16"]}

    def test_unknown_placeholder_kept(self, assembler):
        """Test placeholders naming no rule stay literal."""
        data = assembler.assemble({}, {"{nothing}": "{missing}"})

        assert data == {"{nothing}": "{missing}"}

    def test_paired_lists(self, assembler):
        """Test [{"{k}": "{v}"}] zips two rule lists."""
        raw = {"dates": ["2024", "2025", "2026"], "values": [" 1 ", "2"]}

        data = assembler.assemble(raw, {"history": [{"{dates}": "{values}"}]})

        assert data == {"history": [{"2024": "1"}, {"2025": "2"}]}

    def test_conformed_rule_value(self, assembler):
        """Test rule values follow the sample's nesting."""
        raw = {
            "items": [{"name": "A", "price": "1", "extra": 0}],
            "colors": "green",
        }
        sample = {"items": [{"price": "", "name": ""}], "colors": [""]}

        data = assembler.assemble(raw, sample)

        assert data["items"] == [{"price": "1", "name": "A", "extra": 0}]
        assert list(data["items"][0]) == ["price", "name", "extra"]
        assert data["colors"] == ["green"]

    def test_scalar_sample_ignored(self, assembler):
        """Test a sample that is not an object is advisory only."""
        assert assembler.assemble({"a": 1}, "anything") == {"a": 1}


class TestConform:
    """Test conform helper."""

    def test_empty_text_under_list_sample(self):
        """Test an empty string becomes an empty list."""
        assert conform([""], "") == []

    def test_mismatch_passes_through(self):
        """Test mismatched shapes are left alone."""
        assert conform({"a": ""}, "text") == "text"
