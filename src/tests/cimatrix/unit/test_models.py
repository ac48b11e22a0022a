"""Tests for cimatrix.models."""

import pytest

from cimatrix.errors import ConfigurationError
from cimatrix.models import (
    Axis,
    AxisSet,
    ExcludeRule,
    IncludeRule,
    Job,
    normalize_value,
)


@pytest.mark.unit
class TestNormalizeValue:
    """Tests for normalize_value."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("stable", "stable"),
            (True, "true"),
            (False, "false"),
            (None, ""),
            (3, "3"),
            (1.5, "1.5"),
        ],
    )
    def test_scalars(self, raw, expected):
        assert normalize_value(raw) == expected

    def test_rejects_collections(self):
        with pytest.raises(ValueError, match="expected a scalar value"):
            normalize_value(["a"])


@pytest.mark.unit
class TestAxisSet:
    """Tests for AxisSet construction and validation."""

    def test_from_mapping_keeps_declaration_order(self, example_axes):
        assert example_axes.names == ("os", "toolchain", "suite")
        assert example_axes.get("suite").values == ("std", "nostd", "examples")

    def test_combination_count(self, example_axes):
        assert example_axes.combination_count == 18

    def test_empty_axis_set_has_no_combinations(self):
        assert AxisSet(axes=()).combination_count == 0

    def test_contains_and_len(self, example_axes):
        assert "os" in example_axes
        assert "cache" not in example_axes
        assert len(example_axes) == 3

    def test_axis_without_values_is_rejected(self):
        with pytest.raises(ConfigurationError, match="at least one value"):
            AxisSet.from_mapping({"os": []})

    def test_duplicate_axis_names_are_rejected(self):
        with pytest.raises(ConfigurationError, match="duplicate axis 'os'"):
            AxisSet(axes=(Axis("os", ("a",)), Axis("os", ("b",))))

    def test_duplicate_values_are_rejected(self):
        with pytest.raises(ConfigurationError, match="duplicate values"):
            AxisSet.from_mapping({"os": ["linux", "linux"]})

    def test_non_list_values_are_rejected(self):
        with pytest.raises(ConfigurationError, match="must be a list"):
            AxisSet.from_mapping({"os": "linux"})

    def test_values_are_normalized(self):
        axes = AxisSet.from_mapping({"debug": [True, False], "version": [3, 1.5]})
        assert axes.get("debug").values == ("true", "false")
        assert axes.get("version").values == ("3", "1.5")


@pytest.mark.unit
class TestRules:
    """Tests for IncludeRule and ExcludeRule."""

    def test_include_splits_axis_and_extra_fields(self, example_axes):
        rule = IncludeRule.from_mapping(0, {"toolchain": "stable", "cache": "stable"})

        assert rule.axis_fields(example_axes) == (("toolchain", "stable"),)
        assert rule.extra_fields(example_axes) == (("cache", "stable"),)

    def test_empty_rule_is_rejected(self):
        with pytest.raises(ConfigurationError, match=r"exclude\[2\]"):
            ExcludeRule.from_mapping(2, {})

    def test_non_mapping_rule_is_rejected(self):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            IncludeRule.from_mapping(0, ["os"])

    def test_nested_value_reports_field(self):
        with pytest.raises(ConfigurationError) as exc_info:
            IncludeRule.from_mapping(1, {"os": "linux", "extra": {"a": 1}})

        assert exc_info.value.rule_kind == "include"
        assert exc_info.value.rule_index == 1
        assert exc_info.value.field == "extra"

    def test_error_points_at_rule(self):
        rule = ExcludeRule.from_mapping(0, {"os": "mac"})
        error = rule.error("boom", field="os")

        assert str(error) == "exclude[0] {'os': 'mac'}: boom"
        assert error.rule == {"os": "mac"}


@pytest.mark.unit
class TestJob:
    """Tests for Job."""

    def test_equality_ignores_field_order(self):
        a = Job(fields=(("os", "linux"), ("suite", "std")))
        b = Job(fields=(("suite", "std"), ("os", "linux")))

        assert a == b
        assert hash(a) == hash(b)

    def test_distinct_when_any_field_differs(self):
        a = Job.from_mapping({"os": "linux", "cache": "stable"})
        b = Job.from_mapping({"os": "linux"})

        assert a != b

    def test_lookup(self):
        job = Job.from_mapping({"os": "linux", "suite": "std"})

        assert job["os"] == "linux"
        assert job.get("cache") is None
        assert "suite" in job
        with pytest.raises(KeyError):
            job["cache"]

    def test_matches_requires_present_and_equal(self):
        job = Job.from_mapping({"os": "mac", "suite": "nostd"})

        assert job.matches((("os", "mac"), ("suite", "nostd")))
        assert not job.matches((("os", "mac"), ("suite", "std")))
        assert not job.matches((("cache", "stable"),))

    def test_with_fields_overwrites_in_place_and_appends(self):
        job = Job.from_mapping({"os": "win", "cache": "old"})

        updated = job.with_fields((("cache", "new"), ("wgpu", "off")))

        assert updated.names == ("os", "cache", "wgpu")
        assert updated["cache"] == "new"
        assert job["cache"] == "old"

    def test_label(self):
        job = Job.from_mapping({"os": "linux", "toolchain": "stable"})
        assert job.label == "linux, stable"
