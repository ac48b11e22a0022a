"""Fixtures for cimatrix engine tests."""

import pytest

from cimatrix import AxisSet, ExcludeRule, IncludeRule


def includes(*rules: dict) -> tuple[IncludeRule, ...]:
    return tuple(IncludeRule.from_mapping(i, rule) for i, rule in enumerate(rules))


def excludes(*rules: dict) -> tuple[ExcludeRule, ...]:
    return tuple(ExcludeRule.from_mapping(i, rule) for i, rule in enumerate(rules))


@pytest.fixture
def example_axes() -> AxisSet:
    """Three axes expanding to 18 base rows."""
    return AxisSet.from_mapping(
        {
            "os": ["linux", "mac", "win"],
            "toolchain": ["stable", "pinned"],
            "suite": ["std", "nostd", "examples"],
        },
    )


@pytest.fixture
def burn_axes() -> AxisSet:
    return AxisSet.from_mapping(
        {
            "os": ["macos-13", "ubuntu-22.04", "windows-2022"],
            "rust": ["stable", "1.71.0"],
            "test": ["std", "no-std", "examples"],
        },
    )


@pytest.fixture
def burn_includes() -> tuple[IncludeRule, ...]:
    return includes(
        {"cache": "stable", "rust": "stable"},
        {"cache": "1-71-0", "rust": "1.71.0"},
        {
            "os": "ubuntu-22.04",
            "coverage-flags": "COVERAGE=1",
            "rust": "stable",
            "test": "std",
        },
        {"os": "macos-13", "rust": "stable", "test": "std"},
        {"os": "windows-2022", "wgpu-flags": "DISABLE_WGPU=1"},
    )


@pytest.fixture
def burn_excludes() -> tuple[ExcludeRule, ...]:
    return excludes(
        {"rust": "1.71.0", "test": "examples"},
        {"os": "macos-13", "test": "no-std"},
        {"os": "windows-2022", "test": "no-std"},
    )
