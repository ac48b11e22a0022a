"""Core types for matrix definitions and resolved jobs."""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from cimatrix.errors import ConfigurationError

FieldItems = tuple[tuple[str, str], ...]


def normalize_value(value: Any) -> str:
    """Normalize a scalar document value into a field string.

    Booleans become ``true``/``false`` (YAML spelling), ``None`` becomes the
    empty string and numbers use their ``str`` form.

    Raises
    ------
    ValueError
        If the value is not a scalar
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    msg = f"expected a scalar value, got {type(value).__name__}"
    raise ValueError(msg)


@dataclass(frozen=True)
class Axis:
    """A named matrix dimension with its ordered values."""

    name: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class AxisSet:
    """Ordered collection of axes.

    Every axis has at least one value, axis names are unique and values
    within an axis are unique.
    """

    axes: tuple[Axis, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for axis in self.axes:
            if not isinstance(axis.name, str) or not axis.name:
                msg = f"axis name must be a non-empty string, got {axis.name!r}"
                raise ConfigurationError(msg, field=str(axis.name))
            if axis.name in seen:
                msg = f"duplicate axis '{axis.name}'"
                raise ConfigurationError(msg, field=axis.name)
            if not axis.values:
                msg = f"axis '{axis.name}' must declare at least one value"
                raise ConfigurationError(msg, field=axis.name)
            if len(set(axis.values)) != len(axis.values):
                msg = f"axis '{axis.name}' declares duplicate values {axis.values!r}"
                raise ConfigurationError(msg, field=axis.name)
            seen.add(axis.name)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "AxisSet":
        """Build an axis set from ``{name: [values...]}`` in insertion order."""
        axes = []
        for name, values in mapping.items():
            if not isinstance(values, (list, tuple)):
                msg = f"axis '{name}' must be a list of values"
                raise ConfigurationError(msg, field=str(name))
            try:
                normalized = tuple(normalize_value(v) for v in values)
            except ValueError as e:
                msg = f"axis '{name}': {e}"
                raise ConfigurationError(msg, field=str(name)) from e
            axes.append(Axis(name=name, values=normalized))
        return cls(axes=tuple(axes))

    @property
    def names(self) -> tuple[str, ...]:
        """Axis names in declaration order."""
        return tuple(axis.name for axis in self.axes)

    @property
    def combination_count(self) -> int:
        """Number of base rows the axis set expands to."""
        if not self.axes:
            return 0
        return math.prod(len(axis.values) for axis in self.axes)

    def get(self, name: str) -> Axis | None:
        for axis in self.axes:
            if axis.name == name:
                return axis
        return None

    def __contains__(self, name: object) -> bool:
        return any(axis.name == name for axis in self.axes)

    def __iter__(self) -> Iterator[Axis]:
        return iter(self.axes)

    def __len__(self) -> int:
        return len(self.axes)


def _rule_items(kind: str, index: int, raw: Mapping[str, Any]) -> FieldItems:
    if not isinstance(raw, Mapping):
        msg = "rule must be a mapping of field names to values"
        raise ConfigurationError(msg, rule_kind=kind, rule_index=index, rule=raw)
    if not raw:
        msg = "rule must specify at least one field"
        raise ConfigurationError(msg, rule_kind=kind, rule_index=index, rule={})
    items = []
    for name, value in raw.items():
        if not isinstance(name, str) or not name:
            msg = f"field name must be a non-empty string, got {name!r}"
            raise ConfigurationError(
                msg,
                rule_kind=kind,
                rule_index=index,
                rule=dict(raw),
                field=str(name),
            )
        try:
            items.append((name, normalize_value(value)))
        except ValueError as e:
            raise ConfigurationError(
                str(e),
                rule_kind=kind,
                rule_index=index,
                rule=dict(raw),
                field=name,
            ) from e
    return tuple(items)


@dataclass(frozen=True)
class _Rule:
    kind: ClassVar[str] = "rule"

    index: int
    fields: FieldItems

    @classmethod
    def from_mapping(cls, index: int, raw: Mapping[str, Any]):
        return cls(index=index, fields=_rule_items(cls.kind, index, raw))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    def as_dict(self) -> dict[str, str]:
        return dict(self.fields)

    def error(self, message: str, field: str | None = None) -> ConfigurationError:
        """Build a configuration error pointing at this rule."""
        return ConfigurationError(
            message,
            rule_kind=self.kind,
            rule_index=self.index,
            rule=self.as_dict(),
            field=field,
        )


@dataclass(frozen=True)
class IncludeRule(_Rule):
    """Partial field map that augments matching rows or adds a new row."""

    kind: ClassVar[str] = "include"

    def axis_fields(self, axes: AxisSet) -> FieldItems:
        """Fields naming an axis; these decide which rows the rule merges into."""
        return tuple((n, v) for n, v in self.fields if n in axes)

    def extra_fields(self, axes: AxisSet) -> FieldItems:
        """Fields not naming an axis; these are written onto matching rows."""
        return tuple((n, v) for n, v in self.fields if n not in axes)


@dataclass(frozen=True)
class ExcludeRule(_Rule):
    """Partial field map; rows matching every field are removed."""

    kind: ClassVar[str] = "exclude"


@dataclass(frozen=True, eq=False)
class Job:
    """A resolved matrix row.

    Fields keep their resolution order (axes first, then include-added
    fields) for display. Equality and hashing use the field set only.
    """

    fields: FieldItems = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "Job":
        return cls(fields=tuple(mapping.items()))

    def get(self, name: str, default: str | None = None) -> str | None:
        for key, value in self.fields:
            if key == name:
                return value
        return default

    def __getitem__(self, name: str) -> str:
        for key, value in self.fields:
            if key == name:
                return value
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self.fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Job):
            return NotImplemented
        return frozenset(self.fields) == frozenset(other.fields)

    def __hash__(self) -> int:
        return hash(frozenset(self.fields))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(key for key, _ in self.fields)

    def to_dict(self) -> dict[str, str]:
        return dict(self.fields)

    def matches(self, items: FieldItems) -> bool:
        """Return True when every given field is present and equal."""
        return all(self.get(name) == value for name, value in items)

    def with_fields(self, items: FieldItems) -> "Job":
        """Return a copy with ``items`` written over existing fields.

        Existing fields keep their position; new fields are appended.
        """
        updates = dict(items)
        merged = [(key, updates.pop(key, value)) for key, value in self.fields]
        merged.extend(updates.items())
        return Job(fields=tuple(merged))

    @property
    def label(self) -> str:
        """Short display name, e.g. ``ubuntu-22.04, stable, std``."""
        return ", ".join(value for _, value in self.fields)

    def __repr__(self) -> str:
        return f"Job({self.to_dict()!r})"
