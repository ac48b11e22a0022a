"""Matrix expansion: axes x includes x excludes into an ordered job list.

Resolution happens in three stages, each producing a new tuple of jobs:

1. cartesian product of the axes (first declared axis is the outer loop)
2. include rules, in order, merged into every matching row or appended
3. exclude rules, removing rows whose fields match every rule field

The resulting order is the order jobs are displayed and logged in.
"""

import itertools
from collections.abc import Sequence

from cimatrix.errors import ConfigurationError
from cimatrix.models import AxisSet, ExcludeRule, IncludeRule, Job
from cimatrix_logging import get_cli_logger

logger = get_cli_logger(__name__)


class MatrixResolver:
    """Expands a matrix definition into concrete jobs.

    All methods are static and side-effect free; the resolver holds no state
    between calls.
    """

    @staticmethod
    def base_rows(axes: AxisSet) -> tuple[Job, ...]:
        """Compute the cartesian product of the axis values.

        Parameters
        ----------
        axes : AxisSet
            Declared axes

        Returns
        -------
        tuple[Job, ...]
            One row per combination, in declaration order
        """
        if not axes:
            return ()
        names = axes.names
        combos = itertools.product(*(axis.values for axis in axes))
        return tuple(Job(fields=tuple(zip(names, combo))) for combo in combos)

    @staticmethod
    def apply_includes(
        rows: tuple[Job, ...],
        axes: AxisSet,
        includes: Sequence[IncludeRule],
    ) -> tuple[Job, ...]:
        """Merge or append each include rule in declaration order.

        A rule matches a row when every field of the rule that names an axis
        is present on the row with the same value. Matching rows all receive
        the rule's remaining fields, overwriting values written by earlier
        includes. Without any match the rule is appended as a row of its own.

        Parameters
        ----------
        rows : tuple[Job, ...]
            Rows produced by the previous stage
        axes : AxisSet
            Declared axes
        includes : Sequence[IncludeRule]
            Include rules in declaration order

        Returns
        -------
        tuple[Job, ...]
            Rows after all includes are applied
        """
        current = list(rows)
        for rule in includes:
            overlap = rule.axis_fields(axes)
            extra = rule.extra_fields(axes)

            matched = 0
            if overlap:
                for position, row in enumerate(current):
                    if row.matches(overlap):
                        current[position] = row.with_fields(extra)
                        matched += 1

            if matched:
                logger.debug(
                    "include[%d] %s merged into %d row(s)",
                    rule.index,
                    rule.as_dict(),
                    matched,
                )
            else:
                current.append(Job(fields=rule.fields))
                logger.debug(
                    "include[%d] %s appended as new row",
                    rule.index,
                    rule.as_dict(),
                )
        return tuple(current)

    @staticmethod
    def apply_excludes(
        rows: tuple[Job, ...],
        excludes: Sequence[ExcludeRule],
    ) -> tuple[Job, ...]:
        """Drop rows matching any exclude rule, preserving order.

        Parameters
        ----------
        rows : tuple[Job, ...]
            Rows after includes
        excludes : Sequence[ExcludeRule]
            Exclude rules; their order does not affect the result

        Returns
        -------
        tuple[Job, ...]
            Remaining rows in their original order
        """
        kept = []
        for row in rows:
            hit = next((rule for rule in excludes if row.matches(rule.fields)), None)
            if hit is None:
                kept.append(row)
            else:
                logger.debug(
                    "exclude[%d] %s removed %s",
                    hit.index,
                    hit.as_dict(),
                    row.to_dict(),
                )
        return tuple(kept)

    @staticmethod
    def validate(
        axes: AxisSet,
        includes: Sequence[IncludeRule],
        excludes: Sequence[ExcludeRule],
    ) -> None:
        """Check rules against the declared fields before resolution.

        Raises
        ------
        ConfigurationError
            If an exclude rule names a field that no axis or include defines
        """
        known = set(axes.names)
        for rule in includes:
            known.update(rule.names)

        for rule in excludes:
            for name in rule.names:
                if name not in known:
                    msg = (
                        f"unknown field '{name}' (not an axis and not added by "
                        "any include rule)"
                    )
                    raise rule.error(msg, field=name)

    @staticmethod
    def find_unreachable_includes(
        axes: AxisSet,
        includes: Sequence[IncludeRule],
    ) -> list[IncludeRule]:
        """Return include rules that name no axis at all.

        Such rules can never merge into a row and always add a row lacking
        every axis value, which is usually a typo in the definition.
        """
        return [rule for rule in includes if not rule.axis_fields(axes)]


def resolve(
    axes: AxisSet,
    includes: Sequence[IncludeRule] = (),
    excludes: Sequence[ExcludeRule] = (),
) -> tuple[Job, ...]:
    """Resolve a matrix definition into its ordered jobs.

    Pure function of its inputs: identical arguments always produce an
    identical tuple.

    Parameters
    ----------
    axes : AxisSet
        Declared axes
    includes : Sequence[IncludeRule]
        Include rules in declaration order
    excludes : Sequence[ExcludeRule]
        Exclude rules

    Returns
    -------
    tuple[Job, ...]
        Resolved jobs

    Raises
    ------
    ConfigurationError
        If a rule references an unknown field
    """
    if not isinstance(axes, AxisSet):
        msg = f"axes must be an AxisSet, got {type(axes).__name__}"
        raise ConfigurationError(msg)

    MatrixResolver.validate(axes, includes, excludes)
    for rule in MatrixResolver.find_unreachable_includes(axes, includes):
        logger.warning(
            "include[%d] %s names no axis and will always add a separate row",
            rule.index,
            rule.as_dict(),
        )

    rows = MatrixResolver.base_rows(axes)
    logger.debug("Expanded %d axes into %d base rows", len(axes), len(rows))
    rows = MatrixResolver.apply_includes(rows, axes, includes)
    jobs = MatrixResolver.apply_excludes(rows, excludes)
    logger.debug("Resolved %d job(s)", len(jobs))
    return jobs
