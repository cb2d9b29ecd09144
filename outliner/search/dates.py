"""Absolute and relative date values used by date filters.

A query date is either an absolute calendar date (``2025-11-01``) or an
offset from the evaluation instant:

    - ``-7d`` seven days before now, ``+7d`` seven days after now
    - ``7d`` (unsigned) seven days ago
    - units: ``h`` hours, ``d`` days, ``w`` weeks, ``m`` months, ``y`` years

Values are classified once at parse time; relative offsets are resolved
against the ``now`` passed to each evaluation so live searches stay
correct as time passes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from outliner.search.ast_nodes import ComparisonOp

_ABSOLUTE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_RELATIVE_PATTERN = re.compile(r"^([+-]?)(\d+)([hdwmy])$")

_UNIT_FIELDS: dict[str, str] = {
    "h": "hours",
    "d": "days",
    "w": "weeks",
    "m": "months",
    "y": "years",
}


@dataclass(frozen=True)
class DateValue:
    """A classified date value from a query.

    Exactly one of ``absolute`` or ``unit`` is set. For relative values
    ``amount`` is signed: negative is in the past.
    """

    raw: str
    absolute: date | None = None
    amount: int = 0
    unit: str | None = None

    @property
    def is_relative(self) -> bool:
        return self.unit is not None

    def resolve(self, now: datetime) -> datetime:
        """Return the instant this value denotes when evaluated at ``now``."""
        if self.absolute is not None:
            return datetime.combine(self.absolute, datetime.min.time(), tzinfo=now.tzinfo)

        try:
            return now + relativedelta(**{_UNIT_FIELDS[self.unit]: self.amount})
        except (OverflowError, ValueError):
            # Offsets beyond the representable range clamp to its ends
            bound = datetime.max if self.amount > 0 else datetime.min
            return bound.replace(tzinfo=now.tzinfo)


def parse_date_value(value: str) -> DateValue | None:
    """Classify a query value as a date.

    Args:
        value: Raw value text from a filter, e.g. ``-7d`` or ``2025-11-01``.

    Returns:
        The classified DateValue, or None when the value is not a date.
    """
    match = _RELATIVE_PATTERN.match(value)
    if match:
        sign, digits, unit = match.groups()
        amount = int(digits)
        # Unsigned offsets mean "N units ago"
        if sign != "+":
            amount = -amount
        return DateValue(raw=value, amount=amount, unit=unit)

    if _ABSOLUTE_PATTERN.match(value):
        try:
            return DateValue(raw=value, absolute=date.fromisoformat(value))
        except ValueError:
            return None

    return None


def parse_timestamp(value: str) -> datetime | None:
    """Parse a stored attribute value (ISO 8601 date or datetime).

    Returns:
        The parsed datetime (midnight for plain dates), or None if the
        value is not a valid ISO 8601 date.
    """
    try:
        return isoparse(value.strip())
    except (ValueError, OverflowError):
        return None


def _align(moment: datetime, reference: datetime) -> tuple[datetime, datetime]:
    """Make two datetimes comparable.

    Two aware datetimes compare as instants; otherwise both are compared by
    wall-clock time.
    """
    if moment.tzinfo is not None and reference.tzinfo is not None:
        return moment, reference
    return moment.replace(tzinfo=None), reference.replace(tzinfo=None)


def compare_dates(moment: datetime, op: ComparisonOp, value: DateValue, now: datetime) -> bool:
    """Compare a node timestamp against a query date value.

    Absolute values compare calendar dates. Relative values compare
    instants for ordering operators and calendar dates for ``=``/``!=``.

    Args:
        moment: The node's timestamp (created, modified or attribute date).
        op: Comparison operator.
        value: The classified query value.
        now: The evaluation instant.

    Returns:
        True if ``moment <op> value`` holds.
    """
    target = value.resolve(now)
    moment, target = _align(moment, target)

    if value.absolute is not None or op in (ComparisonOp.EQUAL, ComparisonOp.NOT_EQUAL):
        return op.compare(moment.date(), target.date())
    return op.compare(moment, target)
