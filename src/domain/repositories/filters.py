"""Filter vocabulary understood by every IDataStore implementation."""

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Eq:
    """``column = value`` (``column IS NULL`` when value is None)."""

    column: str
    value: Any


@dataclass(frozen=True)
class Gte:
    """``column >= value``."""

    column: str
    value: Any


@dataclass(frozen=True)
class Lte:
    """``column <= value``."""

    column: str
    value: Any


@dataclass(frozen=True)
class In:
    """``column IN values``. An empty collection matches nothing."""

    column: str
    values: Collection[Any]


@dataclass(frozen=True)
class OpenEndedOnOrAfter:
    """``column IS NULL OR column >= value``.

    Matches open-ended date ranges and ranges ending on or after ``value``.
    """

    column: str
    value: Any


Filter = Union[Eq, Gte, Lte, In, OpenEndedOnOrAfter]


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False


def matches(row: dict[str, Any], flt: Filter) -> bool:
    """Evaluate a filter against a plain row dict."""
    value = row.get(flt.column)
    if isinstance(flt, Eq):
        return value == flt.value
    if isinstance(flt, In):
        return value in flt.values
    if isinstance(flt, OpenEndedOnOrAfter):
        return value is None or value >= flt.value
    if value is None:
        return False
    if isinstance(flt, Gte):
        return value >= flt.value
    if isinstance(flt, Lte):
        return value <= flt.value
    raise TypeError(f"Unsupported filter: {flt!r}")
