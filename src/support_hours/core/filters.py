"""Composable record filters built from optional query fields."""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable


class Operator(Enum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"
    NOT_IN = "not in"


_COMPARATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: operator.eq,
    Operator.NE: operator.ne,
    Operator.LT: operator.lt,
    Operator.LE: operator.le,
    Operator.GT: operator.gt,
    Operator.GE: operator.ge,
    Operator.IN: lambda value, options: value in options,
    Operator.NOT_IN: lambda value, options: value not in options,
}


@dataclass(frozen=True, slots=True)
class Constraint:
    field: str
    op: Operator
    value: Any

    def matches(self, record: Any) -> bool:
        actual = _normalize(getattr(record, self.field))
        expected = self.value
        if self.op in (Operator.IN, Operator.NOT_IN):
            expected = frozenset(_normalize(item) for item in expected)
        else:
            expected = _normalize(expected)
        return _COMPARATORS[self.op](actual, expected)

    def describe(self) -> str:
        if self.op in (Operator.IN, Operator.NOT_IN):
            rendered = "(" + ", ".join(sorted(str(_normalize(item)) for item in self.value)) + ")"
        else:
            rendered = str(_normalize(self.value))
        return f"{self.field} {self.op.value} {rendered}"


@dataclass(frozen=True, slots=True)
class SessionFilter:
    """An AND-combined set of constraints over record attributes."""

    constraints: tuple[Constraint, ...] = field(default_factory=tuple)

    def where(self, field_name: str, op: Operator, value: Any) -> "SessionFilter":
        return SessionFilter(constraints=self.constraints + (Constraint(field_name, op, value),))

    def where_equal(self, field_name: str, value: Any) -> "SessionFilter":
        """Add an equality constraint unless ``value`` is empty."""
        if value is None or value == "":
            return self
        return self.where(field_name, Operator.EQ, value)

    def matches(self, record: Any) -> bool:
        return all(constraint.matches(record) for constraint in self.constraints)

    def describe(self) -> str:
        return " AND ".join(constraint.describe() for constraint in self.constraints) or "(all)"

    def __bool__(self) -> bool:
        return bool(self.constraints)


SESSION_FILTER_FIELDS = ("property_id", "resident_id", "support_worker_id", "support_type", "status")


def session_filter(
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    **fields: Any,
) -> SessionFilter:
    """Build a filter from the optional session list/query fields."""
    unknown = set(fields) - set(SESSION_FILTER_FIELDS)
    if unknown:
        raise ValueError("Unsupported filter fields: " + ", ".join(sorted(unknown)))
    result = SessionFilter()
    if date_from is not None:
        result = result.where("session_date", Operator.GE, date_from)
    if date_to is not None:
        result = result.where("session_date", Operator.LE, date_to)
    for name in SESSION_FILTER_FIELDS:
        result = result.where_equal(name, fields.get(name))
    return result


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value
